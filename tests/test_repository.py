"""Tests for the in-memory and JSON contract repositories."""

import json

import pytest

from ffcm.errors import (
    DUPLICATE_ACTIVE_CONTRACT,
    LEAGUE_NOT_FOUND,
    TURNOVER_IN_PROGRESS,
    ConflictError,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
)
from ffcm.models import DeadMoneyRecord
from ffcm.repository import JsonContractRepository
from ffcm.turnover import execute_turnover

from conftest import LEAGUE_ID, build_contract


def league_file(**settings) -> dict:
    values = {
        'salary_cap': 100_000_000.0,
        'season': 2025,
        'dead_money_config': {
            'currentSeason': 1.0,
            'futureSeasons': {'1': 0.25, '2': 0.25, '3': 0.25, '4': 0.25},
        },
    }
    values.update(settings)
    return {
        'id': LEAGUE_ID,
        'name': 'Test League',
        'settings': values,
        'teams': [{'id': 't1', 'name': 'Alpha'}],
        'contracts': [
            build_contract(id='c1', years_remaining=1, original_years=1).to_dict(),
            build_contract(id='c2', player_id='p2', has_been_tagged=True).to_dict(),
        ],
        'dead_money': [],
    }


@pytest.fixture
def data_dir(tmp_path):
    """Data directory holding one league file."""
    leagues = tmp_path / 'leagues'
    leagues.mkdir()
    with open(leagues / f'{LEAGUE_ID}.json', 'w') as f:
        json.dump(league_file(), f)
    return tmp_path


def read_league(data_dir) -> dict:
    with open(data_dir / 'leagues' / f'{LEAGUE_ID}.json') as f:
        return json.load(f)


class TestInMemoryRepository:
    """Tests for the in-memory repository."""

    def test_missing_league(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            repository.get_league('nope')
        assert exc_info.value.code == LEAGUE_NOT_FOUND

    def test_list_teams(self, repository):
        assert [t.id for t in repository.list_teams(LEAGUE_ID)] == ['t1', 't2']

    def test_missing_contract(self, repository):
        with pytest.raises(NotFoundError):
            repository.get_contract(LEAGUE_ID, 'nope')

    def test_status_filter(self, repository):
        active = repository.list_contracts(LEAGUE_ID, status='ACTIVE')
        assert sorted(c.id for c in active) == ['c1', 'c2', 'c3']

    def test_reads_return_copies(self, repository):
        """Test that mutating a returned contract does not change storage."""
        contract = repository.get_contract(LEAGUE_ID, 'c1')
        contract.current_salary = 1.0
        assert repository.get_contract(LEAGUE_ID, 'c1').current_salary == 1_000_000.0

    def test_update_contract(self, repository):
        updated = repository.update_contract(LEAGUE_ID, 'c1', current_salary=5.0)
        assert updated.current_salary == 5.0
        assert updated.updated_at is not None
        assert repository.get_contract(LEAGUE_ID, 'c1').current_salary == 5.0

    def test_update_unknown_field(self, repository):
        with pytest.raises(ValidationError):
            repository.update_contract(LEAGUE_ID, 'c1', salary=5.0)

    def test_duplicate_active_contract(self, repository):
        """Test that a player cannot hold two active contracts with one team."""
        with pytest.raises(ConflictError) as exc_info:
            repository.add_contract(build_contract(id='c9', player_id='p1'))
        assert exc_info.value.code == DUPLICATE_ACTIVE_CONTRACT

    def test_same_player_other_team_allowed(self, repository):
        repository.add_contract(build_contract(id='c9', player_id='p1', team_id='t2'))
        assert repository.get_contract(LEAGUE_ID, 'c9').team_id == 't2'

    def test_update_league_settings(self, repository):
        league = repository.update_league_settings(LEAGUE_ID, season=2026)
        assert league.season == 2026
        assert repository.get_league(LEAGUE_ID).season == 2026

    def test_invalid_league_settings(self, repository):
        with pytest.raises(ValidationError):
            repository.update_league_settings(LEAGUE_ID, annual_increase_percentage=-5)

    def test_reset_tag_flags_only_active(self, repository):
        """Test that tag flags are cleared on ACTIVE contracts only."""
        repository.update_contract(LEAGUE_ID, 'c4', has_been_tagged=True)

        assert repository.reset_tag_flags(LEAGUE_ID) == 1
        assert repository.get_contract(LEAGUE_ID, 'c2').has_been_tagged is False
        assert repository.get_contract(LEAGUE_ID, 'c4').has_been_tagged is True

    def test_dead_money_filtered_by_team(self, repository):
        repository.add_dead_money(LEAGUE_ID, [
            DeadMoneyRecord(id='d1', team_id='t1', player_id='p1', amount=10.0, year=2025),
            DeadMoneyRecord(id='d2', team_id='t2', player_id='p3', amount=20.0, year=2025),
        ])
        assert [r.id for r in repository.list_dead_money(LEAGUE_ID, team_id='t2')] == ['d2']

    def test_transaction_rolls_back(self, repository):
        """Test that a failing transaction leaves nothing changed."""
        with pytest.raises(RuntimeError):
            with repository.transaction(LEAGUE_ID):
                repository.update_contract(LEAGUE_ID, 'c1', current_salary=1.0)
                repository.update_league_settings(LEAGUE_ID, season=2030)
                raise RuntimeError('boom')

        assert repository.get_contract(LEAGUE_ID, 'c1').current_salary == 1_000_000.0
        assert repository.get_league(LEAGUE_ID).season == 2025

    def test_nested_transaction_rolls_back_with_outer(self, repository):
        with pytest.raises(RuntimeError):
            with repository.transaction():
                with repository.transaction():
                    repository.update_contract(LEAGUE_ID, 'c1', years_remaining=0)
                raise RuntimeError('boom')

        assert repository.get_contract(LEAGUE_ID, 'c1').years_remaining == 1


class TestJsonRepository:
    """Tests for the JSON file repository."""

    def test_loads_league(self, data_dir):
        repo = JsonContractRepository(data_dir)
        league = repo.get_league(LEAGUE_ID)

        assert league.name == 'Test League'
        assert league.settings.dead_money_config.future_seasons['1'] == 0.25
        assert [t.id for t in league.teams] == ['t1']
        assert len(repo.list_contracts(LEAGUE_ID)) == 2

    def test_missing_league(self, tmp_path):
        with pytest.raises(NotFoundError):
            JsonContractRepository(tmp_path).get_league('nope')

    def test_corrupt_dead_money_config_uses_default(self, data_dir):
        """Test that an unreadable stored table falls back to the default."""
        raw = league_file(dead_money_config='{not json')
        with open(data_dir / 'leagues' / f'{LEAGUE_ID}.json', 'w') as f:
            json.dump(raw, f)

        config = JsonContractRepository(data_dir).get_league(LEAGUE_ID).settings.dead_money_config
        assert config.current_season == 1.0
        assert config.future_seasons == {'1': 0.25, '2': 0.25, '3': 0.25, '4': 0.25}

    def test_invalid_file(self, data_dir):
        """Test that a league file failing the schema is a persistence failure."""
        raw = league_file()
        raw['contracts'][0]['status'] = 'EXTENDED'
        with open(data_dir / 'leagues' / f'{LEAGUE_ID}.json', 'w') as f:
            json.dump(raw, f)

        with pytest.raises(PersistenceFailure):
            JsonContractRepository(data_dir).get_league(LEAGUE_ID)

    def test_infinite_salary_rejected(self, data_dir):
        """Test that an Infinity salary in a league file does not load."""
        raw = league_file()
        raw['contracts'][0]['current_salary'] = float('inf')
        with open(data_dir / 'leagues' / f'{LEAGUE_ID}.json', 'w') as f:
            json.dump(raw, f)

        with pytest.raises(PersistenceFailure):
            JsonContractRepository(data_dir).get_league(LEAGUE_ID)

    def test_changes_are_persisted(self, data_dir):
        """Test that writes reach the file and a new instance sees them."""
        JsonContractRepository(data_dir).update_contract(LEAGUE_ID, 'c1', current_salary=42.0)

        assert JsonContractRepository(data_dir).get_contract(LEAGUE_ID, 'c1').current_salary == 42.0
        stored = read_league(data_dir)
        assert stored['settings']['dead_money_config']['currentSeason'] == 1.0
        assert stored['updated_at'] is not None

    def test_failed_transaction_leaves_file_unchanged(self, data_dir):
        before = read_league(data_dir)
        repo = JsonContractRepository(data_dir)

        with pytest.raises(RuntimeError):
            with repo.transaction(LEAGUE_ID):
                repo.update_contract(LEAGUE_ID, 'c1', current_salary=42.0)
                raise RuntimeError('boom')

        assert read_league(data_dir) == before
        assert repo.get_contract(LEAGUE_ID, 'c1').current_salary == 1_000_000.0

    def test_locked_league_conflicts(self, data_dir):
        """Test that a second transaction on a locked league is refused."""
        (data_dir / 'leagues' / f'{LEAGUE_ID}.lock').write_text('2025-02-01T00:00:00+00:00')

        with pytest.raises(ConflictError) as exc_info:
            with JsonContractRepository(data_dir).transaction(LEAGUE_ID):
                pass
        assert exc_info.value.code == TURNOVER_IN_PROGRESS

    def test_lock_released(self, data_dir):
        repo = JsonContractRepository(data_dir)
        with repo.transaction(LEAGUE_ID):
            assert (data_dir / 'leagues' / f'{LEAGUE_ID}.lock').exists()
        assert not (data_dir / 'leagues' / f'{LEAGUE_ID}.lock').exists()

    def test_lock_released_on_failure(self, data_dir):
        repo = JsonContractRepository(data_dir)
        with pytest.raises(RuntimeError):
            with repo.transaction(LEAGUE_ID):
                raise RuntimeError('boom')
        assert not (data_dir / 'leagues' / f'{LEAGUE_ID}.lock').exists()

    def test_single_write_on_locked_league_conflicts(self, data_dir):
        """Test that a write outside a transaction still respects the league lock."""
        lock = data_dir / 'leagues' / f'{LEAGUE_ID}.lock'
        lock.write_text('2025-02-01T00:00:00+00:00')
        before = read_league(data_dir)

        with pytest.raises(ConflictError) as exc_info:
            JsonContractRepository(data_dir).update_league_settings(LEAGUE_ID, minimum_salary=1.0)

        assert exc_info.value.code == TURNOVER_IN_PROGRESS
        assert read_league(data_dir) == before
        assert lock.exists()

    def test_write_does_not_revert_committed_turnover(self, data_dir):
        """Test that a repository holding an old copy reloads before it writes."""
        stale = JsonContractRepository(data_dir)
        assert stale.get_league(LEAGUE_ID).season == 2025

        execute_turnover(JsonContractRepository(data_dir), LEAGUE_ID)
        stale.update_league_settings(LEAGUE_ID, minimum_salary=1.0)

        stored = read_league(data_dir)
        assert stored['settings']['season'] == 2026
        assert stored['settings']['minimum_salary'] == 1.0
        assert stored['contracts'][0]['status'] == 'EXPIRED'
        assert stored['contracts'][1]['has_been_tagged'] is False
