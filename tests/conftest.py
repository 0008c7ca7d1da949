"""Shared fixtures for contract manager tests."""

import pytest

from ffcm.models import Contract, League, Team
from ffcm.repository import InMemoryContractRepository
from ffcm.schemas import LeagueSettings

LEAGUE_ID = 'test-league'


def build_contract(**overrides) -> Contract:
    """Contract with sensible defaults; any field can be overridden."""
    values = {
        'id': 'c1',
        'player_id': 'p1',
        'player_name': 'Player One',
        'position': 'QB',
        'team_id': 't1',
        'team_name': 'Alpha',
        'league_id': LEAGUE_ID,
        'original_salary': 1_000_000.0,
        'current_salary': 1_000_000.0,
        'original_years': 3,
        'years_remaining': 2,
        'signed_season': 2024,
    }
    values.update(overrides)
    return Contract(**values)


def build_league(**settings) -> League:
    """League with a 100M cap in season 2025; settings can be overridden."""
    values = {'salary_cap': 100_000_000.0, 'season': 2025}
    values.update(settings)
    return League(
        id=LEAGUE_ID,
        name='Test League',
        settings=LeagueSettings(**values),
        commissioner='commish@example.com',
        teams=[Team(id='t1', name='Alpha'), Team(id='t2', name='Bravo')],
    )


@pytest.fixture
def make_contract():
    return build_contract


@pytest.fixture
def league():
    return build_league()


@pytest.fixture
def contracts():
    """A small league: two teams, a mix of contract lengths and statuses."""
    return [
        build_contract(id='c1', player_id='p1', player_name='Aaron', years_remaining=1,
                       original_years=1),
        build_contract(id='c2', player_id='p2', player_name='Brady', years_remaining=3,
                       original_years=4, current_salary=2_000_000.0, has_been_tagged=True),
        build_contract(id='c3', player_id='p3', player_name='Cole', team_id='t2',
                       team_name='Bravo', years_remaining=2, current_salary=500_000.0),
        build_contract(id='c4', player_id='p4', player_name='Drew', status='CUT',
                       years_remaining=2),
    ]


@pytest.fixture
def repository(league, contracts):
    return InMemoryContractRepository(leagues=[league], contracts=contracts)
