"""Unit tests for salary cap projections."""

import pytest

from ffcm.cap import build_team_cap_report, project_cap_years, project_team_cap, validate_cap_space
from ffcm.models import DeadMoneyRecord


def dead(amount, year, team_id='t1'):
    return DeadMoneyRecord(id=f'dm-{year}-{amount}', team_id=team_id, player_id='px',
                           amount=amount, year=year)


@pytest.fixture
def team_contracts(make_contract):
    return [
        make_contract(id='a', current_salary=1_000_000.0, years_remaining=1, original_years=1),
        make_contract(id='b', current_salary=2_000_000.0, years_remaining=3, original_years=4),
        make_contract(id='x', current_salary=5_000_000.0, status='CUT'),
    ]


class TestProjectTeamCap:
    """Tests for single-season cap usage."""

    def test_active_salaries_plus_current_dead_money(self, team_contracts):
        """Test that used cap counts active salaries and this season's dead money only."""
        summary = project_team_cap(
            team_contracts,
            [dead(300_000.0, 2025), dead(100_000.0, 2026)],
            10_000_000.0,
            season=2025,
        )

        assert summary.active_salaries == 3_000_000.0
        assert summary.dead_money == 300_000.0
        assert summary.used_cap == 3_300_000.0
        assert summary.available_cap == 6_700_000.0
        assert summary.used_percentage == 33.0
        assert summary.error is None

    def test_zero_cap_does_not_raise(self, team_contracts):
        """Test that a zero salary cap returns an error marker instead of NaN."""
        summary = project_team_cap(team_contracts, [], 0)

        assert summary.used_percentage is None
        assert summary.error is not None
        assert summary.used_cap == 3_000_000.0

    def test_negative_cap_reports_error(self, team_contracts):
        summary = project_team_cap(team_contracts, [], -5)
        assert summary.used_percentage is None
        assert 'positive' in summary.error

    def test_season_none_counts_all_records(self, team_contracts):
        """Test that all given dead money counts when no season is given."""
        summary = project_team_cap([], [dead(1.0, 2025), dead(2.0, 2030)], 100.0)
        assert summary.dead_money == 3.0

    def test_over_cap_has_negative_available(self, make_contract):
        summary = project_team_cap([make_contract(current_salary=150.0)], [], 100.0)
        assert summary.available_cap == -50.0
        assert summary.used_percentage == 150.0

    def test_to_dict_uses_camel_case(self, team_contracts):
        payload = project_team_cap(team_contracts, [], 10_000_000.0, team_id='t1').to_dict()
        assert payload['teamId'] == 't1'
        assert payload['usedCap'] == 3_000_000.0
        assert payload['usedPercentage'] == 30.0


class TestProjectCapYears:
    """Tests for multi-year cap projections."""

    def test_contracts_escalate_and_expire(self, team_contracts):
        """Test that committed salaries follow turnover escalation and expiry."""
        projections = project_cap_years(
            team_contracts, [dead(100_000.0, 2026)], 10_000_000.0, 2025, 3, 15.0
        )

        assert [p.year for p in projections] == [2025, 2026, 2027]
        assert projections[0].committed_salaries == 3_000_000.0
        assert projections[0].expiring_contracts == 1
        assert projections[1].committed_salaries == 2_300_000.0
        assert projections[1].dead_money == 100_000.0
        assert projections[1].available_cap == 7_600_000.0
        assert projections[1].expiring_contracts == 0
        assert projections[2].committed_salaries == 2_645_000.0
        assert projections[2].expiring_contracts == 1

    def test_beyond_all_contracts(self, team_contracts):
        """Test that seasons past every contract have nothing committed."""
        projections = project_cap_years(team_contracts, [], 10_000_000.0, 2025, 5, 15.0)
        assert projections[4].committed_salaries == 0.0
        assert projections[4].available_cap == 10_000_000.0


class TestValidateCapSpace:
    """Tests for cap space checks."""

    def test_fits_exactly(self, team_contracts):
        """Test that filling the cap exactly is allowed."""
        summary = project_team_cap(team_contracts, [], 10_000_000.0)
        check = validate_cap_space(summary, 7_000_000.0)
        assert check.ok is True
        assert check.shortfall is None

    def test_shortfall(self, team_contracts):
        """Test that going over the cap reports by how much."""
        summary = project_team_cap(team_contracts, [], 10_000_000.0)
        check = validate_cap_space(summary, 7_100_000.0)
        assert check.ok is False
        assert check.shortfall == 100_000.0
        assert check.available_cap == 7_000_000.0


class TestTeamCapReport:
    """Tests for the league-wide cap report."""

    def test_every_team_reported(self, repository):
        """Test that each league team gets a summary from its active contracts."""
        report = build_team_cap_report(repository, 'test-league')

        assert list(report) == ['t1', 't2']
        assert report['t1'].active_salaries == 3_000_000.0
        assert report['t2'].active_salaries == 500_000.0
        assert report['t2'].salary_cap == 100_000_000.0
