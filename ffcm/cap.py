"""Salary cap projections for teams."""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from .constants import STATUS_ACTIVE
from .contract_math import escalate_salary
from .models import CapCheck, CapSummary, CapYearProjection, Contract, DeadMoneyRecord
from .utils import round_money

logger = logging.getLogger('ffcm.cap')


def _dead_money_for(records: Iterable[DeadMoneyRecord], season: Optional[int]) -> float:
    return round_money(sum(r.amount for r in records if season is None or r.year == season))


def project_team_cap(
    contracts: Iterable[Contract],
    dead_money_records: Iterable[DeadMoneyRecord],
    salary_cap: float,
    season: Optional[int] = None,
    team_id: Optional[str] = None,
) -> CapSummary:
    """
    Cap usage of a team for one season.

    Used cap is the sum of current salaries of ACTIVE contracts plus the dead
    money charged to ``season``. Pass ``season=None`` when the records are
    already filtered to the season of interest.

    A salary cap of zero or less does not raise: the summary comes back with
    ``used_percentage=None`` and ``error`` describing the problem.

    Args:
        contracts: The team's contracts (non-active ones are ignored)
        dead_money_records: The team's dead money charges
        salary_cap: League salary cap
        season: Season whose dead money counts against the cap
        team_id: Echoed on the summary for reporting

    Returns:
        CapSummary with used/available cap and used percentage
    """
    active_salaries = round_money(
        sum(c.current_salary for c in contracts if c.status == STATUS_ACTIVE)
    )
    dead_money = _dead_money_for(dead_money_records, season)
    used_cap = round_money(active_salaries + dead_money)
    available_cap = round_money(salary_cap - used_cap)

    if salary_cap <= 0:
        logger.warning(f'Cannot compute cap usage for team {team_id}: salary cap is {salary_cap}')
        return CapSummary(
            salary_cap=salary_cap,
            active_salaries=active_salaries,
            dead_money=dead_money,
            used_cap=used_cap,
            available_cap=available_cap,
            used_percentage=None,
            error=f'Salary cap must be positive, got {salary_cap}',
            team_id=team_id,
        )

    return CapSummary(
        salary_cap=salary_cap,
        active_salaries=active_salaries,
        dead_money=dead_money,
        used_cap=used_cap,
        available_cap=available_cap,
        used_percentage=round(used_cap / salary_cap * 100, 2),
        team_id=team_id,
    )


def project_cap_years(
    contracts: Iterable[Contract],
    dead_money_records: Iterable[DeadMoneyRecord],
    salary_cap: float,
    start_season: int,
    years: int,
    increase_percentage: float,
) -> list[CapYearProjection]:
    """
    Project a team's cap for ``years`` seasons starting at ``start_season``.

    A contract with ``years_remaining = r`` stays on the books for the first
    ``r`` seasons of the projection, escalating once per season exactly as a
    season turnover would, and counts as expiring in its last one.
    """
    active = [c for c in contracts if c.status == STATUS_ACTIVE]
    records = list(dead_money_records)
    projections = []

    for offset in range(years):
        year = start_season + offset
        committed = 0.0
        expiring = 0
        for contract in active:
            if contract.years_remaining > offset:
                committed += escalate_salary(contract.current_salary, increase_percentage, offset)
                if contract.years_remaining == offset + 1:
                    expiring += 1

        committed = round_money(committed)
        dead_money = _dead_money_for(records, year)
        projections.append(
            CapYearProjection(
                year=year,
                committed_salaries=committed,
                dead_money=dead_money,
                available_cap=round_money(salary_cap - committed - dead_money),
                expiring_contracts=expiring,
            )
        )

    return projections


def validate_cap_space(cap: CapSummary, new_salary_commitment: float) -> CapCheck:
    """
    Check that a new salary commitment fits under the cap.

    Fails when ``used_cap + new_salary_commitment > salary_cap``; the
    shortfall is the amount over.
    """
    projected = round_money(cap.used_cap + new_salary_commitment)
    if projected > cap.salary_cap:
        return CapCheck(
            ok=False,
            available_cap=cap.available_cap,
            shortfall=round_money(projected - cap.salary_cap),
        )
    return CapCheck(ok=True, available_cap=cap.available_cap)


def build_team_cap_report(repository, league_id: str) -> dict[str, CapSummary]:
    """Current-season cap summary for every team in a league."""
    league = repository.get_league(league_id)
    contracts_by_team: dict[str, list[Contract]] = defaultdict(list)
    for contract in repository.list_contracts(league_id):
        contracts_by_team[contract.team_id].append(contract)

    dead_by_team: dict[str, list[DeadMoneyRecord]] = defaultdict(list)
    for record in repository.list_dead_money(league_id):
        dead_by_team[record.team_id].append(record)

    team_ids = [t.id for t in repository.list_teams(league_id)]
    team_ids += sorted(t for t in contracts_by_team if t not in team_ids)

    return {
        team_id: project_team_cap(
            contracts_by_team[team_id],
            dead_by_team[team_id],
            league.settings.salary_cap,
            season=league.season,
            team_id=team_id,
        )
        for team_id in team_ids
    }
