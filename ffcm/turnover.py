"""
Season turnover: roll every active contract of a league into the next season.

Preview and execute share one decision step. ``plan_turnover`` computes every
change without side effects; ``build_preview_payload`` reports it, and
``apply_turnover`` commits it as a single transaction.

For every ACTIVE contract with years remaining:
- years_remaining drops by one
- a contract that still has years left gets the annual salary increase
- a contract reaching zero keeps its salary and becomes EXPIRED
Then the league season advances by one and every ACTIVE contract in the
league has its franchise tag flag cleared, because tags are a per-season
resource.
"""

import logging
from typing import Iterable, Optional

from .constants import STATUS_ACTIVE, STATUS_EXPIRED
from .contract_math import calculate_annual_salary, classify_turnover_status
from .errors import TURNOVER_FAILED, ContractManagerError, PersistenceFailure
from .models import Contract, ContractChange, League, TurnoverPlan, TurnoverResult
from .repository import ContractRepository
from .utils import utc_now_iso

logger = logging.getLogger('ffcm.turnover')


def plan_contract_change(contract: Contract, increase_percentage: float) -> ContractChange:
    """Change one contract goes through at turnover."""
    new_years_remaining = contract.years_remaining - 1
    if new_years_remaining > 0:
        new_salary = calculate_annual_salary(contract.current_salary, increase_percentage)
    else:
        new_salary = contract.current_salary

    return ContractChange(
        contract_id=contract.id,
        player_name=contract.player_name,
        team_name=contract.team_name,
        current_years_remaining=contract.years_remaining,
        new_years_remaining=new_years_remaining,
        current_salary=contract.current_salary,
        new_salary=new_salary,
        new_status=classify_turnover_status(
            new_years_remaining, contract.has_been_extended, contract.has_been_tagged
        ),
        has_been_extended=contract.has_been_extended,
        has_been_tagged=contract.has_been_tagged,
    )


def plan_turnover(league: League, contracts: Iterable[Contract]) -> TurnoverPlan:
    """
    Compute the turnover of a league without touching storage.

    Args:
        league: League being turned over (supplies season and increase %)
        contracts: Contracts of the league; only ACTIVE ones with years left are used

    Returns:
        TurnoverPlan with one ContractChange per processed contract, ordered
        by team name then player name
    """
    eligible = [
        c for c in contracts
        if c.league_id == league.id and c.status == STATUS_ACTIVE and c.years_remaining > 0
    ]
    eligible.sort(key=lambda c: (c.team_name, c.player_name))

    pct = league.settings.annual_increase_percentage
    return TurnoverPlan(
        league_id=league.id,
        current_season=league.season,
        new_season=league.season + 1,
        changes=[plan_contract_change(c, pct) for c in eligible],
    )


def build_preview_payload(league: League, plan: TurnoverPlan) -> dict:
    """Preview payload as returned to the commissioner."""
    changes = [c.to_dict() for c in plan.changes]
    extension = [c.to_dict() for c in plan.changes if c.eligible_for_extension]
    franchise_tag = [c.to_dict() for c in plan.changes if c.eligible_for_franchise_tag]

    return {
        'contractChanges': changes,
        'categories': {
            'contractsAffected': {'count': len(changes), 'contracts': changes},
            'eligibleForExtension': {'count': len(extension), 'contracts': extension},
            'eligibleForFranchiseTag': {'count': len(franchise_tag), 'contracts': franchise_tag},
        },
        'summary': {
            'totalContracts': len(changes),
            'contractsAffected': len(changes),
            'eligibleForExtension': len(extension),
            'eligibleForFranchiseTag': len(franchise_tag),
            'currentSeason': plan.current_season,
            'newSeason': plan.new_season,
        },
        'leagueSettings': {
            'annualIncreasePercentage': league.settings.annual_increase_percentage,
            'seasonTurnoverDate': league.settings.season_turnover_date,
        },
    }


def apply_turnover(
    repository: ContractRepository,
    league: League,
    plan: TurnoverPlan,
) -> TurnoverResult:
    """
    Commit a turnover plan atomically.

    Either every contract update, the season increment and the tag reset are
    persisted, or none of them are. When called inside an open transaction
    the changes join it and are committed with it.

    Raises:
        ConflictError: If another transaction holds the league
        PersistenceFailure: If any write fails; nothing is left changed
    """
    try:
        with repository.transaction(league.id):
            for change in plan.changes:
                updates = {
                    'years_remaining': change.new_years_remaining,
                    'current_salary': change.new_salary,
                }
                if change.expires:
                    updates['status'] = STATUS_EXPIRED
                repository.update_contract(league.id, change.contract_id, **updates)

            repository.update_league_settings(league.id, season=plan.new_season)
            tags_reset = repository.reset_tag_flags(league.id)
    except ContractManagerError as e:
        if isinstance(e, PersistenceFailure) or e.status_code < 500:
            raise
        raise PersistenceFailure(e.message, code=TURNOVER_FAILED) from e
    except Exception as e:
        logger.exception(f'Season turnover failed for league {league.id}, rolled back')
        raise PersistenceFailure(
            f'Season turnover failed and was rolled back: {e}', code=TURNOVER_FAILED
        ) from e

    logger.debug(f'Applied turnover plan for league {league.id}: {len(plan.changes)} changes')
    return TurnoverResult(
        league_id=league.id,
        new_season=plan.new_season,
        contracts_updated=len(plan.changes),
        contracts_expired=len(plan.expiring),
        tag_flags_reset=tags_reset,
    )


def preview_turnover(repository: ContractRepository, league_id: str) -> dict:
    """Preview payload for a league; never writes anything."""
    league = repository.get_league(league_id)
    plan = plan_turnover(league, repository.list_contracts(league_id, status=STATUS_ACTIVE))
    logger.debug(f'Turnover preview for league {league_id}: {len(plan.changes)} contracts')
    return build_preview_payload(league, plan)


def execute_turnover(
    repository: ContractRepository, league_id: str, executed_by: Optional[str] = None
) -> dict:
    """
    Run the season turnover of a league and return the summary payload.

    The league is read, planned and written under one transaction, so a
    concurrent execute on the same league fails instead of applying twice.
    A league with no active contracts still advances its season.
    """
    with repository.transaction(league_id):
        league = repository.get_league(league_id)
        plan = plan_turnover(league, repository.list_contracts(league_id, status=STATUS_ACTIVE))
        result = apply_turnover(repository, league, plan)

    logger.info(
        f'Season turnover executed for league {league.name} ({league.id}): '
        f'season={result.new_season} contracts_updated={result.contracts_updated} '
        f'expired={result.contracts_expired} tags_reset={result.tag_flags_reset} '
        f'executed_by={executed_by or "unknown"} executed_at={utc_now_iso()}'
    )

    if result.contracts_updated:
        message = 'Season turnover executed successfully'
    else:
        message = 'No active contracts to process; season advanced'

    return {
        'message': message,
        'contractsUpdated': result.contracts_updated,
        'expiredContracts': result.contracts_expired,
        'newSeason': result.new_season,
        'summary': {
            'totalProcessed': result.contracts_updated,
            'contractsExpired': result.contracts_expired,
            'contractsActive': result.contracts_active,
        },
    }
