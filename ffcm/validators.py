"""Validation functions for contracts, dead money and league data."""

from collections import Counter
from typing import Iterable

from .constants import ACQUISITION_TYPES, CONTRACT_STATUSES, MAX_CONTRACT_YEARS, STATUS_ACTIVE
from .models import Contract, DeadMoneyRecord, League


def validate_contract(contract: Contract) -> list[str]:
    """
    Validate that a contract is internally consistent.

    Checks:
    - Contract length is 1-4 years
    - Years remaining is between 0 and the contract length
    - Salaries and guaranteed amount are not negative
    - Status and acquisition type are known

    Args:
        contract: Contract object to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    label = contract.player_name or contract.player_id

    if not 1 <= contract.original_years <= MAX_CONTRACT_YEARS:
        errors.append(
            f'{label}: contract length {contract.original_years} outside 1-{MAX_CONTRACT_YEARS}'
        )

    if contract.years_remaining < 0:
        errors.append(f'{label}: negative years remaining ({contract.years_remaining})')
    elif contract.years_remaining > contract.original_years:
        errors.append(
            f'{label}: {contract.years_remaining} years remaining exceeds contract length '
            f'{contract.original_years}'
        )

    if contract.original_salary < 0:
        errors.append(f'{label}: negative original salary ({contract.original_salary})')
    if contract.current_salary < 0:
        errors.append(f'{label}: negative current salary ({contract.current_salary})')
    if contract.guaranteed_amount is not None and contract.guaranteed_amount < 0:
        errors.append(f'{label}: negative guaranteed amount ({contract.guaranteed_amount})')

    if contract.status not in CONTRACT_STATUSES:
        errors.append(f'{label}: unknown status {contract.status}')
    if contract.acquisition_type not in ACQUISITION_TYPES:
        errors.append(f'{label}: unknown acquisition type {contract.acquisition_type}')

    return errors


def validate_team_contracts(contracts: Iterable[Contract]) -> list[str]:
    """
    Validate a set of contracts against each other.

    A player may hold at most one ACTIVE contract with a given team.

    Returns:
        List of validation error messages (empty if valid)
    """
    active = Counter(
        (c.player_id, c.team_id) for c in contracts if c.status == STATUS_ACTIVE
    )
    return [
        f'Player {player_id} has {count} active contracts with team {team_id}'
        for (player_id, team_id), count in sorted(active.items())
        if count > 1
    ]


def validate_dead_money_record(record: DeadMoneyRecord) -> list[str]:
    """Validate a single dead money charge."""
    errors = []
    if record.amount < 0:
        errors.append(f'Dead money {record.id}: negative amount ({record.amount})')
    if not record.team_id:
        errors.append(f'Dead money {record.id}: missing team')
    return errors


def validate_league(
    league: League,
    contracts: Iterable[Contract],
    dead_money: Iterable[DeadMoneyRecord] = (),
) -> list[str]:
    """
    Run every check over a league's stored data.

    Also flags contracts that belong to another league or to a team the
    league does not list.

    Returns:
        List of validation error messages (empty if valid)
    """
    contracts = list(contracts)
    errors = []
    team_ids = {t.id for t in league.teams}

    for contract in contracts:
        errors.extend(validate_contract(contract))
        if contract.league_id != league.id:
            errors.append(f'Contract {contract.id} belongs to league {contract.league_id}')
        if team_ids and contract.team_id not in team_ids:
            errors.append(f'Contract {contract.id} references unknown team {contract.team_id}')

    errors.extend(validate_team_contracts(contracts))

    for record in dead_money:
        errors.extend(validate_dead_money_record(record))

    return errors
