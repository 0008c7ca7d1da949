"""
Contract actions a team can take: cut, extend, franchise tag and sign.

Each action reads the contract and league through the repository, checks
the league rules in contract_math, and writes its changes in one
transaction.
"""

import logging
import math
from typing import Optional

from .cap import project_team_cap, validate_cap_space
from .config import get_franchise_tag_multiplier, get_franchise_tag_top_n
from .constants import MAX_CONTRACT_YEARS, STATUS_ACTIVE, STATUS_CUT
from .contract_math import (
    calculate_franchise_tag_value,
    can_apply_franchise_tag,
    can_extend_contract,
    top_salaries_at_position,
)
from .dead_money import build_dead_money_records
from .errors import (
    ALREADY_EXTENDED,
    ALREADY_TAGGED,
    CAP_EXCEEDED,
    CONTRACT_NOT_ACTIVE,
    CONTRACT_NOT_FOUND,
    NOT_ELIGIBLE,
    TAG_LIMIT_REACHED,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .models import Contract, DeadMoneyRecord, FranchiseTagCalculation
from .repository import ContractRepository
from .utils import round_money
from .validators import validate_contract

logger = logging.getLogger('ffcm.transactions')


def _load_contract(
    repository: ContractRepository, league_id: str, contract_id: str, team_id: Optional[str]
) -> Contract:
    contract = repository.get_contract(league_id, contract_id)
    if team_id is not None and contract.team_id != team_id:
        raise NotFoundError(
            f'Contract {contract_id} does not belong to team {team_id}', code=CONTRACT_NOT_FOUND
        )
    return contract


def _tags_used(repository: ContractRepository, league_id: str, team_id: str) -> int:
    return sum(
        1
        for c in repository.list_contracts(league_id, status=STATUS_ACTIVE)
        if c.team_id == team_id and c.has_been_tagged
    )


def cut_player(
    repository: ContractRepository,
    league_id: str,
    contract_id: str,
    override_amount: Optional[float] = None,
    team_id: Optional[str] = None,
) -> tuple[Contract, list[DeadMoneyRecord]]:
    """
    Release a player, charging dead money per the league's table.

    Args:
        repository: Contract repository
        league_id: League of the contract
        contract_id: Contract to cut
        override_amount: Replace the computed charges with one current-season charge
        team_id: When given, the contract must belong to this team

    Returns:
        Tuple of (cut contract, dead money records created)

    Raises:
        NotFoundError: If the league or contract does not exist
        ConflictError: If the contract is not ACTIVE
    """
    with repository.transaction(league_id):
        league = repository.get_league(league_id)
        contract = _load_contract(repository, league_id, contract_id, team_id)
        if contract.status != STATUS_ACTIVE:
            raise ConflictError(
                f'Only active contracts can be cut; contract {contract_id} is {contract.status}',
                code=CONTRACT_NOT_ACTIVE,
            )

        records = build_dead_money_records(
            contract,
            league.settings.dead_money_config,
            league.season,
            override_amount=override_amount,
        )
        repository.add_dead_money(league_id, records)
        updated = repository.update_contract(league_id, contract_id, status=STATUS_CUT)

    total = round_money(sum(r.amount for r in records))
    logger.info(
        f'Cut {contract.player_name or contract.player_id} from team {contract.team_id}: '
        f'{len(records)} dead money charges totalling {total}'
    )
    return updated, records


def extend_contract(
    repository: ContractRepository,
    league_id: str,
    contract_id: str,
    new_salary: float,
    additional_years: int,
    team_id: Optional[str] = None,
) -> Contract:
    """
    Extend a contract in its final year.

    The extension replaces the remaining term: the contract runs for
    ``additional_years`` more seasons at ``new_salary``. A contract can be
    extended once, and never after it has been franchise tagged.

    Raises:
        ValidationError: If the salary or length is out of range
        ConflictError: If the contract is not eligible, or reviving it would give
            the player a second active contract with the team
    """
    if (
        isinstance(new_salary, bool)
        or not isinstance(new_salary, (int, float))
        or not math.isfinite(new_salary)
        or new_salary <= 0
    ):
        raise ValidationError(f'New salary must be a positive number, got {new_salary!r}')
    if not 1 <= additional_years <= MAX_CONTRACT_YEARS:
        raise ValidationError(
            f'Extension length must be 1-{MAX_CONTRACT_YEARS} years, got {additional_years}'
        )

    with repository.transaction(league_id):
        league = repository.get_league(league_id)
        contract = _load_contract(repository, league_id, contract_id, team_id)

        if contract.has_been_extended:
            raise ConflictError('Contract has already been extended once', code=ALREADY_EXTENDED)
        if contract.has_been_tagged:
            raise ConflictError('A tagged player cannot be extended', code=ALREADY_TAGGED)
        check = can_extend_contract(contract)
        if not check:
            raise ConflictError(check.reason, code=NOT_ELIGIBLE)

        salary = round_money(new_salary)
        if salary < league.settings.minimum_salary:
            raise ValidationError(
                f'Salary {salary} is below the league minimum {league.settings.minimum_salary}'
            )

        updated = repository.update_contract(
            league_id,
            contract_id,
            current_salary=salary,
            years_remaining=additional_years,
            original_years=additional_years,
            status=STATUS_ACTIVE,
            has_been_extended=True,
        )

    logger.info(
        f'Extended {contract.player_name or contract.player_id}: {additional_years} years at {salary}'
    )
    return updated


def franchise_tag_quote(
    repository: ContractRepository, league_id: str, contract_id: str
) -> FranchiseTagCalculation:
    """Tag value a contract would get, from the league's salaries at its position."""
    contract = repository.get_contract(league_id, contract_id)
    salaries = top_salaries_at_position(
        repository.list_contracts(league_id, status=STATUS_ACTIVE), contract.position
    )
    return calculate_franchise_tag_value(
        contract,
        salaries,
        multiplier=get_franchise_tag_multiplier(),
        top_n=get_franchise_tag_top_n(),
    )


def apply_franchise_tag(
    repository: ContractRepository,
    league_id: str,
    contract_id: str,
    tag_value: Optional[float] = None,
    team_id: Optional[str] = None,
) -> Contract:
    """
    Franchise tag an expiring contract for one more season.

    Without an explicit ``tag_value`` the salary is the computed tag value
    (the greater of salary + 15% and the position's top-10 average).

    Raises:
        ConflictError: If the player was tagged already, the team is out of
            tags, the contract is not in its final year, or reviving it would
            give the player a second active contract with the team
    """
    with repository.transaction(league_id):
        league = repository.get_league(league_id)
        contract = _load_contract(repository, league_id, contract_id, team_id)

        if contract.has_been_tagged:
            raise ConflictError('Player has already been tagged', code=ALREADY_TAGGED)

        tags_used = _tags_used(repository, league_id, contract.team_id)
        check = can_apply_franchise_tag(contract, tags_used, league.settings.max_franchise_tags)
        if not check:
            code = TAG_LIMIT_REACHED if tags_used >= league.settings.max_franchise_tags else NOT_ELIGIBLE
            raise ConflictError(check.reason, code=code)

        if tag_value is None:
            tag_value = franchise_tag_quote(repository, league_id, contract_id).final_tag_value
        elif (
            isinstance(tag_value, bool)
            or not isinstance(tag_value, (int, float))
            or not math.isfinite(tag_value)
            or tag_value <= 0
        ):
            raise ValidationError(f'Tag value must be a positive number, got {tag_value!r}')

        updated = repository.update_contract(
            league_id,
            contract_id,
            current_salary=round_money(tag_value),
            years_remaining=1,
            status=STATUS_ACTIVE,
            has_been_tagged=True,
        )

    logger.info(f'Franchise tag on {contract.player_name or contract.player_id}: {updated.current_salary}')
    return updated


def sign_contract(repository: ContractRepository, contract: Contract) -> Contract:
    """
    Add a newly signed contract to its league.

    Raises:
        ValidationError: If the contract is inconsistent or below the league minimum
        ConflictError: If the player already has an active contract with the
            team, or the salary does not fit under the cap
    """
    errors = validate_contract(contract)
    if errors:
        raise ValidationError('; '.join(errors), details=errors)

    league_id = contract.league_id
    with repository.transaction(league_id):
        league = repository.get_league(league_id)
        settings = league.settings

        if contract.current_salary < settings.minimum_salary:
            raise ValidationError(
                f'Salary {contract.current_salary} is below the league minimum '
                f'{settings.minimum_salary}'
            )

        if settings.salary_cap > 0:
            team_contracts = [
                c for c in repository.list_contracts(league_id) if c.team_id == contract.team_id
            ]
            cap = project_team_cap(
                team_contracts,
                repository.list_dead_money(league_id, team_id=contract.team_id),
                settings.salary_cap,
                season=league.season,
                team_id=contract.team_id,
            )
            check = validate_cap_space(cap, contract.current_salary)
            if not check.ok:
                raise ConflictError(
                    f'Signing exceeds the salary cap by {check.shortfall}',
                    code=CAP_EXCEEDED,
                    details={'availableCap': check.available_cap, 'shortfall': check.shortfall},
                )
        else:
            logger.warning(f'League {league_id} has no salary cap set; skipping cap check')

        added = repository.add_contract(contract)

    logger.info(
        f'Signed {contract.player_name or contract.player_id} to team {contract.team_id}: '
        f'{contract.original_years} years at {contract.current_salary}'
    )
    return added
