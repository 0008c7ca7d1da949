"""Contract math: salary escalation, dead money, extension and tag rules.

Every function here is pure. Inputs are a Contract plus values taken from the
league's settings; nothing is read from or written to storage.

League rules:
- Salaries of continuing contracts rise by the league's annual percentage
  (15% by default) at every season turnover.
- Cutting a player charges a share of the current salary now plus a share
  for each remaining year, per the league's dead money table.
- A contract can be extended once in its lifetime, in its final year.
- A franchise tag costs the greater of salary + 15% and the average of the
  top 10 salaries at the player's position.
"""

import math
import uuid
from typing import Iterable, Optional

from .constants import (
    ACQUISITION_TYPES,
    FRANCHISE_TAG_MULTIPLIER,
    FRANCHISE_TAG_TOP_N,
    MAX_CONTRACT_YEARS,
    STATUS_ACTIVE,
    STATUS_CUT,
    TURNOVER_STATUS_ACTIVE,
    TURNOVER_STATUS_EXTENSION,
    TURNOVER_STATUS_FREE_AGENCY,
    TURNOVER_STATUS_TAG,
)
from .errors import ValidationError
from .models import (
    Contract,
    DeadMoneyCalculation,
    EligibilityCheck,
    FranchiseTagCalculation,
)
from .schemas import DeadMoneyConfig
from .utils import round_money, utc_now_iso


def _require_amount(value, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f'{label} must be a number, got {value!r}')
    if not math.isfinite(value):
        raise ValidationError(f'{label} must be finite, got {value}')
    if value < 0:
        raise ValidationError(f'{label} cannot be negative, got {value}')
    return float(value)


def calculate_annual_salary(current_salary: float, increase_percentage: float) -> float:
    """
    Salary for the next season after one annual increase.

    The result is rounded to cents. Because the input of the next escalation
    is always an already-rounded amount, repeated turnovers never accumulate
    float drift.

    Args:
        current_salary: Salary for the current season
        increase_percentage: League annual increase, e.g. 15.0 for 15%

    Returns:
        current_salary * (1 + increase_percentage / 100), rounded to cents

    Example:
        calculate_annual_salary(1_000_000, 15.0)  # 1150000.0
    """
    salary = _require_amount(current_salary, 'Salary')
    pct = _require_amount(increase_percentage, 'Increase percentage')
    return round_money(salary * (1 + pct / 100))


def escalate_salary(current_salary: float, increase_percentage: float, years: int) -> float:
    """Apply the annual increase ``years`` times, rounding after each step."""
    if years < 0:
        raise ValidationError(f'Years cannot be negative, got {years}')
    salary = round_money(_require_amount(current_salary, 'Salary'))
    for _ in range(years):
        salary = calculate_annual_salary(salary, increase_percentage)
    return salary


def calculate_dead_money(contract: Contract, config: DeadMoneyConfig) -> DeadMoneyCalculation:
    """
    Dead money created by cutting a contract now.

    Charges ``current_salary * config.current_season`` for the current
    season, plus one charge of ``current_salary * rate`` for each remaining
    year (at most 4), where ``rate`` is the table entry for
    ``min(years_remaining, 4)``. The total can exceed one season's salary;
    cutting long contracts early is meant to hurt.

    When the contract carries a guaranteed amount, the charges are capped at
    it: the current season is charged first, then future years in order.

    Example:
        # 1,000,000 salary, 2 years left, default table (1.0 / 0.25)
        calculate_dead_money(contract, config).total_amount  # 1500000.0
    """
    salary = _require_amount(contract.current_salary, 'Salary')
    years_remaining = max(contract.years_remaining, 0)

    current_amount = round_money(salary * config.current_season)
    rate = config.rate_for(years_remaining)
    future_years = min(years_remaining, MAX_CONTRACT_YEARS)
    future_amounts = [round_money(salary * rate) for _ in range(future_years)]

    capped = False
    if contract.guaranteed_amount is not None:
        budget = round_money(contract.guaranteed_amount)
        if current_amount > budget:
            current_amount, capped = budget, True
        budget = round_money(budget - current_amount)
        limited = []
        for amount in future_amounts:
            if amount > budget:
                amount, capped = budget, True
            limited.append(amount)
            budget = round_money(budget - amount)
        future_amounts = limited

    return DeadMoneyCalculation(
        current_salary=salary,
        years_remaining=years_remaining,
        current_season_amount=current_amount,
        future_percentage=rate,
        future_amounts=future_amounts,
        capped_by_guarantee=capped,
    )


def can_extend_contract(contract: Contract) -> EligibilityCheck:
    """
    Check whether a contract may be extended.

    Rules:
    - Only in (or entering) the final year: years_remaining <= 1
    - Only once in the contract's lifetime
    - Never for a cut contract
    """
    if contract.status == STATUS_CUT:
        return EligibilityCheck(False, 'Contract has been cut')

    if contract.has_been_extended:
        return EligibilityCheck(False, 'Contract has already been extended once')

    if contract.years_remaining > 1:
        return EligibilityCheck(
            False,
            f'Can only extend in the final year. Years remaining: {contract.years_remaining}',
        )

    return EligibilityCheck(True)


def can_apply_franchise_tag(
    contract: Contract,
    team_tags_used_this_season: int,
    max_franchise_tags: int,
) -> EligibilityCheck:
    """
    Check whether a franchise tag may be applied to a contract.

    Rules:
    - Contract is expiring: years_remaining <= 1
    - Contract has not been tagged this season
    - Team still has tags left this season
    """
    if contract.status == STATUS_CUT:
        return EligibilityCheck(False, 'Contract has been cut')

    if contract.has_been_tagged:
        return EligibilityCheck(False, 'Player has already been tagged')

    if team_tags_used_this_season >= max_franchise_tags:
        return EligibilityCheck(
            False, f'Team has used the maximum franchise tags allowed ({max_franchise_tags})'
        )

    if contract.years_remaining > 1:
        return EligibilityCheck(False, 'Can only tag a player in the final contract year')

    return EligibilityCheck(True)


def top_salaries_at_position(contracts: Iterable[Contract], position: str) -> list[float]:
    """Current salaries of ACTIVE contracts at a position, highest first."""
    salaries = [
        c.current_salary for c in contracts if c.status == STATUS_ACTIVE and c.position == position
    ]
    return sorted(salaries, reverse=True)


def calculate_franchise_tag_value(
    contract: Contract,
    top_salaries: Iterable[float],
    multiplier: float = FRANCHISE_TAG_MULTIPLIER,
    top_n: int = FRANCHISE_TAG_TOP_N,
) -> FranchiseTagCalculation:
    """
    Salary a franchise tag would pay for this contract.

    The greater of:
    - current salary * 1.15
    - average of the top 10 salaries at the player's position league-wide
      (fewer when fewer exist; no salaries means no average)

    Args:
        contract: Contract of the player to tag
        top_salaries: Current salaries at the player's position (any order)
        multiplier: Raise applied to the player's own salary
        top_n: How many of the highest salaries to average
    """
    salary = _require_amount(contract.current_salary, 'Salary')
    salary_with_increase = round_money(salary * multiplier)

    top = sorted((_require_amount(s, 'Salary') for s in top_salaries), reverse=True)[:top_n]
    average = round_money(sum(top) / len(top)) if top else 0.0

    return FranchiseTagCalculation(
        position=contract.position,
        current_salary=salary,
        salary_with_increase=salary_with_increase,
        position_top_average=average,
        salaries_considered=len(top),
        final_tag_value=max(salary_with_increase, average),
    )


def classify_turnover_status(
    new_years_remaining: int, has_been_extended: bool, has_been_tagged: bool
) -> str:
    """
    Label for a contract after the season turns over.

    An expiring contract is offered an extension first, then a tag. One that
    has already used both is headed to free agency.
    """
    if new_years_remaining > 0:
        return TURNOVER_STATUS_ACTIVE
    if not has_been_extended:
        return TURNOVER_STATUS_EXTENSION
    if not has_been_tagged:
        return TURNOVER_STATUS_TAG
    return TURNOVER_STATUS_FREE_AGENCY


def create_contract(
    player_id: str,
    team_id: str,
    league_id: str,
    salary: float,
    years: int,
    acquisition_type: str,
    season: int,
    player_name: str = '',
    position: str = 'QB',
    team_name: str = '',
    guaranteed_amount: Optional[float] = None,
) -> Contract:
    """Build a freshly signed ACTIVE contract."""
    salary = round_money(_require_amount(salary, 'Salary'))
    if not 1 <= years <= MAX_CONTRACT_YEARS:
        raise ValidationError(f'Contract length must be 1-{MAX_CONTRACT_YEARS} years, got {years}')
    if acquisition_type not in ACQUISITION_TYPES:
        raise ValidationError(f'Invalid acquisition type: {acquisition_type}')

    now = utc_now_iso()
    return Contract(
        id=str(uuid.uuid4())[:8],
        player_id=player_id,
        team_id=team_id,
        league_id=league_id,
        original_salary=salary,
        current_salary=salary,
        original_years=years,
        years_remaining=years,
        signed_season=season,
        player_name=player_name,
        position=position,
        team_name=team_name,
        acquisition_type=acquisition_type,
        guaranteed_amount=guaranteed_amount,
        created_at=now,
        updated_at=now,
    )
