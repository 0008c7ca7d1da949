"""Data models for the contract manager."""

from dataclasses import asdict, dataclass, field
from typing import List, Optional

from .constants import STATUS_ACTIVE
from .schemas import LeagueSettings
from .utils import round_money


@dataclass
class Contract:
    """One player's agreement with one team in one league."""
    id: str
    player_id: str
    team_id: str
    league_id: str
    original_salary: float
    current_salary: float
    original_years: int
    years_remaining: int
    signed_season: int
    player_name: str = ''
    position: str = 'QB'
    team_name: str = ''
    acquisition_type: str = 'auction'
    status: str = STATUS_ACTIVE
    has_fourth_year_option: bool = False
    has_been_tagged: bool = False
    has_been_extended: bool = False
    fourth_year_option_activated: bool = False
    guaranteed_amount: Optional[float] = None  # None means no cap on dead money
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DeadMoneyRecord:
    """Cap charge left behind by a contract terminated before expiry."""
    id: str
    team_id: str
    player_id: str
    amount: float
    year: int
    reason: str = ''
    contract_id: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Team:
    """Container for a fantasy team."""
    id: str
    name: str
    owner: Optional[str] = None


@dataclass
class League:
    """League metadata plus its economic settings."""
    id: str
    name: str
    settings: LeagueSettings
    commissioner: Optional[str] = None
    teams: List[Team] = field(default_factory=list)

    @property
    def season(self) -> int:
        return self.settings.season


@dataclass
class EligibilityCheck:
    """Result of an extension or franchise tag eligibility check."""
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


@dataclass
class DeadMoneyCalculation:
    """Breakdown of the dead money created by cutting a contract."""
    current_salary: float
    years_remaining: int
    current_season_amount: float
    future_percentage: float
    future_amounts: List[float] = field(default_factory=list)
    capped_by_guarantee: bool = False

    @property
    def future_total(self) -> float:
        return round_money(sum(self.future_amounts))

    @property
    def total_amount(self) -> float:
        return round_money(self.current_season_amount + self.future_total)


@dataclass
class FranchiseTagCalculation:
    """Both candidate tag values and the one that applies."""
    position: str
    current_salary: float
    salary_with_increase: float
    position_top_average: float
    salaries_considered: int
    final_tag_value: float


@dataclass
class CapSummary:
    """A team's cap usage for one season.

    ``used_percentage`` is None (and ``error`` is set) when the salary cap is
    not positive.
    """
    salary_cap: float
    active_salaries: float
    dead_money: float
    used_cap: float
    available_cap: float
    used_percentage: Optional[float]
    error: Optional[str] = None
    team_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'teamId': self.team_id,
            'salaryCap': self.salary_cap,
            'activeSalaries': self.active_salaries,
            'deadMoney': self.dead_money,
            'usedCap': self.used_cap,
            'availableCap': self.available_cap,
            'usedPercentage': self.used_percentage,
            'error': self.error,
        }


@dataclass
class CapYearProjection:
    """Projected cap for one future season."""
    year: int
    committed_salaries: float
    dead_money: float
    available_cap: float
    expiring_contracts: int


@dataclass
class CapCheck:
    """Whether a new salary commitment fits under the cap."""
    ok: bool
    available_cap: float
    shortfall: Optional[float] = None


@dataclass
class ContractChange:
    """Intended mutation of one contract at season turnover."""
    contract_id: str
    player_name: str
    team_name: str
    current_years_remaining: int
    new_years_remaining: int
    current_salary: float
    new_salary: float
    new_status: str
    has_been_extended: bool
    has_been_tagged: bool

    @property
    def expires(self) -> bool:
        return self.new_years_remaining == 0

    @property
    def eligible_for_extension(self) -> bool:
        return self.expires and not self.has_been_extended

    @property
    def eligible_for_franchise_tag(self) -> bool:
        return self.expires and not self.has_been_tagged

    def to_dict(self) -> dict:
        return {
            'id': self.contract_id,
            'playerName': self.player_name,
            'teamName': self.team_name,
            'currentYearsRemaining': self.current_years_remaining,
            'newYearsRemaining': self.new_years_remaining,
            'currentSalary': self.current_salary,
            'newSalary': self.new_salary,
            'newStatus': self.new_status,
            'hasBeenExtended': self.has_been_extended,
            'hasBeenTagged': self.has_been_tagged,
        }


@dataclass
class TurnoverPlan:
    """Every mutation a season turnover will make, computed without side effects."""
    league_id: str
    current_season: int
    new_season: int
    changes: List[ContractChange] = field(default_factory=list)

    @property
    def expiring(self) -> List[ContractChange]:
        return [c for c in self.changes if c.expires]


@dataclass
class TurnoverResult:
    """Outcome of an applied season turnover."""
    league_id: str
    new_season: int
    contracts_updated: int
    contracts_expired: int
    tag_flags_reset: int

    @property
    def contracts_active(self) -> int:
        return self.contracts_updated - self.contracts_expired


@dataclass
class DeadMoneyImpact:
    """Consequences of a hypothetical cut, per season."""
    contract_id: str
    calculation: DeadMoneyCalculation
    records: List[DeadMoneyRecord] = field(default_factory=list)
    cap_savings: float = 0.0
    cap_after_cut: Optional[CapSummary] = None

    @property
    def total_amount(self) -> float:
        return round_money(sum(r.amount for r in self.records))
