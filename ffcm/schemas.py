"""Pydantic schemas for league data, settings and request bodies."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from .constants import (
    ACQUISITION_TYPES,
    CONTRACT_STATUSES,
    DEAD_MONEY_BUCKETS,
    DEFAULT_ANNUAL_INCREASE_PERCENTAGE,
    DEFAULT_DEAD_MONEY_CONFIG,
    DEFAULT_MAX_FRANCHISE_TAGS,
    FRANCHISE_TAG_MULTIPLIER,
    FRANCHISE_TAG_TOP_N,
    MAX_CONTRACT_YEARS,
    POSITIONS,
    STATUS_ACTIVE,
)


def _require_fraction(value: Any, label: str) -> float:
    # bool is an int subclass; "true" is not a percentage
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'{label} must be a number, got {value!r}')
    if not 0 <= value <= 1:
        raise ValueError(f'{label} must be between 0 and 1, got {value}')
    return float(value)


class DeadMoneyConfig(BaseModel):
    """Per-league dead money percentages.

    ``current_season`` is the fraction of the cut player's current salary
    charged immediately. ``future_seasons`` maps the years-remaining bucket
    ("1".."4") to the fraction charged for each remaining year.
    """

    current_season: float = Field(..., alias='currentSeason')
    future_seasons: dict[str, float] = Field(..., alias='futureSeasons')

    @field_validator('current_season', mode='before')
    @classmethod
    def validate_current_season(cls, v):
        """Ensure the current season fraction is numeric and in [0, 1]."""
        return _require_fraction(v, 'currentSeason')

    @field_validator('future_seasons', mode='before')
    @classmethod
    def validate_future_seasons(cls, v):
        """Ensure all four buckets are present and each is in [0, 1]."""
        if not isinstance(v, dict):
            raise ValueError('futureSeasons must be an object keyed "1" to "4"')
        normalized = {str(k): val for k, val in v.items()}
        missing = [k for k in DEAD_MONEY_BUCKETS if k not in normalized]
        if missing:
            raise ValueError(f'futureSeasons is missing keys: {", ".join(missing)}')
        unknown = sorted(k for k in normalized if k not in DEAD_MONEY_BUCKETS)
        if unknown:
            raise ValueError(f'futureSeasons has unknown keys: {", ".join(unknown)}')
        return {
            k: _require_fraction(normalized[k], f'futureSeasons[{k}]') for k in DEAD_MONEY_BUCKETS
        }

    def rate_for(self, years_remaining: int) -> float:
        """Fraction charged per remaining year for a cut with this many years left."""
        if years_remaining <= 0:
            return 0.0
        bucket = str(min(years_remaining, len(DEAD_MONEY_BUCKETS)))
        return self.future_seasons[bucket]

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

    class Config:
        extra = 'forbid'
        populate_by_name = True
        frozen = True
        allow_inf_nan = False


def default_dead_money_config() -> DeadMoneyConfig:
    return DeadMoneyConfig.model_validate(DEFAULT_DEAD_MONEY_CONFIG)


class LeagueSettings(BaseModel):
    """Economic parameters of a league."""

    salary_cap: float = Field(..., ge=0)
    annual_increase_percentage: float = Field(DEFAULT_ANNUAL_INCREASE_PERCENTAGE, ge=0, le=100)
    max_franchise_tags: int = Field(DEFAULT_MAX_FRANCHISE_TAGS, ge=0, le=10)
    minimum_salary: float = Field(0.0, ge=0)
    season_turnover_date: str = Field('02-01', pattern=r'^(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$')
    season: int = Field(..., ge=1990, le=2100)
    dead_money_config: DeadMoneyConfig = Field(default_factory=default_dead_money_config)

    class Config:
        extra = 'forbid'
        allow_inf_nan = False


class LeagueSettingsEntry(LeagueSettings):
    """League settings as stored on disk.

    The dead money table is kept raw here and parsed leniently by the
    repository, so a corrupt table never blocks loading the league.
    """

    dead_money_config: Any = None


class ContractEntry(BaseModel):
    """One contract as stored in a league file."""

    id: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1)
    player_name: str = ''
    position: str = Field('QB', pattern=r'^(' + '|'.join(POSITIONS) + r')$')
    team_id: str = Field(..., min_length=1)
    team_name: str = ''
    league_id: str = Field(..., min_length=1)
    original_salary: float = Field(..., ge=0)
    current_salary: float = Field(..., ge=0)
    original_years: int = Field(..., ge=1, le=MAX_CONTRACT_YEARS)
    years_remaining: int = Field(..., ge=0, le=MAX_CONTRACT_YEARS)
    acquisition_type: str = 'auction'
    status: str = STATUS_ACTIVE
    signed_season: int
    has_fourth_year_option: bool = False
    has_been_tagged: bool = False
    has_been_extended: bool = False
    fourth_year_option_activated: bool = False
    guaranteed_amount: float | None = Field(None, ge=0)
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        """Ensure status is a known contract status."""
        if v not in CONTRACT_STATUSES:
            raise ValueError(f'Invalid contract status: {v}')
        return v

    @field_validator('acquisition_type')
    @classmethod
    def validate_acquisition_type(cls, v):
        """Ensure acquisition type is known."""
        if v not in ACQUISITION_TYPES:
            raise ValueError(f'Invalid acquisition type: {v}')
        return v

    class Config:
        extra = 'forbid'
        allow_inf_nan = False


class DeadMoneyEntry(BaseModel):
    """Dead money charge as stored in a league file."""

    id: str
    team_id: str
    player_id: str
    contract_id: str | None = None
    amount: float = Field(..., ge=0)
    year: int
    reason: str = ''
    created_at: str | None = None

    class Config:
        extra = 'forbid'
        allow_inf_nan = False


class TeamEntry(BaseModel):
    """Team metadata."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    owner: str | None = None

    class Config:
        extra = 'forbid'
        allow_inf_nan = False


class LeagueFile(BaseModel):
    """Complete data/leagues/<league_id>.json file structure."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    commissioner: str | None = None
    settings: LeagueSettingsEntry
    teams: list[TeamEntry] = Field(default_factory=list)
    contracts: list[ContractEntry] = Field(default_factory=list)
    dead_money: list[DeadMoneyEntry] = Field(default_factory=list)
    updated_at: str | None = None

    class Config:
        extra = 'forbid'
        allow_inf_nan = False


class AppConfig(BaseModel):
    """Application settings from data/app_config.json."""

    data_dir: str = 'data'
    log_level: str = Field('INFO', pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$')
    franchise_tag_multiplier: float = Field(FRANCHISE_TAG_MULTIPLIER, ge=1)
    franchise_tag_top_n: int = Field(FRANCHISE_TAG_TOP_N, ge=1, le=50)

    class Config:
        extra = 'forbid'
        allow_inf_nan = False


class CutRequest(BaseModel):
    """Body of a release (cut) request."""

    action: Literal['release'] = 'release'
    contract_id: str = Field(..., alias='contractId', min_length=1)
    override_amount: float | None = Field(None, alias='overrideAmount', ge=0)

    class Config:
        populate_by_name = True
        extra = 'ignore'
        allow_inf_nan = False


class ExtensionRequest(BaseModel):
    """Body of a contract extension request."""

    action: Literal['extend'] = 'extend'
    contract_id: str = Field(..., alias='contractId', min_length=1)
    new_salary: float = Field(..., alias='newSalary', gt=0)
    additional_years: int = Field(..., alias='additionalYears', ge=1, le=MAX_CONTRACT_YEARS)

    class Config:
        populate_by_name = True
        extra = 'ignore'
        allow_inf_nan = False


class FranchiseTagRequest(BaseModel):
    """Body of a franchise tag request."""

    action: Literal['tag'] = 'tag'
    contract_id: str = Field(..., alias='contractId', min_length=1)
    tag_value: float | None = Field(None, alias='tagValue', gt=0)

    class Config:
        populate_by_name = True
        extra = 'ignore'
        allow_inf_nan = False
