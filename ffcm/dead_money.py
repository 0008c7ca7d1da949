"""Dead money configuration: validation, lenient parsing and cut impact."""

import json
import logging
import uuid
from typing import Any, Iterable, Optional

from pydantic import ValidationError as SchemaError

from .cap import project_team_cap
from .constants import DEAD_MONEY_BUCKETS, LEGACY_DEAD_MONEY_CONFIG
from .contract_math import calculate_dead_money
from .errors import INVALID_DEAD_MONEY_CONFIG, ValidationError
from .models import Contract, DeadMoneyImpact, DeadMoneyRecord
from .schemas import DeadMoneyConfig, default_dead_money_config
from .utils import round_money, utc_now_iso

logger = logging.getLogger('ffcm.dead_money')


def _describe(error: SchemaError) -> str:
    messages = []
    for err in error.errors():
        location = '.'.join(str(p) for p in err.get('loc', ()))
        message = err.get('msg', 'invalid value').removeprefix('Value error, ')
        messages.append(f'{location}: {message}' if location else message)
    return '; '.join(messages)


def dead_money_warnings(config: DeadMoneyConfig) -> list[str]:
    """
    Business warnings for a valid table.

    Charging more than 100% of a salary (current season plus one future
    bucket) is legal but unusual, so it is flagged rather than rejected.
    """
    warnings = []
    for bucket in DEAD_MONEY_BUCKETS:
        combined = config.current_season + config.future_seasons[bucket]
        if combined > 1:
            warnings.append(
                f'currentSeason + futureSeasons[{bucket}] = {combined:.2f} '
                f'charges more than 100% of the salary'
            )
    return warnings


def validate_dead_money_config(raw: Any) -> tuple[DeadMoneyConfig, list[str]]:
    """
    Validate a dead money table before it is saved.

    Args:
        raw: Mapping with ``currentSeason`` and ``futureSeasons`` (keys "1".."4")

    Returns:
        Tuple of (config, warnings)

    Raises:
        ValidationError: If the shape is wrong or any value is not a number in [0, 1]
    """
    if isinstance(raw, DeadMoneyConfig):
        return raw, dead_money_warnings(raw)

    if not isinstance(raw, dict):
        raise ValidationError('Dead money config must be an object', code=INVALID_DEAD_MONEY_CONFIG)

    try:
        config = DeadMoneyConfig.model_validate(raw)
    except SchemaError as e:
        raise ValidationError(
            f'Invalid dead money config: {_describe(e)}', code=INVALID_DEAD_MONEY_CONFIG
        ) from e

    warnings = dead_money_warnings(config)
    for warning in warnings:
        logger.warning(warning)
    return config, warnings


def parse_dead_money_config(raw: Any) -> DeadMoneyConfig:
    """
    Parse a stored dead money table, falling back to the default.

    Accepts the serialized JSON string, a mapping, or an already-typed
    config. A missing or corrupt value never raises: it is logged and the
    default table (100% now, 25% per remaining year) is returned.
    """
    if isinstance(raw, DeadMoneyConfig):
        return raw
    if raw is None or raw == '':
        return default_dead_money_config()

    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        config, _ = validate_dead_money_config(data)
        return config
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f'Unreadable dead money config, using default: {e}')
        return default_dead_money_config()


def serialize_dead_money_config(config: DeadMoneyConfig) -> str:
    """Serialize a table to the JSON string stored on a league."""
    return json.dumps(config.to_wire())


def is_legacy_default(config: DeadMoneyConfig) -> bool:
    """True for the old default table that charged nothing with one year left."""
    legacy = LEGACY_DEAD_MONEY_CONFIG
    return (
        config.current_season == legacy['currentSeason']
        and config.future_seasons == legacy['futureSeasons']
    )


def build_dead_money_records(
    contract: Contract,
    config: DeadMoneyConfig,
    season: int,
    override_amount: Optional[float] = None,
) -> list[DeadMoneyRecord]:
    """
    Dead money charges for cutting ``contract`` during ``season``.

    One record for the current season and one per remaining future year.
    An explicit ``override_amount`` replaces the computed charges with a
    single current-season record. Zero charges produce no record.
    """
    now = utc_now_iso()

    def _record(amount: float, year: int, reason: str) -> DeadMoneyRecord:
        return DeadMoneyRecord(
            id=str(uuid.uuid4())[:8],
            team_id=contract.team_id,
            player_id=contract.player_id,
            contract_id=contract.id,
            amount=amount,
            year=year,
            reason=reason,
            created_at=now,
        )

    if override_amount is not None:
        if override_amount < 0:
            raise ValidationError(f'Dead money override cannot be negative, got {override_amount}')
        amount = round_money(override_amount)
        return [_record(amount, season, 'Cut (override)')] if amount > 0 else []

    calculation = calculate_dead_money(contract, config)
    records = []
    if calculation.current_season_amount > 0:
        records.append(_record(calculation.current_season_amount, season, 'Cut'))
    for offset, amount in enumerate(calculation.future_amounts, start=1):
        if amount > 0:
            records.append(_record(amount, season + offset, f'Cut - future year {offset}'))
    return records


def calculate_cut_impact(
    contract: Contract,
    config: DeadMoneyConfig,
    season: int,
    salary_cap: Optional[float] = None,
    team_contracts: Optional[Iterable[Contract]] = None,
    team_dead_money: Optional[Iterable[DeadMoneyRecord]] = None,
) -> DeadMoneyImpact:
    """
    Preview what cutting a player would cost, without cutting anyone.

    Returns the dead money records the cut would create, the current-season
    cap savings (salary freed minus dead money charged now), and, when the
    salary cap and the team's contracts are given, the team's cap summary as
    it would look after the cut.
    """
    calculation = calculate_dead_money(contract, config)
    records = build_dead_money_records(contract, config, season)
    charged_now = round_money(sum(r.amount for r in records if r.year == season))

    cap_after_cut = None
    if salary_cap is not None and team_contracts is not None:
        remaining = [c for c in team_contracts if c.id != contract.id]
        dead = list(team_dead_money or []) + records
        cap_after_cut = project_team_cap(
            remaining, dead, salary_cap, season=season, team_id=contract.team_id
        )

    return DeadMoneyImpact(
        contract_id=contract.id,
        calculation=calculation,
        records=records,
        cap_savings=round_money(contract.current_salary - charged_now),
        cap_after_cut=cap_after_cut,
    )
