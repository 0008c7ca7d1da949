"""
Request handlers shared by the serverless API endpoints.

Each handler takes a repository and the parsed request data and returns
``(status_code, payload)``. Errors from the core are mapped to their HTTP
status here, so the endpoint classes only deal with the wire.
"""

import functools
import hmac
import logging
import os
from typing import Callable

from pydantic import ValidationError as SchemaError

from .cap import build_team_cap_report, project_cap_years
from .constants import STATUS_ACTIVE
from .dead_money import calculate_cut_impact, validate_dead_money_config
from .errors import NOT_COMMISSIONER, AuthorizationError, ContractManagerError, ValidationError
from .repository import ContractRepository
from .schemas import CutRequest, ExtensionRequest, FranchiseTagRequest
from .transactions import apply_franchise_tag, cut_player, extend_contract, franchise_tag_quote
from .turnover import execute_turnover, preview_turnover
from .utils import round_money

logger = logging.getLogger('ffcm.handlers')

Response = tuple[int, dict]


def get_commissioner_password(league_id: str) -> str | None:
    """Get the commissioner password for a league from environment variables."""
    env_key = f"COMMISSIONER_PASSWORD_{league_id.replace('-', '_').upper()}"
    return os.environ.get(env_key)


def validate_commissioner(league_id: str, password: str | None) -> tuple[bool, str]:
    """Validate a commissioner password."""
    if not league_id or not password:
        return False, 'Missing league or password'

    expected = get_commissioner_password(league_id)
    if not expected:
        return False, 'League not configured'

    if not hmac.compare_digest(password, expected):
        return False, 'Invalid password'

    return True, 'Valid'


def require_commissioner(data: dict) -> str:
    """Return the request's league id, raising AuthorizationError unless the caller is commissioner."""
    league_id = _require_league_id(data)
    valid, msg = validate_commissioner(league_id, data.get('password'))
    if not valid:
        raise AuthorizationError(
            f'Only the league commissioner can do this: {msg}', code=NOT_COMMISSIONER
        )
    return league_id


def _require_league_id(data: dict) -> str:
    league_id = data.get('leagueId') or data.get('league_id')
    if not league_id:
        raise ValidationError('Missing leagueId')
    return str(league_id)


def _describe(error: SchemaError) -> str:
    return '; '.join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
    )


def handles_errors(func: Callable[..., Response]) -> Callable[..., Response]:
    """Map core errors to (status, payload) responses."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Response:
        try:
            return func(*args, **kwargs)
        except ContractManagerError as e:
            if e.status_code >= 500:
                logger.error(f'{func.__name__} failed: {e}')
            return e.status_code, e.to_payload()
        except SchemaError as e:
            return 400, {'error': f'Invalid request: {_describe(e)}', 'code': 'VALIDATION_ERROR'}
        except Exception as e:
            logger.exception(f'Unexpected error in {func.__name__}')
            return 500, {'error': f'Internal server error: {e}', 'code': 'INTERNAL_ERROR'}

    return wrapper


@handles_errors
def handle_turnover_preview(repository: ContractRepository, data: dict) -> Response:
    """Preview the season turnover of a league."""
    league_id = require_commissioner(data)
    return 200, preview_turnover(repository, league_id)


@handles_errors
def handle_turnover_execute(repository: ContractRepository, data: dict) -> Response:
    """Execute the season turnover of a league."""
    league_id = require_commissioner(data)
    return 200, execute_turnover(repository, league_id, executed_by=data.get('executedBy'))


@handles_errors
def handle_get_dead_money_config(repository: ContractRepository, data: dict) -> Response:
    """Return the league's dead money table (the default when unset or unreadable)."""
    league = repository.get_league(_require_league_id(data))
    return 200, {
        'leagueId': league.id,
        'deadMoneyConfig': league.settings.dead_money_config.to_wire(),
    }


@handles_errors
def handle_put_dead_money_config(repository: ContractRepository, data: dict) -> Response:
    """Validate and store a new dead money table."""
    league_id = require_commissioner(data)
    raw = data.get('deadMoneyConfig', data.get('dead_money_config'))
    config, warnings = validate_dead_money_config(raw)

    league = repository.update_league_settings(league_id, dead_money_config=config)
    logger.info(f'Dead money config updated for league {league_id}')
    return 200, {
        'message': 'Dead money config updated',
        'leagueId': league.id,
        'deadMoneyConfig': league.settings.dead_money_config.to_wire(),
        'warnings': warnings,
    }


def _cut_impact(repository: ContractRepository, league_id: str, data: dict) -> Response:
    request = CutRequest.model_validate({**data, 'action': 'release'})
    league = repository.get_league(league_id)
    contract = repository.get_contract(league_id, request.contract_id)
    team_contracts = [
        c for c in repository.list_contracts(league_id, status=STATUS_ACTIVE)
        if c.team_id == contract.team_id
    ]
    impact = calculate_cut_impact(
        contract,
        league.settings.dead_money_config,
        league.season,
        salary_cap=league.settings.salary_cap,
        team_contracts=team_contracts,
        team_dead_money=repository.list_dead_money(league_id, team_id=contract.team_id),
    )
    return 200, {
        'contractId': contract.id,
        'deadMoney': impact.total_amount,
        'currentSeasonDeadMoney': impact.calculation.current_season_amount,
        'futureDeadMoney': impact.calculation.future_amounts,
        'cappedByGuarantee': impact.calculation.capped_by_guarantee,
        'capSavings': impact.cap_savings,
        'deadMoneyRecords': [r.to_dict() for r in impact.records],
        'capAfterCut': impact.cap_after_cut.to_dict() if impact.cap_after_cut else None,
    }


@handles_errors
def handle_contract_action(repository: ContractRepository, data: dict) -> Response:
    """
    Run a contract action.

    Actions:
    - release: cut the player and charge dead money
    - extend: extend a final-year contract
    - tag: franchise tag an expiring contract
    - impact: dead money a release would cause (read only)
    - tag_quote: tag value a contract would get (read only)
    """
    action = data.get('action')
    team_id = data.get('teamId')

    if action == 'impact':
        return _cut_impact(repository, _require_league_id(data), data)

    if action == 'tag_quote':
        league_id = _require_league_id(data)
        contract_id = data.get('contractId')
        if not contract_id:
            raise ValidationError('Missing contractId')
        quote = franchise_tag_quote(repository, league_id, contract_id)
        return 200, {
            'contractId': contract_id,
            'position': quote.position,
            'salaryWithIncrease': quote.salary_with_increase,
            'positionTopAverage': quote.position_top_average,
            'salariesConsidered': quote.salaries_considered,
            'tagValue': quote.final_tag_value,
        }

    if action == 'release':
        league_id = require_commissioner(data)
        request = CutRequest.model_validate(data)
        season = repository.get_league(league_id).season
        contract, records = cut_player(
            repository,
            league_id,
            request.contract_id,
            override_amount=request.override_amount,
            team_id=team_id,
        )
        return 200, {
            'message': 'Player released',
            'contract': contract.to_dict(),
            'deadMoney': round_money(sum(r.amount for r in records)),
            'currentSeasonDeadMoney': round_money(
                sum(r.amount for r in records if r.year == season)
            ),
            'deadMoneyRecords': [r.to_dict() for r in records],
        }

    if action == 'extend':
        league_id = require_commissioner(data)
        request = ExtensionRequest.model_validate(data)
        contract = extend_contract(
            repository,
            league_id,
            request.contract_id,
            request.new_salary,
            request.additional_years,
            team_id=team_id,
        )
        return 200, {'message': 'Contract extended', 'contract': contract.to_dict()}

    if action == 'tag':
        league_id = require_commissioner(data)
        request = FranchiseTagRequest.model_validate(data)
        contract = apply_franchise_tag(
            repository, league_id, request.contract_id, tag_value=request.tag_value, team_id=team_id
        )
        return 200, {'message': 'Franchise tag applied', 'contract': contract.to_dict()}

    return 400, {'error': f'Unknown action: {action}', 'code': 'VALIDATION_ERROR'}


@handles_errors
def handle_cap_report(repository: ContractRepository, data: dict) -> Response:
    """
    Cap usage of every team in a league.

    With ``years`` (1-5) and ``teamId``, also projects that team's cap for
    the coming seasons.
    """
    league_id = _require_league_id(data)
    league = repository.get_league(league_id)
    report = build_team_cap_report(repository, league_id)
    payload = {
        'leagueId': league.id,
        'season': league.season,
        'teams': [summary.to_dict() for summary in report.values()],
    }

    team_id = data.get('teamId')
    years = data.get('years')
    if team_id and years:
        try:
            years = int(years)
        except (TypeError, ValueError) as e:
            raise ValidationError(f'years must be an integer, got {years!r}') from e
        if not 1 <= years <= 5:
            raise ValidationError(f'years must be between 1 and 5, got {years}')

        contracts = [c for c in repository.list_contracts(league_id) if c.team_id == team_id]
        projections = project_cap_years(
            contracts,
            repository.list_dead_money(league_id, team_id=team_id),
            league.settings.salary_cap,
            league.season,
            years,
            league.settings.annual_increase_percentage,
        )
        payload['projections'] = [
            {
                'year': p.year,
                'committedSalaries': p.committed_salaries,
                'deadMoney': p.dead_money,
                'availableCap': p.available_cap,
                'expiringContracts': p.expiring_contracts,
            }
            for p in projections
        ]

    return 200, payload
