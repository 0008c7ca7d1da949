from .models import (
    Contract,
    DeadMoneyRecord,
    Team,
    League,
    CapSummary,
    ContractChange,
    TurnoverPlan,
    TurnoverResult,
)
from .schemas import DeadMoneyConfig, LeagueSettings, default_dead_money_config
from .errors import (
    ContractManagerError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    ConflictError,
    PersistenceFailure,
)
from .contract_math import (
    calculate_annual_salary,
    escalate_salary,
    calculate_dead_money,
    can_extend_contract,
    can_apply_franchise_tag,
    calculate_franchise_tag_value,
    top_salaries_at_position,
    create_contract,
)
from .cap import project_team_cap, project_cap_years, validate_cap_space, build_team_cap_report
from .dead_money import (
    validate_dead_money_config,
    parse_dead_money_config,
    serialize_dead_money_config,
    calculate_cut_impact,
)
from .turnover import plan_turnover, preview_turnover, execute_turnover
from .transactions import (
    cut_player,
    extend_contract,
    apply_franchise_tag,
    franchise_tag_quote,
    sign_contract,
)
from .repository import (
    ContractRepository,
    InMemoryContractRepository,
    JsonContractRepository,
    get_repository,
)

__all__ = [
    # Models
    'Contract',
    'DeadMoneyRecord',
    'Team',
    'League',
    'CapSummary',
    'ContractChange',
    'TurnoverPlan',
    'TurnoverResult',
    'DeadMoneyConfig',
    'LeagueSettings',
    'default_dead_money_config',
    # Errors
    'ContractManagerError',
    'ValidationError',
    'NotFoundError',
    'AuthorizationError',
    'ConflictError',
    'PersistenceFailure',
    # Contract math
    'calculate_annual_salary',
    'escalate_salary',
    'calculate_dead_money',
    'can_extend_contract',
    'can_apply_franchise_tag',
    'calculate_franchise_tag_value',
    'top_salaries_at_position',
    'create_contract',
    # Cap projections
    'project_team_cap',
    'project_cap_years',
    'validate_cap_space',
    'build_team_cap_report',
    # Dead money
    'validate_dead_money_config',
    'parse_dead_money_config',
    'serialize_dead_money_config',
    'calculate_cut_impact',
    # Season turnover
    'plan_turnover',
    'preview_turnover',
    'execute_turnover',
    # Contract actions
    'cut_player',
    'extend_contract',
    'apply_franchise_tag',
    'franchise_tag_quote',
    'sign_contract',
    # Storage
    'ContractRepository',
    'InMemoryContractRepository',
    'JsonContractRepository',
    'get_repository',
]
