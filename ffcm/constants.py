"""Constants and mappings for the contract manager."""

# Contract statuses
STATUS_ACTIVE = 'ACTIVE'
STATUS_EXPIRED = 'EXPIRED'
STATUS_CUT = 'CUT'

CONTRACT_STATUSES = (STATUS_ACTIVE, STATUS_EXPIRED, STATUS_CUT)

# How a team acquired the player
ACQUISITION_TYPES = (
    'rookie_draft',
    'auction',
    'faab',
    'trade',
    'waiver',
    'undisputed',
)

POSITIONS = ('QB', 'RB', 'WR', 'TE', 'K', 'DL', 'LB', 'DB')

MAX_CONTRACT_YEARS = 4

# Labels shown in the season turnover preview
TURNOVER_STATUS_EXTENSION = 'Eligible for Extension'
TURNOVER_STATUS_TAG = 'Eligible for Franchise Tag'
TURNOVER_STATUS_ACTIVE = 'Active Contract'
TURNOVER_STATUS_FREE_AGENCY = 'Pending Free Agency'

# Dead money table keys ("years remaining at time of cut")
DEAD_MONEY_BUCKETS = ('1', '2', '3', '4')

DEFAULT_DEAD_MONEY_CONFIG = {
    'currentSeason': 1.0,
    'futureSeasons': {'1': 0.25, '2': 0.25, '3': 0.25, '4': 0.25},
}

# Shipped as the schema default before it was corrected; blocked dead money
# for cuts with one year remaining
LEGACY_DEAD_MONEY_CONFIG = {
    'currentSeason': 1.0,
    'futureSeasons': {'1': 0.0, '2': 0.5, '3': 0.75, '4': 1.0},
}

DEFAULT_ANNUAL_INCREASE_PERCENTAGE = 15.0
DEFAULT_MAX_FRANCHISE_TAGS = 1
FRANCHISE_TAG_MULTIPLIER = 1.15
FRANCHISE_TAG_TOP_N = 10

# Money is stored in whole currency units with cents
MONEY_DECIMAL_PLACES = 2
