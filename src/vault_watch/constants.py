"""Contract addresses, endpoints and method lists."""

DEFAULT_INDEX_API_URL = "https://api.yearn.finance/v1/chains/1"
DEFAULT_MAINNET_RPC_URL = "https://eth.drpc.org"

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
MAINNET_STRATEGIES_HELPER = "0xae813841436fe29b95a14AC701AFb1502C4CB789"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

SUPPORTED_VAULT_TYPE = "v2"
DEPRECATED_VERSION_PREFIX = "0.2"

# Basis points denominator for fees and debt ratios
MAX_BPS = 10_000

# Queue position for strategies missing from the vault's withdrawal queue
NOT_QUEUED = -1

# Used for testing or debugging an issue when loading vault data. Entries here
# are dropped even when endorsed or allow-listed.
FILTERED_VAULTS: frozenset[str] = frozenset(
    addr.lower()
    for addr in (
        # "0xe2F6b9773BF3A015E2aA70741Bde1498bdB9425b",
    )
)

VAULT_VIEW_METHODS: tuple[str, ...] = (
    "management",
    "managementFee",
    "performanceFee",
    "governance",
    "guardian",
    "depositLimit",
    "totalAssets",
    "debtRatio",
    "totalDebt",
    "lastReport",
    "rewards",
)

STRATEGY_VIEW_METHODS: tuple[str, ...] = (
    "name",
    "apiVersion",
    "strategist",
    "rewards",
    "keeper",
    "vault",
    "emergencyExit",
    "isActive",
    "estimatedTotalAssets",
    "delegatedAssets",
)

# Called on the owning vault with the strategy address as the only argument
STRATEGY_PARAM_METHODS: tuple[str, ...] = (
    "strategies",
    "creditAvailable",
    "debtOutstanding",
    "expectedReturn",
)

STRATEGY_PARAMS_SUFFIX = ":params"
HELPER_GROUP_REFERENCE = "strategies_helper"
