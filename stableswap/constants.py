"""Protocol constants for the StableSwap engine.

Centralizes fee/precision denominators and default tolerances shared by the
pool, the share ledger and the governance layer.
"""

# Fee rates are expressed in parts per FEE_DENOMINATOR (1e10 = 100%)
FEE_DENOMINATOR = 10**10

# Buffer percentage is expressed in parts per BUFFER_DENOMINATOR (1e10 = 100%)
BUFFER_DENOMINATOR = 10**10

# Governance bounds are expressed in parts per million (1e6 = 100%)
PPM_DENOMINATOR = 10**6

# All pool balances are normalized to an 18-decimal common unit
PRECISION_DECIMALS = 18
ONE = 10**PRECISION_DECIMALS

# Amplification coefficient range: 0 < A <= MAX_A
MAX_A = 10**6

# Largest relative A move allowed by a single ramp (x2 up, /2 down).
# Pools with A <= A_LOW_THRESHOLD may ramp up by MAX_A_CHANGE_LOW instead.
MAX_A_CHANGE = 2
MAX_A_CHANGE_LOW = 10
A_LOW_THRESHOLD = 2

# Default minimum duration of an A ramp (seconds)
DEFAULT_MIN_RAMP_TIME = 30 * 60

# Shares permanently assigned to the null account on the first mint
NUMBER_OF_DEAD_SHARES = 1000
DEAD_ACCOUNT = "0x000000000000000000000000000000000000dead"
ZERO_ACCOUNT = "0x0000000000000000000000000000000000000000"

# Default tolerances (normalized units)
DEFAULT_FEE_ERROR_MARGIN = 100_000
DEFAULT_YIELD_ERROR_MARGIN = 10_000
DEFAULT_MAX_DELTA_D = 100_000

# Default freshness window for oracle-backed exchange rates (seconds)
DEFAULT_MAX_STALE_PERIOD = 24 * 60 * 60
