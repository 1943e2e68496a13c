"""Token economics constants."""

# Token identity
TOKEN_NAME = "SCORCH"
TOKEN_SYMBOL = "SCORCH"
DECIMALS = 18
WAD = 10 ** DECIMALS  # one whole token in base units

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Supply and tax
MAX_SUPPLY = 15_000_000_000 * WAD
TAX_NUMERATOR = 1
TAX_DENOMINATOR = 100  # 1% of every transfer is burned
UINT256_MAX = 2 ** 256 - 1

# Time
SECONDS_PER_DAY = 86_400
VESTING_CLIFF = 90 * SECONDS_PER_DAY
VESTING_TOTAL = 365 * SECONDS_PER_DAY
SALARY_PAYMENT_INTERVAL = 30 * SECONDS_PER_DAY

# Presale payment split
PAYMENT_BURN_NUMERATOR = 955
PAYMENT_BURN_DENOMINATOR = 1000  # 95.5% burned, remainder to operations

# Presale phases: (price in payment base units per whole token, tokens available)
DEFAULT_PHASES = [
    (1_000, 1_000_000_000 * WAD),
    (2_000, 1_000_000_000 * WAD),
    (4_000, 1_000_000_000 * WAD),
]

# Roles
ADMIN_ROLE = "admin"
MINTER_ROLE = "minter"

# Component identities used when the components act as callers
PRESALE_ADDRESS = "scorch:presale"
AIRDROP_ADDRESS = "scorch:airdrop"
SALARIES_ADDRESS = "scorch:salaries"
