"""Escrow spec configuration constants.

Sentinel addresses are the values deployments and tests pass for "no
arbitrator" and "pay in native coin".
"""

# Addresses
ADDRESS_LENGTH = 20
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)
NO_ARBITRATOR = ZERO_ADDRESS
NATIVE_COIN_ADDRESS = bytes.fromhex("eeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee")

# Amounts
U256_MAX = (1 << 256) - 1
MIN_PRICE = 1
MAX_PRICE = U256_MAX

# Deal address derivation (BLAKE3 over the construction parameters)
DEAL_ADDRESS_DOMAIN = b"escrow-spec/deal/v1"
SALT_BYTES = 8

# Call sequences (fixtures / vectors)
MAX_CALLS_PER_SEQUENCE = 64

# Test token supply handed to the owner account on deploy
TEST_TOKEN_SUPPLY = 1_000_000
TEST_BUYER_TOKEN_GRANT = 1000
TEST_NATIVE_GRANT = 10_000
