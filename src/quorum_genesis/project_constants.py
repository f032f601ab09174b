"""
Network-wide default parameters for a Quorum genesis.

Every value here can be overridden per deployment (profile file or GENESIS_*
environment variables, see config.py). Changing a default changes the genesis
state of every network built without an override.
"""

# System contracts pre-declared by the genesis template
VOTING_CONTRACT_ADDRESS = "0x0000000000000000000000000000000000000020"
GOVERNANCE_CONTRACT_ADDRESS = "0x000000000000000000000000000000000000002a"

# Receives whatever supply is left after every explicit allocation
REMAINDER_ADDRESS = "0x9153a2a04cc57b486ab82bc0be341dca367b7934"

# 150,000,000 whole tokens, 18 decimals
TOTAL_SUPPLY = 150_000_000
TOKEN_DECIMALS = 18

# Hashes per second we expect the average maker to produce at network start.
# Used with DESIRED_SECONDS_PER_BLOCK to derive the initial difficulty.
EXPECTED_MAKER_HASHRATE = 50_000
DESIRED_SECONDS_PER_BLOCK = 10

# Governance owners added on top of the voters when `owners` is not configured
RESERVE_OWNERS = (REMAINDER_ADDRESS,)

REMAINDER_POLICIES = ("single", "even")

# Default file names, relative to the working directory
CONFIG_FILENAME = "quorum-config.json"
OUTPUT_FILENAME = "quorum-genesis.json"
