"""Heuristic gas constants.

These are engineering estimates modelled on EVM opcode prices. They are not a
protocol-exact schedule and results built on them are advisory only.
"""

COST_MODEL_VERSION = "heuristic-v1"

# Storage
SSTORE = 5_000  # cold-slot heuristic for a write to an existing slot
SSTORE_SET = 20_000  # zero to non-zero write, used for initializers
SLOAD = 2_100

# Memory
MSTORE = 3
MLOAD = 3
MEMORY_EXPANSION = 512  # per allocation, assumes a handful of words

# Control flow
LOOP_OVERHEAD = 200  # flat, trip count is not known statically

# Calls
CALL = 700
CREATE = 32_000

FUNCTION_DECL = 0

# Storage slot size in bytes
SLOT_SIZE = 32

# Loop multiplier policy
DEFAULT_LOOP_ITERATIONS = 10
MAX_LOOP_MULTIPLIER = 1_000

# Cache
DEFAULT_CACHE_TTL_SECONDS = 300.0

HEURISTIC_NOTICE = (
    "Gas figures are heuristic estimates from static patterns, "
    "not exact EVM accounting."
)
