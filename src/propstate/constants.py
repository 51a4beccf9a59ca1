"""Shared constants for propstate.

Centralized defaults used by the configuration, the generator, the shrinker
and the runner. Placing them here avoids circular imports and provides a
single source of truth.

Constants are grouped by domain:
- Generation limits: sequence length and precondition retries
- Run limits: number of sampled sequences
- Shrink limits: execution budget and per-value minimization effort

Python 3.11+.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Generation limits
    "DEFAULT_MIN_LENGTH",
    "DEFAULT_MAX_LENGTH",
    "DEFAULT_PRECONDITION_RETRY_BUDGET",
    # Run limits
    "DEFAULT_SAMPLE_COUNT",
    # Shrink limits
    "DEFAULT_MAX_SHRINK_ITERS",
    "DEFAULT_VALUE_SHRINK_EXAMPLES",
    # Environment
    "ENV_PREFIX",
]

# ============================================================================
# GENERATION LIMITS
# ============================================================================

# Sequence length is drawn uniformly-ish (Hypothesis biases towards small
# values) from [DEFAULT_MIN_LENGTH, DEFAULT_MAX_LENGTH].
DEFAULT_MIN_LENGTH: int = 1
DEFAULT_MAX_LENGTH: int = 20

# Resample attempts per step before generation of a sequence stops early.
# Strict preconditions combined with a low budget produce near-empty
# sequences; raise the budget or tighten transitions(state) instead.
DEFAULT_PRECONDITION_RETRY_BUDGET: int = 10

# ============================================================================
# RUN LIMITS
# ============================================================================

DEFAULT_SAMPLE_COUNT: int = 256

# ============================================================================
# SHRINK LIMITS
# ============================================================================

# Maximum harness executions spent on shrinking a single failure.
# Includes executions performed while minimizing individual values.
DEFAULT_MAX_SHRINK_ITERS: int = 4096

# Hypothesis max_examples for each per-transition (or initial state)
# minimization.
DEFAULT_VALUE_SHRINK_EXAMPLES: int = 50

# ============================================================================
# ENVIRONMENT
# ============================================================================

ENV_PREFIX: str = "PROPSTATE_"
