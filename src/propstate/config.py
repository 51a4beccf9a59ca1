"""Configuration for state machine test runs.

Provides a single frozen dataclass that encapsulates generation, sampling and
shrinking limits. Pass an instance to ``sequences()``, ``SequenceShrinker``
or ``run_state_machine()``.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace

from propstate.constants import (
    DEFAULT_MAX_LENGTH,
    DEFAULT_MAX_SHRINK_ITERS,
    DEFAULT_MIN_LENGTH,
    DEFAULT_PRECONDITION_RETRY_BUDGET,
    DEFAULT_SAMPLE_COUNT,
    DEFAULT_VALUE_SHRINK_EXAMPLES,
    ENV_PREFIX,
)

__all__ = ["StateMachineConfig"]

# Environment variable suffix -> StateMachineConfig field
_ENV_FIELDS: dict[str, str] = {
    "CASES": "sample_count",
    "MIN_LENGTH": "min_length",
    "MAX_LENGTH": "max_length",
    "RETRY_BUDGET": "precondition_retry_budget",
    "MAX_SHRINK_ITERS": "max_shrink_iters",
    "VALUE_SHRINK_EXAMPLES": "value_shrink_examples",
}


@dataclass(frozen=True, slots=True)
class StateMachineConfig:
    """Immutable configuration for sequence generation, runs and shrinking.

    All fields have sensible defaults; constructing ``StateMachineConfig()``
    with no arguments produces a usable configuration.

    Attributes:
        min_length: Minimum requested sequence length (default: 1). Generated
            sequences may still be shorter when the precondition retry budget
            is exhausted.
        max_length: Maximum generated sequence length (default: 20).
        precondition_retry_budget: Maximum resample attempts per step before
            generation of the sequence stops early (default: 10).
        sample_count: Number of sequences the runner tries before reporting
            success (default: 256).
        max_shrink_iters: Maximum harness executions spent shrinking one
            failure (default: 4096).
        value_shrink_examples: Hypothesis ``max_examples`` for each
            per-transition or initial state minimization (default: 50).

    Example:
        >>> config = StateMachineConfig(max_length=50, sample_count=100)
        >>> config.max_length
        50
        >>> StateMachineConfig(min_length=5, max_length=2)
        Traceback (most recent call last):
            ...
        ValueError: min_length (5) must be <= max_length (2)
    """

    min_length: int = DEFAULT_MIN_LENGTH
    max_length: int = DEFAULT_MAX_LENGTH
    precondition_retry_budget: int = DEFAULT_PRECONDITION_RETRY_BUDGET
    sample_count: int = DEFAULT_SAMPLE_COUNT
    max_shrink_iters: int = DEFAULT_MAX_SHRINK_ITERS
    value_shrink_examples: int = DEFAULT_VALUE_SHRINK_EXAMPLES

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If a length is negative, the length range is empty,
                or any budget is not positive.
        """
        if self.min_length < 0:
            msg = f"min_length must be >= 0, got {self.min_length}"
            raise ValueError(msg)
        if self.max_length < self.min_length:
            msg = f"min_length ({self.min_length}) must be <= max_length ({self.max_length})"
            raise ValueError(msg)
        if self.precondition_retry_budget <= 0:
            msg = "precondition_retry_budget must be positive"
            raise ValueError(msg)
        if self.sample_count <= 0:
            msg = "sample_count must be positive"
            raise ValueError(msg)
        if self.max_shrink_iters <= 0:
            msg = "max_shrink_iters must be positive"
            raise ValueError(msg)
        if self.value_shrink_examples <= 0:
            msg = "value_shrink_examples must be positive"
            raise ValueError(msg)

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: int,
    ) -> StateMachineConfig:
        """Build a configuration from ``PROPSTATE_*`` environment variables.

        Recognized variables: PROPSTATE_CASES, PROPSTATE_MIN_LENGTH,
        PROPSTATE_MAX_LENGTH, PROPSTATE_RETRY_BUDGET,
        PROPSTATE_MAX_SHRINK_ITERS, PROPSTATE_VALUE_SHRINK_EXAMPLES.
        Explicit keyword overrides win over the environment.

        Args:
            environ: Mapping to read (default: os.environ)
            **overrides: Field values taking precedence over the environment

        Returns:
            Validated StateMachineConfig

        Raises:
            ValueError: If a variable is not an integer or the resulting
                configuration is invalid.
        """
        source = os.environ if environ is None else environ
        values: dict[str, int] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            key = ENV_PREFIX + suffix
            raw = source.get(key)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field_name] = int(raw)
            except ValueError as e:
                msg = f"{key} must be an integer, got {raw!r}"
                raise ValueError(msg) from e
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes: int) -> StateMachineConfig:
        """Return a copy with the given fields replaced (re-validated)."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            msg = f"Unknown configuration fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        return replace(self, **changes)
