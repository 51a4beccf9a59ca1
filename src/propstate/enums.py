"""Enumerations for propstate type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.
StrEnum members are strings themselves, eliminating boilerplate __str__ methods.

Python 3.11+.
"""

from enum import StrEnum


class FailureKind(StrEnum):
    """Nature of a failure detected by the execution harness.

    StrEnum provides automatic string conversion:
    str(FailureKind.FAULT) == "fault"
    """

    INVARIANT_VIOLATION = "invariant_violation"
    """Implementation diverged from the model (assertion or InvariantViolation)."""

    FAULT = "fault"
    """Any other exception escaping the implementation binding."""


class ExecutionPhase(StrEnum):
    """Binding call during which a failure occurred."""

    INIT = "init"
    """init_implementation(initial_state)"""

    APPLY = "apply"
    """apply_to_implementation(instance, state_before, transition)"""

    CHECK = "check"
    """check_invariants(instance, state_after)"""

    TEARDOWN = "teardown"
    """teardown(instance)"""


class ShrinkMove(StrEnum):
    """Shrink move classes, in the priority order the shrinker applies them."""

    TRUNCATE = "truncate"
    """Drop every step after the failing index."""

    DELETE = "delete"
    """Delete a contiguous block of interior steps."""

    SHRINK_TRANSITION = "shrink_transition"
    """Replace one transition with a minimized value."""

    SHRINK_INITIAL_STATE = "shrink_initial_state"
    """Replace the initial state with a minimized value."""


__all__ = [
    "ExecutionPhase",
    "FailureKind",
    "ShrinkMove",
]
