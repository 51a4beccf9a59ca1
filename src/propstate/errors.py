"""propstate exception hierarchy.

Only configuration mistakes and explicit assertion helpers raise. Failures of
the system under test are data (FailureRecord), never control flow out of the
engine.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .harness import FailureRecord
    from .runner import RunResult

__all__ = [
    "ChainInconsistencyError",
    "InvariantViolation",
    "PropStateError",
    "StateMachineTestFailure",
]


class PropStateError(Exception):
    """Base exception for all propstate errors."""


class InvariantViolation(PropStateError, AssertionError):  # noqa: N818 - Domain-specific name
    """Implementation-observable state disagrees with the model.

    Raise from ImplementationBinding.check_invariants (or
    apply_to_implementation) to report a divergence. Plain ``assert``
    statements are classified the same way since this subclasses
    AssertionError.

    Attributes:
        expected: Value predicted by the model (optional)
        actual: Value observed on the implementation (optional)
    """

    def __init__(
        self,
        message: str,
        *,
        expected: object = None,
        actual: object = None,
    ) -> None:
        """Initialize InvariantViolation.

        Args:
            message: Human-readable description of the divergence
            expected: Value predicted by the model
            actual: Value observed on the implementation
        """
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ChainInconsistencyError(PropStateError):
    """A stored state chain does not match recomputation from the model.

    Signals a malformed model: apply() is impure, states compare unequal to
    themselves, or a transition was recorded whose precondition does not hold.

    Attributes:
        index: Step index at which the chain first diverged
    """

    def __init__(self, message: str, *, index: int) -> None:
        super().__init__(message)
        self.index = index


class StateMachineTestFailure(PropStateError, AssertionError):  # noqa: N818 - Domain-specific name
    """Raised by assert_state_machine when a failing sequence was found.

    The message is the formatted minimal failure report.

    Attributes:
        failure: Minimal FailureRecord after shrinking
        result: Complete RunResult (samples, shrink statistics)
    """

    def __init__(self, failure: FailureRecord, result: RunResult) -> None:
        super().__init__(failure.format())
        self.failure = failure
        self.result = result
