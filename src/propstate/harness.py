"""Execution harness.

Walks a TransitionSequence against a fresh implementation instance in
lockstep with the model chain:

    instance = init_implementation(states[0])
    for i, transition:
        instance = apply_to_implementation(instance, states[i], transition)
        check_invariants(instance, states[i + 1])

The first failure stops the walk and is returned as a FailureRecord; failures
are data, never exceptions escaping the harness. teardown(instance) runs
exactly once for every constructed instance, on every exit path, including
cancellation through BaseException (re-raised after teardown).

Failure classification:
- AssertionError (including InvariantViolation): INVARIANT_VIOLATION
- Any other Exception: FAULT

Python 3.11+.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from .enums import ExecutionPhase, FailureKind

if TYPE_CHECKING:
    from .machine import ImplementationBinding
    from .sequence import TransitionSequence

__all__ = ["ExecutionResult", "FailureRecord", "classify_exception", "execute_sequence"]

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")
TransitionT = TypeVar("TransitionT")
InstanceT = TypeVar("InstanceT")


def classify_exception(error: BaseException) -> FailureKind:
    """Map an exception escaping the binding to a FailureKind."""
    if isinstance(error, AssertionError):
        return FailureKind.INVARIANT_VIOLATION
    return FailureKind.FAULT


@dataclass(frozen=True, slots=True)
class FailureRecord(Generic[StateT, TransitionT]):
    """First divergence between model and implementation.

    Attributes:
        index: Failing step index; -1 when init_implementation failed, or
            when teardown failed after an empty sequence (see phase)
        sequence: Prefix of the executed sequence up to and including index
        kind: Invariant violation or propagated fault
        phase: Binding call that failed
        error: The captured exception
    """

    index: int
    sequence: TransitionSequence[StateT, TransitionT]
    kind: FailureKind
    phase: ExecutionPhase
    error: Exception

    def __post_init__(self) -> None:
        """Validate that the prefix ends at the failing step.

        Raises:
            ValueError: If index is below -1 or the sequence does not hold
                exactly index + 1 steps.
        """
        if self.index < -1:
            msg = f"FailureRecord.index must be >= -1, got {self.index}"
            raise ValueError(msg)
        if len(self.sequence) != self.index + 1:
            msg = (
                f"FailureRecord.sequence must hold index + 1 = {self.index + 1} "
                f"steps, got {len(self.sequence)}"
            )
            raise ValueError(msg)

    @property
    def message(self) -> str:
        """``ExceptionType: message`` summary of the captured error."""
        text = str(self.error)
        name = type(self.error).__name__
        return f"{name}: {text}" if text else name

    def format(self, *, include_traceback: bool = False) -> str:
        """Format the failure as a human-readable report.

        Example output:
            invariant_violation at step 9 (check): AssertionError: capacity
            initial state: 0
              [0] 'inc' -> 1
              ...

        Args:
            include_traceback: Append the captured traceback

        Returns:
            Multi-line report
        """
        if self.index >= 0:
            location = f"step {self.index}"
        elif self.phase is ExecutionPhase.TEARDOWN:
            location = "teardown of empty sequence"
        else:
            location = "sequence start"
        lines = [
            f"{self.kind} at {location} ({self.phase}): {self.message}",
            self.sequence.format(),
        ]
        if include_traceback and self.error.__traceback__ is not None:
            lines.append(
                "".join(
                    traceback.format_exception(
                        type(self.error), self.error, self.error.__traceback__
                    )
                ).rstrip()
            )
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class ExecutionResult(Generic[StateT, TransitionT]):
    """Outcome of one harness run.

    Attributes:
        failure: First failure, or None when the whole sequence passed
        steps_executed: Transitions applied to the implementation before the
            run stopped (including a failing one)
    """

    failure: FailureRecord[StateT, TransitionT] | None
    steps_executed: int

    @property
    def passed(self) -> bool:
        return self.failure is None


def _failure(
    sequence: TransitionSequence[StateT, TransitionT],
    index: int,
    phase: ExecutionPhase,
    error: Exception,
) -> FailureRecord[StateT, TransitionT]:
    return FailureRecord(
        index=index,
        sequence=sequence.prefix(index + 1),
        kind=classify_exception(error),
        phase=phase,
        error=error,
    )


def execute_sequence(
    binding: ImplementationBinding[StateT, TransitionT, InstanceT],
    sequence: TransitionSequence[StateT, TransitionT],
) -> ExecutionResult[StateT, TransitionT]:
    """Run ``sequence`` against a fresh implementation instance.

    Args:
        binding: Implementation binding
        sequence: Precondition-valid sequence (never validated here; the
            generator and shrinker guarantee it)

    Returns:
        ExecutionResult with the first failure, if any
    """
    try:
        instance = binding.init_implementation(sequence.initial_state)
    except Exception as e:  # noqa: BLE001 - binding faults are reported, not raised
        logger.debug("init_implementation failed: %r", e)
        return ExecutionResult(_failure(sequence, -1, ExecutionPhase.INIT, e), 0)

    failure: FailureRecord[StateT, TransitionT] | None = None
    executed = 0
    try:
        for step in sequence.steps():
            phase = ExecutionPhase.APPLY
            try:
                logger.debug(
                    "Applying transition %d/%d: %r",
                    step.index + 1,
                    len(sequence),
                    step.transition,
                )
                instance = binding.apply_to_implementation(instance, step.state, step.transition)
                executed += 1
                phase = ExecutionPhase.CHECK
                binding.check_invariants(instance, sequence.states[step.index + 1])
            except Exception as e:  # noqa: BLE001 - binding faults are reported, not raised
                if phase is ExecutionPhase.APPLY:
                    executed += 1
                failure = _failure(sequence, step.index, phase, e)
                logger.debug("Step %d failed during %s: %r", step.index, phase, e)
                break
    finally:
        try:
            binding.teardown(instance)
        except Exception as e:  # noqa: BLE001 - binding faults are reported, not raised
            if failure is None:
                failure = _failure(sequence, len(sequence) - 1, ExecutionPhase.TEARDOWN, e)
            else:
                logger.debug("teardown failed after step %d failure: %r", failure.index, e)

    return ExecutionResult(failure, executed)
