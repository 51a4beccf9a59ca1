"""Run loop: sample, execute, shrink, report.

Sampling is delegated to Hypothesis: a ``@given`` test restricted to
``Phase.generate`` draws up to ``sample_count`` sequences and stops at the
first failing one. Hypothesis' own shrinking is disabled; the failure is
handed to SequenceShrinker, which keeps every candidate precondition-valid.

The Hypothesis example database is never used (no regression corpus).

Call these functions from plain test functions, not from inside another
``@given`` test: Hypothesis rejects nested ``@given`` through its
``nested_given`` health check.

Example:
    >>> def test_counter():
    ...     assert_state_machine(CounterMachine(), CounterBinding())

Python 3.11+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from hypothesis import HealthCheck, Phase, Verbosity, given, settings
from hypothesis import seed as hypothesis_seed
from hypothesis.errors import Unsatisfiable

from .config import StateMachineConfig
from .errors import StateMachineTestFailure
from .generator import sequences
from .harness import execute_sequence
from .shrinker import SequenceShrinker, ShrinkResult

if TYPE_CHECKING:
    from collections.abc import Hashable

    from .harness import FailureRecord
    from .machine import ImplementationBinding, ReferenceStateMachine
    from .sequence import TransitionSequence

__all__ = ["RunResult", "assert_state_machine", "run_state_machine"]

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")
TransitionT = TypeVar("TransitionT")
InstanceT = TypeVar("InstanceT")


class _FailureFound(Exception):  # noqa: N818 - internal control flow signal
    """Stops the Hypothesis sample loop at the first failing sequence."""


@dataclass(frozen=True, slots=True)
class RunResult(Generic[StateT, TransitionT]):
    """Result surface returned to the caller.

    Attributes:
        samples_run: Sequences generated and executed
        failure: Minimal failure (after shrinking), or None when every
            sampled sequence passed
        shrink: Shrink search details, or None when nothing was shrunk
    """

    samples_run: int
    failure: FailureRecord[StateT, TransitionT] | None
    shrink: ShrinkResult[StateT, TransitionT] | None = None

    @property
    def passed(self) -> bool:
        return self.failure is None


def find_failure(
    machine: ReferenceStateMachine[StateT, TransitionT],
    binding: ImplementationBinding[StateT, TransitionT, InstanceT],
    config: StateMachineConfig,
    *,
    seed: Hashable | None = None,
) -> tuple[int, FailureRecord[StateT, TransitionT] | None]:
    """Sample sequences until one fails or ``sample_count`` is reached.

    Returns:
        ``(samples_run, first_failure_or_None)``
    """
    found: list[FailureRecord[StateT, TransitionT]] = []
    samples_run = 0

    @settings(
        database=None,
        deadline=None,
        max_examples=config.sample_count,
        phases=[Phase.generate],
        report_multiple_bugs=False,
        suppress_health_check=list(HealthCheck),
        verbosity=Verbosity.quiet,
    )
    @given(sequences(machine, config))
    def sample(sequence: TransitionSequence[StateT, TransitionT]) -> None:
        nonlocal samples_run
        if found:
            # Final replay of the failing example; the record is already kept.
            raise _FailureFound
        samples_run += 1
        result = execute_sequence(binding, sequence)
        if result.failure is not None:
            found.append(result.failure)
            raise _FailureFound

    if seed is not None:
        sample = hypothesis_seed(seed)(sample)

    try:
        sample()
    except _FailureFound:
        pass
    except Unsatisfiable:
        # Every draw overran the Hypothesis buffer; nothing was executed.
        logger.debug("Hypothesis produced no usable sequence", exc_info=True)

    return samples_run, (found[0] if found else None)


def run_state_machine(
    machine: ReferenceStateMachine[StateT, TransitionT],
    binding: ImplementationBinding[StateT, TransitionT, InstanceT],
    config: StateMachineConfig | None = None,
    *,
    seed: Hashable | None = None,
    shrink: bool = True,
) -> RunResult[StateT, TransitionT]:
    """Generate, execute and (on failure) shrink transition sequences.

    Args:
        machine: Reference model
        binding: Implementation binding
        config: Limits (default: StateMachineConfig())
        seed: Fixed Hypothesis seed for reproducible sampling
        shrink: Shrink the first failure before returning it

    Returns:
        RunResult; ``failure`` is the minimal failure when one was found
    """
    cfg = config if config is not None else StateMachineConfig()
    samples_run, failure = find_failure(machine, binding, cfg, seed=seed)

    if failure is None:
        if samples_run < cfg.sample_count:
            logger.warning(
                "Only %d of %d requested sequences were executed; Hypothesis stopped "
                "generating early (draws too large for its buffer, or search space "
                "exhausted). Lower max_length to test more sequences.",
                samples_run,
                cfg.sample_count,
            )
        logger.info("All %d sampled sequences passed", samples_run)
        return RunResult(samples_run, None)

    logger.info(
        "Sequence of %d steps failed at step %d after %d samples: %s",
        len(failure.sequence),
        failure.index,
        samples_run,
        failure.message,
    )
    if not shrink:
        return RunResult(samples_run, failure)

    result = SequenceShrinker(machine, binding, cfg).shrink(failure)
    logger.info(
        "Shrunk failure from %d to %d steps (%d executions)",
        len(failure.sequence),
        len(result.failure.sequence),
        result.stats.executions,
    )
    return RunResult(samples_run, result.failure, result)


def assert_state_machine(
    machine: ReferenceStateMachine[StateT, TransitionT],
    binding: ImplementationBinding[StateT, TransitionT, InstanceT],
    config: StateMachineConfig | None = None,
    *,
    seed: Hashable | None = None,
) -> RunResult[StateT, TransitionT]:
    """run_state_machine() that raises on failure.

    Raises:
        StateMachineTestFailure: With the minimal failure report as message
    """
    result = run_state_machine(machine, binding, config, seed=seed)
    if result.failure is not None:
        raise StateMachineTestFailure(result.failure, result)
    return result
