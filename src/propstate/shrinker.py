"""Sequence shrinker.

Searches for a locally minimal failing sequence starting from a confirmed
FailureRecord. Move classes are tried in a fixed priority order; the first
candidate that still fails becomes the new best and the search restarts from
the top:

1. TRUNCATE: steps after the failing index are dropped. The harness already
   reports failures as prefixes, so this happens every time a candidate is
   accepted and needs no extra execution.
2. DELETE: remove a contiguous block of steps. Block sizes are powers of two
   from the largest not exceeding half the length down to 1, each swept over
   every start position. The chain is recomputed from the deletion point.
3. SHRINK_TRANSITION: minimize one transition with Hypothesis (``find``
   over ``transitions(state)``), recomputing the chain downstream.
4. SHRINK_INITIAL_STATE: minimize the initial state the same way,
   recomputing the whole chain.

Critical rule: a candidate is only ever executed when its whole chain is
precondition-valid. Rejected candidates are counted, never executed and
never surfaced.

Ordering: shorter sequences are always smaller. At equal length, a value
move is only accepted when the replacement has a strictly smaller sort key
(ReferenceStateMachine.transition_sort_key / state_sort_key, shortlex over
repr() by default). Every accepted move therefore decreases a well-founded
order, so the search terminates, and it only stops after a full sweep in
which no move is accepted: the result is a fixpoint, and for a
deterministic binding shrinking it again changes nothing.

Python 3.11+.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from random import Random
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from hypothesis import HealthCheck, Phase, Verbosity, find, settings
from hypothesis.errors import Flaky, NoSuchExample, Unsatisfiable

from .config import StateMachineConfig
from .enums import ShrinkMove
from .harness import execute_sequence
from .sequence import TransitionSequence, build_chain

if TYPE_CHECKING:
    from hypothesis.strategies import SearchStrategy

    from .harness import FailureRecord
    from .machine import ImplementationBinding, ReferenceStateMachine

__all__ = ["SequenceShrinker", "ShrinkResult", "ShrinkStats", "deletion_sizes"]

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")
TransitionT = TypeVar("TransitionT")
InstanceT = TypeVar("InstanceT")

# Hypothesis errors meaning "no smaller value found"
_NO_MINIMIZATION = (NoSuchExample, Unsatisfiable, Flaky)


def deletion_sizes(length: int) -> Iterator[int]:
    """Block sizes tried by the DELETE pass, largest first.

    Powers of two from the largest not exceeding ``length // 2`` down to 1.
    A single-step sequence still yields 1 so its only step can be removed.

    Example:
        >>> list(deletion_sizes(20))
        [8, 4, 2, 1]
        >>> list(deletion_sizes(1))
        [1]
        >>> list(deletion_sizes(0))
        []
    """
    if length <= 0:
        return
    size = 1
    while size * 2 <= length // 2:
        size *= 2
    while size >= 1:
        yield size
        size //= 2


@dataclass(slots=True)
class ShrinkStats:
    """Counters collected while shrinking one failure.

    Attributes:
        executions: Harness executions spent (including value minimization)
        rejected_preconditions: Candidates discarded without execution
            because their chain broke a precondition
        accepted: Accepted moves per ShrinkMove
        exhausted: True when max_shrink_iters stopped the search early
    """

    executions: int = 0
    rejected_preconditions: int = 0
    accepted: dict[ShrinkMove, int] = field(default_factory=dict)
    exhausted: bool = False

    def record(self, move: ShrinkMove) -> None:
        self.accepted[move] = self.accepted.get(move, 0) + 1

    @property
    def total_accepted(self) -> int:
        return sum(self.accepted.values())


@dataclass(frozen=True, slots=True)
class ShrinkResult(Generic[StateT, TransitionT]):
    """Outcome of SequenceShrinker.shrink().

    Attributes:
        failure: Locally minimal failure
        original: Failure the search started from
        stats: Search counters
    """

    failure: FailureRecord[StateT, TransitionT]
    original: FailureRecord[StateT, TransitionT]
    stats: ShrinkStats

    @property
    def steps_removed(self) -> int:
        return len(self.original.sequence) - len(self.failure.sequence)


class SequenceShrinker(Generic[StateT, TransitionT, InstanceT]):
    """Minimizes failing sequences for one model/binding pair.

    Args:
        machine: Reference model used to recompute and validate chains
        binding: Implementation binding; every candidate runs on a fresh
            instance
        config: Shrink limits (max_shrink_iters, value_shrink_examples)
        observer: Called with every sequence handed to the harness

    Example:
        >>> shrinker = SequenceShrinker(CounterMachine(), BuggyCounterBinding())
        >>> result = shrinker.shrink(failure)
        >>> len(result.failure.sequence) <= len(failure.sequence)
        True
    """

    __slots__ = ("_binding", "_config", "_find_settings", "_machine", "_observer", "_stats")

    def __init__(
        self,
        machine: ReferenceStateMachine[StateT, TransitionT],
        binding: ImplementationBinding[StateT, TransitionT, InstanceT],
        config: StateMachineConfig | None = None,
        *,
        observer: Callable[[TransitionSequence[StateT, TransitionT]], None] | None = None,
    ) -> None:
        self._machine = machine
        self._binding = binding
        self._config = config if config is not None else StateMachineConfig()
        self._observer = observer
        self._stats = ShrinkStats()
        self._find_settings = settings(
            database=None,
            deadline=None,
            max_examples=self._config.value_shrink_examples,
            phases=[Phase.generate, Phase.shrink],
            suppress_health_check=list(HealthCheck),
            verbosity=Verbosity.quiet,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def shrink(
        self, failure: FailureRecord[StateT, TransitionT]
    ) -> ShrinkResult[StateT, TransitionT]:
        """Search for a locally minimal sequence that still fails.

        Args:
            failure: Confirmed failure (its sequence is the failing prefix)

        Returns:
            ShrinkResult holding the minimal failure and search counters
        """
        self._stats = ShrinkStats()
        best = failure

        while not self._stats.exhausted:
            candidate = self._try_deletions(best)
            if candidate is None:
                candidate = self._try_transition_shrinks(best)
            if candidate is None:
                candidate = self._try_initial_state_shrink(best)
            if candidate is None:
                break
            best = candidate

        if self._stats.exhausted:
            logger.warning(
                "Shrink budget of %d executions exhausted; reporting best failure so far "
                "(%d steps)",
                self._config.max_shrink_iters,
                len(best.sequence),
            )
        logger.debug(
            "Shrink finished: %d -> %d steps, %d executions, %d rejected candidates",
            len(failure.sequence),
            len(best.sequence),
            self._stats.executions,
            self._stats.rejected_preconditions,
        )
        return ShrinkResult(failure=best, original=failure, stats=self._stats)

    # =========================================================================
    # Candidate evaluation
    # =========================================================================

    def _run(
        self, candidate: TransitionSequence[StateT, TransitionT]
    ) -> FailureRecord[StateT, TransitionT] | None:
        """Execute a chain-valid candidate; None when it passes or budget is spent."""
        if self._stats.executions >= self._config.max_shrink_iters:
            self._stats.exhausted = True
            return None
        self._stats.executions += 1
        if self._observer is not None:
            self._observer(candidate)
        return execute_sequence(self._binding, candidate).failure

    def _accept(
        self,
        move: ShrinkMove,
        candidate: TransitionSequence[StateT, TransitionT],
        record: FailureRecord[StateT, TransitionT],
    ) -> FailureRecord[StateT, TransitionT]:
        self._stats.record(move)
        if len(record.sequence) < len(candidate):
            self._stats.record(ShrinkMove.TRUNCATE)
        logger.debug(
            "Accepted %s: %d -> %d steps (failure at step %d)",
            move,
            len(candidate),
            len(record.sequence),
            record.index,
        )
        return record

    def _recompute_from(
        self,
        sequence: TransitionSequence[StateT, TransitionT],
        start: int,
        suffix: tuple[TransitionT, ...],
    ) -> TransitionSequence[StateT, TransitionT] | None:
        """Keep steps before ``start``, rebuild the chain for ``suffix`` after it."""
        tail = build_chain(self._machine, sequence.states[start], suffix)
        if tail is None:
            self._stats.rejected_preconditions += 1
            return None
        return TransitionSequence(
            sequence.transitions[:start] + tail.transitions,
            sequence.states[:start] + tail.states,
        )

    def _smaller_transition(self, candidate: TransitionT, current: TransitionT) -> bool:
        key = self._machine.transition_sort_key
        return bool(key(candidate) < key(current))

    def _smaller_state(self, candidate: StateT, current: StateT) -> bool:
        key = self._machine.state_sort_key
        return bool(key(candidate) < key(current))

    def _minimize(
        self,
        strategy: SearchStrategy[Any],
        condition: Callable[[Any], bool],
        seed: str,
    ) -> tuple[bool, Any]:
        """Smallest value of ``strategy`` satisfying ``condition``, via Hypothesis."""
        try:
            value = find(strategy, condition, settings=self._find_settings, random=Random(seed))
        except _NO_MINIMIZATION as e:
            logger.debug("No minimized value for %s: %s", seed, type(e).__name__)
            return False, None
        return True, value

    # =========================================================================
    # Move classes
    # =========================================================================

    def _try_deletions(
        self, best: FailureRecord[StateT, TransitionT]
    ) -> FailureRecord[StateT, TransitionT] | None:
        sequence = best.sequence
        transitions = sequence.transitions
        for size in deletion_sizes(len(sequence)):
            for start in range(len(sequence) - size + 1):
                candidate = self._recompute_from(sequence, start, transitions[start + size :])
                if candidate is None:
                    continue
                record = self._run(candidate)
                if record is not None:
                    return self._accept(ShrinkMove.DELETE, candidate, record)
                if self._stats.exhausted:
                    return None
        return None

    def _try_transition_shrinks(
        self,
        best: FailureRecord[StateT, TransitionT],
    ) -> FailureRecord[StateT, TransitionT] | None:
        sequence = best.sequence
        for index in range(len(sequence)):
            current = sequence.transitions[index]
            rest = sequence.transitions[index + 1 :]

            def still_fails(
                transition: TransitionT, index: int = index, current: TransitionT = current
            ) -> bool:
                if not self._smaller_transition(transition, current):
                    return False
                candidate = self._recompute_from(sequence, index, (transition, *rest))
                return candidate is not None and self._run(candidate) is not None

            found, replacement = self._minimize(
                self._machine.transitions(sequence.states[index]),
                still_fails,
                f"transition-{index}",
            )
            if self._stats.exhausted:
                return None
            if not found or not self._smaller_transition(replacement, current):
                continue
            candidate = self._recompute_from(sequence, index, (replacement, *rest))
            if candidate is None:
                continue
            record = self._run(candidate)
            if record is not None:
                return self._accept(ShrinkMove.SHRINK_TRANSITION, candidate, record)
            logger.warning(
                "Minimized transition at step %d no longer fails on re-execution; "
                "implementation may be non-deterministic",
                index,
            )
        return None

    def _try_initial_state_shrink(
        self, best: FailureRecord[StateT, TransitionT]
    ) -> FailureRecord[StateT, TransitionT] | None:
        sequence = best.sequence

        def rebuild(state: StateT) -> TransitionSequence[StateT, TransitionT] | None:
            candidate = build_chain(self._machine, state, sequence.transitions)
            if candidate is None:
                self._stats.rejected_preconditions += 1
            return candidate

        def still_fails(state: StateT) -> bool:
            if not self._smaller_state(state, sequence.initial_state):
                return False
            candidate = rebuild(state)
            return candidate is not None and self._run(candidate) is not None

        found, replacement = self._minimize(
            self._machine.initial_state(), still_fails, "initial-state"
        )
        if self._stats.exhausted or not found:
            return None
        if not self._smaller_state(replacement, sequence.initial_state):
            return None
        candidate = rebuild(replacement)
        if candidate is None:
            return None
        record = self._run(candidate)
        if record is None:
            logger.warning(
                "Minimized initial state no longer fails on re-execution; "
                "implementation may be non-deterministic"
            )
            return None
        return self._accept(ShrinkMove.SHRINK_INITIAL_STATE, candidate, record)
