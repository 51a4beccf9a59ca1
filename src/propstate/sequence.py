"""Transition sequences and their model state chains.

A TransitionSequence stores the transitions together with the derived chain
of model states:

    states[0]   = initial state
    states[i+1] = machine.apply(states[i], transitions[i])

with precondition(states[i], transitions[i]) holding for every i. Because
states are immutable values, any prefix of a chain is itself a valid chain
and any suffix can be recomputed independently. The shrinker relies on both.

Python 3.11+.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from .errors import ChainInconsistencyError

if TYPE_CHECKING:
    from .machine import ReferenceStateMachine

__all__ = [
    "Step",
    "TransitionSequence",
    "build_chain",
    "is_chain_valid",
    "verify_chain",
]

StateT = TypeVar("StateT")
TransitionT = TypeVar("TransitionT")


@dataclass(frozen=True, slots=True)
class Step(Generic[StateT, TransitionT]):
    """One (state-before, transition) pair of a sequence.

    Attributes:
        index: Position in the sequence (0-indexed)
        state: Model state before the transition
        transition: Transition applied from ``state``
    """

    index: int
    state: StateT
    transition: TransitionT


@dataclass(frozen=True, slots=True)
class TransitionSequence(Generic[StateT, TransitionT]):
    """Ordered transitions plus the model states they produce.

    Construct through build_chain() (or the generator) so the chain invariant
    holds by construction. Direct construction only checks the shape.

    Attributes:
        transitions: Transitions in execution order
        states: Model states; ``len(states) == len(transitions) + 1``
    """

    transitions: tuple[TransitionT, ...]
    states: tuple[StateT, ...]

    def __post_init__(self) -> None:
        """Validate the chain shape.

        Raises:
            ValueError: If states does not hold exactly one more entry than
                transitions.
        """
        if len(self.states) != len(self.transitions) + 1:
            msg = (
                f"states must hold len(transitions) + 1 entries, got "
                f"{len(self.states)} states for {len(self.transitions)} transitions"
            )
            raise ValueError(msg)

    def __len__(self) -> int:
        return len(self.transitions)

    @property
    def initial_state(self) -> StateT:
        return self.states[0]

    @property
    def final_state(self) -> StateT:
        return self.states[-1]

    def steps(self) -> Iterator[Step[StateT, TransitionT]]:
        """Iterate the (state-before, transition) steps in order."""
        for index, transition in enumerate(self.transitions):
            yield Step(index, self.states[index], transition)

    def prefix(self, length: int) -> TransitionSequence[StateT, TransitionT]:
        """First ``length`` steps. No recomputation: a chain prefix is valid.

        Raises:
            ValueError: If length is negative or exceeds the sequence length.
        """
        if not 0 <= length <= len(self.transitions):
            msg = f"prefix length must be in [0, {len(self.transitions)}], got {length}"
            raise ValueError(msg)
        return TransitionSequence(self.transitions[:length], self.states[: length + 1])

    def format(self) -> str:
        """Render the chain one step per line.

        Example output:
            initial state: 0
              [0] 'inc' -> 1
              [1] 'inc' -> 2
        """
        lines = [f"initial state: {self.initial_state!r}"]
        lines.extend(
            f"  [{step.index}] {step.transition!r} -> {self.states[step.index + 1]!r}"
            for step in self.steps()
        )
        return "\n".join(lines)


def build_chain(
    machine: ReferenceStateMachine[StateT, TransitionT],
    initial_state: StateT,
    transitions: Iterable[TransitionT],
) -> TransitionSequence[StateT, TransitionT] | None:
    """Recompute the state chain for ``transitions`` from ``initial_state``.

    apply() is only called after precondition() accepted the same pair.

    Returns:
        The precondition-valid sequence, or None as soon as any transition
        is rejected from the state it would be applied to.
    """
    state = initial_state
    states = [initial_state]
    kept: list[TransitionT] = []
    for transition in transitions:
        if not machine.precondition(state, transition):
            return None
        state = machine.apply(state, transition)
        states.append(state)
        kept.append(transition)
    return TransitionSequence(tuple(kept), tuple(states))


def verify_chain(
    machine: ReferenceStateMachine[StateT, TransitionT],
    sequence: TransitionSequence[StateT, TransitionT],
) -> None:
    """Check the full chain invariant of ``sequence`` against ``machine``.

    Raises:
        ChainInconsistencyError: At the first step whose precondition fails
            or whose stored successor differs from recomputation.
    """
    for step in sequence.steps():
        if not machine.precondition(step.state, step.transition):
            msg = (
                f"Precondition rejects step {step.index}: "
                f"{step.transition!r} from {step.state!r}"
            )
            raise ChainInconsistencyError(msg, index=step.index)
        expected = machine.apply(step.state, step.transition)
        stored = sequence.states[step.index + 1]
        if expected != stored:
            msg = (
                f"Stored state after step {step.index} is {stored!r}, "
                f"recomputation gives {expected!r}"
            )
            raise ChainInconsistencyError(msg, index=step.index)


def is_chain_valid(
    machine: ReferenceStateMachine[StateT, TransitionT],
    sequence: TransitionSequence[StateT, TransitionT],
) -> bool:
    """Boolean form of verify_chain()."""
    try:
        verify_chain(machine, sequence)
    except ChainInconsistencyError:
        return False
    return True
