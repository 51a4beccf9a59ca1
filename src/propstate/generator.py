"""Sequence generator.

Builds precondition-valid transition sequences by repeatedly sampling from
the model's transitions(state) strategy. Hypothesis is the value source:
every draw goes through a Hypothesis draw function, so sequences can be
produced inside ``@given`` tests, ``st.data()`` or ``@st.composite``
strategies alike.

Generation policy: resample a step up to ``precondition_retry_budget``
times; if no candidate satisfies the precondition, the sequence ends early.
This is not an error, and every consumer tolerates sequences shorter than
the configured minimum.

Python 3.11+.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from hypothesis import strategies as st

from .config import StateMachineConfig
from .sequence import TransitionSequence

if TYPE_CHECKING:
    from hypothesis.strategies import SearchStrategy

    from .machine import ReferenceStateMachine

__all__ = ["Draw", "generate_sequence", "sample_transition", "sequences"]

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")
TransitionT = TypeVar("TransitionT")

# Draw function signature shared by st.DrawFn, DataObject.draw and test doubles
Draw = Callable[["SearchStrategy[Any]"], Any]


def sample_transition(
    machine: ReferenceStateMachine[StateT, TransitionT],
    draw: Draw,
    state: StateT,
    retry_budget: int,
) -> tuple[bool, TransitionT | None]:
    """Draw a transition from ``state`` that satisfies the precondition.

    Args:
        machine: Reference model
        draw: Hypothesis draw function
        state: Current model state
        retry_budget: Maximum number of draws

    Returns:
        ``(True, transition)`` on success, ``(False, None)`` once the budget
        is exhausted.
    """
    strategy = machine.transitions(state)
    for _ in range(retry_budget):
        transition = draw(strategy)
        if machine.precondition(state, transition):
            return True, transition
    return False, None


def generate_sequence(
    machine: ReferenceStateMachine[StateT, TransitionT],
    draw: Draw,
    config: StateMachineConfig | None = None,
) -> TransitionSequence[StateT, TransitionT]:
    """Generate one precondition-valid sequence.

    The requested length is drawn from ``[config.min_length,
    config.max_length]``; the result is shorter when a step exhausts the
    precondition retry budget.

    Args:
        machine: Reference model
        draw: Hypothesis draw function (st.DrawFn, data.draw)
        config: Generation limits (default: StateMachineConfig())

    Returns:
        TransitionSequence whose chain invariant holds by construction
    """
    cfg = config if config is not None else StateMachineConfig()
    state = draw(machine.initial_state())
    length = draw(st.integers(min_value=cfg.min_length, max_value=cfg.max_length))

    transitions: list[TransitionT] = []
    states: list[StateT] = [state]
    for index in range(length):
        found, transition = sample_transition(
            machine, draw, state, cfg.precondition_retry_budget
        )
        if not found:
            logger.debug(
                "Precondition retry budget (%d) exhausted at step %d of %d; "
                "sequence truncated",
                cfg.precondition_retry_budget,
                index,
                length,
            )
            break
        state = machine.apply(state, transition)  # type: ignore[arg-type]
        transitions.append(transition)  # type: ignore[arg-type]
        states.append(state)

    return TransitionSequence(tuple(transitions), tuple(states))


@st.composite
def sequences(
    draw: st.DrawFn,
    machine: ReferenceStateMachine[StateT, TransitionT],
    config: StateMachineConfig | None = None,
) -> TransitionSequence[StateT, TransitionT]:
    """Hypothesis strategy producing TransitionSequences for ``machine``.

    Example:
        >>> @given(sequences(CounterMachine(), StateMachineConfig(max_length=30)))
        ... def test_counter_never_negative(sequence):
        ...     assert all(state >= 0 for state in sequence.states)
    """
    return generate_sequence(machine, draw, config)
