"""Capability sets for the reference model and the implementation binding.

Two base classes define everything the engine needs from user code:

- ReferenceStateMachine: the abstract model. Pure functions over immutable
  states; generation strategies come from Hypothesis.
- ImplementationBinding: the adapter that drives the concrete system under
  test in lockstep with the model.

One binding per model/implementation pair. Several pairs may coexist in one
test run; they share no state.

Example:
    >>> from hypothesis import strategies as st
    >>> class Counter(ReferenceStateMachine[int, str]):
    ...     def initial_state(self):
    ...         return st.just(0)
    ...     def transitions(self, state):
    ...         return st.sampled_from(["inc", "dec"])
    ...     def precondition(self, state, transition):
    ...         return transition == "inc" or state > 0
    ...     def apply(self, state, transition):
    ...         return state + 1 if transition == "inc" else state - 1

Python 3.11+.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from hypothesis.strategies import SearchStrategy

__all__ = ["ImplementationBinding", "ReferenceStateMachine", "shortlex_key"]

StateT = TypeVar("StateT")
TransitionT = TypeVar("TransitionT")
InstanceT = TypeVar("InstanceT")


def shortlex_key(value: object) -> tuple[int, str]:
    """Default value ordering for the shrinker: shorter repr first, then lexicographic.

    Example:
        >>> shortlex_key(5) < shortlex_key(40)
        True
        >>> shortlex_key((0, 0)) < shortlex_key((5, 9))
        True
    """
    text = repr(value)
    return len(text), text


class ReferenceStateMachine(Generic[StateT, TransitionT]):
    """Abstract model of a stateful system.

    Subclasses implement initial_state, transitions and apply, and may
    override precondition (default: every transition is legal).

    States are treated as immutable values: apply() must return a new state
    and never mutate its argument. States must support ``==`` so that a
    stored chain can be compared with its recomputation.

    The sort key hooks define what "smaller" means when the shrinker
    replaces a transition or the initial state. Override them when repr()
    does not reflect the intended order; keys must be well-founded.
    """

    def initial_state(self) -> SearchStrategy[StateT]:
        """Strategy for the starting abstract state.

        Use ``st.just(value)`` for a fixed start state. A non-trivial
        strategy lets the shrinker minimize the initial state as well.
        """
        raise NotImplementedError

    def transitions(self, state: StateT) -> SearchStrategy[TransitionT]:
        """Strategy for candidate transitions from ``state``.

        The strategy may over-generate: candidates failing precondition()
        are resampled by the generator.
        """
        raise NotImplementedError

    def precondition(self, state: StateT, transition: TransitionT) -> bool:  # noqa: ARG002
        """Whether ``transition`` is legal from ``state``. Must be pure."""
        return True

    def apply(self, state: StateT, transition: TransitionT) -> StateT:
        """Next abstract state. Only called when precondition() holds.

        Must not observe or depend on the implementation under test.
        """
        raise NotImplementedError

    def transition_sort_key(self, transition: TransitionT) -> Any:
        """Ordering key for transitions; the shrinker only accepts strictly smaller keys."""
        return shortlex_key(transition)

    def state_sort_key(self, state: StateT) -> Any:
        """Ordering key for initial states (default: shortlex_key)."""
        return shortlex_key(state)


class ImplementationBinding(Generic[StateT, TransitionT, InstanceT]):
    """Adapter driving the concrete implementation alongside the model.

    Every harness run constructs exactly one instance through
    init_implementation and releases it through teardown, on every exit
    path. Instances are never shared across sequences or shrink candidates.
    """

    def init_implementation(self, initial_state: StateT) -> InstanceT:
        """Construct a fresh instance consistent with ``initial_state``."""
        raise NotImplementedError

    def apply_to_implementation(
        self,
        instance: InstanceT,
        state_before: StateT,
        transition: TransitionT,
    ) -> InstanceT:
        """Perform the concrete operation for ``transition``.

        May mutate ``instance`` in place or return a replacement; the
        harness only keeps the returned value.
        """
        raise NotImplementedError

    def check_invariants(self, instance: InstanceT, state_after: StateT) -> None:  # noqa: ARG002
        """Assert implementation-observable properties against the model.

        Signal divergence with ``assert`` or by raising InvariantViolation.
        Any other exception is reported as a fault.
        """
        return

    def teardown(self, instance: InstanceT) -> None:  # noqa: ARG002
        """Release resources held by ``instance``. Called exactly once."""
        return
