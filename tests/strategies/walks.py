"""Raw transition lists for the helper machines.

Walks are not filtered by precondition: build_chain() decides legality, so
these strategies exercise both the accepting and the rejecting paths.
"""

from __future__ import annotations

from hypothesis import event
from hypothesis import strategies as st

from tests.helpers.machines import CounterOp, Insert, Remove


@st.composite
def counter_walks(draw: st.DrawFn, max_size: int = 30) -> list[CounterOp]:
    """Generate increment/decrement lists, biased towards climbing walks.

    Events emitted:
    - counter_walk={climb|mixed}: Whether decrements were kept sparse
    """
    climb = draw(st.booleans())
    if climb:
        ops = draw(
            st.lists(
                st.sampled_from([CounterOp.INCREMENT] * 4 + [CounterOp.DECREMENT]),
                max_size=max_size,
            )
        )
    else:
        ops = draw(st.lists(st.sampled_from(CounterOp), max_size=max_size))
    event(f"counter_walk={'climb' if climb else 'mixed'}")
    return ops


def set_walks(max_value: int = 5, max_size: int = 20) -> st.SearchStrategy[list[Insert | Remove]]:
    """Insert/Remove lists over a small value range, so removals often hit."""
    values = st.integers(min_value=0, max_value=max_value)
    return st.lists(
        st.one_of(st.builds(Insert, values), st.builds(Remove, values)),
        max_size=max_size,
    )
