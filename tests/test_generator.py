"""Tests for sequence generation.

Property tests draw sequences through ``st.data()`` and the ``sequences()``
strategy and check the chain invariant; scripted draw functions pin down the
retry budget behavior exactly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from propstate import (
    StateMachineConfig,
    TransitionSequence,
    generate_sequence,
    is_chain_valid,
    sequences,
    verify_chain,
)
from propstate.generator import sample_transition
from tests.helpers.machines import (
    BoundedCounterMachine,
    CounterOp,
    IntSetMachine,
    RarelyValidMachine,
    Remove,
    StackMachine,
)


def scripted_draw(values: Iterable[Any]):
    """Draw function returning ``values`` in order, ignoring the strategy."""
    iterator = iter(values)

    def draw(strategy: object) -> Any:  # noqa: ARG001
        return next(iterator)

    return draw


# =============================================================================
# Chain invariant
# =============================================================================


class TestGeneratedChains:
    """Every generated sequence satisfies the chain invariant."""

    @given(data=st.data())
    def test_counter_sequences_are_chain_valid(self, data: st.DataObject) -> None:
        machine = BoundedCounterMachine(bound=4)

        sequence = generate_sequence(machine, data.draw, StateMachineConfig(max_length=40))

        verify_chain(machine, sequence)
        assert all(0 <= state <= 4 for state in sequence.states)

    @given(data=st.data())
    def test_set_sequences_only_remove_members(self, data: st.DataObject) -> None:
        machine = IntSetMachine()

        sequence = generate_sequence(machine, data.draw)

        for step in sequence.steps():
            if isinstance(step.transition, Remove):
                assert step.transition.value in step.state
        assert is_chain_valid(machine, sequence)

    @given(sequence=sequences(StackMachine(), StateMachineConfig(max_length=15)))
    def test_strategy_produces_sequences(self, sequence: TransitionSequence) -> None:
        assert isinstance(sequence, TransitionSequence)
        assert len(sequence) <= 15
        assert is_chain_valid(StackMachine(), sequence)

    @given(data=st.data())
    def test_length_within_configured_range(self, data: st.DataObject) -> None:
        config = StateMachineConfig(min_length=3, max_length=7)

        sequence = generate_sequence(StackMachine(), data.draw, config)

        # Pushes are always legal, so the stack never truncates.
        assert 3 <= len(sequence) <= 7

    @settings(max_examples=20)
    @given(data=st.data())
    def test_zero_max_length_gives_initial_state_only(self, data: st.DataObject) -> None:
        config = StateMachineConfig(min_length=0, max_length=0)

        sequence = generate_sequence(StackMachine(), data.draw, config)

        assert len(sequence) == 0
        assert len(sequence.states) == 1


# =============================================================================
# Precondition retry budget
# =============================================================================


class TestRetryBudget:
    """Resampling stops after precondition_retry_budget draws."""

    def test_sample_transition_returns_first_legal(self) -> None:
        machine = RarelyValidMachine(valid_value=42)

        found, transition = sample_transition(machine, scripted_draw([1, 2, 42, 3]), 0, 10)

        assert (found, transition) == (True, 42)
        assert machine.precondition_calls == 3

    def test_sample_transition_gives_up(self) -> None:
        machine = RarelyValidMachine(valid_value=42)

        found, transition = sample_transition(machine, scripted_draw([1] * 5), 0, 5)

        assert (found, transition) == (False, None)
        assert machine.precondition_calls == 5

    def test_generation_truncates_instead_of_looping(self) -> None:
        machine = RarelyValidMachine(valid_value=42)
        config = StateMachineConfig(max_length=5, precondition_retry_budget=3)
        # initial state, requested length, then three rejected candidates
        draw = scripted_draw([0, 5, 7, 7, 7])

        sequence = generate_sequence(machine, draw, config)

        assert len(sequence) == 0
        assert sequence.states == (0,)
        assert machine.precondition_calls == 3

    def test_truncation_keeps_accepted_prefix(self) -> None:
        machine = RarelyValidMachine(valid_value=42)
        config = StateMachineConfig(max_length=5, precondition_retry_budget=3)
        draw = scripted_draw([0, 5, 42, 1, 42, 9, 9, 9])

        sequence = generate_sequence(machine, draw, config)

        assert sequence.transitions == (42, 42)
        assert sequence.states == (0, 1, 2)

    def test_truncation_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        machine = RarelyValidMachine(valid_value=42)
        config = StateMachineConfig(max_length=5, precondition_retry_budget=3)

        with caplog.at_level(logging.DEBUG, logger="propstate.generator"):
            generate_sequence(machine, scripted_draw([0, 4, 1, 1, 1]), config)

        assert "retry budget (3) exhausted at step 0 of 4" in caplog.text

    @settings(max_examples=50)
    @given(data=st.data())
    def test_rarely_valid_work_is_bounded(self, data: st.DataObject) -> None:
        machine = RarelyValidMachine(valid_value=42)
        config = StateMachineConfig(max_length=20, precondition_retry_budget=3)

        sequence = generate_sequence(machine, data.draw, config)

        assert machine.precondition_calls <= 3 * 20
        assert all(transition == 42 for transition in sequence.transitions)


class TestGeneratorDefaults:
    def test_default_config_used(self) -> None:
        machine = BoundedCounterMachine()
        draw = scripted_draw([0, 2, CounterOp.INCREMENT, CounterOp.INCREMENT])

        sequence = generate_sequence(machine, draw)

        assert sequence.states == (0, 1, 2)
