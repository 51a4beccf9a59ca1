"""propstate - state machine based property testing on top of Hypothesis.

Generates random precondition-valid sequences of transitions from a reference
model, runs them against a concrete implementation in lockstep, and shrinks
failing sequences to a locally minimal reproducing case.

Public API:
    ReferenceStateMachine - Abstract model (initial_state, transitions,
        precondition, apply)
    ImplementationBinding - Adapter for the system under test
        (init_implementation, apply_to_implementation, check_invariants,
        teardown)
    shortlex_key - Default shrink ordering (transition_sort_key, state_sort_key)
    StateMachineConfig - Generation, sampling and shrinking limits
    run_state_machine - Sample, execute, shrink; returns RunResult
    assert_state_machine - Same, raises StateMachineTestFailure on failure
    sequences - Hypothesis strategy for TransitionSequence
    execute_sequence - Run one sequence through the execution harness
    SequenceShrinker - Minimize a FailureRecord

Exceptions:
    PropStateError - Base exception class
    InvariantViolation - Raised by bindings on model/implementation divergence
    StateMachineTestFailure - Raised by assert_state_machine
    ChainInconsistencyError - Stored chain disagrees with the model

Submodules:
    propstate.sequence - Step, TransitionSequence, chain construction
    propstate.generator - Sequence generation
    propstate.harness - Execution harness and FailureRecord
    propstate.shrinker - Sequence shrinker
    propstate.runner - Run loop
"""

from .config import StateMachineConfig
from .enums import ExecutionPhase, FailureKind, ShrinkMove
from .errors import (
    ChainInconsistencyError,
    InvariantViolation,
    PropStateError,
    StateMachineTestFailure,
)
from .generator import generate_sequence, sequences
from .harness import ExecutionResult, FailureRecord, execute_sequence
from .machine import ImplementationBinding, ReferenceStateMachine, shortlex_key
from .runner import RunResult, assert_state_machine, run_state_machine
from .sequence import Step, TransitionSequence, build_chain, is_chain_valid, verify_chain
from .shrinker import SequenceShrinker, ShrinkResult, ShrinkStats

# Version information - Auto-populated from package metadata
# SINGLE SOURCE OF TRUTH: pyproject.toml [project] version
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

try:
    __version__ = _get_version("propstate")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "ChainInconsistencyError",
    "ExecutionPhase",
    "ExecutionResult",
    "FailureKind",
    "FailureRecord",
    "ImplementationBinding",
    "InvariantViolation",
    "PropStateError",
    "ReferenceStateMachine",
    "RunResult",
    "SequenceShrinker",
    "ShrinkMove",
    "ShrinkResult",
    "ShrinkStats",
    "StateMachineConfig",
    "StateMachineTestFailure",
    "Step",
    "TransitionSequence",
    "__version__",
    "assert_state_machine",
    "build_chain",
    "execute_sequence",
    "generate_sequence",
    "is_chain_valid",
    "run_state_machine",
    "sequences",
    "shortlex_key",
    "verify_chain",
]
