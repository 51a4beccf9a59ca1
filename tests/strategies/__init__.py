"""Hypothesis strategies for propstate property-based testing.

Strategies are organized by domain:

- config: StateMachineConfig values and environment mappings
- walks: Raw transition lists for the helper machines, legal or not

Usage:
    from tests.strategies import state_machine_configs, counter_walks

Event-Emitting Strategies (HypoFuzz-Optimized):
    These strategies emit hypothesis.event() calls for coverage-guided fuzzing:
    - state_machine_configs, counter_walks
"""

from .config import config_environments, state_machine_configs
from .walks import counter_walks, set_walks

__all__ = [
    "config_environments",
    "counter_walks",
    "set_walks",
    "state_machine_configs",
]
