"""Pytest configuration for the propstate test suite.

Hypothesis profiles cover the suite's own @given tests (config round trips,
walk strategies, generator and harness properties). Several of those build
and execute whole transition sequences per example, so the counts stay well
below Hypothesis' usual local defaults:

- dev: 200 examples (default for local runs)
- ci: 50 examples, derandomized (selected by CI=true)
- verbose: 50 examples with progress output

HYPOTHESIS_PROFILE overrides the detection: HYPOTHESIS_PROFILE=verbose pytest

The engine under test (run_state_machine, SequenceShrinker) passes its own
explicit settings to Hypothesis, so these profiles never change how many
sequences a run samples or how long shrinking takes.

Tests marked @pytest.mark.fuzz (tests/fuzz/) sweep many seeds through the
full pipeline and only run when selected: pytest -m fuzz
"""

import os

import pytest
from hypothesis import Verbosity, settings

_PROFILES = {
    "dev": {"max_examples": 200},
    "ci": {"max_examples": 50, "derandomize": True, "print_blob": True},
    "verbose": {"max_examples": 50, "verbosity": Verbosity.verbose},
}

for _name, _options in _PROFILES.items():
    settings.register_profile(_name, deadline=None, **_options)


def _detect_profile() -> str:
    explicit = os.environ.get("HYPOTHESIS_PROFILE")
    if explicit in _PROFILES:
        return explicit
    if os.environ.get("CI") == "true":
        return "ci"
    return "dev"


settings.load_profile(_detect_profile())


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "fuzz: many-seed runs of the full pipeline (excluded unless -m fuzz)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip fuzz-marked tests unless the marker expression selects them."""
    if "fuzz" in (config.option.markexpr or ""):
        return

    skip_fuzz = pytest.mark.skip(reason="many-seed run; select with: pytest -m fuzz")
    for item in items:
        if "fuzz" in item.keywords:
            item.add_marker(skip_fuzz)
