"""Intensive property tests for propstate.

This package contains:
- test_shrinker_property: many-seed runs checking shrinker guarantees
  (chain validity, reproducibility, idempotence, monotone length)

Python 3.11+.
"""
