"""Property-based tests using Hypothesis.

These tests use generative testing to explore edge cases:
- Tab record validation with arbitrary field subsets
- Serialize/deserialize round trips
- Checksum determinism and sensitivity
- Tracking parameter removal

To run property tests:
    pytest tests/property/ -v --hypothesis-show-statistics

Requires:
    hypothesis>=6.100.0
"""
