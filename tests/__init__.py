"""
Shared test data for the analytics engine.

Includes:
- CSV price fixtures used by the CLI tests (tests/fixtures)
"""
