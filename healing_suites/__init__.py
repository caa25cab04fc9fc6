"""
Test suites package.

This repository intentionally keeps `healing_suites` importable to support:
  - IDE navigation
  - programmatic runners (e.g., `run_tests.py`)
  - the `locator-healing` CLI, which reuses the UI framework

All content is demo-safe and does not include production secrets.
"""
