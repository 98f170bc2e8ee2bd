"""
Shared utilities for the LTPA token library.

This package aggregates common building blocks consumed by the token core:

- config: Token settings via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- test_helpers: Fixture factories for test suites

Do not import from the ltpa package into shared/.
"""
