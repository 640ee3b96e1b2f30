"""
scoped-policy test suite.

This package contains tests for:
- Match patterns
- Rule sets and policies
- Scope registry and matcher
- Dispatcher pipeline
- Permit boundary
- Tracing and configuration
"""
