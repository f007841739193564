"""
Sales Backend Test Suite

This package contains all tests for the order fulfillment backend.

Test Categories:
- unit: Fast, isolated tests
- integration: Tests that interact with multiple components
- slow: Long-running tests

Run tests with:
    pytest                          # Run all tests
    pytest -m unit                  # Run only unit tests
    pytest -m integration           # Run only integration tests
    pytest -m "not slow"           # Skip slow tests
"""

__version__ = '1.0.0'
