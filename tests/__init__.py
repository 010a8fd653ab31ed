"""
Test Suite

Unit tests for the funding rate aggregator.

Structure:
- tests/unit/: Tests for individual components (utils, adapters, registry,
  engine, scheduler, storage, API). Venue HTTP calls are mocked.

Uses pytest with pytest-asyncio for testing async functionality.
"""
