"""StudyTracker Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - sync/: Date normalization, subject catalog, reconciliation
  - analysis/: Aggregation, heuristic tips, AI tip adapter
  - clients/: Feed and Gemini HTTP clients (httpx.MockTransport)
  - core/: Store, windows, config, logging, service facade
- integration/: Feed -> store -> summary -> tips, and the CLI

Running tests:
    # All tests
    pytest

    # Specific area
    pytest tests/unit/sync/

    # Skip end-to-end tests
    pytest -m "not integration"
"""
