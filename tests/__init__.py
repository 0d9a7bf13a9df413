"""
Smart HealthMate Test Suite
===========================

Test Structure:
- test_actions/: Pure engine tests (doses, adherence, reminders, alerts, digests, vitals)
- test_services/: Service tests against an in-memory SQLite database
- test_api/: API endpoint tests for FastAPI routes
- test_tools/: Email delivery tests
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "database"
"""
