"""
Test Suite

This module contains all tests for the Approval Desk backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures (fresh local record store per test)
    ├── unit/               # Services, permission guard, record stores, scheduler
    │   └── __init__.py
    └── integration/        # API endpoint tests
        └── __init__.py

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
