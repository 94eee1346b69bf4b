"""
Test Suite

This module contains all tests for the Caseflow backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures (mongomock database, fake automation)
    ├── unit/               # Parser, evaluator, guards, dispatcher, clients
    └── integration/        # Store, engine, services and API against mongomock

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
