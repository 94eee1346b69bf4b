"""
Backend Scripts Module

Available scripts:
    - seed_data.py: Creates a demo tenant, users for each role and the loan workflow
    - validate_workflow.py: Validates a workflow definition JSON file offline

Usage:
    python -m scripts.seed_data
    python -m scripts.validate_workflow path/to/definition.json
"""
