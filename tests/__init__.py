"""
layer-publisher Test Suite
==========================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → config, enums, models, exceptions
    ├── test_integrations/   → in-memory backend, factory, boto3 adapters
    ├── test_pipeline/       → directory, builder, publisher, orchestrator
    ├── test_infrastructure/ → catalog writer and resolver
    ├── test_facade.py       → end-to-end runs on the mock backend
    ├── test_cli.py          → exit statuses
    └── conftest.py          → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_pipeline/     # Run only pipeline tests
"""
