"""
Root pytest configuration for the Django project.

pytest-django loads config.test_settings (see pyproject.toml), which swaps
PostgreSQL, Redis and the Celery broker for in-process backends. App-specific
fixtures are defined in each app's tests/conftest.py.
"""

import pytest


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full two-party messaging journeys)
    - test_views.py, test_services.py, test_consumers.py, etc. → integration
    - test_models.py, test_serializers.py, test_events.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_consumers.py",
        "test_channel.py",
        "test_middleware.py",
        "test_api.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_signals.py",
        "test_events.py",
        "test_session.py",
        "test_exceptions.py",
        "test_managers.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def _clear_cache():
    """Display names are cached; start every test with an empty cache."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()
