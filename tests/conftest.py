"""Global pytest fixtures for STACKSTRAP."""

from __future__ import annotations

import pytest

pytest_plugins = [
    "tests.fixtures.runner",
    "tests.fixtures.pki",
]


@pytest.fixture
def no_sleep() -> list[float]:
    """Record requested sleeps instead of sleeping.

    Example:
        ```py
        def test_retry(no_sleep):
            with_retry(action, sleep=no_sleep.append)
            assert no_sleep == [3.0, 3.0]
        ```
    """
    return []
