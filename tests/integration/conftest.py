"""Mark every test collected under `tests/integration/` as `integration`."""

from pathlib import Path

import pytest

# pylint: disable=unused-argument

LAYER_ROOT = Path(__file__).parent.resolve()


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Add the `integration` mark unless a test already carries it."""
    mark = pytest.mark.integration
    for item in items:
        if not item.path.resolve().is_relative_to(LAYER_ROOT):
            continue
        if item.get_closest_marker(mark.name) is None:
            item.add_marker(mark)
