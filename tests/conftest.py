import os
from pathlib import Path

import pytest

# Test directory name -> marker applied to every test collected beneath it
LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "bdd": pytest.mark.bdd,
    "integration": pytest.mark.integration,
}


def pytest_addoption(parser):
    parser.addoption("--env", action="store", default="test", help="PROTEAN_ENV overlay used for the storefront domain")


def pytest_sessionstart(session):
    """Initialise the storefront domain and push its context for the whole run."""
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(item.fspath).parts
        layer = next((name for name in LAYER_MARKERS if name in parts), None)
        if layer is None:
            continue

        item.add_marker(LAYER_MARKERS[layer])
        # HTTP tests count as slow unless marked fast
        if layer == "integration" and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Wipe repositories and the event store after every test."""
    yield

    from protean import current_domain

    for provider in current_domain.providers.values():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
