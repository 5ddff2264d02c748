"""Pytest configuration and fixtures.

Points the settings at a throwaway SQLite database and the fixture zone
document before any uaroute module is imported.
"""
import os
import tempfile
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).parent
ZONES_FIXTURE = TESTS_DIR / "data" / "zones.yaml"

_db_dir = tempfile.mkdtemp(prefix="uaroute-tests-")
os.environ.setdefault("UAROUTE_DB_URL", f"sqlite:///{_db_dir}/stats.db")
os.environ.setdefault("UAROUTE_ZONES_PATH", str(ZONES_FIXTURE))


@pytest.fixture(scope="session")
def bundled_registry():
    """Registry compiled from the bundled rule document"""
    from uaroute.config import settings
    from uaroute.registry import Registry
    from uaroute.rules import load_rule_document

    return Registry.build(load_rule_document(settings.regexes_path))


@pytest.fixture
def fresh_default_registry(monkeypatch):
    """Swap the process-wide registry cell for an uninitialized one"""
    from uaroute import registry

    cell = registry.RegistryCell(registry.load_default_registry)
    monkeypatch.setattr(registry, "_default_cell", cell)
    return cell


@pytest.fixture
def reset_stats():
    from uaroute.stats import redirect_stats

    redirect_stats.get_and_reset_minute_stats()
    yield redirect_stats
    redirect_stats.get_and_reset_minute_stats()
