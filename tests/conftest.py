# tests/conftest.py
"""Shared test fixtures.

Record stores:
- json_store: JsonRecordStore in a temp directory
- sql_store: SqlRecordStore over in-memory SQLite
- store: parametrized over both backends

Record builders and the deterministic clock live in tests/helpers/records.py.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from proofmark.contracts import RecordStore
from proofmark.core.registry import PublicationRegistry
from proofmark.core.store import JsonRecordStore, PublicationDB, SqlRecordStore
from tests.helpers.records import StepClock

# =============================================================================
# Store and registry fixtures
# =============================================================================


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def json_store(tmp_path: Path) -> JsonRecordStore:
    return JsonRecordStore(tmp_path / "data" / "publications.json")


@pytest.fixture
def sql_store() -> Iterator[SqlRecordStore]:
    db = PublicationDB.in_memory()
    yield SqlRecordStore(db)
    db.close()


@pytest.fixture(params=["json", "sqlite"])
def store(request: pytest.FixtureRequest) -> RecordStore:
    """Each store-level test runs once per backend."""
    if request.param == "json":
        return request.getfixturevalue("json_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture
def registry(store: RecordStore, clock: StepClock) -> PublicationRegistry:
    return PublicationRegistry(store, clock=clock)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
