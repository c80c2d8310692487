"""
Sanctions Bot - Test Fixtures
=============================

Shared fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config_utils import SanctionsConfig  # noqa: E402
from utils.sanction_router import SanctionRouter  # noqa: E402
from utils.sanctions_ledger import GuildLedger, StaffRef  # noqa: E402
from utils.sanctions_store import LedgerStore  # noqa: E402

GUILD_ID = "900000000000000001"
USER_ID = "100000000000000042"
OTHER_USER_ID = "100000000000000077"


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "sanctions.json")


@pytest.fixture
def config(db_path):
    return SanctionsConfig(warn_limit=3, strike_limit=7, db_path=db_path)


@pytest.fixture
def store(db_path):
    return LedgerStore(db_path)


@pytest.fixture
def router(config, store):
    return SanctionRouter(config, store)


@pytest.fixture
def ledger():
    return GuildLedger(GUILD_ID)


@pytest.fixture
def mod():
    return StaffRef("200000000000000001", "moderator#0001")


@pytest.fixture
def lead():
    return StaffRef("200000000000000002", "lead#0002")


@pytest.fixture
def target():
    return StaffRef(USER_ID, "offender#4242")
