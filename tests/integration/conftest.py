"""
Integration Test Configuration
==============================
Real SQLite repositories on a per-test database file. The chain is still
faked: nothing here touches the network.
"""

import pytest


def pytest_collection_modifyitems(items):
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def db(tmp_path):
    from reclaimer.shared.system.database.core import DatabaseCore
    return DatabaseCore(str(tmp_path / "reclaimer_test.db"))


@pytest.fixture
def account_repo(db):
    from reclaimer.shared.system.database.repositories.account_repo import AccountRepository
    repo = AccountRepository(db)
    repo.init_table()
    return repo


@pytest.fixture
def event_log(db):
    from reclaimer.shared.system.database.repositories.event_log_repo import EventLogRepository
    repo = EventLogRepository(db)
    repo.init_table()
    return repo
