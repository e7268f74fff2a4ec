"""Configuration, transaction log and application context."""

import os

from concert_manager import config
from concert_manager.audit import TRANSACTION_HEADER, TransactionLog
from concert_manager.config import data_path, get_settings
from concert_manager.context import AppContext


def test_settings_follow_environment(data_dir, monkeypatch):
    assert get_settings().DATA_DIR == str(data_dir)
    assert data_path(config.VENUES_FILE) == os.path.join(str(data_dir), "venues.dat")

    monkeypatch.setenv("CONCERT_ADMIN_USERNAME", "root")
    get_settings.cache_clear()
    assert get_settings().ADMIN_USERNAME == "root"
    assert get_settings().LOG_LEVEL == "WARNING"


def test_context_first_run(app, data_dir):
    assert app.auth.get_admin_users() == [("admin", 2)]
    assert (data_dir / "auth.dat").exists()
    assert (data_dir / "transactions.csv").read_text().startswith(",".join(TRANSACTION_HEADER))


def test_context_reopens_existing_data(app):
    app.venues.create_venue("Hall", "1 Main St", "Springfield", "IL", "62701", "US", 500)

    reopened = AppContext.create()
    assert reopened.venues.get_venue_by_id(1).name == "Hall"
    assert reopened.auth.get_user_count() == 1


def test_transaction_log(tmp_path):
    log = TransactionLog(str(tmp_path / "logs" / "transactions.csv"))
    assert log.read_transactions() == []

    log.log_transaction("jane", 1, None, "purchase", "success", 12.5, "ok")
    log.log_transaction("jane", 1, 4, "cancel", "failed", 0, "Not the ticket owner")

    rows = log.read_transactions()
    assert list(rows[0]) == TRANSACTION_HEADER
    assert (rows[0]['ticket_id'], rows[0]['amount']) == ("", "12.50")
    assert rows[1]['message'] == "Not the ticket owner"


def test_transaction_log_failure_is_not_raised(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    log = TransactionLog(str(blocker / "transactions.csv"))

    log.log_transaction("jane", 1, 1, "purchase", "success", 1.0, "ok")
    assert blocker.read_text() == ""
