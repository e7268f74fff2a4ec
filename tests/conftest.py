"""
Shared fixtures.

Every test gets its own data directory through CONCERT_DATA_DIR, so stores
built by AppContext never touch the working tree.
"""

import pytest

from concert_manager.config import get_settings
from concert_manager.context import AppContext
from concert_manager.log import setup_logging
from concert_manager.services import AccountService

PASSWORD = "Secret#123"


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Point the settings at a temporary data directory."""
    monkeypatch.setenv("CONCERT_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    setup_logging()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def app(data_dir):
    return AppContext.create()


@pytest.fixture
def user(app):
    """A registered regular user, logged in."""
    accounts = AccountService(app)
    accounts.register("Jane Doe", "jane@example.com", "555-123-4567", "jane", PASSWORD)
    _, _, current_user = accounts.login("jane", PASSWORD)
    return current_user


@pytest.fixture
def on_sale_concert(app):
    """A scheduled concert at a 500 seat venue with two tickets at $50."""
    venue = app.venues.create_venue("Hall", "1 Main St", "Springfield", "IL",
                                    "62701", "US", 500)
    concert = app.concerts.create_concert("Spring Gala", "Opening night",
                                          "2030-05-01T19:00:00Z", "2030-05-01T23:00:00Z")
    app.concerts.set_venue_for_concert(concert.id, venue.id)
    app.concerts.setup_ticket_info(concert.id, 50.0, 2, "", "")
    app.tickets.generate_tickets_for_concert(concert.id, 2)
    return concert
