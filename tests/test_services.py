import pytest

from concert_manager.models import (
    DiscountType,
    EventStatus,
    PaymentStatus,
    Promotion,
    TicketStatus,
    UserType,
)
from concert_manager.services import AccountService, BoxOfficeService, ConcertLifecycleService

PASSWORD = "Secret#123"


@pytest.fixture
def accounts(app):
    return AccountService(app)


@pytest.fixture
def box_office(app):
    return BoxOfficeService(app)


@pytest.fixture
def lifecycle(app):
    return ConcertLifecycleService(app)


def test_register_creates_login_and_profile(app, accounts):
    ok, message, attendee = accounts.register("Jane Doe", "Jane@Example.com", "(555) 123-4567",
                                              "jane", PASSWORD)
    assert (ok, message) == (True, "Registration successful!")
    assert attendee.email == "jane@example.com"
    assert attendee.phone_number == "5551234567"
    assert attendee.username == "jane"
    assert app.auth.authenticate_user("jane", PASSWORD)


@pytest.mark.parametrize("email, username, password, message", [
    ("bad-email", "john", PASSWORD, "Invalid email format. Use format: example@domain.com"),
    ("john@example.com", "jo", PASSWORD, "Username must be at least 3 characters long"),
    ("john@example.com", "john", "weakpass", "Password must contain: uppercase letter, digit, special character"),
    ("john@example.com", "jane", PASSWORD, "Username already taken"),
    ("JANE@example.com", "john", PASSWORD, "Email already registered"),
])
def test_register_rejections(user, accounts, email, username, password, message):
    ok, error, attendee = accounts.register("John Roe", email, "5559876543", username, password)
    assert (ok, error, attendee) == (False, message, None)


def test_login(accounts, user):
    assert user.username == "jane"
    assert user.display_name == "Jane Doe"
    assert not user.is_staff

    ok, message, current = accounts.login("jane", "wrong")
    assert (ok, message, current) == (False, "Invalid username or password", None)


def test_default_admin_logs_in_without_profile(accounts):
    ok, message, admin = accounts.login("admin", "admin123")
    assert ok
    assert message == "Welcome back, admin!"
    assert admin.is_admin and admin.is_staff
    assert admin.attendee is None


def test_staff_registration(accounts):
    ok, _, attendee = accounts.register("Sam Stage", "sam@example.com", "5550001111", "sam",
                                        PASSWORD, user_type=UserType.STAFF)
    assert ok and attendee.staff_privileges
    assert accounts.login("sam", PASSWORD)[2].is_staff


def test_purchase(app, box_office, user, on_sale_concert):
    ok, message, ticket = box_office.purchase_ticket(user, on_sale_concert.id, "PayPal")

    assert (ok, message) == (True, "Ticket purchased successfully!")
    assert ticket.status == TicketStatus.SOLD
    assert ticket.attendee_id == user.attendee.id
    payment = app.payments.get_payment_by_id(ticket.payment_id)
    assert payment.amount == 50.0
    assert payment.payment_method == "PayPal"
    assert on_sale_concert.ticket_info.quantity_sold == 1
    assert box_office.get_attendee_tickets(user) == [ticket]


def test_last_ticket_sells_out(box_office, user, on_sale_concert):
    box_office.purchase_ticket(user, on_sale_concert.id)
    box_office.purchase_ticket(user, on_sale_concert.id)

    assert on_sale_concert.event_status == EventStatus.SOLDOUT
    assert box_office.purchase_ticket(user, on_sale_concert.id) == (False, "Concert is sold out", None)


def test_purchase_creates_a_ticket_when_none_were_generated(app, box_office, user):
    concert = app.concerts.create_concert("Pop-up", "", "2030-06-01T19:00:00Z", "2030-06-01T21:00:00Z")
    app.concerts.setup_ticket_info(concert.id, 0.0, 5, "", "")

    ok, _, ticket = box_office.purchase_ticket(user, concert.id)
    assert ok
    assert ticket.concert_id == concert.id
    assert ticket.payment_id is None
    assert app.payments.count() == 0


@pytest.mark.parametrize("setup, message", [
    (lambda app, cid: app.concerts.cancel_concert(cid), "Concert is cancelled"),
    (lambda app, cid: app.concerts.setup_ticket_info(cid, 50.0, 2, "2999-01-01T00:00:00Z", ""),
     "Ticket sales have not started yet"),
    (lambda app, cid: app.concerts.setup_ticket_info(cid, 50.0, 2, "", "2000-01-01T00:00:00Z"),
     "Ticket sales have ended"),
])
def test_purchase_rejections(app, box_office, user, on_sale_concert, setup, message):
    setup(app, on_sale_concert.id)
    assert box_office.purchase_ticket(user, on_sale_concert.id) == (False, message, None)


def test_purchase_needs_profile_and_ticket_setup(app, accounts, box_office, user):
    _, _, admin = accounts.login("admin", "admin123")
    concert = app.concerts.create_concert("Draft", "", "2030-06-01T19:00:00Z", "2030-06-01T21:00:00Z")

    assert box_office.purchase_ticket(admin, concert.id)[1] == "Only attendee accounts can buy tickets"
    assert box_office.purchase_ticket(user, 99)[1] == "Concert not found"
    assert box_office.purchase_ticket(user, concert.id)[1] == "Tickets are not on sale for this concert"


def test_promotion_code(app, box_office, user, on_sale_concert):
    app.concerts.add_promotion_to_concert(
        on_sale_concert.id,
        Promotion("SAVE10", "Ten percent off", DiscountType.PERCENTAGE, 10, "", "", usage_limit=1))

    ok, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id, "PayPal", "SAVE10")
    assert ok
    assert app.payments.get_payment_by_id(ticket.payment_id).amount == 45.0
    assert box_office.purchase_ticket(user, on_sale_concert.id, "PayPal", "SAVE10") == \
        (False, "Invalid or expired promotion code", None)


def test_cancel_refunds_and_reopens(app, box_office, user, on_sale_concert):
    box_office.purchase_ticket(user, on_sale_concert.id)
    _, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id)
    assert on_sale_concert.event_status == EventStatus.SOLDOUT

    ok, message = box_office.cancel_ticket(user, ticket.ticket_id)
    assert ok
    assert message == "Ticket cancelled successfully. Refund of $50.00 issued."
    assert ticket.status == TicketStatus.CANCELLED
    assert app.payments.get_payment_by_id(ticket.payment_id).status == PaymentStatus.REFUNDED
    assert on_sale_concert.event_status == EventStatus.SCHEDULED
    assert on_sale_concert.ticket_info.quantity_sold == 1
    assert box_office.cancel_ticket(user, ticket.ticket_id) == (False, "Ticket already cancelled")


def test_only_owner_or_staff_can_cancel(app, accounts, box_office, user, on_sale_concert):
    _, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id)
    accounts.register("John Roe", "john@example.com", "5559876543", "john", PASSWORD)
    _, _, stranger = accounts.login("john", PASSWORD)
    _, _, admin = accounts.login("admin", "admin123")

    assert box_office.cancel_ticket(stranger, ticket.ticket_id) == (False, "You don't own this ticket")
    assert box_office.cancel_ticket(admin, ticket.ticket_id)[0]


def test_check_in(app, box_office, user, on_sale_concert):
    _, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id)

    ok, message, checked = box_office.check_in(f"  {ticket.qr_code} ")
    assert (ok, message, checked) == (True, "Check-in successful!", ticket)
    assert ticket.status == TicketStatus.CHECKED_IN
    assert app.attendees.get_attendee_by_id(user.attendee.id).check_in_time
    assert box_office.check_in(ticket.qr_code) == (False, "Invalid or already used ticket", None)
    assert box_office.cancel_ticket(user, ticket.ticket_id) == \
        (False, "Cannot cancel a ticket that is checked_in")


def test_transactions_are_logged(app, box_office, user, on_sale_concert):
    _, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id)
    box_office.check_in("TICKET-bogus")
    box_office.check_in(ticket.qr_code)

    rows = app.transactions.read_transactions()
    assert [(r['username'], r['action'], r['status']) for r in rows] == [
        ("jane", "purchase", "success"),
        ("gate", "check_in", "failed"),
        ("gate", "check_in", "success"),
    ]
    assert rows[0]['amount'] == "50.00"
    assert rows[0]['ticket_id'] == str(ticket.ticket_id)
    assert rows[1]['concert_id'] == ""


def test_sales_summary(app, box_office, user, on_sale_concert):
    _, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id)
    box_office.check_in(ticket.qr_code)

    summary = box_office.get_sales_summary(on_sale_concert.id)
    assert summary['tickets_sold'] == 1
    assert summary['tickets_remaining'] == 1
    assert summary['checked_in'] == 1
    assert summary['total_revenue'] == 50.0
    assert box_office.get_sales_summary(99) == {}


def test_end_concert_generates_report(app, lifecycle, box_office, user, on_sale_concert):
    box_office.purchase_ticket(user, on_sale_concert.id)
    assert lifecycle.end_concert(on_sale_concert.id) == \
        (False, "Only completed concerts can be ended", None)

    app.concerts.start_concert(on_sale_concert.id)
    ok, message, report_id = lifecycle.end_concert(on_sale_concert.id)
    assert ok
    assert message == f"Concert ended. Report #{report_id} generated."
    assert app.reports.get_report_by_id(report_id).tickets_sold == 1


def test_cancel_concert_refunds_and_notifies(app, lifecycle, box_office, user, on_sale_concert):
    _, _, ticket = box_office.purchase_ticket(user, on_sale_concert.id)

    ok, message = lifecycle.cancel_concert(on_sale_concert.id)
    assert (ok, message) == (True, "Concert cancelled. 1 ticket holder(s) refunded.")
    assert ticket.status == TicketStatus.CANCELLED
    assert app.payments.get_payment_by_id(ticket.payment_id).status == PaymentStatus.REFUNDED

    [notice] = app.communications.get_logs_for_concert(on_sale_concert.id)
    assert notice.is_automated
    assert notice.recipient_count == 1
    assert "Spring Gala has been cancelled" in notice.message_content
    assert lifecycle.cancel_concert(on_sale_concert.id)[0]


def test_cancel_completed_concert_is_refused(app, lifecycle, on_sale_concert):
    app.concerts.start_concert(on_sale_concert.id)
    assert lifecycle.cancel_concert(on_sale_concert.id) == \
        (False, "Concert not found or already completed")


def redirect_below_file(store, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store.file_path = str(blocker / "store.dat")


def test_register_is_undone_when_profile_cannot_be_saved(app, accounts, tmp_path):
    redirect_below_file(app.attendees, tmp_path)

    ok, message, attendee = accounts.register("Jane Doe", "jane@example.com", "5551234567",
                                              "jane", PASSWORD)
    assert (ok, message, attendee) == (False, "Could not create account", None)
    assert not app.auth.user_exists("jane")


def test_failed_sale_rolls_back_payment_ticket_and_promotion(app, box_office, user,
                                                             on_sale_concert, monkeypatch):
    promotion = Promotion("SAVE10", "", DiscountType.PERCENTAGE, 10, "", "", usage_limit=1)
    app.concerts.add_promotion_to_concert(on_sale_concert.id, promotion)
    monkeypatch.setattr(app.concerts, "record_ticket_sale", lambda concert_id: False)

    result = box_office.purchase_ticket(user, on_sale_concert.id, "PayPal", "SAVE10")

    assert result == (False, "Could not record the sale", None)
    assert promotion.used_count == 0
    assert [t.status for t in app.tickets.find_tickets_by_concert(on_sale_concert.id)] == \
        [TicketStatus.AVAILABLE, TicketStatus.AVAILABLE]
    charge = app.payments.get_payment_by_id(1)
    assert charge.status == PaymentStatus.REFUNDED
    assert box_office.get_attendee_tickets(user) == []
    assert app.transactions.read_transactions()[-1]['status'] == "failed"


def test_unsaved_payment_returns_the_promotion_use(app, box_office, user, on_sale_concert,
                                                   tmp_path):
    promotion = Promotion("SAVE10", "", DiscountType.PERCENTAGE, 10, "", "", usage_limit=1)
    app.concerts.add_promotion_to_concert(on_sale_concert.id, promotion)
    redirect_below_file(app.payments, tmp_path)

    assert box_office.purchase_ticket(user, on_sale_concert.id, "PayPal", "SAVE10") == \
        (False, "Payment failed", None)
    assert promotion.used_count == 0
    assert on_sale_concert.ticket_info.quantity_sold == 0


def test_end_concert_reports_unsaved_report(app, lifecycle, on_sale_concert, tmp_path):
    app.concerts.start_concert(on_sale_concert.id)
    redirect_below_file(app.reports, tmp_path)

    assert lifecycle.end_concert(on_sale_concert.id) == \
        (True, "Concert ended, but its report could not be saved.", None)
    assert app.reports.count() == 0
