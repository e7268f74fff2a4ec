import re

import pytest

from concert_manager.models import PaymentStatus
from concert_manager.modules.payments import PaymentStore, generate_transaction_id


@pytest.fixture
def payments(tmp_path):
    return PaymentStore(str(tmp_path / "payments.dat"))


def test_transaction_id_layout():
    assert re.fullmatch(r"TXN-\d{13}-[0-9A-F]{8}", generate_transaction_id())
    assert generate_transaction_id("REF").startswith("REF-")


def test_payment_data_validation(payments):
    assert payments.validate_payment_data(10.0, "USD")
    assert not payments.validate_payment_data(0.0, "USD")
    assert not payments.validate_payment_data(10.0, "US")
    assert not payments.validate_payment_data(10.0, "U5D")


def test_process_payment_stores_a_completed_record(payments):
    transaction_id = payments.process_payment(4, 80.0, "usd", "PayPal")
    payment = payments.get_payment_by_transaction_id(transaction_id)

    assert payment.status == PaymentStatus.COMPLETED
    assert payment.currency == "USD"
    assert payment.attendee_id == 4
    assert payments.process_payment(4, -1.0, "USD", "PayPal") == ""
    assert payments.count() == 1


def test_create_payment(payments):
    payment_id = payments.create_payment(20.0, "EUR", "Bank Transfer", attendee_id=2,
                                         transaction_id="TXN-OWN")
    assert payment_id == 1
    assert payments.get_payment_by_id(payment_id).status == PaymentStatus.PENDING
    assert payments.get_payment_by_transaction_id("TXN-OWN").payment_id == payment_id
    assert payments.create_payment(20.0, "EURO", "Bank Transfer") == -1


def test_full_refund(payments):
    payment = payments.get_payment_by_transaction_id(
        payments.process_payment(1, 50.0, "USD", "Credit Card"))

    refund_id = payments.process_refund(payment.payment_id, reason="Changed plans")
    assert refund_id.startswith("REF-")
    assert payment.status == PaymentStatus.REFUNDED

    refund = payments.get_payment_by_transaction_id(refund_id)
    assert refund.amount == 50.0
    assert refund.status == PaymentStatus.REFUNDED
    assert payments.process_refund(payment.payment_id) == ""


def test_partial_refund_lowers_the_original_amount(payments):
    payment = payments.get_payment_by_transaction_id(
        payments.process_payment(1, 50.0, "USD", "Credit Card"))

    assert payments.process_refund(payment.payment_id, 20.0)
    assert payment.amount == 30.0
    assert payment.status == PaymentStatus.COMPLETED
    assert payments.process_refund(payment.payment_id, 31.0) == ""
    assert payments.calculate_revenue() == 30.0


def test_gateway_callbacks(payments):
    payment_id = payments.create_payment(15.0, "USD", "PayPal", transaction_id="TXN-CB")

    assert payments.handle_transaction_callback("TXN-CB", "success", "ok")
    assert payments.get_payment_by_id(payment_id).status == PaymentStatus.COMPLETED
    assert payments.handle_transaction_callback("TXN-CB", "DECLINED")
    assert payments.get_payment_by_id(payment_id).status == PaymentStatus.FAILED
    assert payments.handle_transaction_callback("TXN-CB", "LOST") is False
    assert payments.handle_transaction_callback("TXN-NONE", "SUCCESS") is False


def test_validate_transaction(payments):
    good = payments.process_payment(1, 10.0, "USD", "PayPal")
    payments.create_payment(10.0, "USD", "PayPal", status=PaymentStatus.FAILED,
                            transaction_id="TXN-BAD")

    assert payments.validate_transaction(good)
    assert not payments.validate_transaction("TXN-BAD")
    assert not payments.validate_transaction("TXN-UNKNOWN")


def test_revenue_and_statistics(payments):
    payments.process_payment(1, 40.0, "USD", "PayPal")
    payments.process_payment(2, 60.0, "USD", "Credit Card")
    payments.process_payment(3, 25.0, "EUR", "PayPal")
    payments.create_payment(99.0, "USD", "PayPal")

    assert payments.calculate_revenue() == 125.0
    assert payments.calculate_revenue(currency="usd") == 100.0
    assert payments.calculate_revenue(end_date="2000-01-01T00:00:00Z") == 0.0

    stats = payments.get_payment_statistics()
    assert stats['total_payments'] == 4
    assert stats['completed_payments'] == 3
    assert stats['pending_payments'] == 1
    assert stats['average_payment_amount'] == round(125.0 / 3, 2)
    assert stats['most_used_payment_method'] == "PayPal"


def test_recent_payments_newest_first(payments):
    for amount in (10.0, 20.0, 30.0):
        payments.process_payment(1, amount, "USD", "PayPal")

    assert [p.amount for p in payments.get_recent_payments(2)] == [30.0, 20.0]
    assert payments.get_recent_payments(0) == []


def test_payment_report(payments):
    payments.process_payment(1, 40.0, "USD", "PayPal")
    payments.process_payment(1, 10.0, "EUR", "PayPal")

    report = payments.generate_payment_report()
    assert report.startswith("PAYMENT REPORT\nPeriod: beginning to now\n")
    assert "Total Payments: 2" in report
    assert "  Completed: 2" in report
    assert "Revenue: 50.00" in report
    assert "  EUR: 10.00" in report


def test_payments_survive_a_reload(payments):
    payments.process_payment(7, 12.5, "GBP", "PayPal")
    loaded = PaymentStore(payments.file_path).get_payment_by_id(1)
    assert loaded.to_dict() == payments.get_payment_by_id(1).to_dict()


def redirect_below_file(payments, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    payments.file_path = str(blocker / "payments.dat")


def test_unsaved_payments_report_failure(payments, tmp_path):
    redirect_below_file(payments, tmp_path)

    assert payments.process_payment(1, 80.0, "USD", "PayPal") == ""
    assert payments.create_payment(20.0, "EUR", "Bank Transfer") == -1
    assert payments.count() == 0


def test_unsaved_refund_leaves_payment_untouched(payments, tmp_path):
    payment = payments.get_payment_by_transaction_id(
        payments.process_payment(1, 50.0, "USD", "Credit Card"))
    redirect_below_file(payments, tmp_path)

    assert payments.process_refund(payment.payment_id) == ""
    assert payments.process_refund(payment.payment_id, 20.0) == ""
    assert payment.status == PaymentStatus.COMPLETED
    assert payment.amount == 50.0
    assert payments.count() == 1


def test_payments_by_date_range(payments):
    payments.process_payment(1, 10.0, "USD", "PayPal")
    stamp = payments.get_payment_by_id(1).payment_date_time

    assert len(payments.get_payments_by_date_range("2000-01-01T00:00:00Z", "")) == 1
    assert len(payments.get_payments_by_date_range("", "")) == 1
    assert len(payments.get_payments_by_date_range(stamp, stamp)) == 1
    assert payments.get_payments_by_date_range("", "2000-01-01T00:00:00Z") == []
    assert payments.get_payments_by_date_range("2999-01-01T00:00:00Z", "") == []
