"""Payment store: charges, refunds, gateway callbacks and revenue statistics."""

import time
import uuid
from collections import Counter
from typing import Dict, List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import Payment, PaymentStatus
from concert_manager.store import EntityStore, in_open_range

logger = get_logger(__name__)

GATEWAY_STATUSES = {
    "SUCCESS": PaymentStatus.COMPLETED,
    "COMPLETED": PaymentStatus.COMPLETED,
    "PENDING": PaymentStatus.PENDING,
    "FAILED": PaymentStatus.FAILED,
    "DECLINED": PaymentStatus.FAILED,
    "REFUNDED": PaymentStatus.REFUNDED,
}


def generate_transaction_id(prefix: str = "TXN") -> str:
    """Unique id such as TXN-1700000000000-3F2A9C1B."""
    epoch_ms = int(time.time() * 1000)
    return f"{prefix}-{epoch_ms}-{uuid.uuid4().hex[:8].upper()}"


class PaymentStore(EntityStore[Payment]):
    """Handles payment records."""

    MAGIC = b"PAYM"

    def validate_payment_data(self, amount: float, currency: str) -> bool:
        """Amount must be positive and currency a 3-letter code."""
        return amount > 0 and len(currency) == 3 and currency.isalpha()

    def process_payment(self, attendee_id: int, amount: float, currency: str,
                        payment_method: str) -> str:
        """
        Charge an attendee.
        Returns the transaction id, or an empty string if the data is invalid
        or the payment could not be saved.
        """
        if not self.validate_payment_data(amount, currency):
            logger.warning("payment_rejected", attendee_id=attendee_id,
                           amount=amount, currency=currency)
            return ""

        payment = Payment(
            payment_id=self.generate_new_id(),
            amount=amount,
            currency=currency.upper(),
            payment_method=payment_method,
            transaction_id=generate_transaction_id(),
            status=PaymentStatus.COMPLETED,
            attendee_id=attendee_id
        )
        if not self.add(payment):
            return ""
        self._log_payment(payment, "CREATED")
        return payment.transaction_id

    def create_payment(self, amount: float, currency: str, payment_method: str,
                       attendee_id: Optional[int] = None,
                       status: PaymentStatus = PaymentStatus.PENDING,
                       transaction_id: str = "") -> int:
        """Store a payment record. Returns its id, or -1 if it is invalid or unsaved."""
        if not self.validate_payment_data(amount, currency):
            return -1

        payment = Payment(
            payment_id=self.generate_new_id(),
            amount=amount,
            currency=currency.upper(),
            payment_method=payment_method,
            transaction_id=transaction_id or generate_transaction_id(),
            status=status,
            attendee_id=attendee_id
        )
        if not self.add(payment):
            return -1
        self._log_payment(payment, "CREATED")
        return payment.payment_id

    def update_payment_status(self, payment_id: int, status: PaymentStatus) -> bool:
        payment = self.get_by_id(payment_id)
        if not payment:
            return False
        payment.status = status
        self._log_payment(payment, "UPDATED")
        return self.save_entities()

    def process_refund(self, payment_id: int, refund_amount: float = 0.0,
                       reason: str = "") -> str:
        """
        Refund a COMPLETED payment, fully when refund_amount is 0.

        A full refund marks the payment REFUNDED. A partial refund lowers the
        amount of the original payment. Either way a REFUNDED record with a
        REF- transaction id is stored and that id is returned. Returns an
        empty string when the refund is not allowed or could not be saved,
        leaving the payment as it was.
        """
        payment = self.get_by_id(payment_id)
        if not payment or payment.status != PaymentStatus.COMPLETED:
            return ""

        if refund_amount < 0 or refund_amount > payment.amount:
            return ""

        amount = refund_amount if refund_amount > 0 else payment.amount
        original_status, original_amount = payment.status, payment.amount
        if amount >= payment.amount:
            payment.status = PaymentStatus.REFUNDED
        else:
            payment.amount = round(payment.amount - amount, 2)

        refund = Payment(
            payment_id=self.generate_new_id(),
            amount=amount,
            currency=payment.currency,
            payment_method=payment.payment_method,
            transaction_id=generate_transaction_id("REF"),
            status=PaymentStatus.REFUNDED,
            attendee_id=payment.attendee_id
        )
        if not self.add(refund):
            payment.status, payment.amount = original_status, original_amount
            return ""
        logger.info("payment_refunded", payment_id=payment_id, amount=amount,
                    refund_transaction=refund.transaction_id, reason=reason)
        return refund.transaction_id

    def get_payment_by_id(self, payment_id: int) -> Optional[Payment]:
        return self.get_by_id(payment_id)

    def get_payment_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        return self.find_first(lambda p: p.transaction_id == transaction_id)

    def get_payments_by_attendee(self, attendee_id: int) -> List[Payment]:
        return self.find_by_predicate(lambda p: p.attendee_id == attendee_id)

    def get_payments_by_status(self, status: PaymentStatus) -> List[Payment]:
        return self.find_by_predicate(lambda p: p.status == status)

    def get_payments_by_date_range(self, start_date: str, end_date: str) -> List[Payment]:
        return self.find_by_predicate(
            lambda p: in_open_range(p.payment_date_time, start_date, end_date)
        )

    def get_recent_payments(self, limit: int = 30) -> List[Payment]:
        """Newest first. Records with equal timestamps keep the newer id first."""
        ordered = sorted(self.entities,
                         key=lambda p: (p.payment_date_time, p.payment_id),
                         reverse=True)
        return ordered[:max(limit, 0)]

    def validate_transaction(self, transaction_id: str) -> bool:
        """A transaction is valid if it is known and did not fail."""
        payment = self.get_payment_by_transaction_id(transaction_id)
        return payment is not None and payment.status != PaymentStatus.FAILED

    def handle_transaction_callback(self, transaction_id: str, status: str,
                                    gateway_response: str = "") -> bool:
        """Apply a gateway status ("SUCCESS", "FAILED", ...) to a payment."""
        payment = self.get_payment_by_transaction_id(transaction_id)
        new_status = GATEWAY_STATUSES.get(status.strip().upper())
        if not payment or new_status is None:
            logger.warning("transaction_callback_ignored", transaction_id=transaction_id,
                           status=status)
            return False

        payment.status = new_status
        logger.info("transaction_callback", transaction_id=transaction_id,
                    status=new_status.name, gateway_response=gateway_response)
        return self.save_entities()

    def calculate_revenue(self, start_date: str = "", end_date: str = "",
                          currency: str = "") -> float:
        """Sum of COMPLETED payments in the period, optionally for one currency."""
        total = 0.0
        for payment in self.entities:
            if payment.status != PaymentStatus.COMPLETED:
                continue
            if currency and payment.currency != currency.upper():
                continue
            if not in_open_range(payment.payment_date_time, start_date, end_date):
                continue
            total += payment.amount
        return round(total, 2)

    def get_payment_statistics(self) -> Dict:
        by_status = Counter(p.status for p in self.entities)
        completed = [p for p in self.entities if p.status == PaymentStatus.COMPLETED]
        methods = Counter(p.payment_method for p in self.entities)
        total_revenue = sum(p.amount for p in completed)

        return {
            'total_payments': len(self.entities),
            'completed_payments': by_status[PaymentStatus.COMPLETED],
            'pending_payments': by_status[PaymentStatus.PENDING],
            'failed_payments': by_status[PaymentStatus.FAILED],
            'refunded_payments': by_status[PaymentStatus.REFUNDED],
            'total_revenue': round(total_revenue, 2),
            'average_payment_amount': round(total_revenue / len(completed), 2) if completed else 0.0,
            'most_used_payment_method': methods.most_common(1)[0][0] if methods else ""
        }

    def generate_payment_report(self, start_date: str = "", end_date: str = "") -> str:
        """Plain-text summary of the payments in a period."""
        payments = [p for p in self.entities
                    if in_open_range(p.payment_date_time, start_date, end_date)]
        by_status = Counter(p.status for p in payments)

        lines = [
            "PAYMENT REPORT",
            f"Period: {start_date or 'beginning'} to {end_date or 'now'}",
            "-" * 40,
            f"Total Payments: {len(payments)}",
        ]
        for status in PaymentStatus:
            lines.append(f"  {status.name.title()}: {by_status[status]}")
        lines.append(f"Revenue: {self.calculate_revenue(start_date, end_date):.2f}")

        by_currency = Counter()
        for payment in payments:
            if payment.status == PaymentStatus.COMPLETED:
                by_currency[payment.currency] += payment.amount
        for code, amount in sorted(by_currency.items()):
            lines.append(f"  {code}: {amount:.2f}")

        return "\n".join(lines) + "\n"

    def delete_payment(self, payment_id: int) -> bool:
        return self.delete_entity(payment_id)

    def _log_payment(self, payment: Payment, action: str):
        logger.info("payment_" + action.lower(), payment_id=payment.payment_id,
                    transaction_id=payment.transaction_id, amount=payment.amount,
                    currency=payment.currency, status=payment.status.name)

    def get_entity_id(self, entity: Payment) -> int:
        return entity.payment_id

    def write_record(self, writer: BinaryWriter, entity: Payment):
        writer.write_int(entity.payment_id)
        writer.write_double(entity.amount)
        writer.write_string(entity.currency)
        writer.write_string(entity.payment_method)
        writer.write_string(entity.transaction_id)
        writer.write_enum(entity.status)
        writer.write_string(entity.payment_date_time)
        writer.write_optional_int(entity.attendee_id)

    def read_record(self, reader: BinaryReader) -> Payment:
        payment = Payment(
            payment_id=reader.read_int(),
            amount=reader.read_double(),
            currency=reader.read_string(),
            payment_method=reader.read_string(),
            transaction_id=reader.read_string(),
            status=reader.read_enum(PaymentStatus)
        )
        payment.payment_date_time = reader.read_string()
        payment.attendee_id = reader.read_optional_int()
        return payment
