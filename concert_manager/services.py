"""
Business services on top of the stores.

Each operation returns a (success, message[, object]) tuple that the CLI can
print directly.
"""

from typing import Dict, List, Optional, Tuple

from concert_manager.config import DEFAULT_CURRENCY
from concert_manager.context import AppContext
from concert_manager.log import get_logger
from concert_manager.models import (
    Attendee,
    AttendeeType,
    EventStatus,
    Ticket,
    TicketStatus,
    UserType,
    now_iso,
)
from concert_manager.validators import Validators

logger = get_logger(__name__)


class CurrentUser:
    """The logged-in account and its attendee profile, if it has one."""

    def __init__(self, username: str, user_type: UserType,
                 attendee: Optional[Attendee] = None):
        self.username = username
        self.user_type = user_type
        self.attendee = attendee

    @property
    def is_staff(self) -> bool:
        return self.user_type in (UserType.STAFF, UserType.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    @property
    def display_name(self) -> str:
        return self.attendee.name if self.attendee else self.username


class AccountService:
    """Handles user registration and login."""

    def __init__(self, context: AppContext):
        self.context = context

    def register(self, name: str, email: str, phone: str, username: str,
                 password: str, attendee_type: AttendeeType = AttendeeType.REGULAR,
                 user_type: UserType = UserType.REGULAR) -> Tuple[bool, str, Optional[Attendee]]:
        """
        Create a login and the matching attendee profile.
        Returns: (success, message, attendee)
        """
        name = name.strip()
        email = email.strip().lower()
        username = username.strip()

        for result in (Validators.validate_name(name),
                       Validators.validate_email(email),
                       Validators.validate_phone(phone),
                       Validators.validate_username(username),
                       Validators.validate_password(password)):
            if not result.is_valid:
                return False, result.error_message, None

        if self.context.auth.user_exists(username):
            return False, "Username already taken", None

        if self.context.attendees.find_attendee_by_email(email):
            return False, "Email already registered", None

        if not self.context.auth.register_user(username, password, user_type):
            return False, "Could not create account", None

        attendee = self.context.attendees.create_attendee(
            name=name,
            email=email,
            phone_number=Validators.normalize_phone(phone),
            attendee_type=attendee_type,
            username=username,
            staff_privileges=user_type != UserType.REGULAR
        )
        if attendee is None:
            self.context.auth.delete_user(username)
            return False, "Could not create account", None
        logger.info("account_registered", username=username, attendee_id=attendee.id)
        return True, "Registration successful!", attendee

    def login(self, username: str, password: str) -> Tuple[bool, str, Optional[CurrentUser]]:
        """
        Authenticate a user by username.
        Returns: (success, message, current_user)
        """
        username = username.strip()
        if not self.context.auth.authenticate_user(username, password):
            logger.info("login_failed", username=username)
            return False, "Invalid username or password", None

        user_type = UserType(self.context.auth.get_user_type(username))
        attendee = self.context.attendees.find_attendee_by_username(username)
        user = CurrentUser(username, user_type, attendee)
        logger.info("login_succeeded", username=username, user_type=user_type.name)
        return True, f"Welcome back, {user.display_name}!", user


class BoxOfficeService:
    """Sells, cancels and checks in tickets, logging each transaction."""

    def __init__(self, context: AppContext):
        self.context = context

    def _log(self, user_name: str, concert_id, ticket_id, action: str,
             success: bool, amount: float, message: str):
        self.context.transactions.log_transaction(
            user_name, concert_id, ticket_id, action,
            "success" if success else "failed", amount, message
        )

    def purchase_ticket(self, user: CurrentUser, concert_id: int,
                        payment_method: str = "Credit Card",
                        promo_code: str = "") -> Tuple[bool, str, Optional[Ticket]]:
        """
        Sell one ticket of a concert to the user.
        Returns: (success, message, ticket)
        """
        success, message, ticket, price = self._purchase(user, concert_id,
                                                         payment_method, promo_code)
        self._log(user.username, concert_id, ticket.ticket_id if ticket else None,
                  "purchase", success, price, message)
        return success, message, ticket

    def _purchase(self, user: CurrentUser, concert_id: int, payment_method: str,
                  promo_code: str):
        ctx = self.context
        if not user.attendee:
            return False, "Only attendee accounts can buy tickets", None, 0.0

        concert = ctx.concerts.get_concert_by_id(concert_id)
        if not concert:
            return False, "Concert not found", None, 0.0

        if concert.event_status == EventStatus.SOLDOUT:
            return False, "Concert is sold out", None, 0.0
        if concert.event_status != EventStatus.SCHEDULED:
            return False, f"Concert is {concert.event_status.name.lower()}", None, 0.0

        info = concert.ticket_info
        if not info:
            return False, "Tickets are not on sale for this concert", None, 0.0

        now = now_iso()
        if info.start_sale_date_time and now < info.start_sale_date_time:
            return False, "Ticket sales have not started yet", None, 0.0
        if info.end_sale_date_time and now > info.end_sale_date_time:
            return False, "Ticket sales have ended", None, 0.0
        if info.get_remaining() <= 0:
            return False, "No tickets available", None, 0.0

        price = info.base_price
        if promo_code:
            discounted = ctx.concerts.apply_promotion(concert_id, promo_code, price)
            if discounted is None:
                return False, "Invalid or expired promotion code", None, 0.0
            price = discounted

        payment_id = None
        if price > 0:
            transaction_id = ctx.payments.process_payment(
                user.attendee.id, price, DEFAULT_CURRENCY, payment_method
            )
            if not transaction_id:
                self._undo_purchase(concert_id, promo_code, None, None)
                return False, "Payment failed", None, price
            payment_id = ctx.payments.get_payment_by_transaction_id(transaction_id).payment_id

        ticket = next((t for t in ctx.tickets.find_tickets_by_concert(concert_id)
                       if t.status == TicketStatus.AVAILABLE), None)
        if ticket is None:
            ticket = ctx.tickets.create_ticket(concert_id)
        if ticket is None:
            self._undo_purchase(concert_id, promo_code, payment_id, None)
            return False, "Could not issue a ticket", None, price

        if not ctx.tickets.assign_ticket_to_attendee(ticket.ticket_id, user.attendee.id,
                                                     payment_id):
            self._undo_purchase(concert_id, promo_code, payment_id, ticket.ticket_id)
            return False, "Could not issue a ticket", None, price

        if not ctx.concerts.record_ticket_sale(concert_id):
            self._undo_purchase(concert_id, promo_code, payment_id, ticket.ticket_id)
            return False, "Could not record the sale", None, price

        logger.info("ticket_purchased", username=user.username, concert_id=concert_id,
                    ticket_id=ticket.ticket_id, price=price)
        return True, "Ticket purchased successfully!", ticket, price

    def _undo_purchase(self, concert_id: int, promo_code: str,
                       payment_id: Optional[int], ticket_id: Optional[int]):
        """Roll back the steps of a purchase that could not be completed."""
        ctx = self.context
        if ticket_id is not None:
            ctx.tickets.release_ticket(ticket_id)
        if payment_id is not None and not ctx.payments.process_refund(
                payment_id, 0.0, "Purchase not completed"):
            logger.error("purchase_refund_failed", concert_id=concert_id,
                         payment_id=payment_id)
        if promo_code:
            ctx.concerts.release_promotion(concert_id, promo_code)
        logger.warning("purchase_rolled_back", concert_id=concert_id,
                       payment_id=payment_id, ticket_id=ticket_id)

    def cancel_ticket(self, user: CurrentUser, ticket_id: int) -> Tuple[bool, str]:
        """
        Cancel a sold ticket, refund its payment and free up the spot.
        Staff may cancel any ticket; attendees only their own.
        Returns: (success, message)
        """
        ctx = self.context
        ticket = ctx.tickets.get_ticket_by_id(ticket_id)
        if not ticket:
            return False, "Ticket not found"

        concert_id = ticket.concert_id
        owner = user.attendee.id if user.attendee else None
        if not user.is_staff and ticket.attendee_id != owner:
            self._log(user.username, concert_id, ticket_id, "cancel", False, 0.0,
                      "Not the ticket owner")
            return False, "You don't own this ticket"

        if ticket.status == TicketStatus.CANCELLED:
            return False, "Ticket already cancelled"
        if ticket.status != TicketStatus.SOLD:
            return False, f"Cannot cancel a ticket that is {ticket.status.name.lower()}"

        ctx.tickets.cancel_ticket(ticket_id)
        if concert_id is not None:
            ctx.concerts.release_ticket_sale(concert_id)

        refunded = 0.0
        if ticket.payment_id is not None:
            payment = ctx.payments.get_payment_by_id(ticket.payment_id)
            if payment and ctx.payments.process_refund(ticket.payment_id, 0.0, "Ticket cancelled"):
                refunded = payment.amount

        message = "Ticket cancelled successfully."
        if refunded:
            message += f" Refund of ${refunded:.2f} issued."
        self._log(user.username, concert_id, ticket_id, "cancel", True, refunded, message)
        logger.info("ticket_cancelled", username=user.username, ticket_id=ticket_id,
                    refunded=refunded)
        return True, message

    def check_in(self, qr_code: str) -> Tuple[bool, str, Optional[Ticket]]:
        """
        Admit the holder of a QR code.
        Returns: (success, message, ticket)
        """
        ctx = self.context
        ticket = ctx.tickets.validate_ticket_by_qr_code(qr_code.strip())
        if not ticket:
            self._log("gate", None, None, "check_in", False, 0.0, "Invalid QR code")
            return False, "Invalid or already used ticket", None

        ctx.tickets.check_in_ticket(ticket.ticket_id)
        if ticket.attendee_id is not None:
            ctx.attendees.check_in_attendee(ticket.attendee_id)

        self._log("gate", ticket.concert_id, ticket.ticket_id, "check_in", True, 0.0,
                  "Checked in")
        logger.info("ticket_checked_in", ticket_id=ticket.ticket_id,
                    concert_id=ticket.concert_id)
        return True, "Check-in successful!", ticket

    def get_attendee_tickets(self, user: CurrentUser) -> List[Ticket]:
        """Sold and used tickets of the user."""
        if not user.attendee:
            return []
        return [t for t in self.context.tickets.find_tickets_by_attendee(user.attendee.id)
                if t.status in (TicketStatus.SOLD, TicketStatus.CHECKED_IN)]

    def get_sales_summary(self, concert_id: int) -> Dict:
        """Sales figures of one concert, empty if it has no ticket configuration."""
        concert = self.context.concerts.get_concert_by_id(concert_id)
        if not concert or not concert.ticket_info:
            return {}

        info = concert.ticket_info
        tickets = self.context.tickets.find_tickets_by_concert(concert_id)
        return {
            'concert_name': concert.name,
            'status': concert.event_status.name,
            'base_price': info.base_price,
            'tickets_total': info.quantity_available,
            'tickets_sold': info.quantity_sold,
            'tickets_remaining': info.get_remaining(),
            'checked_in': sum(1 for t in tickets if t.status == TicketStatus.CHECKED_IN),
            'cancelled': sum(1 for t in tickets if t.status == TicketStatus.CANCELLED),
            'total_revenue': round(info.base_price * info.quantity_sold, 2)
        }


class ConcertLifecycleService:
    """Closes and cancels concerts along with their side effects."""

    def __init__(self, context: AppContext):
        self.context = context

    def end_concert(self, concert_id: int) -> Tuple[bool, str, Optional[int]]:
        """
        End a COMPLETED concert and produce its report.
        Returns: (success, message, report_id)
        """
        if not self.context.concerts.end_concert(concert_id):
            return False, "Only completed concerts can be ended", None

        report_id = self.context.analytics.generate_concert_report(concert_id)
        if report_id < 0:
            return True, "Concert ended, but its report could not be saved.", None
        logger.info("concert_ended", concert_id=concert_id, report_id=report_id)
        return True, f"Concert ended. Report #{report_id} generated.", report_id

    def cancel_concert(self, concert_id: int, notify: bool = True) -> Tuple[bool, str]:
        """
        Cancel a concert, void its sold tickets with refunds and optionally
        log an automated notice to the ticket holders.
        """
        ctx = self.context
        if not ctx.concerts.cancel_concert(concert_id):
            return False, "Concert not found or already completed"

        holders = set()
        for ticket in ctx.tickets.find_tickets_by_concert(concert_id):
            if ticket.status != TicketStatus.SOLD:
                continue
            ctx.tickets.cancel_ticket(ticket.ticket_id)
            if ticket.payment_id is not None:
                ctx.payments.process_refund(ticket.payment_id, 0.0, "Concert cancelled")
            if ticket.attendee_id is not None:
                holders.add(ticket.attendee_id)

        if notify and holders:
            concert = ctx.concerts.get_concert_by_id(concert_id)
            ctx.communications.send_communication(
                concert_id,
                f"{concert.name} has been cancelled. Your payment will be refunded.",
                comm_type="Email",
                recipient_count=len(holders),
                is_automated=True
            )

        logger.info("concert_cancelled", concert_id=concert_id, holders=len(holders))
        return True, f"Concert cancelled. {len(holders)} ticket holder(s) refunded."
