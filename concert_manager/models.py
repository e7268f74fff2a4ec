"""
Data models for the concert management system.

Records reference each other by integer id only; a reference is resolved by
looking the id up in the owning store and may dangle.
"""

from datetime import datetime
from enum import IntEnum
from typing import Dict, List, Optional

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def now_iso() -> str:
    """Current local time in the ISO-8601 layout used by every record."""
    return datetime.now().strftime(ISO_FORMAT)


class EventStatus(IntEnum):
    SCHEDULED = 0
    CANCELLED = 1
    POSTPONED = 2
    COMPLETED = 3
    SOLDOUT = 4


class PaymentStatus(IntEnum):
    PENDING = 0
    COMPLETED = 1
    FAILED = 2
    REFUNDED = 3


class TicketStatus(IntEnum):
    AVAILABLE = 0
    SOLD = 1
    CHECKED_IN = 2
    CANCELLED = 3
    EXPIRED = 4


class TaskStatus(IntEnum):
    TODO = 0
    IN_PROGRESS = 1
    COMPLETED = 2


class TaskPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


class AttendeeType(IntEnum):
    REGULAR = 0
    VIP = 1


class DiscountType(IntEnum):
    PERCENTAGE = 0
    FIXED_AMOUNT = 1
    BUY_X_GET_Y = 2


class FeedbackCategory(IntEnum):
    SOUND = 0
    VENUE = 1
    PRICING = 2
    PERFORMERS = 3
    ORGANIZATION = 4
    GENERAL = 5


class SentimentType(IntEnum):
    """Ordered by severity so comparisons rank CRITICAL highest."""
    POSITIVE = 0
    NEUTRAL = 1
    NEGATIVE = 2
    CRITICAL = 3


class UserType(IntEnum):
    REGULAR = 0
    STAFF = 1
    ADMIN = 2


class Seat:
    """A single seat inside a venue."""

    def __init__(self, seat_id: int, seat_type: str, row_number: str, col_number: str,
                 status: TicketStatus = TicketStatus.AVAILABLE):
        self.seat_id = seat_id
        self.seat_type = seat_type  # "VIP", "Regular", "Accessible"
        self.row_number = row_number
        self.col_number = col_number
        self.status = status

    def to_dict(self) -> Dict:
        return {
            'seat_id': self.seat_id,
            'seat_type': self.seat_type,
            'row_number': self.row_number,
            'col_number': self.col_number,
            'status': self.status.name
        }


class Venue:
    """Venue data model with an optional rectangular seating plan."""

    def __init__(self, venue_id: int, name: str, address: str, city: str, state: str,
                 zip_code: str, country: str, capacity: int, description: str = "",
                 contact_info: str = "", seatmap: str = ""):
        self.id = venue_id
        self.name = name
        self.address = address
        self.city = city
        self.state = state
        self.zip_code = zip_code
        self.country = country
        self.capacity = capacity
        self.description = description
        self.contact_info = contact_info
        self.seatmap = seatmap  # URL or reference to a seatmap file
        self.rows = 0
        self.columns = 0
        self.seats: List[Seat] = []

    def seat_position(self, seat: Seat) -> Optional[tuple]:
        """
        Map a seat's row/column labels onto 0-based plan coordinates.
        Rows may be letters ("A", "B") or numbers ("1", "2").
        Returns None when the labels do not fit inside the plan.
        """
        if not seat.row_number or not seat.col_number:
            return None

        label = seat.row_number
        if label.isalpha() and label.isupper() and len(label) <= 2:
            row_idx = ord(label[-1]) - ord("A")
            if len(label) == 2:
                row_idx += (ord(label[0]) - ord("A") + 1) * 26
        else:
            try:
                row_idx = int(seat.row_number) - 1
            except ValueError:
                return None

        try:
            col_idx = int(seat.col_number) - 1
        except ValueError:
            return None

        if 0 <= row_idx < self.rows and 0 <= col_idx < self.columns:
            return row_idx, col_idx
        return None

    def get_seat_at(self, row: int, col: int) -> Optional[Seat]:
        """Return the seat mapped to a plan position; the latest seat wins."""
        if not (0 <= row < self.rows and 0 <= col < self.columns):
            return None
        found = None
        for seat in self.seats:
            if self.seat_position(seat) == (row, col):
                found = seat
        return found

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'zip_code': self.zip_code,
            'country': self.country,
            'capacity': self.capacity,
            'description': self.description,
            'contact_info': self.contact_info,
            'seatmap': self.seatmap,
            'rows': self.rows,
            'columns': self.columns,
            'seats': [seat.to_dict() for seat in self.seats]
        }


class Performer:
    """Performer data model: artists, bands, DJs."""

    def __init__(self, performer_id: int, name: str, performer_type: str,
                 contact_info: str = "", bio: str = "", image_url: str = ""):
        self.performer_id = performer_id
        self.name = name
        self.type = performer_type  # "Solo Artist", "Band", "DJ"
        self.contact_info = contact_info
        self.bio = bio
        self.image_url = image_url

    def to_dict(self) -> Dict:
        return {
            'performer_id': self.performer_id,
            'name': self.name,
            'type': self.type,
            'contact_info': self.contact_info,
            'bio': self.bio,
            'image_url': self.image_url
        }


class Task:
    """A task assigned to a crew member."""

    def __init__(self, task_id: int, task_name: str, description: str,
                 status: TaskStatus = TaskStatus.TODO,
                 priority: TaskPriority = TaskPriority.MEDIUM):
        self.task_id = task_id
        self.task_name = task_name
        self.description = description
        self.status = status
        self.priority = priority

    def to_dict(self) -> Dict:
        return {
            'task_id': self.task_id,
            'task_name': self.task_name,
            'description': self.description,
            'status': self.status.name,
            'priority': self.priority.name
        }


class Crew:
    """Crew member data model."""

    def __init__(self, crew_id: int, name: str, email: str, phone_number: str):
        self.id = crew_id
        self.name = name
        self.email = email
        self.phone_number = phone_number
        self.tasks: List[Task] = []
        self.check_in_time: Optional[str] = None
        self.check_out_time: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone_number': self.phone_number,
            'tasks': [task.to_dict() for task in self.tasks],
            'check_in_time': self.check_in_time,
            'check_out_time': self.check_out_time
        }


class TicketInfo:
    """Ticket configuration of a concert: price, stock and sale window."""

    def __init__(self, base_price: float, quantity_available: int,
                 start_sale_date_time: str, end_sale_date_time: str,
                 quantity_sold: int = 0):
        self.base_price = base_price
        self.quantity_available = quantity_available
        self.quantity_sold = quantity_sold
        self.start_sale_date_time = start_sale_date_time
        self.end_sale_date_time = end_sale_date_time

    def get_remaining(self) -> int:
        """Number of tickets that can still be sold."""
        return self.quantity_available - self.quantity_sold

    def to_dict(self) -> Dict:
        return {
            'base_price': self.base_price,
            'quantity_available': self.quantity_available,
            'quantity_sold': self.quantity_sold,
            'start_sale_date_time': self.start_sale_date_time,
            'end_sale_date_time': self.end_sale_date_time
        }


class Promotion:
    """Discount code attached to a concert."""

    def __init__(self, code: str, description: str, discount_type: DiscountType,
                 percentage: float, start_date_time: str, end_date_time: str,
                 is_active: bool = True, usage_limit: int = 0, used_count: int = 0):
        self.code = code
        self.description = description
        self.discount_type = discount_type
        self.percentage = percentage  # percent for PERCENTAGE, amount for FIXED_AMOUNT
        self.start_date_time = start_date_time
        self.end_date_time = end_date_time
        self.is_active = is_active
        self.usage_limit = usage_limit  # 0 means unlimited
        self.used_count = used_count

    def to_dict(self) -> Dict:
        return {
            'code': self.code,
            'description': self.description,
            'discount_type': self.discount_type.name,
            'percentage': self.percentage,
            'start_date_time': self.start_date_time,
            'end_date_time': self.end_date_time,
            'is_active': self.is_active,
            'usage_limit': self.usage_limit,
            'used_count': self.used_count
        }


class Show:
    """A show slot inside a concert."""

    def __init__(self, show_id: int, name: str, show_time: str):
        self.show_id = show_id
        self.name = name
        self.show_time = show_time

    def to_dict(self) -> Dict:
        return {
            'show_id': self.show_id,
            'name': self.name,
            'show_time': self.show_time
        }


class Concert:
    """Concert data model."""

    def __init__(self, concert_id: int, name: str, description: str,
                 start_date_time: str, end_date_time: str,
                 event_status: EventStatus = EventStatus.SCHEDULED):
        self.id = concert_id
        self.name = name
        self.description = description
        self.start_date_time = start_date_time
        self.end_date_time = end_date_time
        self.event_status = event_status
        self.created_at = now_iso()
        self.updated_at = self.created_at
        self.ticket_info: Optional[TicketInfo] = None
        self.venue_id: Optional[int] = None
        self.performer_ids: List[int] = []
        self.promotions: List[Promotion] = []
        self.shows: List[Show] = []

    def touch(self):
        self.updated_at = now_iso()

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'start_date_time': self.start_date_time,
            'end_date_time': self.end_date_time,
            'event_status': self.event_status.name,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'ticket_info': self.ticket_info.to_dict() if self.ticket_info else None,
            'venue_id': self.venue_id,
            'performer_ids': list(self.performer_ids),
            'promotions': [promo.to_dict() for promo in self.promotions],
            'shows': [show.to_dict() for show in self.shows]
        }


class Ticket:
    """Ticket data model representing one admission."""

    def __init__(self, ticket_id: int, qr_code: str,
                 status: TicketStatus = TicketStatus.AVAILABLE,
                 concert_id: Optional[int] = None,
                 attendee_id: Optional[int] = None,
                 payment_id: Optional[int] = None):
        self.ticket_id = ticket_id
        self.status = status
        self.qr_code = qr_code
        self.created_at = now_iso()
        self.updated_at = self.created_at
        self.concert_id = concert_id
        self.attendee_id = attendee_id
        self.payment_id = payment_id

    def to_dict(self) -> Dict:
        return {
            'ticket_id': self.ticket_id,
            'status': self.status.name,
            'qr_code': self.qr_code,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'concert_id': self.concert_id,
            'attendee_id': self.attendee_id,
            'payment_id': self.payment_id
        }


class Payment:
    """Payment transaction record."""

    def __init__(self, payment_id: int, amount: float, currency: str,
                 payment_method: str, transaction_id: str,
                 status: PaymentStatus = PaymentStatus.PENDING,
                 attendee_id: Optional[int] = None):
        self.payment_id = payment_id
        self.amount = amount
        self.currency = currency
        self.payment_method = payment_method  # "Credit Card", "PayPal"
        self.transaction_id = transaction_id
        self.status = status
        self.payment_date_time = now_iso()
        self.attendee_id = attendee_id

    def to_dict(self) -> Dict:
        return {
            'payment_id': self.payment_id,
            'amount': self.amount,
            'currency': self.currency,
            'payment_method': self.payment_method,
            'transaction_id': self.transaction_id,
            'status': self.status.name,
            'payment_date_time': self.payment_date_time,
            'attendee_id': self.attendee_id
        }


class Feedback:
    """
    Attendee feedback for a concert.
    sentiment, requires_escalation and escalation_reason are derived from the
    rating and comments and are not persisted.
    """

    def __init__(self, feedback_id: int, concert_id: int, attendee_id: int,
                 rating: int, comments: str,
                 category: FeedbackCategory = FeedbackCategory.GENERAL):
        self.feedback_id = feedback_id
        self.concert_id = concert_id
        self.attendee_id = attendee_id
        self.rating = rating
        self.comments = comments
        self.category = category
        self.submitted_at = now_iso()
        self.resolved = False
        self.sentiment = SentimentType.NEUTRAL
        self.requires_escalation = False
        self.escalation_reason = ""

    def to_dict(self) -> Dict:
        return {
            'feedback_id': self.feedback_id,
            'concert_id': self.concert_id,
            'attendee_id': self.attendee_id,
            'rating': self.rating,
            'comments': self.comments,
            'category': self.category.name,
            'submitted_at': self.submitted_at,
            'resolved': self.resolved
        }


class ConcertReport:
    """Analytics snapshot for a concert."""

    def __init__(self, report_id: int, concert_id: int, total_registrations: int = 0,
                 tickets_sold: int = 0, sales_volume: float = 0.0,
                 attendee_engagement_score: float = 0.0, nps_score: float = 0.0):
        self.id = report_id
        self.concert_id = concert_id
        self.date = now_iso()
        self.total_registrations = total_registrations
        self.tickets_sold = tickets_sold
        self.sales_volume = sales_volume
        self.attendee_engagement_score = attendee_engagement_score
        self.nps_score = nps_score
        self.created_at = self.date
        self.updated_at = self.date

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'concert_id': self.concert_id,
            'date': self.date,
            'total_registrations': self.total_registrations,
            'tickets_sold': self.tickets_sold,
            'sales_volume': self.sales_volume,
            'attendee_engagement_score': self.attendee_engagement_score,
            'nps_score': self.nps_score,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }


class CommunicationLog:
    """A message sent to a concert's audience."""

    def __init__(self, comm_id: int, concert_id: int, message_content: str,
                 comm_type: str = "Email", recipient_count: int = 0,
                 is_automated: bool = False):
        self.comm_id = comm_id
        self.concert_id = concert_id
        self.message_content = message_content
        self.sent_at = now_iso()
        self.comm_type = comm_type  # "Email", "SMS", "In-App"
        self.recipient_count = recipient_count
        self.is_automated = is_automated

    def to_dict(self) -> Dict:
        return {
            'comm_id': self.comm_id,
            'concert_id': self.concert_id,
            'message_content': self.message_content,
            'sent_at': self.sent_at,
            'comm_type': self.comm_type,
            'recipient_count': self.recipient_count,
            'is_automated': self.is_automated
        }


class Attendee:
    """Attendee data model. Credentials live in the auth store, keyed by username."""

    def __init__(self, attendee_id: int, name: str, email: str, phone_number: str,
                 attendee_type: AttendeeType = AttendeeType.REGULAR,
                 username: str = "", staff_privileges: bool = False):
        self.id = attendee_id
        self.name = name
        self.email = email
        self.phone_number = phone_number
        self.username = username
        self.staff_privileges = staff_privileges
        self.attendee_type = attendee_type
        self.registration_date = now_iso()
        self.check_in_time: Optional[str] = None
        self.check_out_time: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone_number': self.phone_number,
            'username': self.username,
            'staff_privileges': self.staff_privileges,
            'attendee_type': self.attendee_type.name,
            'registration_date': self.registration_date,
            'check_in_time': self.check_in_time,
            'check_out_time': self.check_out_time
        }


class Credential:
    """Login credential with a salted password hash."""

    def __init__(self, user_id: int, username: str, password_hash: str,
                 user_type: UserType = UserType.REGULAR):
        self.user_id = user_id
        self.username = username
        self.password_hash = password_hash
        self.user_type = user_type

    def to_dict(self) -> Dict:
        return {
            'user_id': self.user_id,
            'username': self.username,
            'password_hash': self.password_hash,
            'user_type': self.user_type.name
        }
