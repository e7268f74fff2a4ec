"""Application context: builds every store once and shares it with services and the CLI."""

from concert_manager import config
from concert_manager.audit import TransactionLog
from concert_manager.config import data_path, get_settings
from concert_manager.log import get_logger
from concert_manager.modules.attendees import AttendeeStore
from concert_manager.modules.auth import AuthStore
from concert_manager.modules.communications import CommunicationStore
from concert_manager.modules.concerts import ConcertStore
from concert_manager.modules.crew import CrewStore
from concert_manager.modules.feedback import FeedbackStore
from concert_manager.modules.payments import PaymentStore
from concert_manager.modules.performers import PerformerStore
from concert_manager.modules.reports import ReportAnalytics, ReportStore
from concert_manager.modules.tickets import TicketStore
from concert_manager.modules.venues import VenueStore

logger = get_logger(__name__)


class AppContext:
    """Holds the stores of one running application."""

    def __init__(self):
        self.attendees = AttendeeStore(data_path(config.ATTENDEES_FILE))
        self.concerts = ConcertStore(data_path(config.CONCERTS_FILE))
        self.venues = VenueStore(data_path(config.VENUES_FILE))
        self.performers = PerformerStore(data_path(config.PERFORMERS_FILE))
        self.crew = CrewStore(data_path(config.CREW_FILE))
        self.tickets = TicketStore(data_path(config.TICKETS_FILE))
        self.payments = PaymentStore(data_path(config.PAYMENTS_FILE))
        self.feedback = FeedbackStore(data_path(config.FEEDBACK_FILE))
        self.reports = ReportStore(data_path(config.REPORTS_FILE))
        self.communications = CommunicationStore(data_path(config.COMMUNICATIONS_FILE))
        self.auth = AuthStore(data_path(config.AUTH_FILE))
        self.transactions = TransactionLog(data_path(config.TRANSACTIONS_FILE))

        self.analytics = ReportAnalytics(
            reports=self.reports,
            concerts=self.concerts,
            venues=self.venues,
            tickets=self.tickets,
            payments=self.payments,
            feedback=self.feedback,
            attendees=self.attendees
        )

    def initialize(self):
        """First-run setup: transaction log header and the default admin account."""
        settings = get_settings()
        self.transactions.initialize()
        self.auth.ensure_default_admin(settings.ADMIN_USERNAME, settings.ADMIN_DEFAULT_PASSWORD)
        logger.info("context_initialized", data_dir=settings.DATA_DIR)

    @classmethod
    def create(cls) -> "AppContext":
        context = cls()
        context.initialize()
        return context
