"""
Concert reports and analytics.

ReportStore persists report snapshots. ReportAnalytics reads the other stores
to compute metrics and writes the snapshots.
"""

import csv
import io
import json
from collections import Counter
from typing import Dict, List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import (
    Concert,
    ConcertReport,
    EventStatus,
    PaymentStatus,
    SentimentType,
    TicketStatus,
    now_iso,
)
from concert_manager.modules.attendees import AttendeeStore
from concert_manager.modules.concerts import ConcertStore
from concert_manager.modules.feedback import FeedbackStore
from concert_manager.modules.payments import PaymentStore
from concert_manager.modules.tickets import TicketStore
from concert_manager.modules.venues import VenueStore
from concert_manager.store import EntityStore, in_date_range, in_open_range

logger = get_logger(__name__)

PERIOD_KEY_LENGTH = {"daily": 10, "monthly": 7}
EXPORT_FORMATS = ("JSON", "CSV")
HELD_STATUSES = (TicketStatus.SOLD, TicketStatus.CHECKED_IN)


def calculate_nps(ratings: List[int]) -> float:
    """
    Net promoter score on the 1-5 rating scale: 5 stars are promoters,
    3 stars or fewer are detractors. Range -100..100, 0.0 without ratings.
    """
    if not ratings:
        return 0.0
    promoters = sum(1 for r in ratings if r == 5)
    detractors = sum(1 for r in ratings if r <= 3)
    return (promoters - detractors) * 100.0 / len(ratings)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class ReportStore(EntityStore[ConcertReport]):
    """Stores report snapshots, several per concert over time."""

    MAGIC = b"REPT"

    def create_report(self, concert_id: int, total_registrations: int, tickets_sold: int,
                      sales_volume: float, attendee_engagement_score: float,
                      nps_score: float) -> Optional[ConcertReport]:
        report = ConcertReport(
            report_id=self.generate_new_id(),
            concert_id=concert_id,
            total_registrations=total_registrations,
            tickets_sold=tickets_sold,
            sales_volume=sales_volume,
            attendee_engagement_score=attendee_engagement_score,
            nps_score=nps_score
        )
        return report if self.add(report) else None

    def get_report_by_id(self, report_id: int) -> Optional[ConcertReport]:
        return self.get_by_id(report_id)

    def get_reports_by_concert(self, concert_id: int) -> List[ConcertReport]:
        return self.find_by_predicate(lambda r: r.concert_id == concert_id)

    def get_reports_by_date_range(self, start_date: str, end_date: str) -> List[ConcertReport]:
        return self.find_by_predicate(lambda r: in_open_range(r.date, start_date, end_date))

    def get_latest_report_for_concert(self, concert_id: int) -> Optional[ConcertReport]:
        """Most recently created report; the higher id wins a timestamp tie."""
        reports = self.get_reports_by_concert(concert_id)
        if not reports:
            return None
        return max(reports, key=lambda r: (r.created_at, r.id))

    def delete_report(self, report_id: int) -> bool:
        return self.delete_entity(report_id)

    def get_entity_id(self, entity: ConcertReport) -> int:
        return entity.id

    def write_record(self, writer: BinaryWriter, entity: ConcertReport):
        writer.write_int(entity.id)
        writer.write_int(entity.concert_id)
        writer.write_string(entity.date)
        writer.write_int(entity.total_registrations)
        writer.write_int(entity.tickets_sold)
        writer.write_double(entity.sales_volume)
        writer.write_double(entity.attendee_engagement_score)
        writer.write_double(entity.nps_score)
        writer.write_string(entity.created_at)
        writer.write_string(entity.updated_at)

    def read_record(self, reader: BinaryReader) -> ConcertReport:
        report_id = reader.read_int()
        concert_id = reader.read_int()
        date = reader.read_string()
        report = ConcertReport(
            report_id=report_id,
            concert_id=concert_id,
            total_registrations=reader.read_int(),
            tickets_sold=reader.read_int(),
            sales_volume=reader.read_double(),
            attendee_engagement_score=reader.read_double(),
            nps_score=reader.read_double()
        )
        report.date = date
        report.created_at = reader.read_string()
        report.updated_at = reader.read_string()
        return report


class ReportAnalytics:
    """Computes concert, revenue and satisfaction metrics across the stores."""

    def __init__(self, reports: ReportStore, concerts: ConcertStore, venues: VenueStore,
                 tickets: TicketStore, payments: PaymentStore, feedback: FeedbackStore,
                 attendees: AttendeeStore):
        self.reports = reports
        self.concerts = concerts
        self.venues = venues
        self.tickets = tickets
        self.payments = payments
        self.feedback = feedback
        self.attendees = attendees

    # ------------------------------------------------------------------
    # Per-concert figures
    # ------------------------------------------------------------------

    def _registrations(self, concert_id: int) -> int:
        """Distinct attendees holding a sold or used ticket."""
        return len({t.attendee_id for t in self.tickets.find_tickets_by_concert(concert_id)
                    if t.status in HELD_STATUSES and t.attendee_id is not None})

    @staticmethod
    def _tickets_sold(concert: Concert) -> int:
        return concert.ticket_info.quantity_sold if concert.ticket_info else 0

    @staticmethod
    def _sales_volume(concert: Concert) -> float:
        if not concert.ticket_info:
            return 0.0
        return round(concert.ticket_info.base_price * concert.ticket_info.quantity_sold, 2)

    def _ratings(self, concert_id: int) -> List[int]:
        return [f.rating for f in self.feedback.get_feedback_for_event(concert_id)]

    def _capacity(self, concert: Concert) -> int:
        """Venue capacity, or the ticket stock when the concert has no venue."""
        venue = self.venues.get_by_id(concert.venue_id) if concert.venue_id is not None else None
        if venue and venue.capacity > 0:
            return venue.capacity
        return concert.ticket_info.quantity_available if concert.ticket_info else 0

    def _utilization(self, concert: Concert) -> float:
        capacity = self._capacity(concert)
        return self._tickets_sold(concert) * 100.0 / capacity if capacity > 0 else 0.0

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def generate_concert_report(self, concert_id: int) -> int:
        """Snapshot a concert's figures. Returns the report id, or -1."""
        concert = self.concerts.get_by_id(concert_id)
        if not concert:
            return -1

        ratings = self._ratings(concert_id)
        report = self.reports.create_report(
            concert_id=concert_id,
            total_registrations=self._registrations(concert_id),
            tickets_sold=self._tickets_sold(concert),
            sales_volume=self._sales_volume(concert),
            attendee_engagement_score=_mean(ratings),
            nps_score=calculate_nps(ratings)
        )
        if report is None:
            return -1
        logger.info("report_generated", report_id=report.id, concert_id=concert_id)
        return report.id

    def update_concert_report(self, report_id: int) -> bool:
        """Recompute an existing report from current data."""
        report = self.reports.get_by_id(report_id)
        if not report:
            return False
        concert = self.concerts.get_by_id(report.concert_id)
        if not concert:
            return False

        ratings = self._ratings(concert.id)
        report.total_registrations = self._registrations(concert.id)
        report.tickets_sold = self._tickets_sold(concert)
        report.sales_volume = self._sales_volume(concert)
        report.attendee_engagement_score = _mean(ratings)
        report.nps_score = calculate_nps(ratings)
        report.updated_at = now_iso()
        return self.reports.save_entities()

    def calculate_summary_metrics(self) -> Dict:
        concerts = self.concerts.get_all()
        statuses = Counter(c.event_status for c in concerts)
        ratings = [f.rating for f in self.feedback.get_all()]
        tickets_sold = sum(self._tickets_sold(c) for c in concerts)
        revenue = self.payments.calculate_revenue()

        most_popular = max(concerts, key=self._tickets_sold, default=None)

        venue_sales: Dict[int, float] = {}
        for concert in concerts:
            if concert.venue_id is not None:
                venue_sales[concert.venue_id] = (venue_sales.get(concert.venue_id, 0.0)
                                                 + self._sales_volume(concert))
        top_venue = ""
        if venue_sales:
            venue = self.venues.get_by_id(max(venue_sales, key=venue_sales.get))
            top_venue = venue.name if venue else ""

        return {
            'total_concerts': len(concerts),
            'active_concerts': statuses[EventStatus.SCHEDULED] + statuses[EventStatus.SOLDOUT],
            'completed_concerts': statuses[EventStatus.COMPLETED],
            'cancelled_concerts': statuses[EventStatus.CANCELLED],
            'total_attendees': self.attendees.count(),
            'total_tickets_sold': tickets_sold,
            'total_revenue': revenue,
            'average_ticket_price': round(revenue / tickets_sold, 2) if tickets_sold else 0.0,
            'overall_satisfaction_score': _mean(ratings),
            'nps_score': calculate_nps(ratings),
            'most_popular_concert': most_popular.name if most_popular else "",
            'top_performing_venue': top_venue
        }

    def get_concert_metrics(self, concert_id: int) -> Optional[Dict]:
        concert = self.concerts.get_by_id(concert_id)
        if not concert:
            return None

        ratings = self._ratings(concert_id)
        methods = Counter()
        for ticket in self.tickets.find_tickets_by_concert(concert_id):
            if ticket.payment_id is None:
                continue
            payment = self.payments.get_by_id(ticket.payment_id)
            if payment:
                methods[payment.payment_method] += 1

        return {
            'concert_id': concert.id,
            'concert_name': concert.name,
            'total_registrations': self._registrations(concert_id),
            'tickets_sold': self._tickets_sold(concert),
            'tickets_available': concert.ticket_info.get_remaining() if concert.ticket_info else 0,
            'sales_volume': self._sales_volume(concert),
            'capacity_utilization': round(self._utilization(concert), 2),
            'attendee_engagement_score': _mean(ratings),
            'nps_score': calculate_nps(ratings),
            'total_feedback_count': len(ratings),
            'average_rating': _mean(ratings),
            'top_payment_method': methods.most_common(1)[0][0] if methods else "",
            'last_updated': concert.updated_at
        }

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    def get_revenue_breakdown(self, start_date: str, end_date: str,
                              period_type: str = "daily") -> Dict[str, float]:
        """
        Completed payment totals per day (YYYY-MM-DD) or month (YYYY-MM).
        Raises ValueError for any other period type.
        """
        key_length = PERIOD_KEY_LENGTH.get(period_type)
        if key_length is None:
            raise ValueError(f"Unknown period type: {period_type}")

        breakdown: Dict[str, float] = {}
        for payment in self.payments.get_payments_by_date_range(start_date, end_date):
            if payment.status != PaymentStatus.COMPLETED:
                continue
            key = payment.payment_date_time[:key_length]
            breakdown[key] = round(breakdown.get(key, 0.0) + payment.amount, 2)
        return dict(sorted(breakdown.items()))

    def get_attendance_trends(self, start_date: str, end_date: str) -> Dict[str, int]:
        """Sold or used tickets per day of their last status change."""
        trends: Counter = Counter()
        for ticket in self.tickets.get_all():
            if ticket.status in HELD_STATUSES and in_date_range(ticket.updated_at,
                                                                start_date, end_date):
                trends[ticket.updated_at[:10]] += 1
        return dict(sorted(trends.items()))

    def analyze_concert_performance(self, start_date: str, end_date: str) -> List[Dict]:
        """
        Rank concerts starting in the period. The score is half sell-through
        and half average rating, on a 0-100 scale.
        """
        results = []
        for concert in self.concerts.find_concerts_by_date_range(start_date, end_date):
            info = concert.ticket_info
            sell_through = (info.quantity_sold / info.quantity_available
                            if info and info.quantity_available > 0 else 0.0)
            satisfaction = self.feedback.get_event_average_rating(concert.id)
            results.append({
                'concert_id': concert.id,
                'concert_name': concert.name,
                'performance_score': round(sell_through * 50 + satisfaction / 5 * 50, 2),
                'tickets_sold': self._tickets_sold(concert),
                'revenue': self._sales_volume(concert),
                'satisfaction_score': satisfaction,
            })

        results.sort(key=lambda r: r['performance_score'], reverse=True)
        for rank, result in enumerate(results, start=1):
            result['rank'] = rank
        return results

    def analyze_venue_utilization(self) -> Dict[int, float]:
        """Average percentage of capacity sold across each venue's concerts."""
        per_venue: Dict[int, List[float]] = {}
        for concert in self.concerts.get_all():
            if concert.venue_id is None or not self.venues.get_by_id(concert.venue_id):
                continue
            per_venue.setdefault(concert.venue_id, []).append(self._utilization(concert))
        return {venue_id: round(_mean(values), 2) for venue_id, values in per_venue.items()}

    def get_customer_satisfaction_analytics(self, start_date: str, end_date: str) -> Dict:
        entries = sorted(
            (f for f in self.feedback.get_all()
             if in_date_range(f.submitted_at, start_date, end_date)),
            key=lambda f: (f.submitted_at, f.feedback_id)
        )
        ratings = [f.rating for f in entries]

        positive = sorted((f for f in entries if f.sentiment == SentimentType.POSITIVE and f.comments),
                          key=lambda f: -f.rating)
        concerns = sorted((f for f in entries if f.sentiment >= SentimentType.NEGATIVE and f.comments),
                          key=lambda f: (f.rating, -int(f.sentiment)))

        half = len(ratings) // 2
        trend = _mean(ratings[half:]) - _mean(ratings[:half]) if half else 0.0

        return {
            'overall_rating': _mean(ratings),
            'nps_score': calculate_nps(ratings),
            'total_feedback_count': len(ratings),
            'rating_distribution': {star: ratings.count(star) for star in range(1, 6)},
            'top_positive_comments': [f.comments for f in positive[:5]],
            'top_concerns': [f.comments for f in concerns[:5]],
            'improvement_trend': round(trend, 2)
        }

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_data_for_visualization(self, report_type: str, start_date: str,
                                      end_date: str, fmt: str = "JSON") -> str:
        """
        Export one dataset as JSON or CSV text.
        report_type is one of: revenue, attendance, performance, satisfaction.
        """
        fmt = fmt.upper()
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")

        if report_type == "revenue":
            rows = [{'period': k, 'revenue': v}
                    for k, v in self.get_revenue_breakdown(start_date, end_date).items()]
        elif report_type == "attendance":
            rows = [{'date': k, 'tickets': v}
                    for k, v in self.get_attendance_trends(start_date, end_date).items()]
        elif report_type == "performance":
            rows = self.analyze_concert_performance(start_date, end_date)
        elif report_type == "satisfaction":
            analytics = self.get_customer_satisfaction_analytics(start_date, end_date)
            rows = [{'rating': k, 'count': v}
                    for k, v in analytics['rating_distribution'].items()]
        else:
            raise ValueError(f"Unknown report type: {report_type}")

        logger.info("data_exported", report_type=report_type, format=fmt, rows=len(rows))

        if fmt == "JSON":
            return json.dumps({'report_type': report_type, 'start_date': start_date,
                               'end_date': end_date, 'data': rows}, indent=2)

        output = io.StringIO()
        if rows:
            writer = csv.DictWriter(output, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            writer.writerows(rows)
        return output.getvalue()
