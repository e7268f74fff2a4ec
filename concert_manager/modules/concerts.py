"""Concert store: scheduling, ticket configuration, performers, promotions and shows."""

from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import (
    Concert,
    DiscountType,
    EventStatus,
    Promotion,
    Show,
    TicketInfo,
    now_iso,
)
from concert_manager.modules.performers import PerformerStore
from concert_manager.store import EntityStore, contains_ignore_case, in_date_range

logger = get_logger(__name__)


class ConcertStore(EntityStore[Concert]):
    """Handles concerts and their embedded ticket info, promotions and shows."""

    MAGIC = b"CONC"

    def create_concert(self, name: str, description: str, start_date_time: str,
                       end_date_time: str) -> Optional[Concert]:
        """Create a concert in SCHEDULED status."""
        concert = Concert(
            concert_id=self.generate_new_id(),
            name=name,
            description=description,
            start_date_time=start_date_time,
            end_date_time=end_date_time
        )
        return concert if self.add(concert) else None

    def edit_concert(self, concert_id: int, name: str = "", description: str = "",
                     start_date_time: str = "", end_date_time: str = "") -> bool:
        """Edit concert fields; empty strings keep the current value."""
        concert = self.get_by_id(concert_id)
        if not concert:
            return False

        if name:
            concert.name = name
        if description:
            concert.description = description
        if start_date_time:
            concert.start_date_time = start_date_time
        if end_date_time:
            concert.end_date_time = end_date_time
        concert.touch()

        return self.save_entities()

    def get_concert_by_id(self, concert_id: int) -> Optional[Concert]:
        return self.get_by_id(concert_id)

    def find_concerts_by_name(self, name_query: str) -> List[Concert]:
        return self.find_by_predicate(lambda c: contains_ignore_case(c.name, name_query))

    def find_concerts_by_date_range(self, start_date: str, end_date: str) -> List[Concert]:
        """Concerts whose start time falls inside [start_date, end_date]."""
        return self.find_by_predicate(
            lambda c: in_date_range(c.start_date_time, start_date, end_date)
        )

    def find_concerts_by_status(self, status: EventStatus) -> List[Concert]:
        return self.find_by_predicate(lambda c: c.event_status == status)

    def find_concerts_by_venue(self, venue_id: int) -> List[Concert]:
        return self.find_by_predicate(lambda c: c.venue_id == venue_id)

    def find_concerts_by_performer_type(self, performer_type: str,
                                        performers: PerformerStore) -> List[Concert]:
        """Concerts with at least one performer whose type contains the query."""
        def matches(concert: Concert) -> bool:
            for performer_id in concert.performer_ids:
                performer = performers.get_by_id(performer_id)
                if performer and contains_ignore_case(performer.type, performer_type):
                    return True
            return False

        return self.find_by_predicate(matches)

    def set_venue_for_concert(self, concert_id: int, venue_id: Optional[int]) -> bool:
        concert = self.get_by_id(concert_id)
        if not concert:
            return False
        concert.venue_id = venue_id
        concert.touch()
        return self.save_entities()

    def setup_ticket_info(self, concert_id: int, base_price: float, quantity: int,
                          start_sale_date_time: str, end_sale_date_time: str) -> bool:
        """Configure price, stock and sale window. Resets the sold count."""
        concert = self.get_by_id(concert_id)
        if not concert:
            return False

        concert.ticket_info = TicketInfo(
            base_price=base_price,
            quantity_available=quantity,
            start_sale_date_time=start_sale_date_time,
            end_sale_date_time=end_sale_date_time
        )
        concert.touch()
        return self.save_entities()

    def add_performer_to_concert(self, concert_id: int, performer_id: int) -> bool:
        """Add a performer. Adding one that is already listed succeeds without change."""
        concert = self.get_by_id(concert_id)
        if not concert:
            return False

        if performer_id in concert.performer_ids:
            return True

        concert.performer_ids.append(performer_id)
        concert.touch()
        return self.save_entities()

    def remove_performer_from_concert(self, concert_id: int, performer_id: int) -> bool:
        concert = self.get_by_id(concert_id)
        if not concert or performer_id not in concert.performer_ids:
            return False
        concert.performer_ids.remove(performer_id)
        concert.touch()
        return self.save_entities()

    def add_promotion_to_concert(self, concert_id: int, promotion: Promotion) -> bool:
        """Attach a promotion. Fails if the concert already has the same code."""
        concert = self.get_by_id(concert_id)
        if not concert:
            return False

        if any(p.code == promotion.code for p in concert.promotions):
            return False

        concert.promotions.append(promotion)
        concert.touch()
        return self.save_entities()

    def apply_promotion(self, concert_id: int, code: str, price: float) -> Optional[float]:
        """
        Apply a promotion code to a price and count one use of it.
        Returns the discounted price, or None if the code cannot be used now.
        """
        concert = self.get_by_id(concert_id)
        if not concert:
            return None

        promotion = next((p for p in concert.promotions if p.code == code), None)
        if not promotion or not promotion.is_active:
            return None

        now = now_iso()
        if promotion.start_date_time and now < promotion.start_date_time:
            return None
        if promotion.end_date_time and now > promotion.end_date_time:
            return None
        if promotion.usage_limit > 0 and promotion.used_count >= promotion.usage_limit:
            return None

        if promotion.discount_type == DiscountType.PERCENTAGE:
            discounted = price * (1 - promotion.percentage / 100.0)
        elif promotion.discount_type == DiscountType.FIXED_AMOUNT:
            discounted = price - promotion.percentage
        else:
            # BUY_X_GET_Y is settled per order, not per ticket
            discounted = price

        promotion.used_count += 1
        if not self.save_entities():
            promotion.used_count -= 1
            return None
        return round(max(discounted, 0.0), 2)

    def release_promotion(self, concert_id: int, code: str) -> bool:
        """Give back one use of a promotion code, e.g. after a failed purchase."""
        concert = self.get_by_id(concert_id)
        if not concert:
            return False
        promotion = next((p for p in concert.promotions if p.code == code), None)
        if not promotion or promotion.used_count <= 0:
            return False
        promotion.used_count -= 1
        return self.save_entities()

    def change_concert_status(self, concert_id: int, new_status: EventStatus) -> bool:
        concert = self.get_by_id(concert_id)
        if not concert:
            return False

        old_status = concert.event_status
        concert.event_status = new_status
        concert.touch()
        logger.info("concert_status_changed", concert_id=concert_id,
                    old=old_status.name, new=new_status.name)
        return self.save_entities()

    def start_concert(self, concert_id: int) -> bool:
        """Only a SCHEDULED concert can start; it is then marked COMPLETED."""
        concert = self.get_by_id(concert_id)
        if not concert or concert.event_status != EventStatus.SCHEDULED:
            return False
        return self.change_concert_status(concert_id, EventStatus.COMPLETED)

    def end_concert(self, concert_id: int) -> bool:
        """
        Check that a concert can be closed. Only COMPLETED concerts can end;
        the report itself is produced by ConcertLifecycleService.
        """
        concert = self.get_by_id(concert_id)
        return bool(concert) and concert.event_status == EventStatus.COMPLETED

    def cancel_concert(self, concert_id: int) -> bool:
        """Cancel a concert unless it has already completed."""
        concert = self.get_by_id(concert_id)
        if not concert or concert.event_status == EventStatus.COMPLETED:
            return False
        return self.change_concert_status(concert_id, EventStatus.CANCELLED)

    def add_show_to_concert(self, concert_id: int, show_name: str, show_time: str) -> Optional[Show]:
        concert = self.get_by_id(concert_id)
        if not concert:
            return None

        show_id = max((s.show_id for s in concert.shows), default=0) + 1
        show = Show(show_id, show_name, show_time)
        concert.shows.append(show)
        concert.touch()
        self.save_entities()
        return show

    def remove_show_from_concert(self, concert_id: int, show_id: int) -> bool:
        concert = self.get_by_id(concert_id)
        if not concert:
            return False

        for index, show in enumerate(concert.shows):
            if show.show_id == show_id:
                del concert.shows[index]
                concert.touch()
                return self.save_entities()
        return False

    def record_ticket_sale(self, concert_id: int) -> bool:
        """Count one sold ticket. The concert becomes SOLDOUT on the last one."""
        concert = self.get_by_id(concert_id)
        if not concert or not concert.ticket_info:
            return False
        if concert.ticket_info.get_remaining() <= 0:
            return False

        concert.ticket_info.quantity_sold += 1
        if concert.ticket_info.get_remaining() == 0 and concert.event_status == EventStatus.SCHEDULED:
            concert.event_status = EventStatus.SOLDOUT
        concert.touch()
        return self.save_entities()

    def release_ticket_sale(self, concert_id: int) -> bool:
        """Undo one sale, reopening a SOLDOUT concert."""
        concert = self.get_by_id(concert_id)
        if not concert or not concert.ticket_info or concert.ticket_info.quantity_sold <= 0:
            return False

        concert.ticket_info.quantity_sold -= 1
        if concert.event_status == EventStatus.SOLDOUT:
            concert.event_status = EventStatus.SCHEDULED
        concert.touch()
        return self.save_entities()

    def delete_concert(self, concert_id: int) -> bool:
        return self.delete_entity(concert_id)

    # ------------------------------------------------------------------
    # Record format
    # ------------------------------------------------------------------

    def get_entity_id(self, entity: Concert) -> int:
        return entity.id

    def write_record(self, writer: BinaryWriter, entity: Concert):
        writer.write_int(entity.id)
        writer.write_string(entity.name)
        writer.write_string(entity.description)
        writer.write_string(entity.start_date_time)
        writer.write_string(entity.end_date_time)
        writer.write_enum(entity.event_status)
        writer.write_string(entity.created_at)
        writer.write_string(entity.updated_at)

        writer.write_bool(entity.ticket_info is not None)
        if entity.ticket_info is not None:
            info = entity.ticket_info
            writer.write_double(info.base_price)
            writer.write_int(info.quantity_available)
            writer.write_int(info.quantity_sold)
            writer.write_string(info.start_sale_date_time)
            writer.write_string(info.end_sale_date_time)

        writer.write_optional_int(entity.venue_id)
        writer.write_list(entity.performer_ids, BinaryWriter.write_int)
        writer.write_list(entity.promotions, _write_promotion)
        writer.write_list(entity.shows, _write_show)

    def read_record(self, reader: BinaryReader) -> Concert:
        concert = Concert(
            concert_id=reader.read_int(),
            name=reader.read_string(),
            description=reader.read_string(),
            start_date_time=reader.read_string(),
            end_date_time=reader.read_string(),
            event_status=reader.read_enum(EventStatus)
        )
        concert.created_at = reader.read_string()
        concert.updated_at = reader.read_string()

        if reader.read_bool():
            concert.ticket_info = TicketInfo(
                base_price=reader.read_double(),
                quantity_available=reader.read_int(),
                quantity_sold=reader.read_int(),
                start_sale_date_time=reader.read_string(),
                end_sale_date_time=reader.read_string()
            )

        concert.venue_id = reader.read_optional_int()
        concert.performer_ids = reader.read_list(BinaryReader.read_int)
        concert.promotions = reader.read_list(_read_promotion)
        concert.shows = reader.read_list(_read_show)
        return concert


def _write_promotion(writer: BinaryWriter, promo: Promotion):
    writer.write_string(promo.code)
    writer.write_string(promo.description)
    writer.write_enum(promo.discount_type)
    writer.write_double(promo.percentage)
    writer.write_string(promo.start_date_time)
    writer.write_string(promo.end_date_time)
    writer.write_bool(promo.is_active)
    writer.write_int(promo.usage_limit)
    writer.write_int(promo.used_count)


def _read_promotion(reader: BinaryReader) -> Promotion:
    return Promotion(
        code=reader.read_string(),
        description=reader.read_string(),
        discount_type=reader.read_enum(DiscountType),
        percentage=reader.read_double(),
        start_date_time=reader.read_string(),
        end_date_time=reader.read_string(),
        is_active=reader.read_bool(),
        usage_limit=reader.read_int(),
        used_count=reader.read_int()
    )


def _write_show(writer: BinaryWriter, show: Show):
    writer.write_int(show.show_id)
    writer.write_string(show.name)
    writer.write_string(show.show_time)


def _read_show(reader: BinaryReader) -> Show:
    return Show(
        show_id=reader.read_int(),
        name=reader.read_string(),
        show_time=reader.read_string()
    )
