"""Ticket store: generation, sale, check-in and QR validation."""

import random
import time
from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import Ticket, TicketStatus, now_iso
from concert_manager.modules.concerts import ConcertStore
from concert_manager.store import EntityStore

logger = get_logger(__name__)


def generate_qr_code(ticket_id: int) -> str:
    """QR payload: TICKET-<id>-<epoch ms>-<5 random digits>."""
    epoch_ms = int(time.time() * 1000)
    return f"TICKET-{ticket_id}-{epoch_ms}-{random.randint(10000, 99999)}"


class TicketStore(EntityStore[Ticket]):
    """Handles individual tickets."""

    MAGIC = b"TCKT"

    def create_ticket(self, concert_id: Optional[int] = None,
                      attendee_id: Optional[int] = None,
                      payment_id: Optional[int] = None,
                      status: TicketStatus = TicketStatus.AVAILABLE) -> Optional[Ticket]:
        ticket_id = self.generate_new_id()
        ticket = Ticket(
            ticket_id=ticket_id,
            qr_code=generate_qr_code(ticket_id),
            status=status,
            concert_id=concert_id,
            attendee_id=attendee_id,
            payment_id=payment_id
        )
        return ticket if self.add(ticket) else None

    def generate_tickets_for_concert(self, concert_id: int, quantity: int) -> List[Ticket]:
        """
        Create `quantity` AVAILABLE tickets for a concert. Stops at the first
        ticket that cannot be saved; the returned list holds the ones created.
        """
        tickets = []
        for _ in range(max(quantity, 0)):
            ticket = self.create_ticket(concert_id)
            if ticket is None:
                break
            tickets.append(ticket)
        logger.info("tickets_generated", concert_id=concert_id, quantity=len(tickets))
        return tickets

    def get_ticket_by_id(self, ticket_id: int) -> Optional[Ticket]:
        return self.get_by_id(ticket_id)

    def find_tickets_by_attendee(self, attendee_id: int) -> List[Ticket]:
        return self.find_by_predicate(lambda t: t.attendee_id == attendee_id)

    def find_tickets_by_concert(self, concert_id: int) -> List[Ticket]:
        return self.find_by_predicate(lambda t: t.concert_id == concert_id)

    def find_tickets_by_status(self, status: TicketStatus) -> List[Ticket]:
        return self.find_by_predicate(lambda t: t.status == status)

    def assign_ticket_to_attendee(self, ticket_id: int, attendee_id: int,
                                  payment_id: Optional[int] = None) -> bool:
        """Sell an AVAILABLE ticket to an attendee."""
        ticket = self.get_by_id(ticket_id)
        if not ticket or ticket.status != TicketStatus.AVAILABLE:
            return False

        ticket.attendee_id = attendee_id
        ticket.payment_id = payment_id
        ticket.status = TicketStatus.SOLD
        ticket.updated_at = now_iso()
        return self.save_entities()

    def release_ticket(self, ticket_id: int) -> bool:
        """Return a SOLD ticket to AVAILABLE, detached from attendee and payment."""
        ticket = self.get_by_id(ticket_id)
        if not ticket or ticket.status != TicketStatus.SOLD:
            return False

        ticket.attendee_id = None
        ticket.payment_id = None
        ticket.status = TicketStatus.AVAILABLE
        ticket.updated_at = now_iso()
        return self.save_entities()

    def change_ticket_status(self, ticket_id: int, new_status: TicketStatus) -> bool:
        ticket = self.get_by_id(ticket_id)
        if not ticket:
            return False
        ticket.status = new_status
        ticket.updated_at = now_iso()
        return self.save_entities()

    def check_in_ticket(self, ticket_id: int) -> bool:
        """Only SOLD tickets can be checked in."""
        ticket = self.get_by_id(ticket_id)
        if not ticket or ticket.status != TicketStatus.SOLD:
            return False
        ticket.status = TicketStatus.CHECKED_IN
        ticket.updated_at = now_iso()
        return self.save_entities()

    def validate_ticket_by_qr_code(self, qr_code: str) -> Optional[Ticket]:
        """Return the SOLD ticket carrying this QR code, if any."""
        return self.find_first(
            lambda t: t.qr_code == qr_code and t.status == TicketStatus.SOLD
        )

    def cancel_ticket(self, ticket_id: int) -> bool:
        """Cancel a ticket unless it has already been used."""
        ticket = self.get_by_id(ticket_id)
        if not ticket or ticket.status == TicketStatus.CHECKED_IN:
            return False
        ticket.status = TicketStatus.CANCELLED
        ticket.updated_at = now_iso()
        return self.save_entities()

    def update_ticket_price(self, ticket_id: int, new_price: float,
                            concerts: ConcertStore) -> bool:
        """
        Reprice an AVAILABLE ticket. Tickets have no price of their own, so
        the base price of the owning concert changes.
        """
        ticket = self.get_by_id(ticket_id)
        if not ticket or ticket.status != TicketStatus.AVAILABLE:
            return False

        if ticket.concert_id is not None:
            concert = concerts.get_by_id(ticket.concert_id)
            if concert and concert.ticket_info:
                concert.ticket_info.base_price = new_price
                concert.touch()
                concerts.save_entities()

        ticket.updated_at = now_iso()
        return self.save_entities()

    def delete_ticket(self, ticket_id: int) -> bool:
        return self.delete_entity(ticket_id)

    def get_entity_id(self, entity: Ticket) -> int:
        return entity.ticket_id

    def write_record(self, writer: BinaryWriter, entity: Ticket):
        writer.write_int(entity.ticket_id)
        writer.write_enum(entity.status)
        writer.write_string(entity.qr_code)
        writer.write_string(entity.created_at)
        writer.write_string(entity.updated_at)
        writer.write_optional_int(entity.concert_id)
        writer.write_optional_int(entity.attendee_id)
        writer.write_optional_int(entity.payment_id)

    def read_record(self, reader: BinaryReader) -> Ticket:
        ticket_id = reader.read_int()
        status = reader.read_enum(TicketStatus)
        ticket = Ticket(ticket_id=ticket_id, qr_code=reader.read_string(), status=status)
        ticket.created_at = reader.read_string()
        ticket.updated_at = reader.read_string()
        ticket.concert_id = reader.read_optional_int()
        ticket.attendee_id = reader.read_optional_int()
        ticket.payment_id = reader.read_optional_int()
        return ticket
