"""Venue store with seating plan management."""

from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.models import Seat, TicketStatus, Venue
from concert_manager.store import EntityStore, contains_ignore_case

SEAT_SYMBOLS = {
    TicketStatus.AVAILABLE: " [A]",
    TicketStatus.SOLD: " [S]",
    TicketStatus.CHECKED_IN: " [C]",
}


def row_label(row: int) -> str:
    """Letter label for a 0-based row index: A..Z, then AA, AB, ..."""
    if row < 26:
        return chr(ord("A") + row)
    return chr(ord("A") + row // 26 - 1) + chr(ord("A") + row % 26)


def _percent(part: int, total: int) -> int:
    return part * 100 // total if total > 0 else 0


class VenueStore(EntityStore[Venue]):
    """Handles venues and their seats."""

    MAGIC = b"VENU"

    def create_venue(self, name: str, address: str, city: str, state: str,
                     zip_code: str, country: str, capacity: int,
                     description: str = "", contact_info: str = "",
                     seatmap: str = "") -> Optional[Venue]:
        """Create a venue with an empty seat list."""
        venue = Venue(
            venue_id=self.generate_new_id(),
            name=name,
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
            country=country,
            capacity=capacity,
            description=description,
            contact_info=contact_info,
            seatmap=seatmap
        )
        return venue if self.add(venue) else None

    def get_venue_by_id(self, venue_id: int) -> Optional[Venue]:
        return self.get_by_id(venue_id)

    def find_venues_by_name(self, name_query: str) -> List[Venue]:
        """Case-insensitive partial name match."""
        return self.find_by_predicate(lambda v: contains_ignore_case(v.name, name_query))

    def find_venues_by_city(self, city: str) -> List[Venue]:
        """Case-insensitive exact city match."""
        wanted = city.lower()
        return self.find_by_predicate(lambda v: v.city.lower() == wanted)

    def find_venues_by_capacity(self, min_capacity: int) -> List[Venue]:
        return self.find_by_predicate(lambda v: v.capacity >= min_capacity)

    def update_venue(self, venue_id: int, name: str = "", address: str = "",
                     city: str = "", state: str = "", zip_code: str = "",
                     country: str = "", capacity: int = 0, description: str = "",
                     contact_info: str = "", seatmap: str = "") -> bool:
        """
        Update venue fields. Empty strings and non-positive capacity leave
        the current value unchanged.
        """
        venue = self.get_by_id(venue_id)
        if not venue:
            return False

        if name:
            venue.name = name
        if address:
            venue.address = address
        if city:
            venue.city = city
        if state:
            venue.state = state
        if zip_code:
            venue.zip_code = zip_code
        if country:
            venue.country = country
        if capacity > 0:
            venue.capacity = capacity
        if description:
            venue.description = description
        if contact_info:
            venue.contact_info = contact_info
        if seatmap:
            venue.seatmap = seatmap

        return self.save_entities()

    def delete_venue(self, venue_id: int) -> bool:
        return self.delete_entity(venue_id)

    # ------------------------------------------------------------------
    # Seating
    # ------------------------------------------------------------------

    def initialize_venue_seating_plan(self, venue_id: int, num_rows: int, num_cols: int) -> bool:
        venue = self.get_by_id(venue_id)
        if not venue or num_rows < 0 or num_cols < 0:
            return False
        venue.rows = num_rows
        venue.columns = num_cols
        return self.save_entities()

    def add_seat(self, venue_id: int, seat_type: str, row: str, column: str) -> Optional[Seat]:
        """Add a seat. Its id follows the id of the last seat in the list."""
        venue = self.get_by_id(venue_id)
        if not venue:
            return None

        seat_id = venue.seats[-1].seat_id + 1 if venue.seats else 1
        seat = Seat(seat_id, seat_type, row, column)
        venue.seats.append(seat)
        self.save_entities()
        return seat

    def remove_seat(self, venue_id: int, seat_id: int) -> bool:
        venue = self.get_by_id(venue_id)
        if not venue:
            return False

        for index, seat in enumerate(venue.seats):
            if seat.seat_id == seat_id:
                del venue.seats[index]
                return self.save_entities()
        return False

    def update_seat_status(self, venue_id: int, seat_id: int, status: TicketStatus) -> bool:
        venue = self.get_by_id(venue_id)
        if not venue:
            return False

        for seat in venue.seats:
            if seat.seat_id == seat_id:
                seat.status = status
                return self.save_entities()
        return False

    def get_seats_for_venue(self, venue_id: int) -> List[Seat]:
        venue = self.get_by_id(venue_id)
        return list(venue.seats) if venue else []

    def get_available_seats(self, venue_id: int) -> List[Seat]:
        return [s for s in self.get_seats_for_venue(venue_id) if s.status == TicketStatus.AVAILABLE]

    def get_seats_in_row(self, venue_id: int, row_index: int) -> List[Seat]:
        """Seats of one plan row, ordered by column."""
        venue = self.get_by_id(venue_id)
        if not venue or row_index < 0 or row_index >= venue.rows:
            return []

        row_seats = []
        for col in range(venue.columns):
            seat = venue.get_seat_at(row_index, col)
            if seat:
                row_seats.append(seat)
        return row_seats

    def get_seat_at(self, venue_id: int, row: int, col: int) -> Optional[Seat]:
        venue = self.get_by_id(venue_id)
        if not venue:
            return None
        return venue.get_seat_at(row, col)

    def find_adjacent_seats(self, venue_id: int, num_seats: int) -> List[List[Seat]]:
        """
        Find every run of num_seats consecutive available seats within a row.
        Runs may overlap.
        """
        venue = self.get_by_id(venue_id)
        if not venue or num_seats <= 0:
            return []

        groups = []
        for row in range(venue.rows):
            for col in range(venue.columns - num_seats + 1):
                group = []
                for offset in range(num_seats):
                    seat = venue.get_seat_at(row, col + offset)
                    if not seat or seat.status != TicketStatus.AVAILABLE:
                        break
                    group.append(seat)
                if len(group) == num_seats:
                    groups.append(group)
        return groups

    def get_seating_plan_visualization(self, venue_id: int) -> str:
        """ASCII grid of the seating plan."""
        venue = self.get_by_id(venue_id)
        if not venue:
            return "Venue not found"

        if venue.rows == 0 or venue.columns == 0:
            return "Seating plan not initialized. Use initialize_venue_seating_plan() first."

        lines = [
            f"Seating Plan for {venue.name}:",
            "Legend: [A]=Available, [S]=Sold, [C]=Checked In, [X]=Unavailable",
            "",
            "   " + "".join(f"{col + 1:>3}" for col in range(venue.columns)),
        ]

        for row in range(venue.rows):
            cells = []
            for col in range(venue.columns):
                seat = venue.get_seat_at(row, col)
                if not seat:
                    cells.append(" --")
                else:
                    cells.append(SEAT_SYMBOLS.get(seat.status, " [X]"))
            lines.append(f"{row_label(row):>2} " + "".join(cells))

        return "\n".join(lines) + "\n"

    def create_standard_seating_plan(self, venue_id: int, num_rows: int, seats_per_row: int,
                                     default_seat_type: str = "Regular") -> bool:
        """Lay out a rectangular plan with one seat per position."""
        venue = self.get_by_id(venue_id)
        if not venue or num_rows <= 0 or seats_per_row <= 0:
            return False

        venue.rows = num_rows
        venue.columns = seats_per_row

        next_id = venue.seats[-1].seat_id + 1 if venue.seats else 1
        for row in range(num_rows):
            for col in range(seats_per_row):
                venue.seats.append(Seat(next_id, default_seat_type, row_label(row), str(col + 1)))
                next_id += 1

        return self.save_entities()

    def reserve_seat_block(self, venue_id: int, seat_ids: List[int]) -> bool:
        """Mark a group of seats SOLD, only if every one of them is available."""
        venue = self.get_by_id(venue_id)
        if not venue or not seat_ids:
            return False

        by_id = {seat.seat_id: seat for seat in venue.seats}
        block = [by_id.get(seat_id) for seat_id in seat_ids]
        if any(seat is None or seat.status != TicketStatus.AVAILABLE for seat in block):
            return False

        for seat in block:
            seat.status = TicketStatus.SOLD
        return self.save_entities()

    def get_venue_seating_stats(self, venue_id: int) -> str:
        venue = self.get_by_id(venue_id)
        if not venue:
            return "Venue not found"

        total = len(venue.seats)
        available = sum(1 for s in venue.seats if s.status == TicketStatus.AVAILABLE)
        sold = sum(1 for s in venue.seats if s.status == TicketStatus.SOLD)
        checked_in = sum(1 for s in venue.seats if s.status == TicketStatus.CHECKED_IN)

        stats = (
            f"Venue: {venue.name}\n"
            f"Total Seats: {total}\n"
            f"Available: {available} ({_percent(available, total)}%)\n"
            f"Sold: {sold} ({_percent(sold, total)}%)\n"
            f"Checked In: {checked_in} ({_percent(checked_in, total)}%)\n"
        )
        if venue.rows > 0 and venue.columns > 0:
            stats += f"Layout: {venue.rows} rows × {venue.columns} columns\n"
        return stats

    # ------------------------------------------------------------------
    # Record format
    # ------------------------------------------------------------------

    def get_entity_id(self, entity: Venue) -> int:
        return entity.id

    def write_record(self, writer: BinaryWriter, entity: Venue):
        writer.write_int(entity.id)
        writer.write_string(entity.name)
        writer.write_string(entity.address)
        writer.write_string(entity.city)
        writer.write_string(entity.state)
        writer.write_string(entity.zip_code)
        writer.write_string(entity.country)
        writer.write_int(entity.capacity)
        writer.write_string(entity.description)
        writer.write_string(entity.contact_info)
        writer.write_string(entity.seatmap)
        writer.write_int(entity.rows)
        writer.write_int(entity.columns)
        writer.write_list(entity.seats, _write_seat)

    def read_record(self, reader: BinaryReader) -> Venue:
        venue = Venue(
            venue_id=reader.read_int(),
            name=reader.read_string(),
            address=reader.read_string(),
            city=reader.read_string(),
            state=reader.read_string(),
            zip_code=reader.read_string(),
            country=reader.read_string(),
            capacity=reader.read_int(),
            description=reader.read_string(),
            contact_info=reader.read_string(),
            seatmap=reader.read_string()
        )
        venue.rows = reader.read_int()
        venue.columns = reader.read_int()
        venue.seats = reader.read_list(_read_seat)
        return venue


def _write_seat(writer: BinaryWriter, seat: Seat):
    writer.write_int(seat.seat_id)
    writer.write_string(seat.seat_type)
    writer.write_string(seat.row_number)
    writer.write_string(seat.col_number)
    writer.write_enum(seat.status)


def _read_seat(reader: BinaryReader) -> Seat:
    return Seat(
        seat_id=reader.read_int(),
        seat_type=reader.read_string(),
        row_number=reader.read_string(),
        col_number=reader.read_string(),
        status=reader.read_enum(TicketStatus)
    )
