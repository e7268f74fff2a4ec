import pytest

from concert_manager.models import Seat, TicketStatus
from concert_manager.modules.concerts import ConcertStore
from concert_manager.modules.venues import VenueStore, row_label


@pytest.fixture
def venues(tmp_path):
    return VenueStore(str(tmp_path / "venues.dat"))


@pytest.fixture
def hall(venues):
    return venues.create_venue("Hall", "1 Main St", "Springfield", "IL", "62701", "US", 500)


def test_first_venue_gets_id_one_and_hosts_concerts(venues, hall, tmp_path):
    concerts = ConcertStore(str(tmp_path / "concerts.dat"))
    concert = concerts.create_concert("Opening", "", "2030-05-01T19:00:00Z", "2030-05-01T22:00:00Z")
    concerts.set_venue_for_concert(concert.id, 1)

    assert hall.id == 1
    assert [c.id for c in concerts.find_concerts_by_venue(1)] == [concert.id]


def test_searches(venues, hall):
    venues.create_venue("Small Club", "2 Side St", "Shelbyville", "IL", "62565", "US", 80)

    assert [v.name for v in venues.find_venues_by_name("hall")] == ["Hall"]
    assert [v.name for v in venues.find_venues_by_city("SHELBYVILLE")] == ["Small Club"]
    assert [v.name for v in venues.find_venues_by_capacity(100)] == ["Hall"]


def test_update_keeps_fields_left_empty(venues, hall):
    assert venues.update_venue(hall.id, name="Great Hall", capacity=0)
    venue = venues.get_venue_by_id(hall.id)
    assert venue.name == "Great Hall"
    assert venue.capacity == 500
    assert venue.city == "Springfield"
    assert venues.update_venue(42, name="Nowhere") is False


def test_row_labels():
    assert row_label(0) == "A"
    assert row_label(25) == "Z"
    assert row_label(26) == "AA"
    assert row_label(27) == "AB"


def test_standard_seating_plan(venues, hall):
    assert venues.create_standard_seating_plan(hall.id, 3, 4)

    seats = venues.get_seats_for_venue(hall.id)
    assert len(seats) == 12
    assert [s.seat_id for s in seats] == list(range(1, 13))
    assert (seats[5].row_number, seats[5].col_number) == ("B", "2")
    assert [s.seat_id for s in venues.get_seats_in_row(hall.id, 2)] == [9, 10, 11, 12]
    assert venues.get_seat_at(hall.id, 1, 1).seat_id == 6
    assert venues.get_seat_at(hall.id, 3, 0) is None


def test_invalid_plan_dimensions(venues, hall):
    assert venues.create_standard_seating_plan(hall.id, 0, 4) is False
    assert venues.create_standard_seating_plan(99, 2, 2) is False


def test_seat_labels_map_onto_the_plan(hall):
    hall.rows, hall.columns = 30, 5
    assert hall.seat_position(Seat(1, "Regular", "A", "1")) == (0, 0)
    assert hall.seat_position(Seat(2, "Regular", "AB", "5")) == (27, 4)
    assert hall.seat_position(Seat(3, "Regular", "3", "2")) == (2, 1)
    assert hall.seat_position(Seat(4, "Regular", "A", "6")) is None
    assert hall.seat_position(Seat(5, "Regular", "row", "1")) is None


def test_adjacent_seats_skip_sold_ones(venues, hall):
    venues.create_standard_seating_plan(hall.id, 3, 4)
    assert len(venues.find_adjacent_seats(hall.id, 3)) == 6

    assert venues.reserve_seat_block(hall.id, [2])
    groups = venues.find_adjacent_seats(hall.id, 3)
    assert len(groups) == 4
    assert all(seat.row_number != "A" for group in groups for seat in group)


def test_seat_block_is_all_or_nothing(venues, hall):
    venues.create_standard_seating_plan(hall.id, 1, 4)
    assert venues.reserve_seat_block(hall.id, [1, 2])
    assert venues.reserve_seat_block(hall.id, [2, 3]) is False
    assert venues.get_seats_for_venue(hall.id)[2].status == TicketStatus.AVAILABLE
    assert venues.reserve_seat_block(hall.id, [3, 99]) is False


def test_seat_status_and_removal(venues, hall):
    seat = venues.add_seat(hall.id, "VIP", "A", "1")
    assert seat.seat_id == 1
    assert venues.update_seat_status(hall.id, seat.seat_id, TicketStatus.SOLD)
    assert venues.get_available_seats(hall.id) == []
    assert venues.remove_seat(hall.id, seat.seat_id)
    assert venues.remove_seat(hall.id, seat.seat_id) is False


def test_visualization_and_stats(venues, hall):
    assert "not initialized" in venues.get_seating_plan_visualization(hall.id)
    assert venues.get_seating_plan_visualization(77) == "Venue not found"

    venues.create_standard_seating_plan(hall.id, 2, 3)
    venues.update_seat_status(hall.id, 1, TicketStatus.SOLD)
    venues.update_seat_status(hall.id, 6, TicketStatus.CHECKED_IN)

    lines = venues.get_seating_plan_visualization(hall.id).splitlines()
    assert lines[0] == "Seating Plan for Hall:"
    assert lines[-2] == " A  [S] [A] [A]"
    assert lines[-1] == " B  [A] [A] [C]"

    stats = venues.get_venue_seating_stats(hall.id)
    assert "Total Seats: 6" in stats
    assert "Sold: 1 (16%)" in stats
    assert "Layout: 2 rows × 3 columns" in stats


def test_seating_survives_a_reload(venues, hall):
    venues.create_standard_seating_plan(hall.id, 2, 2, "VIP")
    venues.update_seat_status(hall.id, 4, TicketStatus.SOLD)

    venue = VenueStore(venues.file_path).get_venue_by_id(hall.id)
    assert (venue.rows, venue.columns) == (2, 2)
    assert [s.seat_type for s in venue.seats] == ["VIP"] * 4
    assert venue.seats[3].status == TicketStatus.SOLD
