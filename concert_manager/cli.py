"""Text-based user interface for the concert management system."""

import os
import sys
from getpass import getpass
from typing import List, Optional, Type

from concert_manager.config import get_settings
from concert_manager.context import AppContext
from concert_manager.log import get_logger, setup_logging
from concert_manager.models import (
    DiscountType,
    EventStatus,
    FeedbackCategory,
    Promotion,
    TaskPriority,
    TaskStatus,
    TicketStatus,
    UserType,
)
from concert_manager.services import (
    AccountService,
    BoxOfficeService,
    ConcertLifecycleService,
    CurrentUser,
)
from concert_manager.validators import Validators

logger = get_logger(__name__)

PAYMENT_METHODS = ("Credit Card", "PayPal", "Bank Transfer")
SAVE_FAILED = "Could not save the record. Check that the data directory is writable."


class CLIInterface:
    """Menus for the management portal and the user portal."""

    def __init__(self, context: AppContext):
        self.context = context
        self.accounts = AccountService(context)
        self.box_office = BoxOfficeService(context)
        self.lifecycle = ConcertLifecycleService(context)
        self.current_user: Optional[CurrentUser] = None
        self.portal = "user"
        self.running = True

    # ------------------------------------------------------------------
    # Screen helpers
    # ------------------------------------------------------------------

    def clear_screen(self):
        """Clear the terminal screen."""
        if sys.stdout.isatty():
            os.system('cls' if os.name == 'nt' else 'clear')

    def print_header(self, title: str):
        print("\n" + "=" * 60)
        print(f" {title.center(58)} ")
        print("=" * 60 + "\n")

    def print_line(self):
        print("-" * 60)

    def pause(self):
        input("\nPress Enter to continue...")

    def success(self, message: str):
        print(f"\n✓ {message}")

    def error(self, message: str):
        print(f"\n✗ {message}")

    def prompt_int(self, prompt: str, allow_empty: bool = False) -> Optional[int]:
        """Ask until a whole number is entered. Empty input returns None if allowed."""
        while True:
            raw = input(prompt).strip()
            if not raw and allow_empty:
                return None
            try:
                return int(raw)
            except ValueError:
                print("Please enter a whole number.")

    def prompt_float(self, prompt: str, allow_empty: bool = False) -> Optional[float]:
        while True:
            raw = input(prompt).strip()
            if not raw and allow_empty:
                return None
            try:
                return float(raw)
            except ValueError:
                print("Please enter a number.")

    def prompt_validated(self, prompt: str, validator, allow_empty: bool = False) -> str:
        """Ask until the validator accepts the value."""
        while True:
            value = input(prompt).strip()
            if not value and allow_empty:
                return ""
            is_valid, message = validator(value)
            if is_valid:
                return value
            print(message)

    def prompt_datetime(self, label: str, allow_empty: bool = False) -> str:
        """Ask for a date and a time and return the record timestamp."""
        date = self.prompt_validated(f"{label} date (YYYY-MM-DD): ", Validators.validate_date,
                                     allow_empty)
        if not date:
            return ""
        time = self.prompt_validated(f"{label} time (HH:MM): ", Validators.validate_time)
        return Validators.to_iso(date, time)

    def prompt_enum(self, label: str, enum_type: Type, default=None):
        """Pick an enum member by number. Empty input returns the default."""
        members = list(enum_type)
        for index, member in enumerate(members, 1):
            print(f"  {index}. {member.name.replace('_', ' ').title()}")
        while True:
            choice = self.prompt_int(f"{label} (1-{len(members)}): ", allow_empty=default is not None)
            if choice is None:
                return default
            if 1 <= choice <= len(members):
                return members[choice - 1]
            print("Invalid choice.")

    def confirm(self, prompt: str) -> bool:
        return input(f"{prompt} (yes/no): ").strip().lower() == "yes"

    def run_menu(self, title: str, options: List[tuple]):
        """
        Show a numbered menu until the user picks 0.
        options: list of (label, handler) pairs.
        """
        while self.running and self.current_user:
            self.clear_screen()
            self.print_header(title)
            for index, (label, _) in enumerate(options, 1):
                print(f"{index}. {label}")
            print("0. Back")
            self.print_line()

            choice = input(f"Enter your choice (0-{len(options)}): ").strip()
            if choice == "0":
                return
            if choice.isdigit() and 1 <= int(choice) <= len(options):
                options[int(choice) - 1][1]()
                self.pause()
            else:
                print("Invalid choice. Please try again.")
                self.pause()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self):
        """Main application loop."""
        self.print_header(get_settings().APP_NAME.upper())
        print("Welcome! Please login or register to continue.\n")

        while self.running:
            if not self.current_user:
                self.main_menu()
            elif self.portal == "management":
                self.management_menu()
            else:
                self.user_menu()

    def main_menu(self):
        """Display main menu for non-authenticated users."""
        self.print_line()
        print("MAIN MENU")
        self.print_line()
        print("1. Login")
        print("2. Register")
        print("3. Exit")
        self.print_line()

        choice = input("Enter your choice (1-3): ").strip()

        if choice == "1":
            self.login_screen()
        elif choice == "2":
            self.register_screen()
        elif choice == "3":
            print("\nThank you for using the Concert Management System!")
            self.running = False
        else:
            print("Invalid choice. Please try again.")
            self.pause()

    def login_screen(self):
        self.clear_screen()
        self.print_header("LOGIN")

        username = input("Username: ").strip()
        password = getpass("Password: ")

        success, message, user = self.accounts.login(username, password)
        if success:
            self.current_user = user
            self.portal = "management" if user.is_staff else "user"
            self.success(message)
        else:
            self.error(message)
        self.pause()

    def register_screen(self):
        self.clear_screen()
        self.print_header("USER REGISTRATION")
        print("Please enter your information:\n")

        name = input("Full Name: ").strip()
        email = input("Email: ").strip()
        phone = input("Phone Number: ").strip()
        username = input("Username: ").strip()
        password = getpass("Password (8+ chars, upper, lower, digit, symbol): ")
        password_confirm = getpass("Confirm Password: ")

        if password != password_confirm:
            self.error("Passwords do not match")
        else:
            success, message, _ = self.accounts.register(name, email, phone, username, password)
            if success:
                self.success(message)
                print("You can now login with your credentials.")
            else:
                self.error(message)
        self.pause()

    def logout(self):
        print(f"\nGoodbye, {self.current_user.display_name}!")
        self.current_user = None
        self.portal = "user"

    # ------------------------------------------------------------------
    # Management portal
    # ------------------------------------------------------------------

    def management_menu(self):
        self.clear_screen()
        self.print_header("MANAGEMENT PORTAL")
        print(f"Logged in as {self.current_user.username} "
              f"({self.current_user.user_type.name.title()})\n")

        options = [
            ("Concert Management", self.concert_menu),
            ("Venue Configuration", self.venue_menu),
            ("Performer Management", self.performer_menu),
            ("Crew Management", self.crew_menu),
            ("Ticket Operations", self.ticket_menu),
            ("Payment Monitoring", self.payment_menu),
            ("Analytics & Reports", self.analytics_menu),
            ("Communication Tools", self.communication_menu),
            ("Feedback Review", self.feedback_menu),
        ]
        if self.current_user.is_admin:
            options.append(("User Administration", self.user_admin_menu))
        if self.current_user.attendee:
            options.append(("Switch to User Portal", self.switch_to_user_portal))

        for index, (label, _) in enumerate(options, 1):
            print(f"{index}. {label}")
        print("0. Logout")
        self.print_line()

        choice = input(f"Enter your choice (0-{len(options)}): ").strip()
        if choice == "0":
            self.logout()
            self.pause()
        elif choice.isdigit() and 1 <= int(choice) <= len(options):
            options[int(choice) - 1][1]()
        else:
            print("Invalid choice.")
            self.pause()

    def switch_to_user_portal(self):
        self.portal = "user"

    # Concerts ---------------------------------------------------------

    def concert_menu(self):
        self.run_menu("CONCERT MANAGEMENT", [
            ("List Concerts", self.list_concerts),
            ("Create Concert", self.create_concert_screen),
            ("Edit Concert", self.edit_concert_screen),
            ("Search Concerts", self.search_concerts_screen),
            ("Assign Venue", self.assign_venue_screen),
            ("Add Performer", self.add_performer_to_concert_screen),
            ("Set Up Ticket Sales", self.setup_tickets_screen),
            ("Add Promotion", self.add_promotion_screen),
            ("Add Show", self.add_show_screen),
            ("Start Concert", self.start_concert_screen),
            ("End Concert", self.end_concert_screen),
            ("Cancel Concert", self.cancel_concert_screen),
            ("Delete Concert", self.delete_concert_screen),
        ])

    def print_concert(self, concert):
        print(f"[{concert.id}] {concert.name} - {concert.event_status.name}")
        print(f"    {concert.start_date_time} to {concert.end_date_time}")
        if concert.venue_id is not None:
            venue = self.context.venues.get_venue_by_id(concert.venue_id)
            print(f"    Venue: {venue.name if venue else 'unknown'}")
        if concert.performer_ids:
            names = []
            for performer_id in concert.performer_ids:
                performer = self.context.performers.get_performer_by_id(performer_id)
                if performer:
                    names.append(performer.name)
            print(f"    Performers: {', '.join(names)}")
        if concert.ticket_info:
            info = concert.ticket_info
            print(f"    Tickets: ${info.base_price:.2f} "
                  f"({info.get_remaining()} of {info.quantity_available} left)")
        for show in concert.shows:
            print(f"    Show #{show.show_id}: {show.name} at {show.show_time}")

    def list_concerts(self):
        concerts = self.context.concerts.get_all()
        if not concerts:
            print("No concerts yet.")
        for concert in concerts:
            self.print_concert(concert)

    def create_concert_screen(self):
        name = input("Concert Name: ").strip()
        if not name:
            self.error("Concert name cannot be empty.")
            return
        description = input("Description: ").strip()
        start = self.prompt_datetime("Start")
        end = self.prompt_datetime("End")
        if end < start:
            self.error("The concert cannot end before it starts.")
            return
        concert = self.context.concerts.create_concert(name, description, start, end)
        if not concert:
            self.error(SAVE_FAILED)
            return
        self.success(f"Concert created with ID {concert.id}")

    def edit_concert_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        print("Leave a field empty to keep its current value.")
        name = input("New Name: ").strip()
        description = input("New Description: ").strip()
        start = self.prompt_datetime("New Start", allow_empty=True)
        end = self.prompt_datetime("New End", allow_empty=True)
        if self.context.concerts.edit_concert(concert_id, name, description, start, end):
            self.success("Concert updated.")
        else:
            self.error("Concert not found.")

    def search_concerts_screen(self):
        print("1. By name\n2. By status\n3. By date range\n4. By performer type")
        choice = input("Search by (1-4): ").strip()
        concerts = self.context.concerts
        if choice == "1":
            results = concerts.find_concerts_by_name(input("Name contains: ").strip())
        elif choice == "2":
            results = concerts.find_concerts_by_status(self.prompt_enum("Status", EventStatus))
        elif choice == "3":
            start = self.prompt_datetime("From")
            end = self.prompt_datetime("To")
            results = concerts.find_concerts_by_date_range(start, end)
        elif choice == "4":
            results = concerts.find_concerts_by_performer_type(
                input("Performer type: ").strip(), self.context.performers)
        else:
            print("Invalid choice.")
            return
        if not results:
            print("No matching concerts.")
        for concert in results:
            self.print_concert(concert)

    def assign_venue_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        venue_id = self.prompt_int("Venue ID: ")
        if not self.context.venues.get_venue_by_id(venue_id):
            self.error("Venue not found.")
        elif self.context.concerts.set_venue_for_concert(concert_id, venue_id):
            self.success("Venue assigned.")
        else:
            self.error("Concert not found.")

    def add_performer_to_concert_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        performer_id = self.prompt_int("Performer ID: ")
        if not self.context.performers.get_performer_by_id(performer_id):
            self.error("Performer not found.")
        elif self.context.concerts.add_performer_to_concert(concert_id, performer_id):
            self.success("Performer added.")
        else:
            self.error("Concert not found.")

    def setup_tickets_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        concert = self.context.concerts.get_concert_by_id(concert_id)
        if not concert:
            self.error("Concert not found.")
            return
        price = self.prompt_float("Base Price ($): ")
        quantity = self.prompt_int("Quantity: ")
        if price < 0 or quantity < 0:
            self.error("Price and quantity must be non-negative.")
            return
        sale_start = self.prompt_datetime("Sale start", allow_empty=True)
        sale_end = self.prompt_datetime("Sale end", allow_empty=True)
        self.context.concerts.setup_ticket_info(concert_id, price, quantity, sale_start, sale_end)
        tickets = self.context.tickets.generate_tickets_for_concert(concert_id, quantity)
        self.success(f"Ticket sales configured. {len(tickets)} tickets generated.")

    def add_promotion_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        code = input("Promotion Code: ").strip().upper()
        if not code:
            self.error("Code cannot be empty.")
            return
        description = input("Description: ").strip()
        discount_type = self.prompt_enum("Discount type", DiscountType)
        value = self.prompt_float("Discount value (percent or amount): ")
        start = self.prompt_datetime("Valid from", allow_empty=True)
        end = self.prompt_datetime("Valid until", allow_empty=True)
        limit = self.prompt_int("Usage limit (0 = unlimited): ")
        promotion = Promotion(code, description, discount_type, value, start, end,
                              usage_limit=max(limit, 0))
        if self.context.concerts.add_promotion_to_concert(concert_id, promotion):
            self.success(f"Promotion {code} added.")
        else:
            self.error("Concert not found or code already exists.")

    def add_show_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        name = input("Show Name: ").strip()
        show_time = self.prompt_datetime("Show")
        show = self.context.concerts.add_show_to_concert(concert_id, name, show_time)
        if show:
            self.success(f"Show #{show.show_id} added.")
        else:
            self.error("Concert not found.")

    def start_concert_screen(self):
        if self.context.concerts.start_concert(self.prompt_int("Concert ID: ")):
            self.success("Concert started.")
        else:
            self.error("Only scheduled concerts can be started.")

    def end_concert_screen(self):
        success, message, _ = self.lifecycle.end_concert(self.prompt_int("Concert ID: "))
        (self.success if success else self.error)(message)

    def cancel_concert_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        if not self.confirm("Cancel this concert and refund all tickets?"):
            print("Aborted.")
            return
        success, message = self.lifecycle.cancel_concert(concert_id)
        (self.success if success else self.error)(message)

    def delete_concert_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        if self.confirm("Delete this concert permanently?"):
            if self.context.concerts.delete_concert(concert_id):
                self.success("Concert deleted.")
            else:
                self.error("Concert not found.")

    # Venues -----------------------------------------------------------

    def venue_menu(self):
        self.run_menu("VENUE CONFIGURATION", [
            ("List Venues", self.list_venues),
            ("Create Venue", self.create_venue_screen),
            ("Update Venue", self.update_venue_screen),
            ("Create Seating Plan", self.seating_plan_screen),
            ("View Seating Plan", self.view_seating_screen),
            ("Seating Statistics", self.seating_stats_screen),
            ("Find Adjacent Seats", self.adjacent_seats_screen),
            ("Delete Venue", self.delete_venue_screen),
        ])

    def list_venues(self):
        venues = self.context.venues.get_all()
        if not venues:
            print("No venues yet.")
        for venue in venues:
            print(f"[{venue.id}] {venue.name}, {venue.city} - capacity {venue.capacity}")

    def create_venue_screen(self):
        name = input("Venue Name: ").strip()
        address = input("Address: ").strip()
        city = input("City: ").strip()
        state = input("State: ").strip()
        country = input("Country Code (US, CA, UK, ...): ").strip().upper() or "US"
        zip_code = self.prompt_validated(
            "Postal Code: ", lambda value: Validators.validate_postal_code(value, country))
        capacity = self.prompt_int("Capacity: ")
        contact = input("Contact Info: ").strip()
        if not name or capacity <= 0:
            self.error("A venue needs a name and a positive capacity.")
            return
        venue = self.context.venues.create_venue(name, address, city, state, zip_code,
                                                 country, capacity, contact_info=contact)
        if not venue:
            self.error(SAVE_FAILED)
            return
        self.success(f"Venue created with ID {venue.id}")

    def update_venue_screen(self):
        venue_id = self.prompt_int("Venue ID: ")
        print("Leave a field empty to keep its current value.")
        name = input("New Name: ").strip()
        city = input("New City: ").strip()
        capacity = self.prompt_int("New Capacity: ", allow_empty=True) or 0
        if self.context.venues.update_venue(venue_id, name=name, city=city, capacity=capacity):
            self.success("Venue updated.")
        else:
            self.error("Venue not found.")

    def seating_plan_screen(self):
        venue_id = self.prompt_int("Venue ID: ")
        rows = self.prompt_int("Rows: ")
        per_row = self.prompt_int("Seats per row: ")
        seat_type = input("Seat type [Regular]: ").strip() or "Regular"
        if self.context.venues.create_standard_seating_plan(venue_id, rows, per_row, seat_type):
            self.success(f"Seating plan created with {rows * per_row} seats.")
        else:
            self.error("Venue not found or invalid dimensions.")

    def view_seating_screen(self):
        print(self.context.venues.get_seating_plan_visualization(self.prompt_int("Venue ID: ")))

    def seating_stats_screen(self):
        print(self.context.venues.get_venue_seating_stats(self.prompt_int("Venue ID: ")))

    def adjacent_seats_screen(self):
        venue_id = self.prompt_int("Venue ID: ")
        count = self.prompt_int("Number of seats together: ")
        groups = self.context.venues.find_adjacent_seats(venue_id, count)
        if not groups:
            print("No adjacent seats available.")
        for group in groups[:10]:
            print("  " + ", ".join(f"{s.row_number}{s.col_number}" for s in group))

    def delete_venue_screen(self):
        venue_id = self.prompt_int("Venue ID: ")
        if self.confirm("Delete this venue?"):
            if self.context.venues.delete_venue(venue_id):
                self.success("Venue deleted.")
            else:
                self.error("Venue not found.")

    # Performers -------------------------------------------------------

    def performer_menu(self):
        self.run_menu("PERFORMER MANAGEMENT", [
            ("List Performers", self.list_performers),
            ("Add Performer", self.create_performer_screen),
            ("Search Performers", self.search_performers_screen),
            ("Update Performer", self.update_performer_screen),
            ("Delete Performer", self.delete_performer_screen),
        ])

    def list_performers(self, performers=None):
        performers = self.context.performers.get_all() if performers is None else performers
        if not performers:
            print("No performers found.")
        for performer in performers:
            print(f"[{performer.performer_id}] {performer.name} ({performer.type})")
            if performer.bio:
                print(f"    {performer.bio}")

    def create_performer_screen(self):
        name = input("Name: ").strip()
        performer_type = input("Type (Solo Artist, Band, DJ): ").strip()
        contact = input("Contact Info: ").strip()
        bio = input("Bio: ").strip()
        image_url = self.prompt_validated("Image URL (optional): ", Validators.validate_url,
                                          allow_empty=True)
        if not name:
            self.error("Name cannot be empty.")
            return
        performer = self.context.performers.create_performer(name, performer_type, contact,
                                                             bio, image_url)
        if not performer:
            self.error(SAVE_FAILED)
            return
        self.success(f"Performer added with ID {performer.performer_id}")

    def search_performers_screen(self):
        query = input("Name or type contains: ").strip()
        store = self.context.performers
        found = {p.performer_id: p for p in store.find_performers_by_name(query)}
        for performer in store.find_performers_by_type(query):
            found.setdefault(performer.performer_id, performer)
        self.list_performers(list(found.values()))

    def update_performer_screen(self):
        performer_id = self.prompt_int("Performer ID: ")
        print("Leave a field empty to keep its current value.")
        name = input("New Name: ").strip()
        performer_type = input("New Type: ").strip()
        bio = input("New Bio: ").strip()
        if self.context.performers.update_performer(performer_id, name, performer_type, bio=bio):
            self.success("Performer updated.")
        else:
            self.error("Performer not found.")

    def delete_performer_screen(self):
        if self.context.performers.delete_performer(self.prompt_int("Performer ID: ")):
            self.success("Performer deleted.")
        else:
            self.error("Performer not found.")

    # Crew -------------------------------------------------------------

    def crew_menu(self):
        self.run_menu("CREW MANAGEMENT", [
            ("List Crew", self.list_crew),
            ("Add Crew Member", self.create_crew_screen),
            ("Assign Task", self.assign_task_screen),
            ("Update Task Status", self.update_task_screen),
            ("View Tasks", self.view_tasks_screen),
            ("Check In", self.crew_check_in_screen),
            ("Check Out", self.crew_check_out_screen),
            ("Remove Crew Member", self.delete_crew_screen),
        ])

    def list_crew(self):
        crew = self.context.crew.get_all()
        if not crew:
            print("No crew members yet.")
        for member in crew:
            status = "on shift" if member.check_in_time and not member.check_out_time else "off"
            print(f"[{member.id}] {member.name} <{member.email}> - {len(member.tasks)} task(s), {status}")

    def create_crew_screen(self):
        name = self.prompt_validated("Name: ", Validators.validate_name)
        email = self.prompt_validated("Email: ", Validators.validate_email)
        phone = self.prompt_validated("Phone: ", Validators.validate_phone)
        if self.context.crew.find_crew_member_by_email(email):
            self.error("A crew member with this email already exists.")
            return
        member = self.context.crew.create_crew_member(name, email, Validators.normalize_phone(phone))
        if not member:
            self.error(SAVE_FAILED)
            return
        self.success(f"Crew member added with ID {member.id}")

    def assign_task_screen(self):
        crew_id = self.prompt_int("Crew ID: ")
        name = input("Task Name: ").strip()
        description = input("Description: ").strip()
        priority = self.prompt_enum("Priority [Medium]", TaskPriority, TaskPriority.MEDIUM)
        task = self.context.crew.assign_task(crew_id, name, description, priority)
        if task:
            self.success(f"Task #{task.task_id} assigned.")
        else:
            self.error("Crew member not found.")

    def update_task_screen(self):
        crew_id = self.prompt_int("Crew ID: ")
        task_id = self.prompt_int("Task ID: ")
        status = self.prompt_enum("New status", TaskStatus)
        if self.context.crew.update_task_status(crew_id, task_id, status):
            self.success("Task updated.")
        else:
            self.error("Crew member or task not found.")

    def view_tasks_screen(self):
        tasks = self.context.crew.get_crew_tasks(self.prompt_int("Crew ID: "))
        if not tasks:
            print("No tasks.")
        for task in tasks:
            print(f"#{task.task_id} {task.task_name} [{task.status.name}] "
                  f"priority {task.priority.name}")

    def crew_check_in_screen(self):
        if self.context.crew.check_in_crew_member(self.prompt_int("Crew ID: ")):
            self.success("Checked in.")
        else:
            self.error("Crew member not found.")

    def crew_check_out_screen(self):
        if self.context.crew.check_out_crew_member(self.prompt_int("Crew ID: ")):
            self.success("Checked out.")
        else:
            self.error("Crew member not found.")

    def delete_crew_screen(self):
        if self.context.crew.delete_crew_member(self.prompt_int("Crew ID: ")):
            self.success("Crew member removed.")
        else:
            self.error("Crew member not found.")

    # Tickets ----------------------------------------------------------

    def ticket_menu(self):
        self.run_menu("TICKET OPERATIONS", [
            ("View Tickets for Concert", self.concert_tickets_screen),
            ("Generate Tickets", self.generate_tickets_screen),
            ("Check In by QR Code", self.check_in_screen),
            ("Sales Summary", self.sales_summary_screen),
            ("Update Ticket Price", self.update_price_screen),
            ("Cancel Ticket", self.staff_cancel_ticket_screen),
        ])

    def concert_tickets_screen(self):
        tickets = self.context.tickets.find_tickets_by_concert(self.prompt_int("Concert ID: "))
        if not tickets:
            print("No tickets for this concert.")
        for ticket in tickets:
            holder = f"attendee {ticket.attendee_id}" if ticket.attendee_id is not None else "-"
            print(f"#{ticket.ticket_id} {ticket.status.name:<10} {holder:<14} {ticket.qr_code}")

    def generate_tickets_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        if not self.context.concerts.get_concert_by_id(concert_id):
            self.error("Concert not found.")
            return
        tickets = self.context.tickets.generate_tickets_for_concert(
            concert_id, self.prompt_int("Quantity: "))
        self.success(f"{len(tickets)} tickets generated.")

    def check_in_screen(self):
        success, message, ticket = self.box_office.check_in(input("QR Code: "))
        if success:
            self.success(f"{message} Ticket #{ticket.ticket_id}")
        else:
            self.error(message)

    def sales_summary_screen(self):
        summary = self.box_office.get_sales_summary(self.prompt_int("Concert ID: "))
        if not summary:
            print("No sales data available.")
            return
        print(f"Concert: {summary['concert_name']} ({summary['status']})\n")
        print(f"  Price: ${summary['base_price']:.2f}")
        print(f"  Sold: {summary['tickets_sold']} / {summary['tickets_total']}")
        print(f"  Remaining: {summary['tickets_remaining']}")
        print(f"  Checked in: {summary['checked_in']}")
        print(f"  Cancelled: {summary['cancelled']}")
        self.print_line()
        print(f"TOTAL REVENUE: ${summary['total_revenue']:.2f}")

    def update_price_screen(self):
        ticket_id = self.prompt_int("Ticket ID: ")
        price = self.prompt_float("New Price ($): ")
        if self.context.tickets.update_ticket_price(ticket_id, price, self.context.concerts):
            self.success("Price updated for the concert.")
        else:
            self.error("Only available tickets can be repriced.")

    def staff_cancel_ticket_screen(self):
        success, message = self.box_office.cancel_ticket(self.current_user,
                                                         self.prompt_int("Ticket ID: "))
        (self.success if success else self.error)(message)

    # Payments ---------------------------------------------------------

    def payment_menu(self):
        self.run_menu("PAYMENT MONITORING", [
            ("Recent Payments", self.recent_payments_screen),
            ("Payment Statistics", self.payment_stats_screen),
            ("Payment Report", self.payment_report_screen),
            ("Issue Refund", self.refund_screen),
        ])

    def recent_payments_screen(self):
        payments = self.context.payments.get_recent_payments(20)
        if not payments:
            print("No payments yet.")
        for payment in payments:
            print(f"#{payment.payment_id} {payment.payment_date_time} {payment.amount:>8.2f} "
                  f"{payment.currency} {payment.status.name:<9} {payment.transaction_id}")

    def payment_stats_screen(self):
        for key, value in self.context.payments.get_payment_statistics().items():
            print(f"{key.replace('_', ' ').title()}: {value}")

    def payment_report_screen(self):
        start = self.prompt_datetime("From", allow_empty=True)
        end = self.prompt_datetime("To", allow_empty=True)
        print(self.context.payments.generate_payment_report(start, end))

    def refund_screen(self):
        payment_id = self.prompt_int("Payment ID: ")
        amount = self.prompt_float("Refund amount (empty for full): ", allow_empty=True) or 0.0
        reason = input("Reason: ").strip()
        refund_id = self.context.payments.process_refund(payment_id, amount, reason)
        if refund_id:
            self.success(f"Refund issued: {refund_id}")
        else:
            self.error("Refund not possible for this payment.")

    # Analytics --------------------------------------------------------

    def analytics_menu(self):
        self.run_menu("ANALYTICS & REPORTS", [
            ("Summary Metrics", self.summary_metrics_screen),
            ("Concert Metrics", self.concert_metrics_screen),
            ("Generate Concert Report", self.generate_report_screen),
            ("View Concert Reports", self.view_reports_screen),
            ("Concert Performance Ranking", self.performance_screen),
            ("Venue Utilization", self.venue_utilization_screen),
            ("Customer Satisfaction", self.satisfaction_screen),
            ("Export Data", self.export_screen),
            ("Transaction Log", self.view_transactions),
        ])

    def print_mapping(self, data: dict):
        for key, value in data.items():
            if isinstance(value, float):
                value = f"{value:.2f}"
            print(f"{key.replace('_', ' ').title()}: {value}")

    def summary_metrics_screen(self):
        self.print_mapping(self.context.analytics.calculate_summary_metrics())

    def concert_metrics_screen(self):
        metrics = self.context.analytics.get_concert_metrics(self.prompt_int("Concert ID: "))
        if metrics is None:
            self.error("Concert not found.")
        else:
            self.print_mapping(metrics)

    def generate_report_screen(self):
        report_id = self.context.analytics.generate_concert_report(self.prompt_int("Concert ID: "))
        if report_id < 0:
            self.error("Concert not found or report could not be saved.")
        else:
            self.success(f"Report #{report_id} generated.")

    def view_reports_screen(self):
        reports = self.context.reports.get_reports_by_concert(self.prompt_int("Concert ID: "))
        if not reports:
            print("No reports for this concert.")
        for report in reports:
            print(f"#{report.id} {report.date}: {report.tickets_sold} sold, "
                  f"${report.sales_volume:.2f}, engagement {report.attendee_engagement_score:.2f}, "
                  f"NPS {report.nps_score:.1f}")

    def performance_screen(self):
        start = self.prompt_datetime("From")
        end = self.prompt_datetime("To")
        results = self.context.analytics.analyze_concert_performance(start, end)
        if not results:
            print("No concerts in this period.")
        for row in results:
            print(f"{row['rank']:>2}. {row['concert_name']} - score {row['performance_score']:.1f} "
                  f"({row['tickets_sold']} sold, rating {row['satisfaction_score']:.1f})")

    def venue_utilization_screen(self):
        utilization = self.context.analytics.analyze_venue_utilization()
        if not utilization:
            print("No concerts with venues yet.")
        for venue_id, percent in utilization.items():
            venue = self.context.venues.get_venue_by_id(venue_id)
            print(f"{venue.name}: {percent:.1f}%")

    def satisfaction_screen(self):
        start = self.prompt_datetime("From")
        end = self.prompt_datetime("To")
        self.print_mapping(self.context.analytics.get_customer_satisfaction_analytics(start, end))

    def export_screen(self):
        report_type = input("Dataset (revenue, attendance, performance, satisfaction): ").strip().lower()
        fmt = input("Format (JSON/CSV) [JSON]: ").strip() or "JSON"
        start = self.prompt_datetime("From")
        end = self.prompt_datetime("To")
        try:
            print(self.context.analytics.export_data_for_visualization(report_type, start, end, fmt))
        except ValueError as e:
            self.error(str(e))

    def view_transactions(self):
        rows = self.context.transactions.read_transactions()
        if not rows:
            print("No transactions yet.")
            return
        print(" | ".join(rows[0].keys()))
        self.print_line()
        for row in rows[-20:]:
            print(" | ".join(row.values()))

    # Communication ----------------------------------------------------

    def communication_menu(self):
        self.run_menu("COMMUNICATION TOOLS", [
            ("Message Ticket Holders", self.send_message_screen),
            ("View Messages for Concert", self.concert_messages_screen),
            ("View Messages by Type", self.messages_by_type_screen),
        ])

    def send_message_screen(self):
        concert_id = self.prompt_int("Concert ID: ")
        if not self.context.concerts.get_concert_by_id(concert_id):
            self.error("Concert not found.")
            return
        comm_type = input("Channel (Email, SMS, In-App) [Email]: ").strip() or "Email"
        message = input("Message: ").strip()
        if not message:
            self.error("Message cannot be empty.")
            return
        holders = {t.attendee_id for t in self.context.tickets.find_tickets_by_concert(concert_id)
                   if t.status in (TicketStatus.SOLD, TicketStatus.CHECKED_IN)}
        log = self.context.communications.send_communication(
            concert_id, message, comm_type, recipient_count=len(holders))
        if not log:
            self.error(SAVE_FAILED)
            return
        self.success(f"Message sent to {len(holders)} recipient(s).")

    def print_messages(self, logs):
        if not logs:
            print("No messages.")
        for log in logs:
            origin = "auto" if log.is_automated else "manual"
            print(f"#{log.comm_id} {log.sent_at} [{log.comm_type}, {origin}] "
                  f"to {log.recipient_count}: {log.message_content}")

    def concert_messages_screen(self):
        self.print_messages(self.context.communications.get_logs_for_concert(
            self.prompt_int("Concert ID: ")))

    def messages_by_type_screen(self):
        self.print_messages(self.context.communications.find_logs_by_type(
            input("Channel: ").strip()))

    # Feedback ---------------------------------------------------------

    def feedback_menu(self):
        self.run_menu("FEEDBACK REVIEW", [
            ("Urgent Feedback", self.urgent_feedback_screen),
            ("Resolve Urgent Feedback", self.resolve_feedback_screen),
            ("Sentiment Report", self.sentiment_report_screen),
            ("Low Rated Concerts", self.low_rated_screen),
        ])

    def urgent_feedback_screen(self):
        urgent = self.context.feedback.get_urgent_feedback()
        if not urgent:
            print("No urgent feedback.")
        for feedback in urgent:
            print(f"#{feedback.feedback_id} concert {feedback.concert_id} - {feedback.rating} star(s), "
                  f"{feedback.escalation_reason}")
            print(f"    \"{feedback.comments}\"")

    def resolve_feedback_screen(self):
        if self.context.feedback.resolve_urgent_feedback(self.prompt_int("Feedback ID: ")):
            self.success("Feedback resolved.")
        else:
            self.error("No open escalation with this ID.")

    def sentiment_report_screen(self):
        print(self.context.feedback.generate_sentiment_report(self.prompt_int("Concert ID: ")))

    def low_rated_screen(self):
        concert_ids = self.context.feedback.get_low_rated_events()
        if not concert_ids:
            print("No concerts below 2.5 stars.")
        for concert_id in concert_ids:
            concert = self.context.concerts.get_concert_by_id(concert_id)
            name = concert.name if concert else f"Concert {concert_id}"
            print(f"{name}: {self.context.feedback.get_event_average_rating(concert_id):.2f}")

    # Users ------------------------------------------------------------

    def user_admin_menu(self):
        self.run_menu("USER ADMINISTRATION", [
            ("List Users", self.list_users),
            ("Create Staff Account", self.create_staff_screen),
            ("Change User Role", self.change_role_screen),
            ("Delete User", self.delete_user_screen),
        ])

    def list_users(self):
        auth = self.context.auth
        for username in auth.get_all_usernames():
            print(f"{username:<20} {UserType(auth.get_user_type(username)).name}")
        print(f"\nTotal users: {auth.get_user_count()}")

    def create_staff_screen(self):
        name = input("Full Name: ").strip()
        email = input("Email: ").strip()
        phone = input("Phone Number: ").strip()
        username = input("Username: ").strip()
        password = getpass("Password: ")
        success, message, _ = self.accounts.register(name, email, phone, username, password,
                                                     user_type=UserType.STAFF)
        (self.success if success else self.error)(message)

    def change_role_screen(self):
        username = input("Username: ").strip()
        role = self.prompt_enum("New role", UserType)
        if username == self.current_user.username and role != UserType.ADMIN:
            self.error("You cannot remove your own admin role.")
        elif self.context.auth.set_user_type(username, role):
            self.success(f"{username} is now {role.name.lower()}.")
        else:
            self.error("User not found.")

    def delete_user_screen(self):
        username = input("Username: ").strip()
        if username == self.current_user.username:
            self.error("You cannot delete your own account.")
        elif self.confirm(f"Delete user {username}?") and self.context.auth.delete_user(username):
            self.success("User deleted.")
        else:
            self.error("User not deleted.")

    # ------------------------------------------------------------------
    # User portal
    # ------------------------------------------------------------------

    def user_menu(self):
        self.clear_screen()
        self.print_header("USER PORTAL")
        print(f"Welcome, {self.current_user.display_name}!\n")

        options = [
            ("Browse Concerts", self.browse_concerts),
            ("Buy Ticket", self.purchase_ticket_screen),
            ("View My Tickets", self.view_my_tickets),
            ("Cancel Ticket", self.cancel_ticket_screen),
            ("Submit Feedback", self.feedback_screen),
            ("View Performer Info", self.performer_info_screen),
            ("Change Password", self.change_password_screen),
        ]
        if self.current_user.is_staff:
            options.append(("Switch to Management Portal", self.switch_to_management_portal))

        for index, (label, _) in enumerate(options, 1):
            print(f"{index}. {label}")
        print("0. Logout")
        self.print_line()

        choice = input(f"Enter your choice (0-{len(options)}): ").strip()
        if choice == "0":
            self.logout()
            self.pause()
        elif choice.isdigit() and 1 <= int(choice) <= len(options):
            handler = options[int(choice) - 1][1]
            handler()
            if handler != self.switch_to_management_portal:
                self.pause()
        else:
            print("Invalid choice.")
            self.pause()

    def switch_to_management_portal(self):
        self.portal = "management"

    def browse_concerts(self):
        concerts = [c for c in self.context.concerts.get_all()
                    if c.event_status in (EventStatus.SCHEDULED, EventStatus.SOLDOUT)]
        if not concerts:
            print("No upcoming concerts.")
        for concert in concerts:
            self.print_concert(concert)
            if concert.description:
                print(f"    {concert.description}")

    def purchase_ticket_screen(self):
        self.browse_concerts()
        self.print_line()
        concert_id = self.prompt_int("Concert ID (empty to cancel): ", allow_empty=True)
        if concert_id is None:
            return
        concert = self.context.concerts.get_concert_by_id(concert_id)
        if not concert or not concert.ticket_info:
            self.error("Tickets are not on sale for this concert.")
            return

        print("Payment method:")
        for index, method in enumerate(PAYMENT_METHODS, 1):
            print(f"  {index}. {method}")
        method_choice = self.prompt_int(f"Select (1-{len(PAYMENT_METHODS)}): ")
        if not 1 <= method_choice <= len(PAYMENT_METHODS):
            self.error("Invalid payment method.")
            return
        payment_method = PAYMENT_METHODS[method_choice - 1]
        if payment_method == "Credit Card":
            self.prompt_validated("Card Number: ", Validators.validate_credit_card)

        promo_code = input("Promotion code (optional): ").strip().upper()
        if not self.confirm(f"\nConfirm purchase for {concert.name} "
                            f"at ${concert.ticket_info.base_price:.2f}?"):
            print("Purchase cancelled.")
            return

        success, message, ticket = self.box_office.purchase_ticket(
            self.current_user, concert_id, payment_method, promo_code)
        if success:
            self.success(message)
            print(f"Ticket ID: {ticket.ticket_id}")
            print(f"QR Code: {ticket.qr_code}")
        else:
            self.error(message)

    def view_my_tickets(self):
        tickets = self.box_office.get_attendee_tickets(self.current_user)
        if not tickets:
            print("You don't have any active tickets.")
            return
        for index, ticket in enumerate(tickets, 1):
            concert = self.context.concerts.get_concert_by_id(ticket.concert_id) \
                if ticket.concert_id is not None else None
            print(f"{index}. Ticket ID: {ticket.ticket_id}")
            print(f"   Concert: {concert.name if concert else 'unknown'}")
            print(f"   Status: {ticket.status.name}")
            print(f"   QR Code: {ticket.qr_code}")
            print()

    def cancel_ticket_screen(self):
        tickets = [t for t in self.box_office.get_attendee_tickets(self.current_user)
                   if t.status == TicketStatus.SOLD]
        if not tickets:
            print("You don't have any active tickets to cancel.")
            return

        print("Your Active Tickets:\n")
        for index, ticket in enumerate(tickets, 1):
            print(f"{index}. Ticket #{ticket.ticket_id} ({ticket.qr_code})")
        print(f"{len(tickets) + 1}. Cancel")
        self.print_line()

        choice = self.prompt_int(f"Select ticket to cancel (1-{len(tickets) + 1}): ")
        if choice == len(tickets) + 1:
            return
        if not 1 <= choice <= len(tickets):
            print("Invalid choice.")
            return

        selected = tickets[choice - 1]
        if not self.confirm(f"\nConfirm cancellation of ticket #{selected.ticket_id}?"):
            print("Cancellation aborted.")
            return
        success, message = self.box_office.cancel_ticket(self.current_user, selected.ticket_id)
        (self.success if success else self.error)(message)

    def feedback_screen(self):
        if not self.current_user.attendee:
            self.error("Only attendee accounts can leave feedback.")
            return
        concert_id = self.prompt_int("Concert ID: ")
        if not self.context.concerts.get_concert_by_id(concert_id):
            self.error("Concert not found.")
            return
        rating = self.prompt_int("Rating (1-5): ")
        comments = input("Comments: ").strip()
        category = self.prompt_enum("Category [General]", FeedbackCategory,
                                    FeedbackCategory.GENERAL)
        try:
            feedback = self.context.feedback.create_feedback(
                concert_id, self.current_user.attendee.id, rating, comments, category)
        except ValueError as e:
            self.error(str(e))
            return
        if not feedback:
            self.error(SAVE_FAILED)
            return
        self.success("Thank you for your feedback!")
        if feedback.requires_escalation:
            print("Our team has been notified and will follow up.")

    def performer_info_screen(self):
        concert_id = self.prompt_int("Concert ID (empty for all performers): ", allow_empty=True)
        if concert_id is None:
            self.list_performers()
            return
        concert = self.context.concerts.get_concert_by_id(concert_id)
        if not concert:
            self.error("Concert not found.")
            return
        performers = [p for p in (self.context.performers.get_performer_by_id(pid)
                                  for pid in concert.performer_ids) if p]
        self.list_performers(performers)

    def change_password_screen(self):
        old_password = getpass("Current Password: ")
        new_password = getpass("New Password: ")
        is_valid, message = Validators.validate_password(new_password)
        if not is_valid:
            self.error(message)
        elif self.context.auth.change_password(self.current_user.username, old_password,
                                               new_password):
            self.success("Password changed.")
        else:
            self.error("Current password is incorrect.")


def main():
    """Main entry point of the application."""
    setup_logging()
    try:
        app = CLIInterface(AppContext.create())
        app.run()
    except KeyboardInterrupt:
        print("\n\nApplication terminated by user.")
        sys.exit(0)
    except Exception as e:
        logger.exception("unexpected_error")
        print(f"\n\nAn unexpected error occurred: {e}")
        print("Please report this issue.")
        sys.exit(1)


if __name__ == "__main__":
    main()
