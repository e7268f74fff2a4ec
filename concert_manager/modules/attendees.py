"""Attendee store."""

from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.models import Attendee, AttendeeType, now_iso
from concert_manager.store import EntityStore, contains_ignore_case


class AttendeeStore(EntityStore[Attendee]):
    """Handles attendee profiles. Passwords are kept by the auth store."""

    MAGIC = b"ATND"

    def create_attendee(self, name: str, email: str, phone_number: str,
                        attendee_type: AttendeeType = AttendeeType.REGULAR,
                        username: str = "", staff_privileges: bool = False) -> Optional[Attendee]:
        attendee = Attendee(
            attendee_id=self.generate_new_id(),
            name=name,
            email=email,
            phone_number=phone_number,
            attendee_type=attendee_type,
            username=username,
            staff_privileges=staff_privileges
        )
        return attendee if self.add(attendee) else None

    def get_attendee_by_id(self, attendee_id: int) -> Optional[Attendee]:
        return self.get_by_id(attendee_id)

    def find_attendees_by_name(self, name_query: str) -> List[Attendee]:
        return self.find_by_predicate(lambda a: contains_ignore_case(a.name, name_query))

    def find_attendee_by_email(self, email: str) -> Optional[Attendee]:
        wanted = email.lower()
        return self.find_first(lambda a: a.email.lower() == wanted)

    def find_attendee_by_username(self, username: str) -> Optional[Attendee]:
        return self.find_first(lambda a: a.username == username)

    def update_attendee(self, attendee_id: int, name: str = "", email: str = "",
                        phone_number: str = "",
                        attendee_type: Optional[AttendeeType] = None) -> bool:
        """Update profile fields; empty strings and None keep the current value."""
        attendee = self.get_by_id(attendee_id)
        if not attendee:
            return False

        if name:
            attendee.name = name
        if email:
            attendee.email = email
        if phone_number:
            attendee.phone_number = phone_number
        if attendee_type is not None:
            attendee.attendee_type = attendee_type

        return self.save_entities()

    def delete_attendee(self, attendee_id: int) -> bool:
        return self.delete_entity(attendee_id)

    def check_in_attendee(self, attendee_id: int) -> bool:
        attendee = self.get_by_id(attendee_id)
        if not attendee:
            return False
        attendee.check_in_time = now_iso()
        return self.save_entities()

    def check_out_attendee(self, attendee_id: int) -> bool:
        attendee = self.get_by_id(attendee_id)
        if not attendee:
            return False
        attendee.check_out_time = now_iso()
        return self.save_entities()

    def get_entity_id(self, entity: Attendee) -> int:
        return entity.id

    def write_record(self, writer: BinaryWriter, entity: Attendee):
        writer.write_int(entity.id)
        writer.write_string(entity.name)
        writer.write_string(entity.email)
        writer.write_string(entity.phone_number)
        writer.write_enum(entity.attendee_type)
        writer.write_string(entity.username)
        writer.write_bool(entity.staff_privileges)
        writer.write_string(entity.registration_date)
        writer.write_optional_string(entity.check_in_time)
        writer.write_optional_string(entity.check_out_time)

    def read_record(self, reader: BinaryReader) -> Attendee:
        attendee = Attendee(
            attendee_id=reader.read_int(),
            name=reader.read_string(),
            email=reader.read_string(),
            phone_number=reader.read_string(),
            attendee_type=reader.read_enum(AttendeeType),
            username=reader.read_string(),
            staff_privileges=reader.read_bool()
        )
        attendee.registration_date = reader.read_string()
        attendee.check_in_time = reader.read_optional_string()
        attendee.check_out_time = reader.read_optional_string()
        return attendee
