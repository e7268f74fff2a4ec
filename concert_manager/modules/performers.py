"""Performer store."""

from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.models import Performer
from concert_manager.store import EntityStore, contains_ignore_case


class PerformerStore(EntityStore[Performer]):
    """Handles performers: artists, bands and DJs."""

    MAGIC = b"PERF"

    def create_performer(self, name: str, performer_type: str, contact_info: str = "",
                         bio: str = "", image_url: str = "") -> Optional[Performer]:
        performer = Performer(
            performer_id=self.generate_new_id(),
            name=name,
            performer_type=performer_type,
            contact_info=contact_info,
            bio=bio,
            image_url=image_url
        )
        return performer if self.add(performer) else None

    def get_performer_by_id(self, performer_id: int) -> Optional[Performer]:
        return self.get_by_id(performer_id)

    def find_performers_by_name(self, name_query: str) -> List[Performer]:
        return self.find_by_predicate(lambda p: contains_ignore_case(p.name, name_query))

    def find_performers_by_type(self, type_query: str) -> List[Performer]:
        return self.find_by_predicate(lambda p: contains_ignore_case(p.type, type_query))

    def update_performer(self, performer_id: int, name: str = "", performer_type: str = "",
                         contact_info: str = "", bio: str = "", image_url: str = "") -> bool:
        """Update performer fields; empty strings keep the current value."""
        performer = self.get_by_id(performer_id)
        if not performer:
            return False

        if name:
            performer.name = name
        if performer_type:
            performer.type = performer_type
        if contact_info:
            performer.contact_info = contact_info
        if bio:
            performer.bio = bio
        if image_url:
            performer.image_url = image_url

        return self.save_entities()

    def delete_performer(self, performer_id: int) -> bool:
        return self.delete_entity(performer_id)

    def get_entity_id(self, entity: Performer) -> int:
        return entity.performer_id

    def write_record(self, writer: BinaryWriter, entity: Performer):
        writer.write_int(entity.performer_id)
        writer.write_string(entity.name)
        writer.write_string(entity.type)
        writer.write_string(entity.contact_info)
        writer.write_string(entity.bio)
        writer.write_string(entity.image_url)

    def read_record(self, reader: BinaryReader) -> Performer:
        return Performer(
            performer_id=reader.read_int(),
            name=reader.read_string(),
            performer_type=reader.read_string(),
            contact_info=reader.read_string(),
            bio=reader.read_string(),
            image_url=reader.read_string()
        )
