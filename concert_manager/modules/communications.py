"""Communication log store."""

from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import CommunicationLog
from concert_manager.store import EntityStore, in_date_range

logger = get_logger(__name__)

COMM_TYPES = ("Email", "SMS", "In-App")


class CommunicationStore(EntityStore[CommunicationLog]):
    """Keeps a record of every message sent to a concert's audience."""

    MAGIC = b"COMM"

    def send_communication(self, concert_id: int, message_content: str,
                           comm_type: str = "Email", recipient_count: int = 0,
                           is_automated: bool = False) -> Optional[CommunicationLog]:
        """Log a message as sent now. Returns None if it could not be saved."""
        log = CommunicationLog(
            comm_id=self.generate_new_id(),
            concert_id=concert_id,
            message_content=message_content,
            comm_type=comm_type,
            recipient_count=recipient_count,
            is_automated=is_automated
        )
        if not self.add(log):
            return None
        logger.info("communication_sent", comm_id=log.comm_id, concert_id=concert_id,
                    comm_type=comm_type, recipients=recipient_count)
        return log

    def get_communication_by_id(self, comm_id: int) -> Optional[CommunicationLog]:
        return self.get_by_id(comm_id)

    def get_logs_for_concert(self, concert_id: int) -> List[CommunicationLog]:
        return self.find_by_predicate(lambda c: c.concert_id == concert_id)

    def find_logs_by_type(self, comm_type: str) -> List[CommunicationLog]:
        wanted = comm_type.lower()
        return self.find_by_predicate(lambda c: c.comm_type.lower() == wanted)

    def get_logs_by_date_range(self, start_date: str, end_date: str) -> List[CommunicationLog]:
        return self.find_by_predicate(lambda c: in_date_range(c.sent_at, start_date, end_date))

    def delete_communication(self, comm_id: int) -> bool:
        return self.delete_entity(comm_id)

    def get_entity_id(self, entity: CommunicationLog) -> int:
        return entity.comm_id

    def write_record(self, writer: BinaryWriter, entity: CommunicationLog):
        writer.write_int(entity.comm_id)
        writer.write_int(entity.concert_id)
        writer.write_string(entity.message_content)
        writer.write_string(entity.sent_at)
        writer.write_string(entity.comm_type)
        writer.write_int(entity.recipient_count)
        writer.write_bool(entity.is_automated)

    def read_record(self, reader: BinaryReader) -> CommunicationLog:
        comm_id = reader.read_int()
        concert_id = reader.read_int()
        message = reader.read_string()
        sent_at = reader.read_string()
        log = CommunicationLog(
            comm_id=comm_id,
            concert_id=concert_id,
            message_content=message,
            comm_type=reader.read_string(),
            recipient_count=reader.read_int(),
            is_automated=reader.read_bool()
        )
        log.sent_at = sent_at
        return log
