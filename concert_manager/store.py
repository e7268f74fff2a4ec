"""
Generic file-backed entity store.

Every domain module keeps its records in a plain list, loads the whole file
when constructed and rewrites the whole file after each mutation. Lookups are
linear scans. Subclasses describe their records through three hooks:
get_entity_id, write_record and read_record.
"""

import os
from abc import ABC, abstractmethod
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from concert_manager.binio import BinaryReader, BinaryWriter, StorageFormatError
from concert_manager.log import get_logger

T = TypeVar("T")
RecordReader = Callable[[BinaryReader], T]

logger = get_logger(__name__)


class EntityStore(ABC, Generic[T]):
    """Base class with CRUD operations over a single binary data file."""

    MAGIC: bytes = b"\x00\x00\x00\x00"
    SCHEMA_VERSION: int = 1

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.entities: List[T] = []
        self.load_entities()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def get_entity_id(self, entity: T) -> int:
        """Return the id of a record."""

    @abstractmethod
    def write_record(self, writer: BinaryWriter, entity: T):
        """Encode one record in the current schema version."""

    @abstractmethod
    def read_record(self, reader: BinaryReader) -> T:
        """Decode one record written in the current schema version."""

    def record_readers(self) -> Dict[int, RecordReader]:
        """
        Map each readable schema version to its record decoder.
        Stores that change their layout register the old decoder here.
        """
        return {self.SCHEMA_VERSION: self.read_record}

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get_by_id(self, entity_id: int) -> Optional[T]:
        """Find a record by id. Returns None if not found."""
        for entity in self.entities:
            if self.get_entity_id(entity) == entity_id:
                return entity
        logger.debug("entity_not_found", store=type(self).__name__, entity_id=entity_id)
        return None

    def get_all(self) -> List[T]:
        """Return all records in insertion order."""
        return list(self.entities)

    def delete_entity(self, entity_id: int) -> bool:
        """
        Remove a record by id and persist.
        Returns False if the record does not exist or the save failed.
        """
        for index, entity in enumerate(self.entities):
            if self.get_entity_id(entity) == entity_id:
                del self.entities[index]
                return self.save_entities()
        return False

    def find_by_predicate(self, predicate: Callable[[T], bool]) -> List[T]:
        """Return every record matching the predicate, in insertion order."""
        return [entity for entity in self.entities if predicate(entity)]

    def find_first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        """Return the first record matching the predicate."""
        results = self.find_by_predicate(predicate)
        return results[0] if results else None

    def generate_new_id(self) -> int:
        """One higher than the current maximum id, or 1 for an empty store."""
        max_id = 0
        for entity in self.entities:
            entity_id = self.get_entity_id(entity)
            if entity_id > max_id:
                max_id = entity_id
        return max_id + 1

    def add(self, entity: T) -> bool:
        """
        Append a new record and persist the store.
        If the file cannot be written the record is dropped again and False
        is returned, so memory never holds a record the file lacks.
        """
        self.entities.append(entity)
        if self.save_entities():
            return True
        self.entities.pop()
        return False

    def count(self) -> int:
        return len(self.entities)

    def __len__(self) -> int:
        return len(self.entities)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_entities(self):
        """Replace the in-memory records with the contents of the data file."""
        self.entities = []
        try:
            f = open(self.file_path, 'rb')
        except FileNotFoundError:
            logger.info("store_file_missing", path=self.file_path)
            return
        except OSError as e:
            logger.warning("store_file_unreadable", path=self.file_path, error=str(e))
            return

        with f:
            reader = BinaryReader(f, source=self.file_path)
            readers = self.record_readers()
            version, count = reader.read_header(self.MAGIC, tuple(readers))
            read_record = readers[version]
            entities = [read_record(reader) for _ in range(count)]
            if not reader.at_end():
                raise StorageFormatError(
                    f"{self.file_path}: unexpected data after {count} records"
                )
        self.entities = entities

        logger.debug("store_loaded", path=self.file_path, count=len(self.entities),
                     schema_version=version)

    def save_entities(self) -> bool:
        """
        Rewrite the data file from the in-memory records.
        On failure the in-memory records are kept and False is returned.
        """
        try:
            directory = os.path.dirname(self.file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.file_path, 'wb') as f:
                writer = BinaryWriter(f)
                writer.write_header(self.MAGIC, self.SCHEMA_VERSION, len(self.entities))
                for entity in self.entities:
                    self.write_record(writer, entity)
        except OSError as e:
            logger.error("store_save_failed", path=self.file_path, error=str(e))
            return False

        logger.debug("store_saved", path=self.file_path, count=len(self.entities))
        return True


def contains_ignore_case(text: str, query: str) -> bool:
    """Case-insensitive substring match used by the name searches."""
    return query.lower() in (text or "").lower()


def in_date_range(value: str, start_date: str, end_date: str) -> bool:
    """
    Inclusive range check on ISO-8601 strings.
    Zero-padded ISO timestamps sort lexicographically in time order.
    """
    return start_date <= value <= end_date


def in_open_range(value: str, start_date: str, end_date: str) -> bool:
    """Like in_date_range, but an empty bound leaves that side open."""
    if start_date and value < start_date:
        return False
    if end_date and value > end_date:
        return False
    return True
