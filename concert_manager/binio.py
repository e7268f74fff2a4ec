"""
Binary record codec for the store files.

File layout:
    header   magic (4s) | schema version (H) | record count (I)
    records  written by each store's write_record hook

Every integer is little-endian. Strings are a uint32 byte length followed by
UTF-8 bytes. Optional values carry a one-byte presence flag.
"""

import struct
from enum import IntEnum
from typing import BinaryIO, Callable, List, Optional, Tuple, Type, TypeVar

E = "<"
HEADER_FMT = E + "4s H I"
HEADER_SIZE = struct.calcsize(HEADER_FMT)

INT_FMT = E + "i"
UINT_FMT = E + "I"
DOUBLE_FMT = E + "d"
BOOL_FMT = E + "?"

T = TypeVar("T")
EnumT = TypeVar("EnumT", bound=IntEnum)


class StorageFormatError(ValueError):
    """Raised when a data file cannot be decoded."""


class BinaryWriter:
    """Appends encoded values to a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def write_header(self, magic: bytes, version: int, count: int):
        self.stream.write(struct.pack(HEADER_FMT, magic, version, count))

    def write_int(self, value: int):
        self.stream.write(struct.pack(INT_FMT, value))

    def write_uint(self, value: int):
        self.stream.write(struct.pack(UINT_FMT, value))

    def write_double(self, value: float):
        self.stream.write(struct.pack(DOUBLE_FMT, value))

    def write_bool(self, value: bool):
        self.stream.write(struct.pack(BOOL_FMT, bool(value)))

    def write_string(self, value: str):
        data = (value or "").encode("utf-8")
        self.write_uint(len(data))
        if data:
            self.stream.write(data)

    def write_enum(self, value: IntEnum):
        self.write_int(int(value))

    def write_optional_int(self, value: Optional[int]):
        self.write_bool(value is not None)
        if value is not None:
            self.write_int(value)

    def write_optional_string(self, value: Optional[str]):
        self.write_bool(value is not None)
        if value is not None:
            self.write_string(value)

    def write_list(self, items: List[T], write_item: Callable[["BinaryWriter", T], None]):
        self.write_uint(len(items))
        for item in items:
            write_item(self, item)


class BinaryReader:
    """Reads values back in the order BinaryWriter wrote them."""

    def __init__(self, stream: BinaryIO, source: str = "<stream>"):
        self.stream = stream
        self.source = source

    def _read(self, size: int) -> bytes:
        data = self.stream.read(size)
        if len(data) != size:
            raise StorageFormatError(f"{self.source}: unexpected end of file")
        return data

    def _unpack(self, fmt: str):
        return struct.unpack(fmt, self._read(struct.calcsize(fmt)))[0]

    def read_header(self, magic: bytes, supported_versions: Tuple[int, ...]) -> Tuple[int, int]:
        """
        Read and check the file header.
        Returns: (schema_version, record_count)
        """
        file_magic, version, count = struct.unpack(HEADER_FMT, self._read(HEADER_SIZE))
        if file_magic != magic:
            raise StorageFormatError(
                f"{self.source}: bad magic {file_magic!r}, expected {magic!r}"
            )
        if version not in supported_versions:
            raise StorageFormatError(
                f"{self.source}: unsupported schema version {version}"
            )
        return version, count

    def read_int(self) -> int:
        return self._unpack(INT_FMT)

    def read_uint(self) -> int:
        return self._unpack(UINT_FMT)

    def read_double(self) -> float:
        return self._unpack(DOUBLE_FMT)

    def read_bool(self) -> bool:
        return self._unpack(BOOL_FMT)

    def read_string(self) -> str:
        length = self.read_uint()
        if length == 0:
            return ""
        try:
            return self._read(length).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageFormatError(f"{self.source}: invalid string data") from exc

    def read_enum(self, enum_type: Type[EnumT]) -> EnumT:
        raw = self.read_int()
        try:
            return enum_type(raw)
        except ValueError as exc:
            raise StorageFormatError(
                f"{self.source}: {raw} is not a valid {enum_type.__name__}"
            ) from exc

    def read_optional_int(self) -> Optional[int]:
        return self.read_int() if self.read_bool() else None

    def read_optional_string(self) -> Optional[str]:
        return self.read_string() if self.read_bool() else None

    def read_list(self, read_item: Callable[["BinaryReader"], T]) -> List[T]:
        return [read_item(self) for _ in range(self.read_uint())]

    def at_end(self) -> bool:
        position = self.stream.tell()
        more = self.stream.read(1)
        self.stream.seek(position)
        return not more
