"""Persistence layer: key-value backends, record codec and the write-through gateway."""

from rubel.persistence.backends import FileBackend, KeyValueBackend, MemoryBackend
from rubel.persistence.codec import decode_value, encode_value
from rubel.persistence.gateway import PersistenceGateway
from rubel.persistence.writer import WriteQueue

__all__ = [
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "PersistenceGateway",
    "WriteQueue",
    "decode_value",
    "encode_value",
]
