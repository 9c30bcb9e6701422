from .backends import StorageUnavailable
from .store import get_store, mutation_lock, read_document, reset_store, write_document


__all__ = [
    "StorageUnavailable",
    "get_store",
    "mutation_lock",
    "read_document",
    "reset_store",
    "write_document",
]
