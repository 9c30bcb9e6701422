"""
Process-wide access to the document store.

The backend is picked once, on first use, from settings: all four S3
settings present means S3DocumentStore, anything else means
LocalDocumentStore under DATA_DIR.
"""
from __future__ import annotations

import logging
import threading
from typing import Any

from django.conf import settings

from .backends import LocalDocumentStore, S3DocumentStore


logger = logging.getLogger(__name__)

# Serializes read-modify-write sequences on documents within one process.
mutation_lock = threading.RLock()

_store = None
_store_guard = threading.Lock()


def s3_configured() -> bool:
    return all(
        getattr(settings, name, "")
        for name in ("S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY", "S3_SECRET_KEY")
    )


def _build_store():
    if s3_configured():
        logger.info("Using S3 document store (bucket=%s)", settings.S3_BUCKET)
        return S3DocumentStore(
            endpoint=settings.S3_ENDPOINT,
            bucket=settings.S3_BUCKET,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            region=settings.S3_REGION,
            backup_keep=settings.S3_BACKUP_KEEP,
        )
    logger.info("Using local document store at %s", settings.DATA_DIR)
    return LocalDocumentStore(settings.DATA_DIR)


def get_store():
    global _store
    if _store is None:
        with _store_guard:
            if _store is None:
                _store = _build_store()
    return _store


def reset_store() -> None:
    """Forget the cached backend; the next access resolves it again from settings."""
    global _store
    with _store_guard:
        _store = None


def read_document(name: str, default: Any = None) -> Any:
    return get_store().read(name, default)


def write_document(name: str, value: Any) -> None:
    get_store().write(name, value)
