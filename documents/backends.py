from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError


logger = logging.getLogger(__name__)

DATA_PREFIX = "data/"
BACKUP_PREFIX = "backups/"

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class StorageUnavailable(Exception):
    """Raised when the storage backend fails for a reason other than "document not found"."""


def _validate_name(name: str) -> None:
    if not name or "/" in name or "\\" in name or name.startswith("."):
        raise ValueError(f"Invalid document name: {name!r}")


def _dumps(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


class LocalDocumentStore:
    """
    JSON documents as files in a single directory.

    Writes go through a temp file + os.replace so a reader never sees a
    half-written document.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def __repr__(self) -> str:  # pragma: no cover
        return f"LocalDocumentStore({str(self.root)!r})"

    def read(self, name: str, default: Any = None) -> Any:
        _validate_name(name)
        path = self.root / name
        try:
            with path.open(encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return copy.deepcopy(default)
        except (OSError, ValueError) as exc:
            raise StorageUnavailable(f"Could not read {name} from {self.root}") from exc

    def write(self, name: str, value: Any) -> None:
        _validate_name(name)
        payload = _dumps(value)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=f".{name}.", suffix=".tmp")
        except OSError as exc:
            raise StorageUnavailable(f"Could not write {name} to {self.root}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, self.root / name)
        except OSError as exc:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageUnavailable(f"Could not write {name} to {self.root}") from exc


class S3DocumentStore:
    """
    JSON documents in an S3-compatible bucket (path-style addressing).

    Every write first copies the current object to a timestamped backup key,
    then overwrites it, then prunes old backups in the background. Backup and
    pruning are best-effort and never fail the write.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        bucket: str,
        access_key: str,
        secret_key: str,
        region: str = "eu-central",
        backup_keep: int = 10,
        prune_async: bool = True,
        client=None,
    ):
        self.bucket = bucket
        self.backup_keep = backup_keep
        self.prune_async = prune_async
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=Config(s3={"addressing_style": "path"}),
        )

    def __repr__(self) -> str:  # pragma: no cover
        return f"S3DocumentStore(bucket={self.bucket!r})"

    @staticmethod
    def document_key(name: str) -> str:
        return f"{DATA_PREFIX}{name}"

    @staticmethod
    def backup_prefix(name: str) -> str:
        return f"{BACKUP_PREFIX}{name}/"

    def read(self, name: str, default: Any = None) -> Any:
        _validate_name(name)
        key = self.document_key(name)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"].read()
        except ClientError as exc:
            if _is_missing(exc):
                return copy.deepcopy(default)
            raise StorageUnavailable(f"Could not read s3://{self.bucket}/{key}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailable(f"Could not read s3://{self.bucket}/{key}") from exc

        try:
            return json.loads(body.decode("utf-8"))
        except ValueError as exc:
            raise StorageUnavailable(f"s3://{self.bucket}/{key} is not valid JSON") from exc

    def write(self, name: str, value: Any) -> None:
        _validate_name(name)
        key = self.document_key(name)
        payload = _dumps(value).encode("utf-8")

        self.backup(name)

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailable(f"Could not write s3://{self.bucket}/{key}") from exc

        if self.prune_async:
            threading.Thread(target=self.prune_backups, args=(name,), daemon=True).start()
        else:
            self.prune_backups(name)

    def backup(self, name: str) -> str | None:
        """
        Copy the current document to backups/<name>/<timestamp>.json.
        Returns the backup key, or None if nothing was backed up.
        """
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        backup_key = f"{self.backup_prefix(name)}{stamp}.json"
        try:
            self.client.copy_object(
                Bucket=self.bucket,
                Key=backup_key,
                CopySource={"Bucket": self.bucket, "Key": self.document_key(name)},
            )
        except ClientError as exc:
            if _is_missing(exc):
                logger.debug("No existing %s to back up", name)
            else:
                logger.warning("Backup of %s failed, writing anyway: %s", name, exc)
            return None
        except BotoCoreError as exc:
            logger.warning("Backup of %s failed, writing anyway: %s", name, exc)
            return None
        return backup_key

    def prune_backups(self, name: str) -> int:
        """Delete all but the newest `backup_keep` backups of a document. Never raises."""
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            keys: list[str] = []
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self.backup_prefix(name)):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))

            # Timestamped keys sort chronologically.
            stale = sorted(keys, reverse=True)[self.backup_keep:]
            for key in stale:
                self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception("Pruning backups of %s failed", name)
            return 0

        if stale:
            logger.info("Pruned %d old backup(s) of %s", len(stale), name)
        return len(stale)


def _is_missing(exc: ClientError) -> bool:
    code = str(exc.response.get("Error", {}).get("Code", ""))
    return code in _MISSING_CODES
