# bookkeeping/storage/local.py
import hashlib
import logging
import os
import time
import uuid
from typing import Iterator, Optional

from bookkeeping.core.errors import StorageError, ValidationError
from bookkeeping.storage.base import BlobStore, ReceiptUpload, SavedBlob

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class LocalFileStorage(BlobStore):
    """Receipts as files in one directory, served by the app under ``/uploads``."""

    def __init__(self, upload_dir: str, url_prefix: str = URL_PREFIX):
        self.upload_dir = os.path.abspath(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def _read_payload(self, upload: Optional[ReceiptUpload]) -> bytes:
        if upload is None:
            raise ValidationError("receipt file is required")

        filename = os.path.basename(upload.filename or "")
        if not filename:
            raise ValidationError("Missing filename")
        if os.path.splitext(filename)[1].lower() != ".pdf":
            raise ValidationError("only PDF files are allowed")

        content = upload.content
        try:
            if hasattr(content, "read"):
                if hasattr(content, "seek"):
                    content.seek(0)
                content = content.read()
        except (OSError, ValueError) as exc:
            raise ValidationError(f"cannot read uploaded file: {exc}") from exc

        if not isinstance(content, (bytes, bytearray)):
            raise ValidationError("cannot read uploaded file")
        if not content:
            raise ValidationError("uploaded file is empty")
        return bytes(content)

    def save_pdf(self, upload: ReceiptUpload) -> SavedBlob:
        content = self._read_payload(upload)
        checksum = hashlib.sha256(content).hexdigest()

        # <time_ns>_<uuid8>_receipt.pdf, unrelated to the checksum: no dedup
        suffix = uuid.uuid4().hex[:8]
        name = f"{time.time_ns()}_{suffix}_receipt.pdf"
        dest_path = os.path.join(self.upload_dir, name)

        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(dest_path, "wb") as f:
                f.write(content)
        except OSError as exc:
            logger.exception("Failed to write receipt blob %s", dest_path)
            try:
                if os.path.exists(dest_path):
                    os.remove(dest_path)
            except OSError:
                logger.warning("Could not remove partial blob %s", dest_path)
            raise StorageError(f"cannot save file: {exc}") from exc

        locator = f"{self.url_prefix}/{name}"
        logger.debug("Saved receipt blob %s (sha256=%s)", locator, checksum)
        return SavedBlob(name=name, checksum=checksum, locator=locator)

    def resolve(self, locator: str) -> str:
        """Absolute path for ``locator``; only the basename is honoured."""
        return os.path.join(self.upload_dir, os.path.basename(locator or ""))

    def delete_pdf(self, locator: str) -> None:
        if not locator:
            return
        path = self.resolve(locator)
        if not os.path.isfile(path):
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            # removed concurrently by another cleanup
            return
        except OSError as exc:
            raise StorageError(f"cannot delete file {locator}: {exc}") from exc
        logger.debug("Deleted receipt blob %s", locator)

    def iter_locators(self) -> Iterator[str]:
        if not os.path.isdir(self.upload_dir):
            return
        for entry in sorted(os.listdir(self.upload_dir)):
            if os.path.isfile(os.path.join(self.upload_dir, entry)):
                yield f"{self.url_prefix}/{entry}"
