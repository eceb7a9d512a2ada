# bookkeeping/storage/base.py
"""
Blob store contract for receipt payloads.

A blob store only moves bytes: it never touches the database, and nothing it
does is part of a database transaction. Callers compensate instead.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, List, Union


@dataclass
class ReceiptUpload:
    """A file payload as received from the caller: declared filename + bytes or a readable stream."""
    filename: str
    content: Union[bytes, BinaryIO]


@dataclass(frozen=True)
class SavedBlob:
    name: str
    checksum: str
    locator: str


class BlobStore(ABC):

    @abstractmethod
    def save_pdf(self, upload: ReceiptUpload) -> SavedBlob:
        """
        Persist a PDF payload under a fresh unique name.

        Raises:
            ValidationError: missing upload, non-PDF extension, unreadable or empty payload
            StorageError: the bytes could not be written
        """

    @abstractmethod
    def delete_pdf(self, locator: str) -> None:
        """
        Remove the blob behind ``locator``. Unknown or empty locators are a no-op.

        Raises:
            StorageError: the blob exists but could not be removed
        """

    @abstractmethod
    def iter_locators(self) -> Iterator[str]:
        """Yield the locator of every stored blob."""


def find_orphans(store: BlobStore, referenced: Iterable[str]) -> List[str]:
    """Return locators of stored blobs no receipt row points at, sorted."""
    known = set(referenced)
    return sorted(loc for loc in store.iter_locators() if loc not in known)
