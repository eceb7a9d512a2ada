"""Tests for the local blob store."""
import hashlib
import io
import os

import pytest

from bookkeeping.core.errors import StorageError, ValidationError
from bookkeeping.storage.base import ReceiptUpload, find_orphans
from bookkeeping.storage.local import LocalFileStorage

from fakes import pdf_bytes, pdf_upload


@pytest.fixture
def local(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"))


class _Unreadable:
    def read(self):
        raise OSError("stream closed")


class TestSavePdf:

    def test_save_returns_checksum_and_locator(self, local):
        blob = local.save_pdf(pdf_upload("a"))
        assert blob.checksum == hashlib.sha256(pdf_bytes("a")).hexdigest()
        assert blob.locator == f"/uploads/{blob.name}"
        assert blob.name.endswith("_receipt.pdf")
        with open(local.resolve(blob.locator), "rb") as f:
            assert f.read() == pdf_bytes("a")

    def test_identical_content_is_stored_twice(self, local):
        first = local.save_pdf(pdf_upload("same"))
        second = local.save_pdf(pdf_upload("same"))
        assert first.checksum == second.checksum
        assert first.name != second.name
        assert sorted(local.iter_locators()) == sorted([first.locator, second.locator])

    def test_reads_file_objects(self, local):
        stream = io.BytesIO(pdf_bytes("stream"))
        stream.read(3)  # position is reset before reading
        blob = local.save_pdf(ReceiptUpload(filename="scan.pdf", content=stream))
        assert blob.checksum == hashlib.sha256(pdf_bytes("stream")).hexdigest()

    def test_extension_check_is_case_insensitive(self, local):
        blob = local.save_pdf(pdf_upload(filename="SCAN.PDF"))
        assert os.path.exists(local.resolve(blob.locator))

    @pytest.mark.parametrize("upload", [
        None,
        ReceiptUpload(filename="receipt.txt", content=b"%PDF-1.4"),
        ReceiptUpload(filename="receipt", content=b"%PDF-1.4"),
        ReceiptUpload(filename="", content=b"%PDF-1.4"),
        ReceiptUpload(filename="receipt.pdf", content=b""),
        ReceiptUpload(filename="receipt.pdf", content=_Unreadable()),
    ])
    def test_rejects_bad_uploads_without_writing(self, local, upload):
        with pytest.raises(ValidationError):
            local.save_pdf(upload)
        assert list(local.iter_locators()) == []

    def test_write_failure_is_storage_error(self, tmp_path):
        blocked = tmp_path / "blocked"
        blocked.write_text("not a directory")
        with pytest.raises(StorageError):
            LocalFileStorage(str(blocked)).save_pdf(pdf_upload())


class TestDeletePdf:

    def test_delete_removes_blob(self, local):
        blob = local.save_pdf(pdf_upload())
        local.delete_pdf(blob.locator)
        assert not os.path.exists(local.resolve(blob.locator))

    def test_delete_is_idempotent(self, local):
        blob = local.save_pdf(pdf_upload())
        local.delete_pdf(blob.locator)
        local.delete_pdf(blob.locator)
        local.delete_pdf("/uploads/never-existed.pdf")
        local.delete_pdf("")

    def test_delete_only_uses_basename(self, local, tmp_path):
        outside = tmp_path / "keep.pdf"
        outside.write_bytes(b"x")
        local.delete_pdf(str(outside))
        assert outside.exists()


class TestOrphans:

    def test_find_orphans_lists_unreferenced_blobs(self, local):
        kept = local.save_pdf(pdf_upload("kept"))
        lost = local.save_pdf(pdf_upload("lost"))
        assert find_orphans(local, [kept.locator]) == [lost.locator]

    def test_no_upload_dir_means_no_orphans(self, local):
        assert find_orphans(local, []) == []
