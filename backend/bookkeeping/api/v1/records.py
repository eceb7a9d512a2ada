# bookkeeping/api/v1/records.py
# Router factory shared by /incomes and /expenses: multipart in, record + nested receipt out.
import os
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Type

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from bookkeeping.api.v1.deps import get_current_user, get_storage, require_roles
from bookkeeping.db import models
from bookkeeping.services.records import RecordPatch, RecordService
from bookkeeping.storage.base import ReceiptUpload
from bookkeeping.storage.local import LocalFileStorage


def _to_upload(file: Optional[UploadFile]) -> Optional[ReceiptUpload]:
    # browsers send an empty part with no filename when nothing was picked
    if file is None or not file.filename:
        return None
    return ReceiptUpload(filename=file.filename, content=file.file)


def _close(file: Optional[UploadFile]) -> None:
    if file is not None:
        file.file.close()


def build_record_router(
    model: Type,
    out_schema: Type,
    get_service: Callable[..., RecordService],
) -> APIRouter:
    router = APIRouter()

    @router.post("", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def create_record(
        amount: Decimal = Form(...),
        description: str = Form(...),
        type: str = Form(...),
        date: Optional[datetime] = Form(None),
        receipt: UploadFile = File(...),
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
    ):
        record = model(
            amount=amount,
            description=description,
            type=type,
            date=date,
            created_by=current_user.id,
        )
        try:
            return service.create(record, _to_upload(receipt))
        finally:
            _close(receipt)

    @router.get("", response_model=List[out_schema])
    def list_records(
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
    ):
        return service.list()

    @router.get("/{record_id}", response_model=out_schema)
    def get_record(
        record_id: int,
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
    ):
        return service.get(record_id)

    @router.patch("/{record_id}", response_model=out_schema)
    def update_record(
        record_id: int,
        amount: Optional[Decimal] = Form(None),
        description: Optional[str] = Form(None),
        type: Optional[str] = Form(None),
        date: Optional[datetime] = Form(None),
        receipt: Optional[UploadFile] = File(None),
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
    ):
        patch = RecordPatch.sparse(amount=amount, description=description, type=type, date=date)
        try:
            return service.update(record_id, patch, _to_upload(receipt), current_user.id)
        finally:
            _close(receipt)

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    def soft_delete_record(
        record_id: int,
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
    ):
        service.soft_delete(record_id, current_user.id)
        return None

    @router.post("/{record_id}/restore", response_model=out_schema)
    def restore_record(
        record_id: int,
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
    ):
        return service.restore(record_id)

    @router.delete("/{record_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
    def delete_record(
        record_id: int,
        current_user: models.User = Depends(require_roles(models.Role.admin, models.Role.superadmin)),
        service: RecordService = Depends(get_service),
    ):
        service.delete(record_id)
        return None

    @router.get("/{record_id}/receipt")
    def download_receipt(
        record_id: int,
        current_user: models.User = Depends(get_current_user),
        service: RecordService = Depends(get_service),
        storage: LocalFileStorage = Depends(get_storage),
    ):
        record = service.get(record_id)
        if record.receipt is None:
            raise HTTPException(status_code=404, detail="Receipt not found")
        path = storage.resolve(record.receipt.rel_path)
        if not os.path.exists(path):
            raise HTTPException(status_code=404, detail="File not found on disk")
        return FileResponse(path, media_type=record.receipt.mime_type, filename=record.receipt.file_name)

    return router
