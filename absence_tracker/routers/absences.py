from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
import logging

from absence_tracker.database import get_db
from absence_tracker.models.user import User
from absence_tracker.routers.auth_deps import get_current_user, get_storage
from absence_tracker.schemas.absence import AbsenceResponse, AbsenceWithUserResponse
from absence_tracker.services.admission import AdmissionService
from absence_tracker.services.repositories import AbsenceRepository
from absence_tracker.services.storage import LocalStorageService, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/absences", tags=["absences"])


async def _read_uploads(files: Optional[List[UploadFile]]) -> List[UploadedFile]:
    uploads = []
    for file in files or []:
        # Browsers send an empty part when the file input is left blank
        if not file.filename:
            continue
        content = await file.read()
        uploads.append(UploadedFile(
            original_name=file.filename,
            content=content,
            mime_type=file.content_type,
        ))
    return uploads


@router.get("", response_model=List[AbsenceWithUserResponse])
def list_absences(
    show_all: bool = False,
    user_ids: Optional[List[int]] = Query(default=None),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Calendar listing. Own absences unless `show_all` or explicit `user_ids`
    are given; `start_date`/`end_date` keep absences overlapping that window.
    """
    overlapping = (start_date, end_date) if start_date and end_date else None
    user_id = None if (show_all or user_ids) else current_user.id
    return AbsenceRepository(db).find(user_id=user_id, user_ids=user_ids, overlapping=overlapping)


@router.post("", response_model=AbsenceWithUserResponse, status_code=status.HTTP_201_CREATED)
async def create_absence(
    type: str = Form(...),
    from_date: Optional[date] = Form(default=None, alias="from"),
    to_date: Optional[date] = Form(default=None, alias="to"),
    files: Optional[List[UploadFile]] = File(default=None),
    db: Session = Depends(get_db),
    storage: LocalStorageService = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    uploads = await _read_uploads(files)
    service = AdmissionService(db, storage=storage)
    return service.admit(current_user.id, type, from_date, to_date, files=uploads)


@router.post("/{absence_id}/files", response_model=AbsenceResponse)
async def attach_files(
    absence_id: int,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    storage: LocalStorageService = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    uploads = await _read_uploads(files)
    service = AdmissionService(db, storage=storage)
    return service.attach_files(absence_id, uploads, current_user)


@router.get("/files/{file_id}")
def download_file(
    file_id: int,
    db: Session = Depends(get_db),
    storage: LocalStorageService = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    row, path = AdmissionService(db, storage=storage).get_file(file_id, current_user)
    return FileResponse(
        path,
        media_type=row.mime_type or "application/octet-stream",
        filename=row.original_name,
    )


@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    storage: LocalStorageService = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    AdmissionService(db, storage=storage).delete_file(file_id, current_user)
