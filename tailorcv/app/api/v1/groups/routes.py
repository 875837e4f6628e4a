"""
Resume group endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tailorcv.app.core.dependencies import get_current_user_id, get_db
from tailorcv.app.schemas.resume import (
    ResumeGroupIn,
    ResumeGroupResponse,
    ResumeGroupUpdate,
    group_model_to_payload,
)
from tailorcv.app.services import resume_service

router = APIRouter(prefix="/resume-groups", tags=["resume-groups"])


@router.get("", response_model=list[ResumeGroupResponse])
def list_groups(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return [group_model_to_payload(g) for g in resume_service.list_groups(db, user_id)]


@router.post("", response_model=ResumeGroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    body: ResumeGroupIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    group = resume_service.create_group(db, user_id, body.name.strip(), body.resumeIds)
    return group_model_to_payload(group)


@router.patch("/{group_id}", response_model=ResumeGroupResponse)
def update_group(
    group_id: str,
    body: ResumeGroupUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    group = resume_service.update_group(db, user_id, group_id, name=body.name, resume_ids=body.resumeIds)
    return group_model_to_payload(group)


@router.delete("/{group_id}")
def delete_group(
    group_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    resume_service.delete_group(db, user_id, group_id)
    return {"success": True}
