"""Contact router - public contact form and admin inbox"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...email_service import send_contact_auto_response, send_contact_notification, send_contact_reply
from ...models import User
from ...notifications import deliver
from ..scheduling.clock import Clock, get_clock
from .schemas import ContactFormRequest, ContactReplyRequest, ContactUpdate
from .service import CONTACT_THANK_YOU, ContactService, submission_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["Contact"])
admin_router = APIRouter(prefix="/admin/contact", tags=["Contact"])


def get_contact_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ContactService:
    """Dependency injection for ContactService"""
    return ContactService(db, clock)


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("")
async def submit_contact_form(
    data: ContactFormRequest,
    background_tasks: BackgroundTasks,
    service: ContactService = Depends(get_contact_service),
):
    submission = service.submit(data)

    background_tasks.add_task(
        deliver,
        send_contact_notification,
        name=data.name,
        email=data.email,
        phone=data.phone,
        subject=data.subject,
        message=data.message,
    )
    background_tasks.add_task(
        deliver,
        send_contact_auto_response,
        to=data.email,
        name=data.name,
        subject=data.subject,
    )

    return {"success": True, "message": CONTACT_THANK_YOU, "submissionId": submission.id}


# ============================================================================
# ADMIN INBOX
# ============================================================================


@admin_router.get("")
async def list_contact_submissions(
    isRead: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_admin: User = Depends(get_current_admin),
    service: ContactService = Depends(get_contact_service),
):
    return service.list_submissions(isRead, page, limit)


@admin_router.patch("/{submission_id}")
async def update_contact_submission(
    submission_id: int,
    data: ContactUpdate,
    current_admin: User = Depends(get_current_admin),
    service: ContactService = Depends(get_contact_service),
):
    """Mark a message read or unread"""
    submission = service.set_read(submission_id, data.isRead)
    logger.info(f"📬 Admin {current_admin.id} marked submission {submission.id} isRead={submission.is_read}")
    return {"success": True, "data": submission_to_dict(submission)}


@admin_router.post("/{submission_id}/respond")
async def respond_to_contact_submission(
    submission_id: int,
    data: ContactReplyRequest,
    current_admin: User = Depends(get_current_admin),
    service: ContactService = Depends(get_contact_service),
):
    submission = service.get_submission(submission_id)

    try:
        await send_contact_reply(
            to=submission.email,
            name=submission.name,
            subject=data.subject,
            response=data.message,
        )
    except Exception as e:
        logger.error(f"❌ Reply to contact submission {submission_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to send email response") from e

    submission = service.record_reply(submission, data)
    return {"success": True, "message": "Response sent successfully", "data": submission_to_dict(submission)}


__all__ = ["router", "admin_router"]
