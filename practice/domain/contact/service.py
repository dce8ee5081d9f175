"""Contact service - Public contact form and the admin inbox"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import ContactSubmission, User
from ..accounts.repository import UserRepository
from ..scheduling.clock import Clock
from .repository import ContactRepository
from .schemas import ContactFormRequest, ContactReplyRequest

logger = logging.getLogger(__name__)

CONTACT_THANK_YOU = "Thank you for your message. We'll get back to you within 24 hours."


def submission_to_dict(submission: ContactSubmission) -> dict:
    return {
        "id": submission.id,
        "userId": submission.user_id,
        "name": submission.name,
        "email": submission.email,
        "phone": submission.phone,
        "subject": submission.subject,
        "message": submission.message,
        "isRead": submission.is_read,
        "response": submission.response,
        "respondedAt": submission.responded_at,
        "createdAt": submission.created_at,
    }


class ContactService:
    """Service layer for contact form submissions"""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or Clock()
        self.repo = ContactRepository()
        self.users = UserRepository()

    def _find_or_create_user(self, data: ContactFormRequest) -> User:
        """Link the message to a client record, creating a password-less one if needed"""
        user = self.users.get_by_email(self.db, data.email)
        if user is None:
            try:
                user = self.users.create_user(self.db, name=data.name, email=data.email, phone=data.phone)
            except IntegrityError:
                # Created concurrently by another request
                self.db.rollback()
                user = self.users.get_by_email(self.db, data.email)
            else:
                logger.info(f"👤 Created client {user.id} from contact form")
            return user

        changed = []
        if user.name != data.name:
            user.name = data.name
            changed.append("name")
        if data.phone and user.phone != data.phone:
            user.phone = data.phone
            changed.append("phone")
        if changed:
            self.users.save(self.db, user)
            logger.info(f"👤 Updated client {user.id} from contact form: {', '.join(changed)}")
        return user

    def submit(self, data: ContactFormRequest) -> ContactSubmission:
        user = self._find_or_create_user(data)
        submission = self.repo.create_submission(
            self.db,
            user_id=user.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            subject=data.subject,
            message=data.message,
            is_read=False,
        )
        logger.info(f"✉️ Contact submission {submission.id} saved for user {user.id}: {submission.subject}")
        return submission

    def list_submissions(self, is_read: Optional[bool] = None, page: int = 1, limit: int = 10) -> dict:
        items, total = self.repo.list_submissions(self.db, is_read, page, limit)
        return {
            "submissions": [submission_to_dict(s) for s in items],
            "unreadCount": self.repo.count_unread(self.db),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
                "hasNext": page * limit < total,
                "hasPrev": page > 1,
            },
        }

    def get_submission(self, submission_id: int) -> ContactSubmission:
        submission = self.repo.get_submission(self.db, submission_id)
        if not submission:
            raise HTTPException(status_code=404, detail="Submission not found")
        return submission

    def set_read(self, submission_id: int, is_read: bool) -> ContactSubmission:
        submission = self.get_submission(submission_id)
        submission.is_read = is_read
        self.db.commit()
        self.db.refresh(submission)
        return submission

    def record_reply(self, submission: ContactSubmission, data: ContactReplyRequest) -> ContactSubmission:
        """Store the reply once the email has gone out; replying marks the message read"""
        submission.response = data.message
        submission.responded_at = self.clock.now()
        submission.is_read = True
        self.db.commit()
        self.db.refresh(submission)
        logger.info(f"✅ Reply recorded for contact submission {submission.id}")
        return submission
