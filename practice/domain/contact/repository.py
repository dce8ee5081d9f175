"""Contact repository - Database operations for contact form submissions"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ContactSubmission


class ContactRepository:
    """Repository for contact submission database operations"""

    @staticmethod
    def create_submission(db: Session, **fields) -> ContactSubmission:
        submission = ContactSubmission(**fields)
        db.add(submission)
        db.commit()
        db.refresh(submission)
        return submission

    @staticmethod
    def get_submission(db: Session, submission_id: int) -> Optional[ContactSubmission]:
        return (
            db.query(ContactSubmission)
            .options(joinedload(ContactSubmission.user))
            .filter(ContactSubmission.id == submission_id)
            .first()
        )

    @staticmethod
    def list_submissions(
        db: Session, is_read: Optional[bool] = None, page: int = 1, page_size: int = 10
    ) -> tuple[list[ContactSubmission], int]:
        query = db.query(ContactSubmission).options(joinedload(ContactSubmission.user))
        if is_read is not None:
            query = query.filter(ContactSubmission.is_read == is_read)

        total = query.count()
        items = (
            query.order_by(ContactSubmission.created_at.desc(), ContactSubmission.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total

    @staticmethod
    def count_unread(db: Session) -> int:
        return db.query(ContactSubmission).filter(ContactSubmission.is_read.is_(False)).count()
