"""
Feedback service: the only way in and out of the feedback store.
Supports creating a feedback record and listing all records newest first.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from feedback_api.core.exceptions import FeedbackValidationError, StorageError
from feedback_api.database import Database
from feedback_api.models.feedback import FEEDBACK_MAX_LENGTH, NAME_MAX_LENGTH, Feedback

logger = logging.getLogger(__name__)


def validate_feedback(name: Optional[str], feedback: Optional[str]) -> None:
    """
    Check a submission against the feedback schema.

    Args:
        name: Submitter name, 1-60 characters
        feedback: Feedback text, 1-1000 characters

    Raises:
        FeedbackValidationError: listing every violated constraint, name first
    """
    errors = []

    if not name:
        errors.append("Please provide a name")
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(f"Name cannot be more than {NAME_MAX_LENGTH} characters")

    if not feedback:
        errors.append("Please provide feedback")
    elif len(feedback) > FEEDBACK_MAX_LENGTH:
        errors.append(f"Feedback cannot be more than {FEEDBACK_MAX_LENGTH} characters")

    if errors:
        raise FeedbackValidationError(errors)


class FeedbackService:
    """Service for creating and listing feedback."""

    def __init__(self, database: Database):
        self.database = database

    async def submit(self, name: Optional[str], feedback: Optional[str]) -> Feedback:
        """
        Validate and persist a new feedback record.

        Returns:
            The stored record with its id and timestamps
        """
        validate_feedback(name, feedback)

        try:
            async with self.database.session() as session:
                record = Feedback(name=name, feedback=feedback)
                session.add(record)
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as e:
            logger.error(f"Error storing feedback from {name!r}: {e}")
            raise StorageError(f"Could not save feedback: {e}") from e

        logger.info(f"Feedback {record.id} created by {name!r}")
        return record

    async def list(self) -> List[Feedback]:
        """Return every feedback record, newest first."""
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc())
                )
                feedbacks = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing feedback: {e}")
            raise StorageError(f"Could not load feedback: {e}") from e

        logger.debug(f"Listed {len(feedbacks)} feedback records")
        return feedbacks
