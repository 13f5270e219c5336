from fastapi import APIRouter, Depends, status
from typing import List
import logging
from feedback_api.database import get_database
from feedback_api.schemas.feedback import ErrorResponse, FeedbackCreate, FeedbackResponse
from feedback_api.services.feedback_service import FeedbackService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_feedback_service() -> FeedbackService:
    return FeedbackService(get_database())


@router.get(
    "",
    response_model=List[FeedbackResponse],
    responses={500: {"model": ErrorResponse}},
)
async def list_feedback(service: FeedbackService = Depends(get_feedback_service)):
    """Get all feedback, newest first. Anyone may list feedback."""
    return await service.list()


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_feedback(
    payload: FeedbackCreate,
    service: FeedbackService = Depends(get_feedback_service),
):
    """Create a new feedback record. Anyone may submit feedback."""
    return await service.submit(payload.name, payload.feedback)
