from fastapi import APIRouter
from feedback_api.api.v1.endpoints import feedback

api_router = APIRouter()

api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
