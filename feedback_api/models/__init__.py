# Database models
from .feedback import Feedback, NAME_MAX_LENGTH, FEEDBACK_MAX_LENGTH
