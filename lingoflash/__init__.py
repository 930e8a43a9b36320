from .models import Card, Result, SessionState
from .session import SessionError, StudySession

__all__ = ["Card", "Result", "SessionError", "SessionState", "StudySession"]
