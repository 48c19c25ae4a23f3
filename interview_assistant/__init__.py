"""
Interview Assistant Package.

This package runs timed, automatically evaluated technical interviews and
keeps the candidate records an interviewer reviews afterwards.
"""

from interview_assistant.core.session import InterviewSession, SessionState
from interview_assistant.core.store import InterviewStore

__version__ = "0.1.0"
