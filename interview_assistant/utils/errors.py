"""
Exception types for the Interview Assistant.

Collaborator failures are retried before they surface; input errors are
turned into notices by the interview session instead of being raised to the UI.
"""


class InterviewAssistantError(Exception):
    """Base class for all Interview Assistant errors."""


class CollaboratorError(InterviewAssistantError):
    """An external collaborator (LLM service) failed after the retry budget was spent."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class QuestionGenerationError(CollaboratorError):
    """The question generator could not produce a usable question."""


class EvaluationError(CollaboratorError):
    """The answer evaluator could not be reached."""


class EvaluationParseError(EvaluationError):
    """The evaluator answered, but not with the expected evaluation structure."""


class ResumeExtractionError(InterviewAssistantError):
    """The uploaded resume could not be read."""


class InvalidTransitionError(InterviewAssistantError):
    """A session command was issued in a state that does not accept it."""

    def __init__(self, command: str, state: str, reason: str = ""):
        message = f"Cannot {command} while session is {state}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.command = command
        self.state = state
