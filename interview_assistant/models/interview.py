"""
Interview domain models for the Interview Assistant.

This module defines candidates, questions, answers and interviews as they are
stored in the application state and persisted between runs.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from interview_assistant.utils.config import get_interview_config
from interview_assistant.utils.constants import DEFAULT_TIME_LIMIT, REQUIRED_IDENTITY_FIELDS, TIME_LIMITS


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class CandidateStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class InterviewStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    CODING = "coding"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    SYSTEM_DESIGN = "system design"
    PROBLEM_SOLVING = "problem solving"


def time_limit_for(difficulty) -> int:
    """Seconds allowed for a question of the given difficulty."""
    key = difficulty.value if isinstance(difficulty, Difficulty) else str(difficulty)
    cfg = get_interview_config()
    limits = cfg.get("time_limits") or TIME_LIMITS
    return int(limits.get(key, cfg.get("default_time_limit", DEFAULT_TIME_LIMIT)))


class Candidate(BaseModel):
    """
    A person applying for a position.

    Attributes:
        id: Unique identifier
        name: Full name
        email: Contact email
        phone: Contact phone number
        skills: Skills extracted from the resume or entered manually
        experience: Years of experience
        education: Highest education as free text
        position: Position applied for
        interview_status: Lifecycle status of the candidate
        score: Aggregate interview score (0..1) once the interview is completed
        interview_id: Interview that belongs to this candidate
    """
    id: str = Field(default_factory=new_id)
    name: str
    email: str
    phone: Optional[str] = None
    resume_text: Optional[str] = None
    resume_url: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: float = 0
    education: str = ""
    position: str = ""
    interview_status: CandidateStatus = CandidateStatus.PENDING
    score: Optional[float] = Field(None, ge=0.0, le=1.0)
    interview_id: Optional[str] = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class Question(BaseModel):
    """An interview question. Questions never change once generated."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    text: str
    type: QuestionType = QuestionType.TECHNICAL
    difficulty: Difficulty = Difficulty.MEDIUM
    category: str = ""
    time_limit: int = DEFAULT_TIME_LIMIT
    expected_answer: Optional[str] = None


class Answer(BaseModel):
    """
    A candidate's answer to one question, with the evaluation scores if any.

    All score fields are on a 0..1 scale.
    """
    id: str = Field(default_factory=new_id)
    question_id: str
    candidate_id: str
    text: str = ""
    time_spent: float = 0
    score: Optional[float] = Field(None, ge=0.0, le=1.0)
    technical_accuracy: Optional[float] = Field(None, ge=0.0, le=1.0)
    problem_solving: Optional[float] = Field(None, ge=0.0, le=1.0)
    communication: Optional[float] = Field(None, ge=0.0, le=1.0)
    time_efficiency: Optional[float] = Field(None, ge=0.0, le=1.0)
    feedback: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    submitted_at: str = Field(default_factory=utc_now)


class Interview(BaseModel):
    """One candidate's run through the generated questions."""
    id: str = Field(default_factory=new_id)
    candidate_id: str
    questions: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    status: InterviewStatus = InterviewStatus.NOT_STARTED
    current_question_index: int = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: float = 0
    score: Optional[float] = Field(None, ge=0.0, le=1.0)
    summary: Optional[str] = None

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.current_question_index >= len(self.questions) - 1

    def has_answer_for(self, question_id: str) -> bool:
        return any(a.question_id == question_id for a in self.answers)


class CandidateInfo(BaseModel):
    """Identity and resume details gathered before an interview starts."""
    name: str = ""
    email: str = ""
    phone: str = ""
    skills: List[str] = Field(default_factory=list)
    position: str = ""
    experience: float = 0
    education: str = ""
    summary: str = ""

    def missing_fields(self) -> List[str]:
        """Required identity fields that are still empty, in form order."""
        return [
            field for field in REQUIRED_IDENTITY_FIELDS
            if not (getattr(self, field) or "").strip()
        ]


class RecoverySnapshot(BaseModel):
    """Durable record of an interview that was started but not finished."""
    candidate_id: str
    candidate_info: CandidateInfo
    start_time: float
    interview_id: Optional[str] = None
