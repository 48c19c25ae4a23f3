"""
Interview session state machine.

An ``InterviewSession`` walks one interviewee from identity collection through
six timed questions to a scored, completed interview. The presentation layer
(REST API or terminal) only sees an immutable ``SessionSnapshot`` and drives
the session through its command methods; all entity changes go through the
``InterviewStore``.
"""
import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from interview_assistant.core.scoring import aggregate_interview_score
from interview_assistant.core.store import InterviewStore
from interview_assistant.core.timer import HighResolutionTimer, HostLifecycleSignal
from interview_assistant.models.interview import (
    Answer,
    Candidate,
    CandidateInfo,
    CandidateStatus,
    Interview,
    InterviewStatus,
    Question,
    RecoverySnapshot,
    utc_now,
)
from interview_assistant.tools.question_tools import (
    AnswerEvaluator,
    GeminiClient,
    InterviewSummarizer,
    LLMAnswerEvaluator,
    LLMInterviewSummarizer,
    LLMQuestionGenerator,
    QuestionGenerator,
    QuestionRequest,
)
from interview_assistant.tools.resume_tools import (
    HeuristicResumeExtractor,
    ResumeExtractor,
    to_candidate_info,
)
from interview_assistant.utils.config import get_interview_config, get_timer_config
from interview_assistant.utils.constants import (
    DEFAULT_POSITION,
    DEGENERATE_ANSWERS,
    DEGENERATE_FEEDBACK,
    DEGENERATE_SUGGESTIONS,
    ERROR_NO_INTERVIEW,
    GENERATION_DELAY_SECONDS,
    MIN_ANSWER_LENGTH,
    NOTICE_ANSWER_SUBMITTED,
    NOTICE_COMPLETED,
    NOTICE_EMPTY_ANSWER,
    NOTICE_EVALUATION_FAILED,
    NOTICE_EXTRACTION_FAILED,
    NOTICE_FIELDS_COLLECTED,
    NOTICE_FIELDS_EXTRACTED,
    NOTICE_GENERATION_FAILED,
    NOTICE_INCOMPLETE,
    NOTICE_INTERVIEW_STARTED,
    NOTICE_MISSING_FIELDS,
    NOTICE_SUMMARY_FAILED,
    NOTICE_TIME_UP,
    QUESTION_COUNT,
)
from interview_assistant.utils.errors import (
    CollaboratorError,
    EvaluationError,
    InvalidTransitionError,
    ResumeExtractionError,
)
from interview_assistant.utils.topics import QUESTION_PLAN, TopicSelector

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    WELCOME_BACK = "welcome-back"
    COLLECTING_IDENTITY = "collecting-identity"
    COLLECTING_MISSING_FIELDS = "collecting-missing-fields"
    READY_TO_START = "ready-to-start"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


IDENTITY_STATES = (
    SessionState.COLLECTING_IDENTITY,
    SessionState.COLLECTING_MISSING_FIELDS,
    SessionState.READY_TO_START,
)


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notice(BaseModel):
    """A dismissible message for the interviewee. Notices never block a transition."""
    model_config = ConfigDict(frozen=True)

    level: NoticeLevel
    message: str


class SessionSnapshot(BaseModel):
    """Read-only view of the session for the presentation layer."""
    model_config = ConfigDict(frozen=True)

    state: SessionState
    candidate_info: CandidateInfo
    client_id: Optional[str] = None
    missing_fields: List[str] = Field(default_factory=list)
    candidate_id: Optional[str] = None
    interview: Optional[Interview] = None
    current_question: Optional[Question] = None
    question_number: int = 0
    total_questions: int = 0
    draft: str = ""
    time_left: float = 0.0
    time_limit: float = 0.0
    timer_running: bool = False
    timer_paused: bool = False
    pending_confirmation: bool = False
    reviewing: bool = False
    recovery: Optional[RecoverySnapshot] = None
    notices: List[Notice] = Field(default_factory=list)
    is_busy: bool = False


def is_degenerate_answer(text: str) -> bool:
    """Answers that are scored 0 locally instead of being sent for evaluation."""
    normalized = (text or "").strip().lower()
    return not normalized or normalized in DEGENERATE_ANSWERS or len(normalized) < MIN_ANSWER_LENGTH


class InterviewSession:
    """
    One interviewee's session.

    Args:
        store: Candidate and interview state container
        question_generator: Writes the six interview questions
        answer_evaluator: Scores non-degenerate answers
        resume_extractor: Reads resume uploads (optional; manual entry always works)
        summarizer: Writes the completion summary (optional)
        timer: Question timer (a default timer is built from the timer config)
        lifecycle: Host foreground/background signal the timer follows
        topic_selector: Topic picker for question generation
        generation_delay: Seconds to wait between question-generation calls
        sleep: Awaitable sleep function (defaults to asyncio.sleep)
        wall_clock: Wall-clock time in seconds for the recovery record
        client_id: Owner of the recovery record (the local client when omitted)
    """

    def __init__(
        self,
        store: InterviewStore,
        question_generator: QuestionGenerator,
        answer_evaluator: AnswerEvaluator,
        resume_extractor: Optional[ResumeExtractor] = None,
        summarizer: Optional[InterviewSummarizer] = None,
        timer: Optional[HighResolutionTimer] = None,
        lifecycle: Optional[HostLifecycleSignal] = None,
        topic_selector: Optional[TopicSelector] = None,
        generation_delay: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        wall_clock: Callable[[], float] = time.time,
        client_id: Optional[str] = None
    ):
        self.store = store
        self.question_generator = question_generator
        self.answer_evaluator = answer_evaluator
        self.resume_extractor = resume_extractor
        self.summarizer = summarizer
        self.topic_selector = topic_selector

        interview_config = get_interview_config()
        if generation_delay is None:
            generation_delay = interview_config.get("generation_delay_seconds", GENERATION_DELAY_SECONDS)
        self.generation_delay = generation_delay
        self.question_count = int(interview_config.get("question_count", QUESTION_COUNT))
        self.default_position = interview_config.get("default_position", DEFAULT_POSITION)
        self._sleep = sleep or asyncio.sleep
        self._wall_clock = wall_clock
        self.client_id = client_id

        if timer is None:
            timer_config = get_timer_config()
            timer = HighResolutionTimer(
                precision_ms=timer_config.get("precision_ms", 100),
                frame_interval=timer_config.get("frame_interval", 1 / 60),
            )
        self.timer = timer
        self.timer.on_complete = self._on_time_up
        self._detach_lifecycle = timer.attach_lifecycle(lifecycle) if lifecycle else None

        self.state = SessionState.COLLECTING_IDENTITY
        self.candidate_info = CandidateInfo()
        self.candidate_id: Optional[str] = None
        self.interview_id: Optional[str] = None
        self.draft = ""
        self.pending_confirmation = False
        self.reviewing = False
        self.recovery: Optional[RecoverySnapshot] = None
        self.notices: List[Notice] = []
        self._busy = False

    @classmethod
    def with_llm_collaborators(
        cls,
        store: InterviewStore,
        lifecycle: Optional[HostLifecycleSignal] = None,
        **kwargs: Any
    ) -> "InterviewSession":
        """Session wired to the Gemini collaborators and the heuristic resume extractor."""
        client = GeminiClient()
        return cls(
            store,
            question_generator=LLMQuestionGenerator(client),
            answer_evaluator=LLMAnswerEvaluator(client),
            resume_extractor=HeuristicResumeExtractor(),
            summarizer=LLMInterviewSummarizer(client),
            lifecycle=lifecycle,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Snapshot and notices
    # ------------------------------------------------------------------

    @property
    def interview(self) -> Optional[Interview]:
        if self.interview_id is None:
            return None
        return self.store.get_interview(self.interview_id)

    @property
    def snapshot(self) -> SessionSnapshot:
        interview = self.interview
        question = interview.current_question if interview else None
        timer_state = self.timer.state
        return SessionSnapshot(
            state=self.state,
            client_id=self.client_id,
            candidate_info=self.candidate_info.model_copy(deep=True),
            missing_fields=self.candidate_info.missing_fields(),
            candidate_id=self.candidate_id,
            interview=interview.model_copy(deep=True) if interview else None,
            current_question=question,
            question_number=(interview.current_question_index + 1) if interview else 0,
            total_questions=len(interview.questions) if interview else 0,
            draft=self.draft,
            time_left=self.timer.remaining(),
            time_limit=timer_state.duration,
            timer_running=timer_state.is_running,
            timer_paused=timer_state.is_paused,
            pending_confirmation=self.pending_confirmation,
            reviewing=self.reviewing,
            recovery=self.recovery,
            notices=list(self.notices),
            is_busy=self._busy,
        )

    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))

    def dismiss_notice(self, index: int = 0) -> SessionSnapshot:
        if 0 <= index < len(self.notices):
            self.notices.pop(index)
        return self.snapshot

    def _require(self, command: str, *states: SessionState) -> None:
        if self._busy:
            raise InvalidTransitionError(command, self.state.value, "another operation is still running")
        if states and self.state not in states:
            raise InvalidTransitionError(command, self.state.value)

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def load(self) -> SessionSnapshot:
        """Offer the welcome-back choice when an unfinished interview was recorded."""
        self.recovery = self.store.get_recovery(self.client_id)
        if self.recovery is not None:
            logger.info(f"Found unfinished interview for candidate {self.recovery.candidate_id}")
            self.state = SessionState.WELCOME_BACK
        else:
            self.state = SessionState.COLLECTING_IDENTITY
        return self.snapshot

    def resume_from_snapshot(self) -> SessionSnapshot:
        """
        Continue the recorded interview.

        The stored interview is resumed at its current question with a fresh
        timer. When that interview no longer exists the recovered candidate
        details are kept and the session waits for a new start.
        """
        self._require("resume the interview", SessionState.WELCOME_BACK)
        recovery = self.recovery
        self.candidate_info = recovery.candidate_info.model_copy(deep=True)
        self.candidate_id = recovery.candidate_id

        interview = None
        if recovery.interview_id:
            interview = self.store.get_interview(recovery.interview_id)
        if interview is None:
            interview = self.store.interview_for_candidate(recovery.candidate_id)

        self.recovery = None
        if interview is None or interview.status == InterviewStatus.COMPLETED:
            logger.warning(f"No open interview for candidate {recovery.candidate_id}; waiting for a new start")
            self.store.clear_recovery(self.client_id)
            self.state = SessionState.READY_TO_START
            return self.snapshot

        self.interview_id = interview.id
        self.store.set_current_interview(interview.id)
        self.draft = ""
        self.pending_confirmation = False
        self.reviewing = False
        self.state = SessionState.IN_PROGRESS
        self.timer.start(interview.current_question.time_limit)
        logger.info(f"Resumed interview {interview.id} at question {interview.current_question_index + 1}")
        return self.snapshot

    def discard_snapshot(self) -> SessionSnapshot:
        """Drop the recorded interview and start identity collection from scratch."""
        self._require("discard the interview", SessionState.WELCOME_BACK)
        self.store.clear_recovery(self.client_id)
        self.recovery = None
        self._reset()
        return self.snapshot

    def _reset(self) -> None:
        self.timer.stop()
        self.state = SessionState.COLLECTING_IDENTITY
        self.candidate_info = CandidateInfo()
        self.candidate_id = None
        self.interview_id = None
        self.store.set_current_interview(None)
        self.draft = ""
        self.pending_confirmation = False
        self.reviewing = False

    # ------------------------------------------------------------------
    # Identity collection
    # ------------------------------------------------------------------

    async def submit_resume(self, source: Union[str, bytes], filename: Optional[str] = None) -> SessionSnapshot:
        """Extract the candidate's details from a resume, falling back to manual entry."""
        self._require("upload a resume", *IDENTITY_STATES)
        if self.resume_extractor is None:
            raise InvalidTransitionError("upload a resume", self.state.value, "no resume extractor configured")

        self._busy = True
        try:
            data = await self.resume_extractor.extract(source, filename)
        except ResumeExtractionError as e:
            logger.warning(f"Resume extraction failed, switching to manual entry: {e}")
            self.notify(NoticeLevel.ERROR, NOTICE_EXTRACTION_FAILED)
            self.state = SessionState.COLLECTING_MISSING_FIELDS
            return self.snapshot
        finally:
            self._busy = False

        extracted = to_candidate_info(data)
        # Fields already entered by hand win over empty extraction results
        merged = self.candidate_info.model_dump()
        for field, value in extracted.model_dump().items():
            if value:
                merged[field] = value
        self.candidate_info = CandidateInfo.model_validate(merged)
        self._route_identity(NOTICE_FIELDS_EXTRACTED)
        return self.snapshot

    def submit_manual_entry(self, **fields: Any) -> SessionSnapshot:
        """Merge directly entered fields into the collected details."""
        self._require("enter candidate details", *IDENTITY_STATES)
        unknown = set(fields) - set(CandidateInfo.model_fields)
        if unknown:
            raise ValueError(f"Unknown candidate fields: {', '.join(sorted(unknown))}")

        merged = self.candidate_info.model_dump()
        for field, value in fields.items():
            if isinstance(value, str):
                value = value.strip()
            if value in (None, "", []):
                continue
            merged[field] = value
        self.candidate_info = CandidateInfo.model_validate(merged)
        self._route_identity(NOTICE_FIELDS_COLLECTED)
        return self.snapshot

    def _route_identity(self, success_message: str) -> None:
        if not self.candidate_info.position:
            self.candidate_info = self.candidate_info.model_copy(update={"position": self.default_position})

        missing = self.candidate_info.missing_fields()
        if missing:
            logger.info(f"Missing candidate fields: {missing}")
            self.state = SessionState.COLLECTING_MISSING_FIELDS
            self.notify(NoticeLevel.INFO, f"Please provide your {', '.join(missing)}.")
        else:
            self.state = SessionState.READY_TO_START
            self.notify(NoticeLevel.SUCCESS, success_message)

    # ------------------------------------------------------------------
    # Interview start
    # ------------------------------------------------------------------

    async def start_interview(self) -> SessionSnapshot:
        """
        Generate the six questions and open the interview.

        Generation is all-or-nothing: if any question fails nothing is stored
        and the session stays ready to start.
        """
        if self.state == SessionState.COLLECTING_MISSING_FIELDS and not self._busy:
            self.notify(NoticeLevel.WARNING, NOTICE_MISSING_FIELDS)
            return self.snapshot
        self._require("start the interview", SessionState.READY_TO_START)

        self._busy = True
        try:
            questions = await self._generate_questions()
        except CollaboratorError as e:
            logger.error(f"Interview start aborted: {e}")
            self.notify(NoticeLevel.ERROR, NOTICE_GENERATION_FAILED)
            return self.snapshot
        finally:
            self._busy = False

        candidate = self._ensure_candidate()
        interview = self.store.add_interview(Interview(
            candidate_id=candidate.id,
            questions=questions,
            status=InterviewStatus.IN_PROGRESS,
            start_time=utc_now(),
        ))
        self.store.update_candidate(
            candidate.id,
            interview_id=interview.id,
            interview_status=CandidateStatus.IN_PROGRESS,
        )
        self.interview_id = interview.id
        self.store.save_recovery(RecoverySnapshot(
            candidate_id=candidate.id,
            candidate_info=self.candidate_info,
            start_time=self._wall_clock(),
            interview_id=interview.id,
        ), self.client_id)

        self.draft = ""
        self.pending_confirmation = False
        self.reviewing = False
        self.state = SessionState.IN_PROGRESS
        self.timer.start(questions[0].time_limit)
        self.notify(NoticeLevel.SUCCESS, NOTICE_INTERVIEW_STARTED)
        logger.info(f"Interview {interview.id} started for {candidate.name}")
        return self.snapshot

    async def _generate_questions(self) -> List[Question]:
        selector = self.topic_selector or TopicSelector()
        plan = QUESTION_PLAN[:self.question_count]
        questions: List[Question] = []
        for i, slot in enumerate(plan):
            if i > 0 and self.generation_delay > 0:
                await self._sleep(self.generation_delay)
            request = QuestionRequest(
                difficulty=slot.difficulty,
                topic=selector.topic_for(slot, self.candidate_info.skills),
                type=slot.type,
                candidate_skills=list(self.candidate_info.skills),
                candidate_role=self.candidate_info.position or self.default_position,
                previous_questions=list(questions),
            )
            logger.info(f"Generating question {i + 1}/{len(plan)}: {slot.difficulty.value} {slot.type.value}")
            questions.append(await self.question_generator.generate(request))
        return questions

    def _ensure_candidate(self) -> Candidate:
        info = self.candidate_info
        details = {
            "name": info.name,
            "email": info.email,
            "phone": info.phone,
            "skills": list(info.skills),
            "experience": info.experience,
            "education": info.education,
            "position": info.position or self.default_position,
            "resume_text": info.summary or None,
        }
        if self.candidate_id and self.store.get_candidate(self.candidate_id):
            return self.store.update_candidate(self.candidate_id, **details)

        candidate = self.store.add_candidate(Candidate(**details))
        self.candidate_id = candidate.id
        return candidate

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def update_draft(self, text: str) -> SessionSnapshot:
        self._require("edit the answer", SessionState.IN_PROGRESS)
        self.draft = text
        return self.snapshot

    async def submit_answer(self, text: Optional[str] = None) -> SessionSnapshot:
        """Submit an answer to the current question (the draft when ``text`` is omitted)."""
        self._require("submit an answer", SessionState.IN_PROGRESS)
        answer_text = self.draft if text is None else text
        if not answer_text.strip():
            self.notify(NoticeLevel.WARNING, NOTICE_EMPTY_ANSWER)
            return self.snapshot
        return await self._record_answer(answer_text)

    def _on_time_up(self) -> None:
        if self.state != SessionState.IN_PROGRESS or self._busy or self.pending_confirmation:
            return
        logger.info("Question time limit reached, asking for confirmation")
        self.pending_confirmation = True
        self.notify(NoticeLevel.WARNING, NOTICE_TIME_UP)

    async def confirm_auto_submit(self) -> SessionSnapshot:
        """Submit whatever has been typed once the time limit was reached, even nothing."""
        self._require("confirm the automatic submission", SessionState.IN_PROGRESS)
        if not self.pending_confirmation:
            raise InvalidTransitionError(
                "confirm the automatic submission", self.state.value, "the time limit has not been reached"
            )
        self.pending_confirmation = False
        return await self._record_answer(self.draft)

    def request_review(self) -> SessionSnapshot:
        """Keep the answer open for review instead of submitting it automatically."""
        self._require("review the answer", SessionState.IN_PROGRESS)
        if not self.pending_confirmation:
            raise InvalidTransitionError(
                "review the answer", self.state.value, "the time limit has not been reached"
            )
        self.pending_confirmation = False
        self.reviewing = True
        self.timer.pause()
        return self.snapshot

    def pause_timer(self) -> SessionSnapshot:
        self._require("pause the timer", SessionState.IN_PROGRESS)
        self.timer.pause()
        return self.snapshot

    def resume_timer(self) -> SessionSnapshot:
        self._require("resume the timer", SessionState.IN_PROGRESS)
        self.timer.resume()
        return self.snapshot

    async def _record_answer(self, text: str) -> SessionSnapshot:
        interview = self.interview
        if interview is None:
            raise InvalidTransitionError("submit an answer", self.state.value, ERROR_NO_INTERVIEW)
        question = interview.current_question
        time_spent = max(0.0, question.time_limit - self.timer.remaining())
        self.timer.pause()

        answer = Answer(
            question_id=question.id,
            candidate_id=interview.candidate_id,
            text=text.strip(),
            time_spent=time_spent,
        )

        self._busy = True
        try:
            answer = await self._evaluate(question, answer)
        finally:
            self._busy = False

        current = self.interview
        if current is None or current.status == InterviewStatus.COMPLETED:
            logger.warning(f"Interview {interview.id} was completed while the answer was being scored")
            return self.snapshot

        current = self.store.append_answer(current.id, answer)
        self.draft = ""
        self.reviewing = False
        self.pending_confirmation = False

        if current.current_question_index < len(current.questions) - 1:
            current = self.store.advance_question(current.id)
            self.timer.start(current.current_question.time_limit)
            self.notify(NoticeLevel.SUCCESS, NOTICE_ANSWER_SUBMITTED)
            return self.snapshot

        return await self.complete_interview()

    async def _evaluate(self, question: Question, answer: Answer) -> Answer:
        if is_degenerate_answer(answer.text):
            logger.info(f"Answer to question {question.id} scored locally as degenerate")
            return answer.model_copy(update={
                "score": 0.0,
                "technical_accuracy": 0.0,
                "problem_solving": 0.0,
                "communication": 0.0,
                "time_efficiency": 0.0,
                "feedback": DEGENERATE_FEEDBACK,
                "suggestions": list(DEGENERATE_SUGGESTIONS),
            })

        try:
            evaluation = await self.answer_evaluator.evaluate(question, answer, self.candidate_info.name)
        except EvaluationError as e:
            logger.error(f"Answer evaluation failed, keeping the unscored answer: {e}")
            self.notify(NoticeLevel.WARNING, NOTICE_EVALUATION_FAILED)
            return answer

        return answer.model_copy(update={
            "score": evaluation.overall_score / 100,
            "technical_accuracy": evaluation.technical_accuracy / 100,
            "problem_solving": evaluation.problem_solving / 100,
            "communication": evaluation.communication / 100,
            "time_efficiency": evaluation.time_efficiency / 100,
            "feedback": evaluation.feedback,
            "suggestions": list(evaluation.suggestions),
        })

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def complete_interview(self) -> SessionSnapshot:
        """
        Close the interview with whatever answers exist.

        Completion always succeeds; an interview with fewer answers than
        questions is only reported.
        """
        if self.state == SessionState.COMPLETED:
            return self.snapshot
        if self.state != SessionState.IN_PROGRESS:
            raise InvalidTransitionError("complete the interview", self.state.value, ERROR_NO_INTERVIEW)
        interview = self.interview
        if interview is None:
            raise InvalidTransitionError("complete the interview", self.state.value, ERROR_NO_INTERVIEW)

        if len(interview.answers) != len(interview.questions):
            logger.warning(
                f"Interview {interview.id} completed with {len(interview.answers)} answers "
                f"for {len(interview.questions)} questions"
            )
            self.notify(NoticeLevel.WARNING, NOTICE_INCOMPLETE)

        score = aggregate_interview_score(interview.answers)
        interview = self.store.complete_interview(interview.id, score)
        self.store.mark_candidate_completed(interview.candidate_id, score)
        self.store.clear_recovery(self.client_id)
        self.timer.pause()
        self.pending_confirmation = False
        self.reviewing = False
        self.state = SessionState.COMPLETED
        self.notify(NoticeLevel.SUCCESS, NOTICE_COMPLETED)

        if self.summarizer is not None:
            await self._summarize(interview)
        return self.snapshot

    async def _summarize(self, interview: Interview) -> None:
        self._busy = True
        try:
            summary = await self.summarizer.summarize(
                self.candidate_info.name, interview.questions, interview.answers, interview.score or 0.0
            )
        except CollaboratorError as e:
            logger.error(f"Interview summary failed: {e}")
            self.notify(NoticeLevel.WARNING, NOTICE_SUMMARY_FAILED)
            return
        finally:
            self._busy = False
        self.store.set_summary(interview.id, summary)

    def close(self) -> None:
        """Stop the timer and detach from the host lifecycle signal."""
        self.timer.stop()
        if self._detach_lifecycle:
            self._detach_lifecycle()
            self._detach_lifecycle = None
