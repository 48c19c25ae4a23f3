"""
Application state container for candidates and interviews.

Every mutation goes through a named method and is written straight to the
key-value store. Only the candidate and interview collections and the
per-client recovery records are persisted; timer, search and notice state
live elsewhere and reset on reload.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from interview_assistant.models.interview import (
    Answer,
    Candidate,
    CandidateStatus,
    Interview,
    InterviewStatus,
    RecoverySnapshot,
    utc_now,
)
from interview_assistant.utils.constants import CANDIDATES_KEY, INTERVIEWS_KEY, RECOVERY_KEY
from interview_assistant.utils.storage import InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)


class InterviewStore:
    """
    Candidates, interviews and the current interview id.

    Args:
        storage: Persistence backend (defaults to an in-memory store)
    """

    def __init__(self, storage: Optional[KeyValueStore] = None):
        self.storage = storage or InMemoryStore()
        self.candidates: List[Candidate] = []
        self.interviews: List[Interview] = []
        self.current_interview_id: Optional[str] = None
        self.load()

    def load(self) -> None:
        """Rehydrate the persisted slices."""
        self.candidates = [
            Candidate.model_validate(item) for item in self.storage.get(CANDIDATES_KEY, []) or []
        ]
        self.interviews = [
            Interview.model_validate(item) for item in self.storage.get(INTERVIEWS_KEY, []) or []
        ]
        self.current_interview_id = None
        logger.debug(f"Loaded {len(self.candidates)} candidates and {len(self.interviews)} interviews")

    def _persist(self) -> None:
        self.storage.set(CANDIDATES_KEY, [c.model_dump(mode="json") for c in self.candidates])
        self.storage.set(INTERVIEWS_KEY, [i.model_dump(mode="json") for i in self.interviews])

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return next((c for c in self.candidates if c.id == candidate_id), None)

    def get_interview(self, interview_id: str) -> Optional[Interview]:
        return next((i for i in self.interviews if i.id == interview_id), None)

    def interview_for_candidate(self, candidate_id: str) -> Optional[Interview]:
        """The candidate's linked interview, or the first one recorded for them."""
        candidate = self.get_candidate(candidate_id)
        if candidate is not None and candidate.interview_id:
            linked = self.get_interview(candidate.interview_id)
            if linked is not None:
                return linked
        return next((i for i in self.interviews if i.candidate_id == candidate_id), None)

    @property
    def current_interview(self) -> Optional[Interview]:
        if self.current_interview_id is None:
            return None
        return self.get_interview(self.current_interview_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_candidate(self, candidate: Candidate) -> Candidate:
        self.candidates.append(candidate)
        self._persist()
        logger.info(f"Added candidate {candidate.id} ({candidate.name})")
        return candidate

    def update_candidate(self, candidate_id: str, **updates: Any) -> Candidate:
        candidate = self.get_candidate(candidate_id)
        if candidate is None:
            raise KeyError(f"Unknown candidate: {candidate_id}")
        updates["updated_at"] = utc_now()
        updated = candidate.model_copy(update=updates)
        # Re-validate so bad scores or statuses never reach storage
        updated = Candidate.model_validate(updated.model_dump())
        self._replace_candidate(updated)
        self._persist()
        return updated

    def _replace_candidate(self, candidate: Candidate) -> None:
        self.candidates = [candidate if c.id == candidate.id else c for c in self.candidates]

    def _replace_interview(self, interview: Interview) -> None:
        self.interviews = [interview if i.id == interview.id else i for i in self.interviews]

    def add_interview(self, interview: Interview) -> Interview:
        self.interviews.append(interview)
        self.current_interview_id = interview.id
        self._persist()
        logger.info(f"Added interview {interview.id} with {len(interview.questions)} questions")
        return interview

    def set_current_interview(self, interview_id: Optional[str]) -> None:
        self.current_interview_id = interview_id

    def append_answer(self, interview_id: str, answer: Answer) -> Interview:
        interview = self._require_interview(interview_id)
        if interview.status == InterviewStatus.COMPLETED:
            raise ValueError(f"Interview {interview_id} is already completed")
        if interview.has_answer_for(answer.question_id):
            raise ValueError(f"Question {answer.question_id} already has an answer")
        updated = interview.model_copy(update={"answers": [*interview.answers, answer]})
        self._replace_interview(updated)
        self._persist()
        return updated

    def advance_question(self, interview_id: str) -> Interview:
        interview = self._require_interview(interview_id)
        if interview.is_last_question:
            return interview
        updated = interview.model_copy(
            update={"current_question_index": interview.current_question_index + 1}
        )
        self._replace_interview(updated)
        self._persist()
        return updated

    def complete_interview(
        self,
        interview_id: str,
        score: float,
        summary: Optional[str] = None
    ) -> Interview:
        interview = self._require_interview(interview_id)
        end_time = utc_now()
        duration = 0.0
        if interview.start_time:
            started = datetime.fromisoformat(interview.start_time)
            duration = max(0.0, (datetime.fromisoformat(end_time) - started).total_seconds())

        updated = interview.model_copy(update={
            "status": InterviewStatus.COMPLETED,
            "end_time": end_time,
            "duration": duration,
            "score": score,
            "summary": summary,
        })
        self._replace_interview(updated)
        self._persist()
        logger.info(f"Interview {interview_id} completed with score {score:.2f}")
        return updated

    def set_summary(self, interview_id: str, summary: str) -> Interview:
        interview = self._require_interview(interview_id)
        updated = interview.model_copy(update={"summary": summary})
        self._replace_interview(updated)
        self._persist()
        return updated

    def mark_candidate_completed(self, candidate_id: str, score: float) -> Candidate:
        return self.update_candidate(
            candidate_id, score=score, interview_status=CandidateStatus.COMPLETED
        )

    def _require_interview(self, interview_id: str) -> Interview:
        interview = self.get_interview(interview_id)
        if interview is None:
            raise KeyError(f"Unknown interview: {interview_id}")
        return interview

    # ------------------------------------------------------------------
    # Recovery record
    # ------------------------------------------------------------------

    @staticmethod
    def recovery_key(client_id: Optional[str] = None) -> str:
        """Storage key of a client's recovery record; the local client uses the bare key."""
        return f"{RECOVERY_KEY}:{client_id}" if client_id else RECOVERY_KEY

    def get_recovery(self, client_id: Optional[str] = None) -> Optional[RecoverySnapshot]:
        raw: Optional[Dict[str, Any]] = self.storage.get(self.recovery_key(client_id))
        if not raw:
            return None
        try:
            return RecoverySnapshot.model_validate(raw)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable recovery record: {e}")
            return None

    def save_recovery(self, snapshot: RecoverySnapshot, client_id: Optional[str] = None) -> None:
        self.storage.set(self.recovery_key(client_id), snapshot.model_dump(mode="json"))

    def clear_recovery(self, client_id: Optional[str] = None) -> None:
        self.storage.delete(self.recovery_key(client_id))
