import asyncio
import random
import unittest
from unittest.mock import AsyncMock, call

from interview_assistant.core.session import InterviewSession, NoticeLevel, SessionState, is_degenerate_answer
from interview_assistant.core.store import InterviewStore
from interview_assistant.core.timer import HighResolutionTimer
from interview_assistant.models.interview import (
    CandidateStatus,
    Difficulty,
    InterviewStatus,
    Question,
    QuestionType,
    time_limit_for,
)
from interview_assistant.models.resume import PersonalInfo, ResumeData
from interview_assistant.models.rubric import AnswerEvaluation
from interview_assistant.tests.test_timer import FakeClock
from interview_assistant.tools.question_tools import (
    AnswerEvaluator,
    InterviewSummarizer,
    QuestionGenerator,
)
from interview_assistant.tools.resume_tools import ResumeExtractor
from interview_assistant.utils.errors import (
    CollaboratorError,
    EvaluationError,
    InvalidTransitionError,
    QuestionGenerationError,
    ResumeExtractionError,
)
from interview_assistant.utils.storage import InMemoryStore
from interview_assistant.utils.topics import SKILL_TOPICS, TopicSelector

GOOD_ANSWER = "Closures keep a reference to the scope they were created in."

IDENTITY = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "555-123-4567",
    "skills": ["React", "Node.js"],
}


class FakeQuestionGenerator(QuestionGenerator):
    def __init__(self, fail_after=None):
        self.requests = []
        self.fail_after = fail_after

    async def generate(self, request):
        self.requests.append(request)
        if self.fail_after is not None and len(self.requests) > self.fail_after:
            raise QuestionGenerationError("service unavailable", attempts=3)
        return Question(
            text=f"Question {len(self.requests)} about {request.topic}",
            type=request.type,
            difficulty=request.difficulty,
            category=request.topic,
            time_limit=time_limit_for(request.difficulty),
        )


class FakeAnswerEvaluator(AnswerEvaluator):
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    async def evaluate(self, question, answer, candidate_name):
        self.calls += 1
        if self.fail:
            raise EvaluationError("evaluator offline", attempts=3)
        return AnswerEvaluation.model_validate({
            "overallScore": 82,
            "technicalAccuracy": 80,
            "problemSolving": 75,
            "communication": 90,
            "timeEfficiency": 70,
            "feedback": "Good explanation.",
            "suggestions": ["Add an example."],
        })


class FakeResumeExtractor(ResumeExtractor):
    def __init__(self, data=None):
        self.data = data

    async def extract(self, source, filename=None):
        if self.data is None:
            raise ResumeExtractionError("unreadable")
        return self.data


class FakeSummarizer(InterviewSummarizer):
    def __init__(self, fail=False):
        self.fail = fail

    async def summarize(self, candidate_name, questions, answers, overall_score):
        if self.fail:
            raise CollaboratorError("summary unavailable")
        return f"{candidate_name} answered {len(answers)} questions."


def make_session(backend=None, generator=None, evaluator=None, store=None, **kwargs):
    clock = FakeClock()
    timer = HighResolutionTimer(clock=clock, frame_interval=3600)
    kwargs.setdefault("generation_delay", 0)
    session = InterviewSession(
        store or InterviewStore(backend or InMemoryStore()),
        generator or FakeQuestionGenerator(),
        evaluator or FakeAnswerEvaluator(),
        timer=timer,
        **kwargs,
    )
    return session, clock


def notice_levels(snapshot):
    return [notice.level for notice in snapshot.notices]


class TestIdentityCollection(unittest.TestCase):

    def test_manual_entry_complete(self):
        session, _ = make_session()
        snapshot = session.submit_manual_entry(**IDENTITY)
        self.assertEqual(snapshot.state, SessionState.READY_TO_START)
        self.assertEqual(snapshot.candidate_info.position, "Full Stack Developer")
        self.assertEqual(snapshot.missing_fields, [])

    def test_missing_fields_are_requested_then_merged(self):
        session, _ = make_session()
        snapshot = session.submit_manual_entry(name="Jane Doe")
        self.assertEqual(snapshot.state, SessionState.COLLECTING_MISSING_FIELDS)
        self.assertEqual(snapshot.missing_fields, ["email", "phone"])

        snapshot = asyncio.run(session.start_interview())
        self.assertEqual(snapshot.state, SessionState.COLLECTING_MISSING_FIELDS)
        self.assertEqual(notice_levels(snapshot)[-1], NoticeLevel.WARNING)

        snapshot = session.submit_manual_entry(email="jane@example.com", phone="  555-123-4567 ", name="")
        self.assertEqual(snapshot.state, SessionState.READY_TO_START)
        self.assertEqual(snapshot.candidate_info.name, "Jane Doe")
        self.assertEqual(snapshot.candidate_info.phone, "555-123-4567")

    def test_unknown_field_is_rejected(self):
        session, _ = make_session()
        with self.assertRaises(ValueError):
            session.submit_manual_entry(salary="100k")

    def test_resume_upload_fills_fields(self):
        data = ResumeData(
            personal_info=PersonalInfo(name="Jane Doe", email="jane@example.com", phone="555-123-4567"),
            skills=["Python"],
        )
        session, _ = make_session(resume_extractor=FakeResumeExtractor(data))
        snapshot = asyncio.run(session.submit_resume(b"resume", "resume.pdf"))
        self.assertEqual(snapshot.state, SessionState.READY_TO_START)
        self.assertEqual(snapshot.candidate_info.skills, ["Python"])
        self.assertFalse(snapshot.is_busy)

    def test_resume_failure_falls_back_to_manual_entry(self):
        session, _ = make_session(resume_extractor=FakeResumeExtractor())
        snapshot = asyncio.run(session.submit_resume(b"resume", "resume.pdf"))
        self.assertEqual(snapshot.state, SessionState.COLLECTING_MISSING_FIELDS)
        self.assertEqual(notice_levels(snapshot), [NoticeLevel.ERROR])

        snapshot = session.submit_manual_entry(**IDENTITY)
        self.assertEqual(snapshot.state, SessionState.READY_TO_START)

    def test_commands_in_wrong_state(self):
        session, _ = make_session()
        with self.assertRaises(InvalidTransitionError):
            asyncio.run(session.submit_answer("too early"))
        with self.assertRaises(InvalidTransitionError):
            session.resume_from_snapshot()


class TestInterviewFlow(unittest.TestCase):

    def test_full_interview(self):
        generator = FakeQuestionGenerator()
        evaluator = FakeAnswerEvaluator()
        session, _ = make_session(generator=generator, evaluator=evaluator)
        session.submit_manual_entry(**IDENTITY)

        async def run():
            snapshot = await session.start_interview()
            self.assertEqual(snapshot.state, SessionState.IN_PROGRESS)
            self.assertEqual(snapshot.question_number, 1)
            self.assertEqual(snapshot.time_left, 20)
            for number in range(2, 7):
                snapshot = await session.submit_answer(GOOD_ANSWER)
                self.assertEqual(snapshot.question_number, number)
            return await session.submit_answer(GOOD_ANSWER)

        snapshot = asyncio.run(run())
        interview = snapshot.interview
        self.assertEqual(snapshot.state, SessionState.COMPLETED)
        self.assertEqual(
            [q.difficulty for q in interview.questions],
            [Difficulty.EASY, Difficulty.EASY, Difficulty.MEDIUM, Difficulty.MEDIUM, Difficulty.HARD, Difficulty.HARD],
        )
        self.assertEqual([q.time_limit for q in interview.questions], [20, 20, 60, 60, 120, 120])
        self.assertEqual(len(interview.answers), 6)
        self.assertEqual(interview.status, InterviewStatus.COMPLETED)
        self.assertAlmostEqual(interview.score, 0.82)
        self.assertEqual(evaluator.calls, 6)
        self.assertEqual(len(generator.requests[5].previous_questions), 5)

        candidate = session.store.get_candidate(snapshot.candidate_id)
        self.assertEqual(candidate.interview_status, CandidateStatus.COMPLETED)
        self.assertEqual(candidate.interview_id, interview.id)
        self.assertAlmostEqual(candidate.score, 0.82)
        self.assertIsNone(session.store.get_recovery())

    def test_start_records_recovery(self):
        session, _ = make_session()
        session.submit_manual_entry(**IDENTITY)
        snapshot = asyncio.run(session.start_interview())
        recovery = session.store.get_recovery()
        self.assertEqual(recovery.candidate_id, snapshot.candidate_id)
        self.assertEqual(recovery.interview_id, snapshot.interview.id)
        candidate = session.store.get_candidate(snapshot.candidate_id)
        self.assertEqual(candidate.interview_status, CandidateStatus.IN_PROGRESS)

    def test_generation_failure_stores_nothing(self):
        session, _ = make_session(generator=FakeQuestionGenerator(fail_after=3))
        session.submit_manual_entry(**IDENTITY)
        snapshot = asyncio.run(session.start_interview())
        self.assertEqual(snapshot.state, SessionState.READY_TO_START)
        self.assertEqual(session.store.candidates, [])
        self.assertEqual(session.store.interviews, [])
        self.assertIsNone(session.store.get_recovery())
        self.assertEqual(notice_levels(snapshot)[-1], NoticeLevel.ERROR)
        self.assertFalse(snapshot.is_busy)

    def test_degenerate_answer_is_scored_locally(self):
        evaluator = FakeAnswerEvaluator()
        session, _ = make_session(evaluator=evaluator)
        session.submit_manual_entry(**IDENTITY)

        async def run():
            await session.start_interview()
            return await session.submit_answer("yes")

        snapshot = asyncio.run(run())
        answer = snapshot.interview.answers[0]
        self.assertEqual(answer.score, 0.0)
        self.assertEqual(answer.feedback, "Answer is too short or irrelevant.")
        self.assertEqual(evaluator.calls, 0)
        self.assertEqual(snapshot.question_number, 2)

    def test_empty_answer_is_rejected_with_notice(self):
        session, _ = make_session()
        session.submit_manual_entry(**IDENTITY)

        async def run():
            await session.start_interview()
            return await session.submit_answer("   ")

        snapshot = asyncio.run(run())
        self.assertEqual(snapshot.interview.answers, [])
        self.assertEqual(snapshot.question_number, 1)
        self.assertEqual(notice_levels(snapshot)[-1], NoticeLevel.WARNING)

    def test_evaluation_failure_keeps_unscored_answer(self):
        session, _ = make_session(evaluator=FakeAnswerEvaluator(fail=True))
        session.submit_manual_entry(**IDENTITY)

        async def run():
            await session.start_interview()
            return await session.submit_answer(GOOD_ANSWER)

        snapshot = asyncio.run(run())
        answer = snapshot.interview.answers[0]
        self.assertIsNone(answer.score)
        self.assertEqual(answer.text, GOOD_ANSWER)
        self.assertEqual(snapshot.question_number, 2)
        self.assertIn(NoticeLevel.WARNING, notice_levels(snapshot))

    def test_draft_is_submitted_when_no_text_given(self):
        session, _ = make_session()
        session.submit_manual_entry(**IDENTITY)

        async def run():
            await session.start_interview()
            session.update_draft(GOOD_ANSWER)
            return await session.submit_answer()

        snapshot = asyncio.run(run())
        self.assertEqual(snapshot.interview.answers[0].text, GOOD_ANSWER)
        self.assertEqual(snapshot.draft, "")

    def test_early_completion_is_reported_and_idempotent(self):
        session, _ = make_session(summarizer=FakeSummarizer())
        session.submit_manual_entry(**IDENTITY)

        async def run():
            await session.start_interview()
            await session.submit_answer(GOOD_ANSWER)
            first = await session.complete_interview()
            second = await session.complete_interview()
            return first, second

        first, second = asyncio.run(run())
        self.assertEqual(first.state, SessionState.COMPLETED)
        self.assertIn(NoticeLevel.WARNING, notice_levels(first))
        self.assertEqual(second.interview.end_time, first.interview.end_time)
        self.assertEqual(second.interview.summary, "Jane Doe answered 1 questions.")

    def test_summary_failure_does_not_block_completion(self):
        session, _ = make_session(summarizer=FakeSummarizer(fail=True))
        session.submit_manual_entry(**IDENTITY)

        async def run():
            await session.start_interview()
            return await session.complete_interview()

        snapshot = asyncio.run(run())
        self.assertEqual(snapshot.state, SessionState.COMPLETED)
        self.assertIsNone(snapshot.interview.summary)


class TestQuestionGeneration(unittest.TestCase):

    def test_plan_order_topics_and_delay(self):
        generator = FakeQuestionGenerator()
        sleep = AsyncMock()
        session, _ = make_session(
            generator=generator,
            generation_delay=0.5,
            sleep=sleep,
            topic_selector=TopicSelector(random.Random(7)),
        )
        session.submit_manual_entry(**IDENTITY)
        snapshot = asyncio.run(session.start_interview())

        self.assertEqual(snapshot.state, SessionState.IN_PROGRESS)
        self.assertEqual(sleep.await_count, 5)
        sleep.assert_has_awaits([call(0.5)] * 5)

        self.assertEqual([(r.difficulty, r.type) for r in generator.requests], [
            (Difficulty.EASY, QuestionType.TECHNICAL),
            (Difficulty.EASY, QuestionType.TECHNICAL),
            (Difficulty.MEDIUM, QuestionType.CODING),
            (Difficulty.MEDIUM, QuestionType.TECHNICAL),
            (Difficulty.HARD, QuestionType.TECHNICAL),
            (Difficulty.HARD, QuestionType.BEHAVIORAL),
        ])
        self.assertEqual([len(r.previous_questions) for r in generator.requests], [0, 1, 2, 3, 4, 5])
        self.assertEqual(generator.requests[0].candidate_skills, ["React", "Node.js"])
        self.assertEqual([q.time_limit for q in snapshot.interview.questions], [20, 20, 60, 60, 120, 120])

        easy_topics = SKILL_TOPICS["react"]["easy"] + SKILL_TOPICS["node"]["easy"]
        first, second = generator.requests[0].topic, generator.requests[1].topic
        self.assertIn(first, easy_topics)
        self.assertIn(second, easy_topics)
        self.assertNotEqual(first, second)
        self.assertEqual(generator.requests[5].topic, "Complex Problem Solving & Leadership")

    def test_no_delay_before_first_call_or_after_failure(self):
        generator = FakeQuestionGenerator(fail_after=2)
        sleep = AsyncMock()
        session, _ = make_session(generator=generator, generation_delay=0.5, sleep=sleep)
        session.submit_manual_entry(**IDENTITY)
        asyncio.run(session.start_interview())

        self.assertEqual(len(generator.requests), 3)
        self.assertEqual(sleep.await_count, 2)


class TestTimeLimit(unittest.TestCase):

    def setUp(self):
        self.session, self.clock = make_session()
        self.session.submit_manual_entry(**IDENTITY)

    def test_time_up_then_confirm_submits_draft(self):
        async def run():
            await self.session.start_interview()
            self.session.update_draft("Closures capture")
            self.clock.advance(20)
            self.session.timer.update()
            pending = self.session.snapshot
            return pending, await self.session.confirm_auto_submit()

        pending, snapshot = asyncio.run(run())
        self.assertTrue(pending.pending_confirmation)
        self.assertEqual(pending.time_left, 0)
        answer = snapshot.interview.answers[0]
        self.assertEqual(answer.text, "Closures capture")
        self.assertEqual(answer.time_spent, 20)
        self.assertFalse(snapshot.pending_confirmation)
        self.assertEqual(snapshot.question_number, 2)
        self.assertEqual(snapshot.time_left, 20)

    def test_time_up_with_empty_draft_scores_zero(self):
        async def run():
            await self.session.start_interview()
            self.clock.advance(25)
            self.session.timer.update()
            return await self.session.confirm_auto_submit()

        snapshot = asyncio.run(run())
        self.assertEqual(snapshot.interview.answers[0].score, 0.0)

    def test_review_keeps_question_open(self):
        async def run():
            await self.session.start_interview()
            self.clock.advance(20)
            self.session.timer.update()
            reviewing = self.session.request_review()
            return reviewing, await self.session.submit_answer(GOOD_ANSWER)

        reviewing, snapshot = asyncio.run(run())
        self.assertTrue(reviewing.reviewing)
        self.assertFalse(reviewing.pending_confirmation)
        self.assertEqual(reviewing.question_number, 1)
        self.assertFalse(snapshot.reviewing)
        self.assertEqual(snapshot.question_number, 2)

    def test_confirm_without_time_up_is_invalid(self):
        async def run():
            await self.session.start_interview()
            await self.session.confirm_auto_submit()

        with self.assertRaises(InvalidTransitionError):
            asyncio.run(run())

    def test_pause_does_not_consume_time(self):
        async def run():
            await self.session.start_interview()
            self.clock.advance(5)
            self.session.pause_timer()
            self.clock.advance(100)
            return self.session.resume_timer()

        snapshot = asyncio.run(run())
        self.assertAlmostEqual(snapshot.time_left, 15)
        self.assertFalse(snapshot.pending_confirmation)


class TestRecovery(unittest.TestCase):

    def setUp(self):
        self.backend = InMemoryStore()
        first, _ = make_session(backend=self.backend)
        first.submit_manual_entry(**IDENTITY)

        async def run():
            await first.start_interview()
            return await first.submit_answer(GOOD_ANSWER)

        self.started = asyncio.run(run())
        first.close()

    def test_welcome_back_resume(self):
        session, _ = make_session(backend=self.backend)
        snapshot = session.load()
        self.assertEqual(snapshot.state, SessionState.WELCOME_BACK)
        self.assertEqual(snapshot.recovery.candidate_info.name, "Jane Doe")

        snapshot = session.resume_from_snapshot()
        self.assertEqual(snapshot.state, SessionState.IN_PROGRESS)
        self.assertEqual(snapshot.interview.id, self.started.interview.id)
        self.assertEqual(snapshot.question_number, 2)
        self.assertEqual(len(snapshot.interview.answers), 1)
        self.assertEqual(snapshot.time_left, 20)

    def test_welcome_back_discard(self):
        session, _ = make_session(backend=self.backend)
        session.load()
        snapshot = session.discard_snapshot()
        self.assertEqual(snapshot.state, SessionState.COLLECTING_IDENTITY)
        self.assertIsNone(snapshot.recovery)
        self.assertEqual(snapshot.candidate_info.name, "")
        self.assertIsNone(session.store.get_recovery())

    def test_resume_without_open_interview_waits_for_start(self):
        store = InterviewStore(self.backend)
        store.complete_interview(self.started.interview.id, 0.5)
        session, _ = make_session(backend=self.backend)
        session.load()
        snapshot = session.resume_from_snapshot()
        self.assertEqual(snapshot.state, SessionState.READY_TO_START)
        self.assertEqual(snapshot.candidate_info.email, "jane@example.com")
        self.assertIsNone(session.store.get_recovery())

    def test_recovery_records_are_kept_per_client(self):
        store = InterviewStore(InMemoryStore())
        first, _ = make_session(store=store, client_id="client-a")
        second, _ = make_session(store=store, client_id="client-b")
        first.submit_manual_entry(**IDENTITY)
        second.submit_manual_entry(**dict(IDENTITY, name="Sam Lee", email="sam@example.com"))

        async def run():
            await first.start_interview()
            opened = await second.start_interview()
            for _ in range(6):
                finished = await first.submit_answer(GOOD_ANSWER)
            return opened, finished

        opened, finished = asyncio.run(run())
        self.assertEqual(finished.state, SessionState.COMPLETED)
        self.assertIsNone(store.get_recovery("client-a"))
        self.assertEqual(store.get_recovery("client-b").interview_id, opened.interview.id)
        self.assertIsNone(store.get_recovery())

        stranger, _ = make_session(store=store, client_id="client-c")
        self.assertEqual(stranger.load().state, SessionState.COLLECTING_IDENTITY)

        returning, _ = make_session(store=store, client_id="client-b")
        self.assertEqual(returning.load().recovery.candidate_info.name, "Sam Lee")
        snapshot = returning.resume_from_snapshot()
        self.assertEqual(snapshot.state, SessionState.IN_PROGRESS)
        self.assertEqual(snapshot.interview.id, opened.interview.id)

    def test_no_recovery_starts_fresh(self):
        session, _ = make_session()
        self.assertEqual(session.load().state, SessionState.COLLECTING_IDENTITY)


class TestDegenerateAnswers(unittest.TestCase):

    def test_degenerate(self):
        for text in ("", "   ", "yes", " NO ", "ok", "abcd"):
            self.assertTrue(is_degenerate_answer(text), text)

    def test_not_degenerate(self):
        self.assertFalse(is_degenerate_answer("Closures capture scope"))
        self.assertFalse(is_degenerate_answer("maybe"))


if __name__ == "__main__":
    unittest.main()
