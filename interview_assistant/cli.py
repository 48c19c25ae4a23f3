"""
Command Line Interface for the Interview Assistant.

``interview-assistant interview`` runs a timed interview in the terminal and
``interview-assistant dashboard`` lists candidates with fuzzy search and sorting.
"""
import argparse
import asyncio
import logging
import os
from datetime import datetime
from typing import Optional

from interview_assistant.core.session import InterviewSession, SessionSnapshot, SessionState
from interview_assistant.core.store import InterviewStore
from interview_assistant.core.timer import NullLifecycleSignal, format_timer_display
from interview_assistant.tools.report_tools import generate_candidate_report
from interview_assistant.utils.config import get_search_config, log_config
from interview_assistant.utils.search import CandidateSearchController, CandidateSearchIndex
from interview_assistant.utils.storage import create_store

logger = logging.getLogger(__name__)

NOTICE_ICONS = {"info": "ℹ️", "success": "✅", "warning": "⚠️", "error": "❌"}


async def ask(prompt: str) -> str:
    """Read a line without blocking the event loop, so the question timer keeps running."""
    return await asyncio.to_thread(input, prompt)


class InterviewCLI:
    """Terminal front end for one interview session."""

    def __init__(self, session: InterviewSession, resume_path: Optional[str] = None):
        self.session = session
        self.resume_path = resume_path

    def show_notices(self, snapshot: SessionSnapshot) -> None:
        for notice in snapshot.notices:
            print(f"{NOTICE_ICONS.get(notice.level.value, '')} {notice.message}")
        while self.session.notices:
            self.session.dismiss_notice(0)

    async def run(self) -> SessionSnapshot:
        print("\n🤖 Interview Assistant - Technical Interview 🤖\n")
        snapshot = self.session.load()

        if snapshot.state == SessionState.WELCOME_BACK:
            print(f"Welcome back, {snapshot.recovery.candidate_info.name}! You have an unfinished interview.")
            choice = (await ask("Resume it (r) or start over (s)? ")).strip().lower()
            if choice.startswith("r"):
                snapshot = self.session.resume_from_snapshot()
            else:
                snapshot = self.session.discard_snapshot()
            self.show_notices(snapshot)

        if snapshot.state in (SessionState.COLLECTING_IDENTITY, SessionState.COLLECTING_MISSING_FIELDS):
            snapshot = await self.collect_identity()

        while snapshot.state == SessionState.READY_TO_START:
            info = snapshot.candidate_info
            print(f"\nCandidate: {info.name} <{info.email}> {info.phone}")
            print(f"Position: {info.position}  Skills: {', '.join(info.skills) or 'not specified'}")
            await ask("Press Enter to generate your questions and start the interview...")
            print("Generating questions, this can take a moment...")
            snapshot = await self.session.start_interview()
            self.show_notices(snapshot)
            if snapshot.state != SessionState.IN_PROGRESS:
                retry = (await ask("Try again? (y/n): ")).strip().lower()
                if retry not in ("y", "yes"):
                    return snapshot

        while snapshot.state == SessionState.IN_PROGRESS:
            snapshot = await self.ask_question(snapshot)

        if snapshot.state == SessionState.COMPLETED:
            self.show_results(snapshot)
        return snapshot

    async def collect_identity(self) -> SessionSnapshot:
        snapshot = self.session.snapshot
        if self.resume_path:
            print(f"Reading resume {self.resume_path}...")
            snapshot = await self.session.submit_resume(self.resume_path)
            self.show_notices(snapshot)

        while snapshot.state in (SessionState.COLLECTING_IDENTITY, SessionState.COLLECTING_MISSING_FIELDS):
            fields = {}
            for field in snapshot.missing_fields:
                fields[field] = (await ask(f"Your {field}: ")).strip()
            if not snapshot.candidate_info.skills:
                skills = (await ask("Your main skills (comma separated, optional): ")).strip()
                if skills:
                    fields["skills"] = [s.strip() for s in skills.split(",") if s.strip()]
            snapshot = self.session.submit_manual_entry(**fields)
            self.show_notices(snapshot)
        return snapshot

    async def ask_question(self, snapshot: SessionSnapshot) -> SessionSnapshot:
        question = snapshot.current_question
        print(
            f"\n📝 Question {snapshot.question_number}/{snapshot.total_questions} "
            f"[{question.difficulty.value}, {question.type.value}] "
            f"- {format_timer_display(question.time_limit)} to answer"
        )
        print(f"\n{question.text}\n")

        text = await ask("👤 Your answer: ")
        self.session.update_draft(text)

        if self.session.snapshot.pending_confirmation:
            self.show_notices(self.session.snapshot)
            choice = (await ask("Submit this answer now (s) or review it first (r)? ")).strip().lower()
            if choice.startswith("r"):
                self.session.request_review()
                revised = await ask("👤 Revised answer (Enter keeps the current one): ")
                snapshot = await self.session.submit_answer(revised if revised.strip() else text)
            else:
                print("Submitting and evaluating...")
                snapshot = await self.session.confirm_auto_submit()
        else:
            print(f"⏱️  {format_timer_display(self.session.timer.remaining())} left. Evaluating...")
            snapshot = await self.session.submit_answer(text)

        self.show_notices(snapshot)
        return snapshot

    @staticmethod
    def show_results(snapshot: SessionSnapshot) -> None:
        interview = snapshot.interview
        print("\n🏁 Interview complete")
        print(f"Overall score: {(interview.score or 0) * 100:.0f}%")
        questions = {q.id: q for q in interview.questions}
        for number, answer in enumerate(interview.answers, 1):
            question = questions.get(answer.question_id)
            score = "not scored" if answer.score is None else f"{answer.score * 100:.0f}%"
            print(f"\n{number}. {question.text if question else answer.question_id}")
            print(f"   Score: {score}")
            if answer.feedback:
                print(f"   Feedback: {answer.feedback}")
        if interview.summary:
            print(f"\nSummary:\n{interview.summary}")


def run_dashboard(
    store: InterviewStore,
    query: str = "",
    sort_by: str = "date",
    sort_order: str = "desc"
) -> None:
    """Print the candidate list, filtered and sorted the way the dashboard shows it."""
    search_config = get_search_config()
    controller = CandidateSearchController(
        lambda: store.candidates,
        index=CandidateSearchIndex(
            threshold=search_config.get("threshold", 0.3),
            cache_size=search_config.get("cache_size", 50),
        ),
        sort_by=sort_by,
        sort_order=sort_order,
    )
    controller.apply_search(query)
    stats = controller.stats()
    results = controller.results()

    if stats["has_active_filter"]:
        print(f"Showing {stats['filtered']} of {stats['total']} candidates matching '{query}'")
    else:
        print(f"{stats['total']} candidates")

    for candidate in results:
        score = "-" if candidate.score is None else f"{candidate.score * 100:.0f}%"
        created = datetime.fromisoformat(candidate.created_at).strftime("%Y-%m-%d %H:%M")
        print(
            f"{candidate.id[:8]}  {candidate.name:<25} {candidate.email:<30} "
            f"{candidate.interview_status.value:<12} {score:>5}  {created}"
        )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Interview Assistant CLI")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    interview = subparsers.add_parser("interview", help="Take a timed interview in the terminal")
    interview.add_argument("--resume", type=str, help="Path to a PDF, DOCX or TXT resume")
    interview.add_argument("--report", type=str, help="Directory to write the PDF report to when finished")

    dashboard = subparsers.add_parser("dashboard", help="List candidates")
    dashboard.add_argument("--query", "-q", type=str, default="", help="Fuzzy search term")
    dashboard.add_argument("--sort-by", choices=["name", "score", "date"], default="date")
    dashboard.add_argument("--sort-order", choices=["asc", "desc"], default="desc")
    dashboard.add_argument("--report", type=str, metavar="CANDIDATE_ID", help="Write this candidate's PDF report")
    dashboard.add_argument("--output", type=str, default="reports", help="Directory for the PDF report")
    return parser.parse_args(argv)


async def _main(args) -> None:
    """Async main function."""
    store = InterviewStore(create_store())

    if args.command == "dashboard":
        if args.report:
            candidate = next((c for c in store.candidates if c.id.startswith(args.report)), None)
            if candidate is None:
                print(f"No candidate with id {args.report}")
                return
            os.makedirs(args.output, exist_ok=True)
            generate_candidate_report(candidate, store.interview_for_candidate(candidate.id), args.output)
            print(f"Report written to {args.output}")
            return
        run_dashboard(store, args.query, args.sort_by, args.sort_order)
        return

    session = InterviewSession.with_llm_collaborators(store, lifecycle=NullLifecycleSignal())
    cli = InterviewCLI(session, resume_path=args.resume)
    try:
        snapshot = await cli.run()
    except (KeyboardInterrupt, EOFError):
        print("\nInterview paused. Run the interview command again to resume it.")
        return
    finally:
        session.close()

    if args.report and snapshot.state == SessionState.COMPLETED and snapshot.candidate_id:
        candidate = store.get_candidate(snapshot.candidate_id)
        generate_candidate_report(candidate, snapshot.interview, args.report)
        print(f"\nReport written to {args.report}")


def main(argv=None):
    """Main entry point for the CLI, used by setup.py entry_points."""
    args = parse_args(argv)
    log_config("DEBUG" if args.debug else None)
    asyncio.run(_main(args))


if __name__ == "__main__":
    main()
