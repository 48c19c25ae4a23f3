"""
LLM collaborators for the interview: question generation, answer evaluation
and interview summaries.

Each collaborator is an abstract base class so the interview session can run
against any implementation; the LLM-backed ones use Gemini through LangChain
and wrap every call in the fixed retry policy.
"""
import json
import logging
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import ValidationError

from interview_assistant.models.interview import (
    Answer,
    Difficulty,
    Question,
    QuestionType,
    time_limit_for,
)
from interview_assistant.models.rubric import AnswerEvaluation
from interview_assistant.prompts.interview_prompts import (
    SYSTEM_PROMPT,
    format_evaluation_prompt,
    format_question_prompt,
    format_summary_prompt,
)
from interview_assistant.utils.config import get_llm_config
from interview_assistant.utils.constants import DEFAULT_POSITION
from interview_assistant.utils.errors import (
    CollaboratorError,
    EvaluationError,
    EvaluationParseError,
    QuestionGenerationError,
)
from interview_assistant.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class QuestionRequest:
    """Everything the generator needs to write one question."""
    difficulty: Difficulty
    topic: str
    type: QuestionType
    candidate_skills: List[str] = field(default_factory=list)
    candidate_role: str = DEFAULT_POSITION
    previous_questions: List[Question] = field(default_factory=list)


class QuestionGenerator(ABC):
    @abstractmethod
    async def generate(self, request: QuestionRequest) -> Question:
        """Return a new question or raise QuestionGenerationError."""


class AnswerEvaluator(ABC):
    @abstractmethod
    async def evaluate(self, question: Question, answer: Answer, candidate_name: str) -> AnswerEvaluation:
        """Return a structured evaluation or raise EvaluationError."""


class InterviewSummarizer(ABC):
    @abstractmethod
    async def summarize(
        self,
        candidate_name: str,
        questions: Sequence[Question],
        answers: Sequence[Answer],
        overall_score: float
    ) -> str:
        """Return a short written summary of the interview."""


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object out of an LLM reply.

    Handles fenced code blocks, prose around the object, newlines inside it and
    trailing commas.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    clean = text.strip()
    clean = re.sub(r"```(?:json)?\s*\n?", "", clean)

    match = re.search(r"\{.*\}", clean, re.DOTALL)
    if match:
        clean = match.group(0)

    clean = re.sub(r"\n\s*", " ", clean)
    clean = re.sub(r",\s*}", "}", clean)
    clean = re.sub(r",\s*]", "]", clean)

    try:
        parsed = json.loads(clean)
    except json.JSONDecodeError:
        start, end = clean.find("{"), clean.rfind("}")
        if start == -1 or end <= start:
            raise ValueError(f"No JSON object found in response: {text[:200]}")
        try:
            parsed = json.loads(clean[start:end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in response: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError("Parsed response is not a JSON object")
    return parsed


class GeminiClient:
    """Thin async wrapper around the chat model shared by the LLM collaborators."""

    def __init__(self, model: Optional[Any] = None, temperature: Optional[float] = None):
        if model is None:
            llm_config = get_llm_config()
            model = ChatGoogleGenerativeAI(
                model=llm_config["model"],
                temperature=temperature if temperature is not None else llm_config.get("temperature", 0.2),
                top_p=llm_config.get("top_p", 0.95),
            )
        self.model = model

    async def complete(self, prompt: str) -> str:
        response = await self.model.ainvoke([
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ])
        content = response.content if hasattr(response, "content") else str(response)
        if isinstance(content, list):
            content = "".join(part if isinstance(part, str) else part.get("text", "") for part in content)
        if not content or not content.strip():
            raise CollaboratorError("LLM returned empty content")
        return content


class LLMQuestionGenerator(QuestionGenerator):
    """Generates questions with Gemini."""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rng: Optional[random.Random] = None
    ):
        self.client = client or GeminiClient()
        self.retry_policy = retry_policy or RetryPolicy.from_config()
        self.rng = rng or random.Random()

    async def generate(self, request: QuestionRequest) -> Question:
        difficulty = request.difficulty.value
        logger.info(f"Generating {difficulty} {request.type.value} question about {request.topic}")

        prompt = format_question_prompt(
            difficulty=difficulty,
            topic=request.topic,
            question_type=request.type.value,
            role=request.candidate_role or DEFAULT_POSITION,
            skills=request.candidate_skills,
            previous_questions=[q.text for q in request.previous_questions],
            rng=self.rng,
        )

        text = await self.retry_policy.run(
            lambda: self.client.complete(prompt),
            description="generate question",
            error_cls=QuestionGenerationError,
        )
        logger.debug(f"Raw question response: {text[:200]}...")

        try:
            parsed = extract_json_object(text)
        except ValueError as e:
            logger.error(f"Failed to parse question response: {e}")
            raise QuestionGenerationError(f"Failed to parse question generation response: {e}") from e

        question_text = parsed.get("question")
        if not isinstance(question_text, str) or not question_text.strip():
            raise QuestionGenerationError("Generated question is empty or invalid")

        expected = parsed.get("expectedAnswer")
        question = Question(
            text=question_text.strip(),
            type=request.type,
            difficulty=request.difficulty,
            category=request.topic,
            time_limit=time_limit_for(request.difficulty),
            expected_answer=expected.strip() if isinstance(expected, str) else "",
        )
        logger.info(f"Generated question: \"{question.text[:80]}...\"")
        return question


class LLMAnswerEvaluator(AnswerEvaluator):
    """Scores answers with Gemini; rejects replies that are not a full evaluation."""

    def __init__(self, client: Optional[GeminiClient] = None, retry_policy: Optional[RetryPolicy] = None):
        self.client = client or GeminiClient()
        self.retry_policy = retry_policy or RetryPolicy.from_config()

    async def evaluate(self, question: Question, answer: Answer, candidate_name: str) -> AnswerEvaluation:
        prompt = format_evaluation_prompt(question.text, answer.text, candidate_name)
        text = await self.retry_policy.run(
            lambda: self.client.complete(prompt),
            description="evaluate answer",
            error_cls=EvaluationError,
        )
        return parse_evaluation(text)


def parse_evaluation(text: str) -> AnswerEvaluation:
    """
    Validate an evaluator reply.

    Raises:
        EvaluationParseError: If any score is missing or outside 0-100, or the
            feedback or suggestions are missing
    """
    try:
        parsed = extract_json_object(text)
        for key in ("overallScore", "technicalAccuracy", "problemSolving", "communication", "timeEfficiency"):
            value = parsed.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Invalid or missing {key} in evaluation response")
        return AnswerEvaluation.model_validate(parsed)
    except (ValueError, ValidationError) as e:
        logger.error(f"Failed to parse evaluation response: {e}")
        raise EvaluationParseError(f"Failed to parse answer evaluation response: {e}") from e


class LLMInterviewSummarizer(InterviewSummarizer):
    """Writes a short narrative summary of a completed interview."""

    def __init__(self, client: Optional[GeminiClient] = None, retry_policy: Optional[RetryPolicy] = None):
        self.client = client or GeminiClient()
        self.retry_policy = retry_policy or RetryPolicy.from_config()

    async def summarize(
        self,
        candidate_name: str,
        questions: Sequence[Question],
        answers: Sequence[Answer],
        overall_score: float
    ) -> str:
        answers_by_question = {a.question_id: a.text for a in answers}
        pairs = [(q.text, answers_by_question.get(q.id, "")) for q in questions]
        prompt = format_summary_prompt(candidate_name, overall_score, pairs)
        text = await self.retry_policy.run(
            lambda: self.client.complete(prompt),
            description="summarize interview",
        )
        return re.sub(r"```[\s\S]*?```", "", text).strip()
