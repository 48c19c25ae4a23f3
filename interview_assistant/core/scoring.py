"""
Interview scoring.

``aggregate_interview_score`` turns the evaluator's per-answer scores into the
candidate's headline score. ``RubricScorer`` is a fully local scorer that needs
no external service; it scores an answer on five weighted criteria.
"""
import logging
import re
from typing import Dict, List, Optional, Sequence

from interview_assistant.models.interview import Answer, Question, QuestionType
from interview_assistant.models.rubric import ScoringCriteria, ScoringWeights
from interview_assistant.utils.algorithms import calculate_text_similarity

logger = logging.getLogger(__name__)


def aggregate_interview_score(answers: Sequence[Answer]) -> float:
    """
    Mean of the positive answer scores.

    Answers with no score or a zero score are left out of both the sum and the
    count; when no answer has a positive score the aggregate is 0.
    """
    valid_scores = [a.score for a in answers if a.score is not None and a.score > 0]
    if not valid_scores:
        return 0.0
    return sum(valid_scores) / len(valid_scores)


CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "JavaScript": ["function", "variable", "const", "let", "var", "scope", "closure", "async", "promise"],
    "Programming": ["algorithm", "complexity", "data structure", "array", "string", "loop", "recursion"],
    "Experience": ["project", "team", "challenge", "solution", "collaborate", "learn", "achieve"],
}

# Expected answer length in words, by question type
EXPECTED_WORD_COUNTS = {
    QuestionType.CODING: 50,
    QuestionType.TECHNICAL: 30,
}
DEFAULT_EXPECTED_WORDS = 40

STRUCTURE_MARKERS = re.compile(
    r"\b(first|second|third|firstly|secondly|finally|however|therefore|because)\b",
    re.IGNORECASE,
)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _words(text: str) -> List[str]:
    return [w for w in re.split(r"\s+", text.lower().strip()) if w]


class RubricScorer:
    """
    Local rubric scorer.

    Each criterion is clamped to [0, 1] and the weighted sum is the answer's
    composite score.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def evaluate_criteria(
        self,
        answer: Answer,
        question: Question,
        expected_answer: Optional[str] = None
    ) -> ScoringCriteria:
        expected = expected_answer if expected_answer is not None else question.expected_answer
        if expected:
            accuracy = calculate_text_similarity(answer.text, expected)
        else:
            accuracy = self.accuracy_by_keywords(answer.text, question)

        return ScoringCriteria(
            accuracy=_clamp(accuracy),
            completeness=_clamp(self.completeness(answer.text, question)),
            clarity=_clamp(self.clarity(answer.text)),
            timeliness=_clamp(self.timeliness(answer.time_spent, question.time_limit)),
            relevance=_clamp(self.relevance(answer.text, question)),
        )

    def score_answer(
        self,
        answer: Answer,
        question: Question,
        expected_answer: Optional[str] = None
    ) -> float:
        criteria = self.evaluate_criteria(answer, question, expected_answer)
        return sum(
            getattr(criteria, name) * weight
            for name, weight in self.weights.model_dump().items()
        )

    def score_interview(self, answers: Sequence[Answer], questions: Sequence[Question]) -> float:
        """Unweighted mean of composite scores over answers that have a matching question."""
        by_id = {q.id: q for q in questions}
        scores = []
        for answer in answers:
            question = by_id.get(answer.question_id)
            if question is None:
                logger.warning(f"Skipping answer {answer.id}: no matching question {answer.question_id}")
                continue
            scores.append(self.score_answer(answer, question))
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    @staticmethod
    def accuracy_by_keywords(text: str, question: Question) -> float:
        keywords = CATEGORY_KEYWORDS.get(question.category, [])
        if not keywords:
            return 0.5
        answer_words = _words(text)
        matched = [k for k in keywords if any(k.lower() in word for word in answer_words)]
        return len(matched) / len(keywords)

    @staticmethod
    def completeness(text: str, question: Question) -> float:
        word_count = len(_words(text))
        expected = EXPECTED_WORD_COUNTS.get(question.type, DEFAULT_EXPECTED_WORDS)
        if word_count < expected * 0.5:
            return 0.3
        if word_count < expected:
            return 0.7
        if word_count <= expected * 1.5:
            return 1.0
        return 0.8

    @staticmethod
    def clarity(text: str) -> float:
        sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
        if not sentences:
            return 0.0
        average_length = len(text) / len(sentences)
        score = 0.5
        if 20 < average_length < 100:
            score += 0.3
        if STRUCTURE_MARKERS.search(text):
            score += 0.2
        return min(1.0, score)

    @staticmethod
    def timeliness(time_spent: float, time_limit: float) -> float:
        if time_limit <= 0:
            return 0.2
        ratio = time_spent / time_limit
        if ratio <= 0.7:
            return 1.0
        if ratio <= 1.0:
            return 0.8
        if ratio <= 1.2:
            return 0.5
        return 0.2

    @staticmethod
    def relevance(text: str, question: Question) -> float:
        question_words = _words(question.text)
        if not question_words:
            return 0.5
        answer_words = set(_words(text))
        relevant = [w for w in question_words if len(w) > 3 and w in answer_words]
        return len(relevant) / len(question_words)

    @staticmethod
    def feedback(criteria: ScoringCriteria) -> str:
        """Plain-language feedback for the weakest criteria."""
        messages = []
        if criteria.accuracy < 0.6:
            messages.append("Consider reviewing the key concepts related to this question.")
        if criteria.completeness < 0.6:
            messages.append("Your answer could be more comprehensive. Try to cover all aspects of the question.")
        if criteria.clarity < 0.6:
            messages.append("Work on structuring your answer more clearly with logical flow.")
        if criteria.timeliness < 0.6:
            messages.append("Try to manage your time better and provide a complete answer within the time limit.")
        if criteria.relevance < 0.6:
            messages.append("Ensure your answer directly addresses the question asked.")
        if not messages:
            messages.append("Great answer! You demonstrated good understanding and communication skills.")
        return " ".join(messages)
