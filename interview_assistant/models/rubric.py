"""
Rubric definitions for the Interview Assistant.

This module defines the evaluation structures used to score candidate answers,
both from the LLM evaluator and from the local rubric scorer.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnswerEvaluation(BaseModel):
    """Structured evaluation returned by the answer evaluator (0-100 scale)."""
    overall_score: float = Field(..., ge=0, le=100, alias="overallScore")
    technical_accuracy: float = Field(..., ge=0, le=100, alias="technicalAccuracy")
    problem_solving: float = Field(..., ge=0, le=100, alias="problemSolving")
    communication: float = Field(..., ge=0, le=100)
    time_efficiency: float = Field(..., ge=0, le=100, alias="timeEfficiency")
    feedback: str = Field(..., min_length=1, description="Free-text feedback on the answer")
    suggestions: List[str] = Field(..., min_length=1, description="Improvement suggestions")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("feedback")
    @classmethod
    def feedback_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("feedback must not be blank")
        return value.strip()


class ScoringCriteria(BaseModel):
    """Per-answer criteria computed by the local rubric scorer, each in 0..1."""
    accuracy: float = Field(..., ge=0.0, le=1.0, description="Keyword or reference-answer similarity")
    completeness: float = Field(..., ge=0.0, le=1.0, description="Answer length against the expected length")
    clarity: float = Field(..., ge=0.0, le=1.0, description="Sentence length and structure markers")
    timeliness: float = Field(..., ge=0.0, le=1.0, description="Time spent against the time limit")
    relevance: float = Field(..., ge=0.0, le=1.0, description="Significant words shared with the question")


class ScoringWeights(BaseModel):
    """Weights applied to each rubric criterion."""
    accuracy: float = 0.30
    completeness: float = 0.25
    clarity: float = 0.20
    timeliness: float = 0.15
    relevance: float = 0.10
