"""
Prompt templates for question generation, answer evaluation and summaries.
"""
import random
from typing import List, Optional, Sequence

from langchain_core.prompts import PromptTemplate

SYSTEM_PROMPT = (
    "You are an expert full-stack technical interviewer. "
    "Always answer in compact JSON only."
)

DIFFICULTY_LABELS = {
    "easy": "beginner-level",
    "medium": "intermediate-level",
    "hard": "advanced-level",
}

# Format styles used as inspiration so consecutive questions do not look alike
QUESTION_FORMATS = {
    "easy": [
        "Explain the concept of {topic} and provide a simple example",
        "What is the difference between {topic} approaches A and B?",
        "Debug this simple code snippet related to {topic}",
        "Complete this basic {topic} implementation",
        "List the main advantages of using {topic}",
    ],
    "medium": [
        "Design a solution for {topic} that handles edge case X",
        "Optimize this code for better {topic} performance",
        "Compare and contrast different {topic} strategies",
        "Implement a middleware/service for {topic}",
        "Troubleshoot this real-world {topic} scenario",
    ],
    "hard": [
        "Architect a scalable system involving {topic}",
        "Analyze the trade-offs in this {topic} design decision",
        "Solve this complex {topic} performance bottleneck",
        "Design a fault-tolerant {topic} implementation",
        "Lead a team discussion on {topic} best practices",
    ],
}

TYPE_INSTRUCTIONS = {
    "coding": "Provide a coding problem requiring writing code. Include problem statement and expected approach.",
    "technical": "Ask about technical concepts, best practices, or system design.",
    "behavioral": "Ask about past experiences, teamwork, or problem-solving situations.",
}

QUESTION_GENERATION_TEMPLATE = PromptTemplate(
    input_variables=[
        "difficulty_label", "question_type", "role", "topic", "type_instructions",
        "skills_context", "format_hint", "previous_questions",
    ],
    template="""Generate a UNIQUE {difficulty_label} {question_type} interview question for a {role} position about {topic}.

{type_instructions}

CANDIDATE CONTEXT:
- {skills_context}
- Target Role: {role}

QUESTION FORMAT GUIDANCE:
- Use this format style as inspiration: "{format_hint}"
- But create your own unique variation

PREVIOUS QUESTIONS CONTEXT:
{previous_questions}

UNIQUENESS REQUIREMENTS:
- DO NOT start with "You're building..." or "You are building..."
- DO NOT use similar sentence structures to previous questions
- Vary the question approach: debugging, explaining, designing, comparing, implementing
- Focus on the specific topic: {topic}
- Tailor to the candidate's actual skills: {skills_context}

RESPONSE FORMAT:
Return ONLY a valid JSON object with no additional text, markdown, or explanations.
{{"question":"Your unique question text here","expectedAnswer":"Expected answer here"}}"""
)

ANSWER_EVALUATION_TEMPLATE = PromptTemplate(
    input_variables=["question", "answer", "candidate_name"],
    template="""Evaluate this interview answer.
Question: {question}
Answer: {answer}
Candidate: {candidate_name}
Provide strict numeric evaluation JSON only:
{{"overallScore":0-100,"technicalAccuracy":0-100,"problemSolving":0-100,"communication":0-100,"timeEfficiency":0-100,"feedback":"...","suggestions":["..."]}}"""
)

INTERVIEW_SUMMARY_TEMPLATE = PromptTemplate(
    input_variables=["candidate_name", "overall_score", "transcript"],
    template="""Create a concise professional interview summary for {candidate_name} (300-500 words).
Overall Score: {overall_score}%
{transcript}"""
)


def format_question_prompt(
    difficulty: str,
    topic: str,
    question_type: str,
    role: str,
    skills: Optional[Sequence[str]] = None,
    previous_questions: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None
) -> str:
    """Render the question-generation prompt."""
    rng = rng or random.Random()
    skills_context = f"Candidate Skills: {', '.join(skills)}" if skills else "Skills not specified"
    if previous_questions:
        previous = "Previous Questions Asked (AVOID similar patterns): " + " ".join(
            f"{i + 1}. {text[:100]}..." for i, text in enumerate(previous_questions)
        )
    else:
        previous = "No previous questions"

    format_hint = rng.choice(QUESTION_FORMATS.get(difficulty, QUESTION_FORMATS["medium"]))
    return QUESTION_GENERATION_TEMPLATE.format(
        difficulty_label=DIFFICULTY_LABELS.get(difficulty, difficulty),
        question_type=question_type,
        role=role,
        topic=topic,
        type_instructions=TYPE_INSTRUCTIONS.get(question_type, TYPE_INSTRUCTIONS["technical"]),
        skills_context=skills_context,
        format_hint=format_hint.replace("{topic}", topic),
        previous_questions=previous,
    )


def format_evaluation_prompt(question: str, answer: str, candidate_name: str) -> str:
    return ANSWER_EVALUATION_TEMPLATE.format(
        question=question, answer=answer, candidate_name=candidate_name
    )


def format_summary_prompt(candidate_name: str, overall_score: float, qa_pairs: List[tuple]) -> str:
    transcript = "\n\n".join(f"Q: {q}\nA: {a}" for q, a in qa_pairs)
    return INTERVIEW_SUMMARY_TEMPLATE.format(
        candidate_name=candidate_name,
        overall_score=round(overall_score * 100),
        transcript=transcript,
    )
