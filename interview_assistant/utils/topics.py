"""
Skill-derived interview topics and the fixed question plan.

Each known skill keyword maps to topic lists per difficulty tier. Skills that
match no keyword fall back to a generic topic set.
"""
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from interview_assistant.models.interview import Difficulty, QuestionType

SKILL_TOPICS: Dict[str, Dict[str, List[str]]] = {
    "react": {
        "easy": ["React Components & Props", "React State & Events", "JSX Fundamentals"],
        "medium": ["React Hooks", "React Context API", "Component Lifecycle"],
        "hard": ["React Performance Optimization", "React Advanced Patterns", "React Server Components"],
    },
    "javascript": {
        "easy": ["JavaScript ES6+ Features", "Array Methods", "Object Manipulation"],
        "medium": ["Async/Await & Promises", "Closures & Scope", "Event Loop"],
        "hard": ["JavaScript Design Patterns", "Memory Management", "Advanced Async Patterns"],
    },
    "node": {
        "easy": ["Node.js Basics", "NPM & Modules", "File System Operations"],
        "medium": ["Express.js API Design", "Middleware Concepts", "Error Handling"],
        "hard": ["Node.js Performance", "Microservices Architecture", "Cluster & Worker Threads"],
    },
    "python": {
        "easy": ["Python Basics", "Data Types & Collections", "Functions & Modules"],
        "medium": ["OOP in Python", "Decorators", "File I/O"],
        "hard": ["Python Performance", "Concurrency", "Advanced Python Features"],
    },
    "database": {
        "easy": ["SQL Basics", "Database Design", "Basic Queries"],
        "medium": ["Database Indexing", "Joins & Relationships", "Transactions"],
        "hard": ["Database Optimization", "NoSQL vs SQL", "Database Scaling"],
    },
    "aws": {
        "easy": ["AWS Basics", "EC2 Fundamentals", "S3 Storage"],
        "medium": ["AWS Lambda", "Load Balancers", "Auto Scaling"],
        "hard": ["AWS Architecture", "Cost Optimization", "Security Best Practices"],
    },
}

DEFAULT_TOPICS: Dict[str, List[str]] = {
    "easy": ["Programming Fundamentals", "Basic Problem Solving", "Code Structure"],
    "medium": ["Algorithm Design", "System Design Basics", "Code Optimization"],
    "hard": ["Advanced Algorithms", "System Architecture", "Performance Engineering"],
}

BEHAVIORAL_TOPICS = ["Complex Problem Solving & Leadership"]


@dataclass(frozen=True)
class QuestionSlot:
    """One entry of the interview plan."""
    difficulty: Difficulty
    type: QuestionType
    fixed_topics: Optional[Sequence[str]] = None


# Two easy, two medium, two hard; generated strictly in this order
QUESTION_PLAN: List[QuestionSlot] = [
    QuestionSlot(Difficulty.EASY, QuestionType.TECHNICAL),
    QuestionSlot(Difficulty.EASY, QuestionType.TECHNICAL),
    QuestionSlot(Difficulty.MEDIUM, QuestionType.CODING),
    QuestionSlot(Difficulty.MEDIUM, QuestionType.TECHNICAL),
    QuestionSlot(Difficulty.HARD, QuestionType.TECHNICAL),
    QuestionSlot(Difficulty.HARD, QuestionType.BEHAVIORAL, fixed_topics=BEHAVIORAL_TOPICS),
]


def topics_for_skills(skills: Iterable[str], difficulty: Difficulty) -> List[str]:
    """
    Topics for a difficulty tier derived from the candidate's skills.

    A skill matches a keyword when the keyword appears in the lowercased skill
    ("Node.js" matches "node"). Duplicates are removed keeping first-seen order.
    """
    tier = difficulty.value
    matched: List[str] = []
    for skill in skills or []:
        normalized = skill.lower()
        for keyword, tiers in SKILL_TOPICS.items():
            if keyword in normalized:
                matched.extend(tiers[tier])

    if not matched:
        return list(DEFAULT_TOPICS[tier])
    return list(dict.fromkeys(matched))


class TopicSelector:
    """Draws topics at random without replacement until a tier is exhausted."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.used: List[str] = []

    def pick(self, topics: Sequence[str]) -> str:
        if not topics:
            raise ValueError("No topics to choose from")
        available = [t for t in topics if t not in self.used]
        topic = self.rng.choice(available or list(topics))
        self.used.append(topic)
        return topic

    def topic_for(self, slot: QuestionSlot, skills: Iterable[str]) -> str:
        topics = slot.fixed_topics or topics_for_skills(skills, slot.difficulty)
        return self.pick(topics)
