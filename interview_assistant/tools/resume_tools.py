"""
Resume field extraction.

Reads the text out of a PDF, DOCX or plain-text resume and pulls out the
candidate's details with regex heuristics. The result is best effort: any
field may be empty and the interview session asks for whatever is missing.
"""
import asyncio
import io
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Union

import pdfplumber
from docx import Document

from interview_assistant.models.interview import CandidateInfo
from interview_assistant.models.resume import (
    EducationEntry,
    ExperienceEntry,
    PersonalInfo,
    ResumeData,
)
from interview_assistant.utils.constants import DEFAULT_POSITION
from interview_assistant.utils.errors import ResumeExtractionError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")

COMMON_SKILLS = [
    "JavaScript", "TypeScript", "React", "Vue", "Angular", "Node.js", "Express",
    "Python", "Django", "Flask", "Java", "Spring", "C++", "C#", ".NET",
    "HTML", "CSS", "SASS", "SCSS", "MongoDB", "MySQL", "PostgreSQL",
    "Git", "Docker", "Kubernetes", "AWS", "Azure", "GCP", "Linux",
    "REST", "GraphQL", "Redis", "Elasticsearch", "Jenkins", "CI/CD",
]

NAME_PATTERN = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+")
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
PHONE_PATTERNS = [
    re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    re.compile(r"\(\d{3}\)\s*\d{3}[-.]?\d{4}\b"),
    re.compile(r"\+?1?[-.]?\(?(\d{3})\)?[-.]?(\d{3})[-.]?(\d{4})\b"),
]
ADDRESS_PATTERN = re.compile(r"\b\d+\s+[A-Za-z\s]+,\s*[A-Za-z\s]+,?\s*[A-Z]{2}\s*\d{5}\b")

_COMPANY_SUFFIX = r"(?:Inc|LLC|Corp|Company|Technologies|Tech|Solutions)"
COMPANY_PATTERNS = [
    re.compile(rf"at\s+([A-Z][A-Za-z\s&]+{_COMPANY_SUFFIX})", re.IGNORECASE),
    re.compile(rf"([A-Z][A-Za-z\s&]+{_COMPANY_SUFFIX})", re.IGNORECASE),
]
MAX_EXPERIENCE_ENTRIES = 3

DEGREE_PATTERNS = [
    re.compile(r"Bachelor(?:'s)?\s+(?:of\s+)?(?:Science\s+in\s+)?Computer\s+Science", re.IGNORECASE),
    re.compile(r"Master(?:'s)?\s+(?:of\s+)?(?:Science\s+in\s+)?Computer\s+Science", re.IGNORECASE),
    re.compile(r"B\.?S\.?\s+Computer\s+Science", re.IGNORECASE),
    re.compile(r"M\.?S\.?\s+Computer\s+Science", re.IGNORECASE),
]

SUMMARY_KEYWORDS = ("summary", "objective", "profile", "about")
SUMMARY_MAX_CHARS = 200


class ResumeExtractor(ABC):
    @abstractmethod
    async def extract(self, source: Union[str, bytes], filename: Optional[str] = None) -> ResumeData:
        """
        Extract resume fields from a file path or raw file content.

        Raises:
            ResumeExtractionError: If the document cannot be read at all
        """


def _lines(text: str) -> List[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def extract_name(text: str) -> str:
    lines = _lines(text)
    first_line = lines[0] if lines else ""
    match = NAME_PATTERN.match(first_line)
    if match:
        return match.group(0)
    return " ".join(first_line.split(" ")[:2])


def extract_email(text: str) -> str:
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else ""


def extract_phone(text: str) -> str:
    for pattern in PHONE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return ""


def extract_address(text: str) -> str:
    match = ADDRESS_PATTERN.search(text)
    return match.group(0) if match else ""


def extract_skills(text: str) -> List[str]:
    lower_text = text.lower()
    return [skill for skill in COMMON_SKILLS if skill.lower() in lower_text]


def extract_experience(text: str) -> List[ExperienceEntry]:
    entries: List[ExperienceEntry] = []
    for pattern in COMPANY_PATTERNS:
        for match in pattern.finditer(text):
            if len(entries) >= MAX_EXPERIENCE_ENTRIES:
                return entries
            company = (match.group(1) or match.group(0)).strip()
            entries.append(ExperienceEntry(
                company=company,
                position="Software Developer",
                duration="1-2 years",
                description="Software development experience",
            ))
    return entries


def extract_education(text: str) -> List[EducationEntry]:
    for pattern in DEGREE_PATTERNS:
        match = pattern.search(text)
        if match:
            return [EducationEntry(institution="University", degree=match.group(0), year="2020")]
    return []


def extract_summary(text: str) -> str:
    lines = _lines(text)
    for i, line in enumerate(lines):
        if any(keyword in line.lower() for keyword in SUMMARY_KEYWORDS):
            return " ".join(lines[i + 1:i + 4])[:SUMMARY_MAX_CHARS]
    return " ".join(lines[:3])[:SUMMARY_MAX_CHARS]


def parse_resume_text(text: str) -> ResumeData:
    """Apply every field heuristic to already-extracted resume text."""
    return ResumeData(
        personal_info=PersonalInfo(
            name=extract_name(text),
            email=extract_email(text),
            phone=extract_phone(text),
            address=extract_address(text),
        ),
        skills=extract_skills(text),
        experience=extract_experience(text),
        education=extract_education(text),
        summary=extract_summary(text),
    )


def read_document_text(source: Union[str, bytes], filename: Optional[str] = None) -> str:
    """
    Return the plain text of a PDF, DOCX or text document.

    Args:
        source: File path, or the raw file content
        filename: Name used to detect the format when ``source`` is bytes
    """
    name = filename or (source if isinstance(source, str) else "")
    extension = os.path.splitext(name)[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise ResumeExtractionError(
            f"Unsupported resume format '{extension or name}'. Use one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    try:
        if isinstance(source, str):
            with open(source, "rb") as f:
                raw = f.read()
        else:
            raw = source

        if extension == ".pdf":
            with pdfplumber.open(io.BytesIO(raw)) as pdf:
                return "\n".join(page.extract_text() or "" for page in pdf.pages).strip()
        if extension == ".docx":
            document = Document(io.BytesIO(raw))
            return "\n".join(p.text for p in document.paragraphs).strip()
        return raw.decode("utf-8", errors="ignore").strip()
    except ResumeExtractionError:
        raise
    except Exception as e:
        logger.error(f"Failed to read resume {name}: {e}")
        raise ResumeExtractionError(f"Resume extraction failed: {e}") from e


class HeuristicResumeExtractor(ResumeExtractor):
    """Regex-based extractor; runs the blocking document parsing in a worker thread."""

    async def extract(self, source: Union[str, bytes], filename: Optional[str] = None) -> ResumeData:
        text = await asyncio.to_thread(read_document_text, source, filename)
        if not text:
            raise ResumeExtractionError("No text could be extracted from the resume")

        data = parse_resume_text(text)
        if not data.personal_info.name and not data.personal_info.email:
            raise ResumeExtractionError("Could not extract basic information from the resume")

        logger.info(
            f"Extracted resume fields: name={bool(data.personal_info.name)}, "
            f"email={bool(data.personal_info.email)}, phone={bool(data.personal_info.phone)}, "
            f"{len(data.skills)} skills"
        )
        return data


def to_candidate_info(data: ResumeData) -> CandidateInfo:
    """Map extracted resume data onto the fields the interview session collects."""
    experience_years = 0
    if data.experience:
        match = re.search(r"\d+", data.experience[0].duration or "")
        if match:
            experience_years = int(match.group(0))

    education = ""
    if data.education:
        first = data.education[0]
        education = f"{first.degree} from {first.institution}"

    position = data.experience[0].position if data.experience and data.experience[0].position else DEFAULT_POSITION

    return CandidateInfo(
        name=data.personal_info.name or "",
        email=data.personal_info.email or "",
        phone=data.personal_info.phone or "",
        skills=list(data.skills),
        position=position,
        experience=experience_years,
        education=education,
        summary=data.summary or "",
    )
