"""
Resume data extracted from an uploaded document.

Extraction is heuristic, so every field may come back empty.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class PersonalInfo(BaseModel):
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None


class ExperienceEntry(BaseModel):
    company: str
    position: str = ""
    duration: str = ""
    description: str = ""


class EducationEntry(BaseModel):
    institution: str
    degree: str
    year: str = ""


class ResumeData(BaseModel):
    """Best-effort structured view of a resume."""
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    summary: Optional[str] = None
