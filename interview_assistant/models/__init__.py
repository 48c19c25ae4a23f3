"""Pydantic models for candidates, interviews, resumes and rubrics."""
