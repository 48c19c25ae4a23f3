"""LLM collaborators, resume extraction and report generation."""
