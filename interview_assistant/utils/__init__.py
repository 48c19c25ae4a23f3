"""
Utility modules for the Interview Assistant.

This package contains configuration, logging, persistence, search and retry
helpers used across the Interview Assistant application.
"""
from interview_assistant.utils.config import (
    get_interview_config,
    get_llm_config,
    get_storage_config,
    log_config
)
from interview_assistant.utils.retry import RetryPolicy
from interview_assistant.utils.storage import KeyValueStore, create_store
