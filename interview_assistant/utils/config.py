"""Configuration loader for the Interview Assistant."""
import os
import copy
import logging
from typing import Optional

import yaml
from dotenv import load_dotenv


logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration values
DEFAULT_CONFIG = {
    "llm": {
        "provider": "google_genai",
        "model": "gemini-1.5-flash",
        "temperature": 0.2,
        "top_p": 0.95
    },
    "interview": {
        "question_count": 6,
        "time_limits": {"easy": 20, "medium": 60, "hard": 120},
        "default_time_limit": 60,
        "generation_delay_seconds": 0.5,
        "default_position": "Full Stack Developer"
    },
    "retry": {
        "max_attempts": 3,
        "delay_seconds": 1.0
    },
    "timer": {
        "precision_ms": 100,
        "frame_interval": 1 / 60
    },
    "search": {
        "threshold": 0.3,
        "cache_size": 50,
        "debounce_seconds": 0.3
    },
    "storage": {
        "provider": "json",  # or "memory", "mongodb"
        "path": "data/interview_assistant.json",
        "uri": "mongodb://localhost:27017/",
        "database": "interview_assistant_db",
        "collection": "app_state"
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S"
    }
}


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from config.yaml or use defaults."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "..", "..", "config.yaml")

    config = copy.deepcopy(DEFAULT_CONFIG)

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)

            # Merge YAML sections into defaults
            if yaml_config:
                for key, value in yaml_config.items():
                    if isinstance(value, dict) and isinstance(config.get(key), dict):
                        config[key].update(value)
                    else:
                        config[key] = value
            logger.info("Loaded configuration from config.yaml")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config.yaml: {e}. Using default configuration.")
    else:
        logger.debug("config.yaml not found. Using default configuration.")

    # LLM
    config["llm"]["provider"] = os.environ.get("LLM_PROVIDER", config["llm"]["provider"])
    config["llm"]["model"] = os.environ.get("LLM_MODEL", config["llm"]["model"])
    if os.environ.get("LLM_TEMPERATURE"):
        try:
            config["llm"]["temperature"] = float(os.environ.get("LLM_TEMPERATURE"))
        except ValueError:
            logger.warning("Invalid LLM_TEMPERATURE in .env, using default.")

    # Retry policy
    if os.environ.get("RETRY_MAX_ATTEMPTS"):
        try:
            config["retry"]["max_attempts"] = int(os.environ.get("RETRY_MAX_ATTEMPTS"))
        except ValueError:
            logger.warning("Invalid RETRY_MAX_ATTEMPTS in .env, using default.")
    if os.environ.get("RETRY_DELAY_SECONDS"):
        try:
            config["retry"]["delay_seconds"] = float(os.environ.get("RETRY_DELAY_SECONDS"))
        except ValueError:
            logger.warning("Invalid RETRY_DELAY_SECONDS in .env, using default.")

    # Storage
    config["storage"]["provider"] = os.environ.get("STORAGE_PROVIDER", config["storage"]["provider"])
    config["storage"]["path"] = os.environ.get("STORAGE_PATH", config["storage"]["path"])
    config["storage"]["uri"] = os.environ.get("MONGODB_URI", config["storage"]["uri"])
    config["storage"]["database"] = os.environ.get("MONGODB_DATABASE", config["storage"]["database"])
    config["storage"]["collection"] = os.environ.get("MONGODB_COLLECTION", config["storage"]["collection"])

    # Logging
    config["logging"]["level"] = os.environ.get("LOG_LEVEL", config["logging"]["level"]).upper()

    if config["llm"]["provider"] == "google_genai" and not os.environ.get("GOOGLE_API_KEY"):
        logger.warning("GOOGLE_API_KEY environment variable not set for Google GenAI.")

    return config


# Load configuration once
CONFIG = load_config()


def get_llm_config() -> dict:
    """Get LLM configuration."""
    return CONFIG.get("llm", {})


def get_interview_config() -> dict:
    """Get interview flow configuration."""
    return CONFIG.get("interview", {})


def get_retry_config() -> dict:
    """Get retry policy configuration."""
    return CONFIG.get("retry", {})


def get_timer_config() -> dict:
    """Get timer configuration."""
    return CONFIG.get("timer", {})


def get_search_config() -> dict:
    """Get candidate search configuration."""
    return CONFIG.get("search", {})


def get_storage_config() -> dict:
    """Get storage configuration."""
    return CONFIG.get("storage", {})


def get_logging_config() -> dict:
    """Get logging configuration."""
    return CONFIG.get("logging", {})


def log_config(level: Optional[str] = None, print_config: bool = False):
    """Configure application-wide logging and optionally print the config."""
    log_cfg = get_logging_config()
    log_level = level or log_cfg.get("level", "INFO").upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=log_cfg.get("format"),
        datefmt=log_cfg.get("datefmt")
    )

    logger.info(f"Logging configured to level: {log_level}")

    if print_config:
        printable_config = copy.deepcopy(CONFIG)
        if printable_config.get("storage", {}).get("uri"):
            printable_config["storage"]["uri"] = "***REDACTED***"
        logger.info(f"Current configuration (redacted):\n{yaml.dump(printable_config, indent=2)}")
