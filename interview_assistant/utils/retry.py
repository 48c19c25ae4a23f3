"""
Fixed-count, fixed-delay retry policy for calls to external collaborators.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Type, TypeVar

from interview_assistant.utils.config import get_retry_config
from interview_assistant.utils.constants import RETRY_DELAY_SECONDS, RETRY_MAX_ATTEMPTS
from interview_assistant.utils.errors import CollaboratorError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry an async operation a fixed number of times with a fixed pause.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        delay_seconds: Pause between attempts (no backoff)
    """
    max_attempts: int = RETRY_MAX_ATTEMPTS
    delay_seconds: float = RETRY_DELAY_SECONDS

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        cfg = get_retry_config()
        return cls(
            max_attempts=int(cfg.get("max_attempts", RETRY_MAX_ATTEMPTS)),
            delay_seconds=float(cfg.get("delay_seconds", RETRY_DELAY_SECONDS)),
        )

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
        error_cls: Type[CollaboratorError] = CollaboratorError,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ) -> T:
        """
        Run ``operation`` until it succeeds or the attempts are used up.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            description: Human readable name for log messages
            error_cls: Error raised once every attempt has failed
            sleep: Awaitable sleep function (defaults to asyncio.sleep)

        Returns:
            The operation's result

        Raises:
            error_cls: When all attempts failed; the last failure is chained
        """
        sleep = sleep or asyncio.sleep
        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                logger.debug(f"{description}: attempt {attempt}/{attempts}")
                return await operation()
            except Exception as e:
                if attempt == attempts:
                    logger.error(f"{description} failed after {attempts} attempts: {e}")
                    raise error_cls(
                        f"Failed to {description} after {attempts} attempts: {e}",
                        attempts=attempts,
                    ) from e
                logger.warning(f"{description} attempt {attempt} failed: {e}. Retrying...")
                await sleep(self.delay_seconds)
        raise error_cls(f"Failed to {description}", attempts=attempts)
