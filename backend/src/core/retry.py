import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from src.config import settings
from src.core.exceptions import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None,
    retry_on: Tuple[Type[Exception], ...] = (TransientError,),
    label: str = "operation",
) -> T:
    """Exécute `operation` avec un backoff exponentiel borné.

    Seules les exceptions de `retry_on` déclenchent une nouvelle tentative;
    toute autre exception est propagée immédiatement. Après la dernière
    tentative, l'erreur est propagée telle quelle.
    """
    max_attempts = attempts if attempts is not None else settings.RETRY_ATTEMPTS
    base = backoff_seconds if backoff_seconds is not None else settings.RETRY_BACKOFF_SECONDS

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt >= max_attempts:
                logger.error(f"[Retry] {label}: échec après {attempt} tentative(s): {e}")
                raise
            delay = base * (2 ** (attempt - 1))
            logger.warning(f"[Retry] {label}: tentative {attempt}/{max_attempts} échouée ({e}), nouvel essai dans {delay:.2f}s")
            await asyncio.sleep(delay)
    # max_attempts < 1
    raise ValueError("attempts doit être >= 1")
