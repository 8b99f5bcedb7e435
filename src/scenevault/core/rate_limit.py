"""Rate limiting for the credential endpoints (login, register).

In-memory, per process. Disabled in the testing environment.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.scenevault.core.config import get_settings
from src.scenevault.core.logging import get_logger

logger = get_logger(__name__)


def create_limiter() -> Limiter:
    settings = get_settings()
    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_remote_address, enabled=False)
    return Limiter(key_func=get_remote_address)


limiter = create_limiter()
