"""Process-wide application state.

Built once at startup and handed to the services explicitly; nothing in the
stores reaches for module-level globals.
"""

from dataclasses import dataclass, field

from src.scenevault.core.config import Settings
from src.scenevault.core.locks import KeyedLock
from src.scenevault.core.logging import get_logger
from src.scenevault.core.shutdown import MutationTracker
from src.scenevault.core.storage import JSONFileStore
from src.scenevault.services import AuthService, ProjectService

logger = get_logger(__name__)


@dataclass
class AppState:
    settings: Settings
    store: JSONFileStore
    locks: KeyedLock = field(default_factory=KeyedLock)
    tracker: MutationTracker = field(default_factory=MutationTracker)
    auth: AuthService = field(init=False)
    projects: ProjectService = field(init=False)

    def __post_init__(self) -> None:
        self.auth = AuthService(self.store, self.locks, self.tracker, self.settings)
        self.projects = ProjectService(
            self.store, self.locks, self.tracker, self.settings.backup_retention
        )

    @classmethod
    async def open(cls, settings: Settings) -> "AppState":
        """Prepare durable storage and return a ready state object.

        Sweeps leftovers from an unclean shutdown and purges expired sessions.
        """
        state = cls(settings=settings, store=JSONFileStore(settings.data_dir))
        swept = await state.store.cleanup()
        if swept:
            logger.warning("Removed leftover temp files from storage", count=swept)
        await state.auth.ensure_namespaces()
        await state.projects.ensure_namespaces()
        await state.auth.purge_expired_sessions()
        logger.info("Storage ready", data_dir=str(settings.data_dir))
        return state

    async def close(self, timeout: float | None = None) -> bool:
        """Stop accepting work and wait for in-flight mutations to finish.

        Every write is committed as it happens, so draining is all a clean
        shutdown needs. Returns False if the wait timed out.
        """
        if timeout is None:
            timeout = self.settings.shutdown_grace_period
        logger.info(
            f"Shutdown initiated, waiting for {self.tracker.in_flight_count} in-flight mutations..."
        )
        await self.tracker.start_shutdown()
        drained = await self.tracker.wait_for_drain(timeout=timeout)
        if not drained:
            logger.warning(
                f"Shutdown timeout after {timeout}s - "
                f"{self.tracker.in_flight_count} mutations may not have completed"
            )
        return drained
