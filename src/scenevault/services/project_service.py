"""Project & scene version store - saves, backups, revert.

Each project lives in its own namespace ``projects/<uid>``:

- ``project``: the Project metadata
- ``scene``: a SceneState holding the current document AND its backup
  history, so every save or revert commits with one atomic write

Ownership is not checked here; the access layer compares
``project.owner_id`` with the requester before calling in.
"""

from datetime import timedelta

from pydantic import JsonValue

from src.scenevault.core.errors import StorageFailure, ValidationError
from src.scenevault.core.locks import KeyedLock
from src.scenevault.core.logging import get_logger
from src.scenevault.core.security import is_valid_project_uid, validate_project_uid
from src.scenevault.core.shutdown import MutationTracker
from src.scenevault.core.storage import JSONFileStore
from src.scenevault.models import (
    DEFAULT_PROJECT_TITLE,
    Backup,
    Project,
    SceneState,
    new_project_uid,
    utc_now,
)

logger = get_logger(__name__)

PROJECTS_NAMESPACE = "projects"
PROJECT_KEY = "project"
SCENE_KEY = "scene"

MAX_TITLE_LENGTH = 200
MAX_CREATE_ATTEMPTS = 5


def _namespace(uid: str) -> str:
    return f"{PROJECTS_NAMESPACE}/{uid}"


class ProjectService:
    """Owns Project, current scene and backup records.

    Mutations (``save_scene``, ``revert_to_backup``, ``remove``) are
    serialized per project uid and run to completion even if the caller goes
    away. Reads take no lock; they see a mutation's before or after state.
    """

    def __init__(
        self,
        store: JSONFileStore,
        locks: KeyedLock,
        tracker: MutationTracker,
        backup_retention: int,
    ):
        if backup_retention < 1:
            raise ValueError("backup_retention must be at least 1")
        self.store = store
        self.locks = locks
        self.tracker = tracker
        self.backup_retention = backup_retention

    async def ensure_namespaces(self) -> None:
        await self.store.ensure_dir(PROJECTS_NAMESPACE)

    # --- Projects ---

    async def create(self, owner_id: str, title: str | None = None) -> Project:
        """Create an empty project (no scene, no backups) owned by ``owner_id``."""
        title = (title or "").strip() or DEFAULT_PROJECT_TITLE
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        return await self.tracker.run(self._insert_project(owner_id, title))

    async def _insert_project(self, owner_id: str, title: str) -> Project:
        for _ in range(MAX_CREATE_ATTEMPTS):
            uid = new_project_uid()
            async with self.locks.hold(uid):
                # A UUID4 clash is practically impossible, but never overwrite a project
                if await self.store.get(_namespace(uid), PROJECT_KEY) is not None:
                    logger.warning("Project uid collision, retrying", uid=uid)
                    continue
                project = Project(uid=uid, owner_id=owner_id, title=title)
                await self.store.ensure_dir(_namespace(uid))
                await self.store.put(_namespace(uid), PROJECT_KEY, project.model_dump(mode="json"))
            logger.info("Project created", project_uid=uid, owner_id=owner_id)
            return project
        raise StorageFailure("Could not allocate a project id")

    async def list_by_owner(self, owner_id: str) -> list[Project]:
        """Projects owned by ``owner_id``, most recently updated first."""
        projects: list[Project] = []
        for uid in await self.store.list_namespaces(PROJECTS_NAMESPACE):
            if not is_valid_project_uid(uid):
                continue
            try:
                project = await self.get(uid)
            except StorageFailure:
                logger.warning("Skipping unreadable project", project_uid=uid)
                continue
            # None when the project was removed after the directory listing
            if project is not None and project.owner_id == owner_id:
                projects.append(project)
        projects.sort(key=lambda p: p.uid)
        projects.sort(key=lambda p: p.updated_at, reverse=True)
        return projects

    async def get(self, uid: str) -> Project | None:
        if not is_valid_project_uid(uid):
            return None
        data = await self.store.get(_namespace(uid), PROJECT_KEY)
        return Project.model_validate(data) if data is not None else None

    async def remove(self, uid: str) -> bool:
        """Delete the project, its scene and all backups in one step.

        Returns False if there was no such project.
        """
        validate_project_uid(uid)
        return await self.tracker.run(self._remove(uid))

    async def _remove(self, uid: str) -> bool:
        async with self.locks.hold(uid):
            removed = await self.store.drop_namespace(_namespace(uid))
        if removed:
            logger.info("Project removed", project_uid=uid)
        return removed

    # --- Scene & backups ---

    async def get_scene(self, uid: str) -> JsonValue | None:
        """Current scene document, or None if the project has none (or doesn't exist)."""
        state = await self._load_state(uid)
        return state.document if state is not None else None

    async def get_backups(self, uid: str) -> list[Backup]:
        """Backup history, oldest first.

        An unknown or removed project has no history and yields an empty list,
        the same as a project that was never saved; use ``get`` to tell them apart.
        """
        state = await self._load_state(uid)
        return state.backups if state is not None else []

    async def save_scene(self, uid: str, document: JsonValue) -> bool:
        """Replace the current scene, first moving the old one into the backups.

        Returns False (and changes nothing) if the project does not exist.
        Raises ValidationError for a None document, since None marks "no scene".
        """
        validate_project_uid(uid)
        if document is None:
            raise ValidationError("Scene document must not be null")
        return await self.tracker.run(self._save_scene(uid, document))

    async def _save_scene(self, uid: str, document: JsonValue) -> bool:
        async with self.locks.hold(uid):
            project = await self.get(uid)
            if project is None:
                return False
            state = await self._load_state(uid) or SceneState()
            self._push_backup(state, state.document)
            state.document = document
            await self._commit(project, state)
        logger.info("Scene saved", project_uid=uid, backups=len(state.backups))
        return True

    async def revert_to_backup(self, uid: str, index: int) -> JsonValue | None:
        """Make backup ``index`` the current scene and return it.

        The scene being replaced is appended as a new backup first. Returns None
        with no side effects if the project or index doesn't exist.
        """
        if not is_valid_project_uid(uid) or isinstance(index, bool) or not isinstance(index, int):
            return None
        return await self.tracker.run(self._revert(uid, index))

    async def _revert(self, uid: str, index: int) -> JsonValue | None:
        async with self.locks.hold(uid):
            project = await self.get(uid)
            if project is None:
                return None
            state = await self._load_state(uid)
            if state is None or not 0 <= index < len(state.backups):
                return None
            restored = state.backups[index].snapshot
            self._push_backup(state, state.document)
            state.document = restored
            await self._commit(project, state)
        logger.info("Scene reverted", project_uid=uid, backup_index=index)
        return restored

    # --- Internals ---

    async def _load_state(self, uid: str) -> SceneState | None:
        if not is_valid_project_uid(uid):
            return None
        data = await self.store.get(_namespace(uid), SCENE_KEY)
        return SceneState.model_validate(data) if data is not None else None

    def _push_backup(self, state: SceneState, document: JsonValue) -> None:
        """Append ``document`` to the history and evict the oldest entries over the bound."""
        if document is None:
            return
        timestamp = utc_now()
        if state.backups and timestamp <= state.backups[-1].timestamp:
            # Keep the history strictly increasing even if the clock stalls or steps back
            timestamp = state.backups[-1].timestamp + timedelta(microseconds=1)
        state.backups.append(Backup(timestamp=timestamp, snapshot=document))
        overflow = len(state.backups) - self.backup_retention
        if overflow > 0:
            del state.backups[:overflow]

    async def _commit(self, project: Project, state: SceneState) -> None:
        await self.store.put(_namespace(project.uid), SCENE_KEY, state.model_dump(mode="json"))
        # The scene record above is the commit point; updated_at is informational
        project.updated_at = utc_now()
        try:
            await self.store.put(
                _namespace(project.uid), PROJECT_KEY, project.model_dump(mode="json")
            )
        except StorageFailure as e:
            logger.warning(
                "Scene committed but updated_at not written",
                project_uid=project.uid,
                error=str(e),
            )
