"""Durable JSON key-value store on the local filesystem.

Layout: ``<root>/<namespace segments...>/<key>.json``. Writes go to a hidden
temp file in the target directory and are moved into place with
``os.replace``, so a reader sees either the old value or the new one.
Dropping a namespace renames its directory to a hidden tombstone before
deleting it, so the namespace disappears in one step.

There are no cross-key transactions. Callers that update several keys
together must serialize those updates themselves (see ``KeyedLock``).
"""

import asyncio
import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any
from uuid import uuid4

from src.scenevault.core.errors import StorageFailure
from src.scenevault.core.logging import get_logger
from src.scenevault.core.security import validate_storage_segment

logger = get_logger(__name__)

KEY_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"
TOMBSTONE_PREFIX = ".trash-"


class JSONFileStore:
    """Namespaced, atomic put/get/delete/list over a directory tree.

    All public methods are coroutines; blocking file I/O runs in a worker
    thread via ``asyncio.to_thread`` so the event loop stays responsive.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)

    # --- Paths ---

    def _namespace_path(self, namespace: str) -> Path:
        segments = namespace.split("/")
        for segment in segments:
            validate_storage_segment(segment)
        return self.root.joinpath(*segments)

    def _key_path(self, namespace: str, key: str) -> Path:
        validate_storage_segment(key)
        return self._namespace_path(namespace) / f"{key}{KEY_SUFFIX}"

    # --- Public API ---

    async def ensure_dir(self, namespace: str) -> None:
        """Create a namespace if it does not exist yet. Idempotent."""
        path = self._namespace_path(namespace)
        await self._run("ensure_dir", namespace, None, path.mkdir, parents=True, exist_ok=True)

    async def put(self, namespace: str, key: str, value: Any) -> None:
        """Durably and atomically store ``value`` (any JSON-serializable object).

        Raises ValueError for NaN or infinite floats, which strict JSON cannot hold.
        """
        path = self._key_path(namespace, key)
        payload = json.dumps(value, ensure_ascii=False, indent=2, allow_nan=False)
        await self._run("put", namespace, key, _atomic_write, path, payload)

    async def get(self, namespace: str, key: str) -> Any | None:
        """Return the last committed value, or None if the key does not exist."""
        path = self._key_path(namespace, key)
        raw = await self._run("get", namespace, key, _read_text, path)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(
                "Corrupt record in storage",
                namespace=namespace,
                key=key,
                error=str(e),
            )
            raise StorageFailure("Stored record is unreadable") from e

    async def delete(self, namespace: str, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        path = self._key_path(namespace, key)
        return await self._run("delete", namespace, key, _unlink, path)

    async def list_keys(self, namespace: str) -> list[str]:
        """Return the sorted keys of a namespace (empty if it does not exist)."""
        path = self._namespace_path(namespace)
        return await self._run("list_keys", namespace, None, _list_keys, path)

    async def list_namespaces(self, namespace: str) -> list[str]:
        """Return the sorted names of the child namespaces of ``namespace``."""
        path = self._namespace_path(namespace)
        return await self._run("list_namespaces", namespace, None, _list_dirs, path)

    async def drop_namespace(self, namespace: str) -> bool:
        """Remove a namespace and everything in it. Returns True if it existed."""
        path = self._namespace_path(namespace)
        tombstone = self.root / f"{TOMBSTONE_PREFIX}{uuid4().hex}"
        return await self._run("drop_namespace", namespace, None, _drop_tree, path, tombstone)

    async def cleanup(self) -> int:
        """Sweep temp files and tombstones left behind by a crash.

        Returns the number of entries removed.
        """
        return await self._run("cleanup", "", None, _sweep, self.root)

    # --- Internals ---

    async def _run(
        self, operation: str, namespace: str, key: str | None, func: Any, *args: Any, **kwargs: Any
    ) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except OSError as e:
            logger.error(
                "Storage operation failed",
                operation=operation,
                namespace=namespace,
                key=key,
                error=str(e),
            )
            raise StorageFailure(f"Storage {operation} failed") from e


def _atomic_write(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=TEMP_SUFFIX)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        # The temp file is hidden from readers; remove it so it does not pile up
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False


def _list_keys(path: Path) -> list[str]:
    if not path.is_dir():
        return []
    return sorted(
        entry.name[: -len(KEY_SUFFIX)]
        for entry in path.iterdir()
        if entry.is_file() and entry.name.endswith(KEY_SUFFIX) and not entry.name.startswith(".")
    )


def _list_dirs(path: Path) -> list[str]:
    if not path.is_dir():
        return []
    return sorted(
        entry.name for entry in path.iterdir() if entry.is_dir() and not entry.name.startswith(".")
    )


def _drop_tree(path: Path, tombstone: Path) -> bool:
    try:
        os.replace(path, tombstone)
    except FileNotFoundError:
        return False
    shutil.rmtree(tombstone)
    return True


def _sweep(root: Path) -> int:
    if not root.is_dir():
        return 0
    removed = 0
    for entry in root.iterdir():
        if entry.is_dir() and entry.name.startswith(TOMBSTONE_PREFIX):
            shutil.rmtree(entry)
            removed += 1
    for tmp in root.rglob(f".*{TEMP_SUFFIX}"):
        if tmp.is_file():
            tmp.unlink()
            removed += 1
    return removed
