"""Unit tests for ProjectService - saves, backups, revert, remove."""

import re

import pytest

from src.scenevault.core.errors import StorageFailure, ValidationError
from src.scenevault.core.storage import JSONFileStore
from src.scenevault.models import DEFAULT_PROJECT_TITLE
from src.scenevault.services import ProjectService
from tests.helpers import TEST_BACKUP_RETENTION

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

UID_PATTERN = re.compile(r"^[a-f0-9-]+$")
EMPTY_SCENE = {"objects": []}
CUBE_SCENE = {"objects": [{"type": "cube"}]}


class TestCreate:
    async def test_create_returns_empty_project(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")

        assert UID_PATTERN.match(project.uid)
        assert project.owner_id == "alice"
        assert project.title == "Level 1"
        assert await project_service.get(project.uid) == project
        assert await project_service.get_scene(project.uid) is None
        assert await project_service.get_backups(project.uid) == []

    async def test_blank_title_defaults(self, project_service: ProjectService):
        project = await project_service.create("alice", "   ")
        assert project.title == DEFAULT_PROJECT_TITLE

    async def test_overlong_title_rejected(self, project_service: ProjectService):
        with pytest.raises(ValidationError):
            await project_service.create("alice", "x" * 201)

    async def test_ids_are_unique(self, project_service: ProjectService):
        uids = {(await project_service.create("alice", f"p{i}")).uid for i in range(20)}
        assert len(uids) == 20


class TestListByOwner:
    async def test_owner_isolation(self, project_service: ProjectService):
        a1 = await project_service.create("alice", "A1")
        a2 = await project_service.create("alice", "A2")
        b1 = await project_service.create("bob", "B1")

        alice_uids = {p.uid for p in await project_service.list_by_owner("alice")}
        bob_uids = {p.uid for p in await project_service.list_by_owner("bob")}

        assert alice_uids == {a1.uid, a2.uid}
        assert bob_uids == {b1.uid}
        assert await project_service.list_by_owner("carol") == []

    async def test_order_is_stable(self, project_service: ProjectService):
        for i in range(5):
            await project_service.create("alice", f"p{i}")

        first = [p.uid for p in await project_service.list_by_owner("alice")]
        second = [p.uid for p in await project_service.list_by_owner("alice")]
        assert first == second

    async def test_recently_saved_first(self, project_service: ProjectService):
        older = await project_service.create("alice", "older")
        newer = await project_service.create("alice", "newer")
        await project_service.save_scene(older.uid, EMPTY_SCENE)

        listed = await project_service.list_by_owner("alice")
        assert [p.uid for p in listed] == [older.uid, newer.uid]

    async def test_unreadable_project_skipped(
        self, project_service: ProjectService, data_dir
    ):
        good = await project_service.create("alice", "good")
        bad = await project_service.create("alice", "bad")
        (data_dir / "projects" / bad.uid / "project.json").write_text("{", encoding="utf-8")

        assert [p.uid for p in await project_service.list_by_owner("alice")] == [good.uid]


class TestSaveScene:
    async def test_first_save_creates_no_backup(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")

        assert await project_service.save_scene(project.uid, EMPTY_SCENE) is True

        assert await project_service.get_scene(project.uid) == EMPTY_SCENE
        assert await project_service.get_backups(project.uid) == []

    async def test_second_save_backs_up_first(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)
        await project_service.save_scene(project.uid, CUBE_SCENE)

        backups = await project_service.get_backups(project.uid)
        assert [b.snapshot for b in backups] == [EMPTY_SCENE]
        assert await project_service.get_scene(project.uid) == CUBE_SCENE

    async def test_retention_bound_evicts_oldest(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        documents = [{"version": i} for i in range(TEST_BACKUP_RETENTION + 2)]
        for document in documents:
            await project_service.save_scene(project.uid, document)

        backups = await project_service.get_backups(project.uid)
        assert len(backups) == TEST_BACKUP_RETENTION
        # Everything but the current document, minus the evicted oldest
        assert [b.snapshot for b in backups] == documents[1:-1]
        assert {"version": 0} not in [b.snapshot for b in backups]

    async def test_backup_timestamps_strictly_increase(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        for i in range(TEST_BACKUP_RETENTION + 1):
            await project_service.save_scene(project.uid, {"version": i})

        timestamps = [b.timestamp for b in await project_service.get_backups(project.uid)]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:], strict=False))

    async def test_save_on_unknown_project(self, project_service: ProjectService, data_dir):
        uid = "00000000-0000-4000-8000-000000000000"
        assert await project_service.save_scene(uid, EMPTY_SCENE) is False
        assert not (data_dir / "projects" / uid).exists()

    async def test_save_rejects_uid_outside_alphabet(self, project_service: ProjectService):
        with pytest.raises(ValueError):
            await project_service.save_scene("../users", EMPTY_SCENE)

    async def test_save_rejects_null_document(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)

        with pytest.raises(ValidationError, match="must not be null"):
            await project_service.save_scene(project.uid, None)

        # Nothing changed, and the next save still backs up the current scene
        assert await project_service.get_scene(project.uid) == EMPTY_SCENE
        await project_service.save_scene(project.uid, CUBE_SCENE)
        backups = await project_service.get_backups(project.uid)
        assert [b.snapshot for b in backups] == [EMPTY_SCENE]

    async def test_scene_is_opaque_json(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        document = {"formatVersion": 2, "spawn": {"x": 50.5}, "flags": [True, None, "x"]}

        await project_service.save_scene(project.uid, document)

        assert await project_service.get_scene(project.uid) == document

    async def test_save_bumps_updated_at(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)

        reloaded = await project_service.get(project.uid)
        assert reloaded.updated_at >= project.updated_at
        assert reloaded.created_at == project.created_at
        assert reloaded.owner_id == project.owner_id

    async def test_failed_commit_changes_nothing(
        self,
        project_service: ProjectService,
        store: JSONFileStore,
        monkeypatch: pytest.MonkeyPatch,
    ):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)

        async def failing_put(namespace: str, key: str, value):
            raise StorageFailure("Storage put failed")

        monkeypatch.setattr(store, "put", failing_put)
        with pytest.raises(StorageFailure):
            await project_service.save_scene(project.uid, CUBE_SCENE)
        monkeypatch.undo()

        assert await project_service.get_scene(project.uid) == EMPTY_SCENE
        assert await project_service.get_backups(project.uid) == []
        # The lock was released despite the failure
        assert await project_service.save_scene(project.uid, CUBE_SCENE) is True


class TestRevert:
    async def test_scenario(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)
        await project_service.save_scene(project.uid, CUBE_SCENE)

        backups = await project_service.get_backups(project.uid)
        assert [b.snapshot for b in backups] == [EMPTY_SCENE]
        assert await project_service.get_scene(project.uid) == CUBE_SCENE

        restored = await project_service.revert_to_backup(project.uid, 0)

        assert restored == EMPTY_SCENE
        assert await project_service.get_scene(project.uid) == EMPTY_SCENE
        backups = await project_service.get_backups(project.uid)
        assert len(backups) == 2
        assert backups[-1].snapshot == CUBE_SCENE

    async def test_revert_to_middle_backup(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        for i in range(4):
            await project_service.save_scene(project.uid, {"version": i})

        restored = await project_service.revert_to_backup(project.uid, 1)

        assert restored == {"version": 1}
        snapshots = [b.snapshot for b in await project_service.get_backups(project.uid)]
        assert snapshots == [{"version": 0}, {"version": 1}, {"version": 2}, {"version": 3}]

    async def test_revert_at_retention_bound(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        for i in range(TEST_BACKUP_RETENTION + 1):
            await project_service.save_scene(project.uid, {"version": i})

        # Oldest backup is evicted by the revert itself, but is still what gets restored
        restored = await project_service.revert_to_backup(project.uid, 0)

        assert restored == {"version": 0}
        assert await project_service.get_scene(project.uid) == {"version": 0}
        backups = await project_service.get_backups(project.uid)
        assert len(backups) == TEST_BACKUP_RETENTION
        assert backups[-1].snapshot == {"version": TEST_BACKUP_RETENTION}

    @pytest.mark.parametrize("index", [-1, 1, 99, True])
    async def test_out_of_range_changes_nothing(self, project_service: ProjectService, index):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)
        await project_service.save_scene(project.uid, CUBE_SCENE)
        before_backups = await project_service.get_backups(project.uid)

        assert await project_service.revert_to_backup(project.uid, index) is None

        assert await project_service.get_scene(project.uid) == CUBE_SCENE
        assert await project_service.get_backups(project.uid) == before_backups

    async def test_revert_without_backups(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        assert await project_service.revert_to_backup(project.uid, 0) is None

    async def test_revert_unknown_project(self, project_service: ProjectService):
        assert await project_service.revert_to_backup("abc-123", 0) is None
        assert await project_service.revert_to_backup("NOT/VALID", 0) is None


class TestRemove:
    async def test_remove_purges_everything(self, project_service: ProjectService, data_dir):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)
        await project_service.save_scene(project.uid, CUBE_SCENE)

        assert await project_service.remove(project.uid) is True

        assert await project_service.get(project.uid) is None
        assert await project_service.get_scene(project.uid) is None
        assert await project_service.get_backups(project.uid) == []
        assert await project_service.list_by_owner("alice") == []
        assert not (data_dir / "projects" / project.uid).exists()

    async def test_remove_unknown_project(self, project_service: ProjectService):
        assert await project_service.remove("abc-123") is False

    async def test_save_after_remove_does_not_resurrect(
        self, project_service: ProjectService, data_dir
    ):
        project = await project_service.create("alice", "Level 1")
        await project_service.remove(project.uid)

        assert await project_service.save_scene(project.uid, EMPTY_SCENE) is False
        assert not (data_dir / "projects" / project.uid).exists()


class TestReadsOnUnknownIds:
    @pytest.mark.parametrize("uid", ["", "abc-123", "ABC", "../../etc", "a/b", "x" * 100])
    async def test_reads_return_absent(self, project_service: ProjectService, uid):
        assert await project_service.get(uid) is None
        assert await project_service.get_scene(uid) is None
        assert await project_service.get_backups(uid) == []

    async def test_backups_of_removed_project_are_empty(self, project_service: ProjectService):
        project = await project_service.create("alice", "Level 1")
        await project_service.save_scene(project.uid, EMPTY_SCENE)
        await project_service.save_scene(project.uid, CUBE_SCENE)
        await project_service.remove(project.uid)

        assert await project_service.get_backups(project.uid) == []
        assert await project_service.get(project.uid) is None
