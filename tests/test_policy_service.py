"""
Тесты получения настроек группы.
"""
from gatekeeper.database.models import VerifyMode
from gatekeeper.exceptions import StorageError

from .conftest import GROUP_ID


class TestResolve:
    async def test_unknown_group_gets_persisted_default(self, policies, db, settings):
        policy = await policies.resolve(GROUP_ID)

        assert policy.group_id == GROUP_ID
        assert policy.mode == VerifyMode(settings.DEFAULT_VERIFY_MODE)
        assert policy.timeout == 300
        stored = await db.policies.get(GROUP_ID)
        assert stored is not None
        assert stored.timeout == 300

    async def test_default_is_persisted_once(self, policies, db):
        await policies.resolve(GROUP_ID)
        await policies.invalidate(GROUP_ID)
        await policies.resolve(GROUP_ID)

        assert len(await db.policies.get_all()) == 1

    async def test_cache_hit_skips_storage(self, policies, db, monkeypatch):
        await policies.resolve(GROUP_ID)

        async def fail(*args, **kwargs):
            raise AssertionError("storage should not be read")

        monkeypatch.setattr(db.policies, "get", fail)
        policy = await policies.resolve(GROUP_ID)
        assert policy.group_id == GROUP_ID

    async def test_returned_policy_is_a_copy(self, policies):
        policy = await policies.resolve(GROUP_ID)
        policy.timeout = 999

        assert (await policies.resolve(GROUP_ID)).timeout == 300

    async def test_cache_expires(self, policies, db, clock):
        policy = await policies.resolve(GROUP_ID)
        await db.policies.upsert(policy.model_copy(update={"timeout": 120}))

        assert (await policies.resolve(GROUP_ID)).timeout == 300
        clock.advance(61)
        assert (await policies.resolve(GROUP_ID)).timeout == 120

    async def test_save_invalidates_cache(self, policies):
        policy = await policies.resolve(GROUP_ID)
        await policies.save(policy.model_copy(update={"mode": VerifyMode.IMAGE_CAPTCHA}))

        assert (await policies.resolve(GROUP_ID)).mode is VerifyMode.IMAGE_CAPTCHA

    async def test_storage_failure_falls_back_to_default(self, policies, db, monkeypatch):
        async def broken(*args, **kwargs):
            raise StorageError("disk is gone")

        monkeypatch.setattr(db.policies, "get", broken)
        policy = await policies.resolve(GROUP_ID)
        assert policy.timeout == 300

        # значение по умолчанию не кэшируется
        monkeypatch.undo()
        assert await db.policies.get(GROUP_ID) is None
        await policies.resolve(GROUP_ID)
        assert await db.policies.get(GROUP_ID) is not None

    async def test_list_all(self, policies):
        await policies.resolve(1)
        await policies.resolve(2)

        groups = [p.group_id for p in await policies.list_all()]
        assert groups == [1, 2]
