import pytest
from dispatchdesk.utils.idempotency import get_idempotent, set_idempotent


@pytest.mark.asyncio
async def test_idemp_flow(fake_redis):
    key = "pytest-idemp"
    assert await get_idempotent("create_lead", key) is None
    await set_idempotent("create_lead", key, {"ok": True})
    found = await get_idempotent("create_lead", key)
    assert found == {"ok": True}
    assert await fake_redis.ttl(f"idemp:create_lead:{key}") > 0


@pytest.mark.asyncio
async def test_idemp_scopes_are_separate(fake_redis):
    await set_idempotent("create_lead", "k1", {"id": 1})
    assert await get_idempotent("import_leads", "k1") is None


@pytest.mark.asyncio
async def test_blank_key(fake_redis):
    assert await get_idempotent("create_lead", "") is None
