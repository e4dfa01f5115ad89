import pytest

from cycle_login.core.errors import AdminRequired
from cycle_login.services import users


def test_generated_codes_are_seven_digits():
    for _ in range(50):
        codes = users.generate_cycle_codes()
        assert len(codes) == 5
        for code in codes:
            assert code.isdigit() and len(code) == 7
            assert 1_000_000 <= int(code) <= 9_999_999


async def test_create_returns_codes_and_persists(store, claim):
    result = await users.create(store, claim, "  Alice ")
    assert isinstance(result, users.Created)
    assert len(result.cycle_codes) == 5

    found = await users.find_by_username(store, "alice")
    assert found is not None
    assert found.username == "Alice"
    assert found.cycle_codes == result.cycle_codes
    assert found.license_expires_at is None
    assert found.created_at > 0
    assert await users.find_by_id(store, found.id) == found


@pytest.mark.parametrize("variant", ["Alice", "alice ", "ALICE", "  aLiCe"])
async def test_duplicate_username_is_conflict(store, claim, variant):
    await users.create(store, claim, "alice")
    before = await users.list_all(store)

    result = await users.create(store, claim, variant)

    assert isinstance(result, users.Conflict)
    assert result.message == "Username already exists"
    assert await users.list_all(store) == before


async def test_blank_username_is_invalid(store, claim):
    result = await users.create(store, claim, "   ")
    assert isinstance(result, users.InvalidInput)
    assert await users.list_all(store) == []


async def test_ids_are_unique(store, claim):
    a = await users.create(store, claim, "a")
    b = await users.create(store, claim, "b")
    assert a.user.id != b.user.id


async def test_delete_is_idempotent(store, claim):
    created = await users.create(store, claim, "bob")
    await users.create(store, claim, "carol")

    await users.delete(store, claim, created.user.id)
    await users.delete(store, claim, created.user.id)
    await users.delete(store, claim, "no-such-id")

    assert await users.find_by_username(store, "bob") is None
    assert [u.username for u in await users.list_all(store)] == ["carol"]


async def test_deleted_username_can_be_reused(store, claim):
    first = await users.create(store, claim, "dave")
    await users.delete(store, claim, first.user.id)
    again = await users.create(store, claim, "Dave")
    assert isinstance(again, users.Created)


async def test_lookups_miss(store):
    assert await users.find_by_username(store, "ghost") is None
    assert await users.find_by_username(store, None) is None
    assert await users.find_by_id(store, "nope") is None


async def test_admin_operations_require_claim(store):
    with pytest.raises(AdminRequired):
        await users.create(store, None, "eve")
    with pytest.raises(AdminRequired):
        await users.delete(store, object(), "x")
