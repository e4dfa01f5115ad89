import pytest
from fastapi.testclient import TestClient

from cycle_login.core.clock import DAY_MS, now_ms
from cycle_login.core.errors import BackendFailure
from cycle_login.main import create_app
from cycle_login.stores import MemoryRecordStore
from tests.factories import DEV_PIN


def create_user(client, headers, username="alice"):
    resp = client.post("/api/users", json={"username": username}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_dev_auth(client):
    assert client.post("/api/auth/dev", json={"pin": "0000000"}).status_code == 401
    resp = client.post("/api/auth/dev", json={"pin": DEV_PIN})
    assert resp.status_code == 200
    assert resp.json()["token"]


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/users"),
        ("post", "/api/users"),
        ("delete", "/api/users/abc"),
        ("patch", "/api/users/abc/license"),
        ("post", "/api/users/bulk-add-license"),
        ("get", "/api/visits"),
        ("post", "/api/visit-count/reset"),
    ],
)
def test_admin_routes_require_token(client, method, path):
    kwargs = {"json": {}} if method in ("post", "patch") else {}
    resp = getattr(client, method)(path, **kwargs)
    assert resp.status_code == 401
    assert resp.json() == {"error": "Dev auth required"}

    resp = getattr(client, method)(path, headers={"Authorization": "Bearer forged"}, **kwargs)
    assert resp.status_code == 401


def test_token_from_dev_auth_opens_admin_routes(client):
    token = client.post("/api/auth/dev", json={"pin": DEV_PIN}).json()["token"]
    assert client.get("/api/users", headers={"X-Dev-Token": token}).status_code == 200
    assert client.get("/api/users", headers={"Authorization": f"bearer {token}"}).status_code == 200


def test_visit_count_cycles(client, admin_headers):
    assert client.get("/api/visit-count").json() == {"count": 0, "cycle": 1}
    cycles = [client.post("/api/visit-count/inc").json()["cycle"] for _ in range(6)]
    assert cycles == [1, 2, 3, 4, 5, 1]
    assert client.get("/api/visit-count").json() == {"count": 6, "cycle": 1}

    assert client.post("/api/visit-count/reset", headers=admin_headers).json() == {"ok": True}
    assert client.get("/api/visit-count").json()["count"] == 0


def test_login_flow(client, admin_headers):
    codes = create_user(client, admin_headers, "Alice")["cycleCodes"]
    cycle = client.post("/api/visit-count/inc").json()["cycle"]
    assert cycle == 1

    ok = client.post("/api/validate", json={"username": "alice ", "pin": codes[0], "cycle": cycle}).json()
    assert ok["ok"] is True
    assert ok["licenseExpiresAt"] is None
    assert ok["license"] == {"expired": True, "remainingMs": 0, "remainingText": "Expired"}

    wrong_cycle = client.post("/api/validate", json={"username": "Alice", "pin": codes[1], "cycle": 1}).json()
    assert wrong_cycle == {
        "ok": False,
        "error": "Incorrect — that code is not for the current cycle.",
        "reason": "wrong_cycle_code",
    }

    bad = client.post("/api/validate", json={"username": "Alice", "pin": "0000000", "cycle": 1}).json()
    assert bad["error"] == "Incorrect PIN."

    unknown = client.post("/api/validate", json={"username": "zed", "pin": codes[0], "cycle": 1}).json()
    assert unknown["error"] == "Unknown username"

    invalid = client.post("/api/validate", json={"username": "Alice", "pin": codes[0], "cycle": 7}).json()
    assert invalid["error"] == "Invalid cycle"


@pytest.mark.parametrize("cycle", [None, 0, "abc", "1"])
def test_missing_or_junk_cycle_defaults_to_one(client, admin_headers, cycle):
    codes = create_user(client, admin_headers)["cycleCodes"]
    body = {"username": "alice", "pin": codes[0]}
    if cycle is not None:
        body["cycle"] = cycle
    assert client.post("/api/validate", json=body).json()["ok"] is True


def test_dev_pin_login(client):
    assert client.post("/api/validate", json={"username": "anyone", "pin": DEV_PIN, "cycle": 9}).json() == {
        "ok": True,
        "dev": True,
    }


def test_duplicate_user_is_400(client, admin_headers):
    create_user(client, admin_headers, "alice")
    resp = client.post("/api/users", json={"username": "ALICE"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "error": "Username already exists"}


def test_list_and_delete_users(client, admin_headers):
    alice = create_user(client, admin_headers, "alice")
    create_user(client, admin_headers, "bob")

    listed = client.get("/api/users", headers=admin_headers).json()
    assert {u["username"] for u in listed} == {"alice", "bob"}
    assert all("cycleCodes" not in u for u in listed)
    assert all(u["licenseRemaining"] == "Expired" for u in listed)

    assert client.delete(f"/api/users/{alice['id']}", headers=admin_headers).json() == {"ok": True}
    assert client.delete(f"/api/users/{alice['id']}", headers=admin_headers).json() == {"ok": True}
    assert [u["username"] for u in client.get("/api/users", headers=admin_headers).json()] == ["bob"]


def test_license_patch_and_bulk(client, admin_headers):
    alice = create_user(client, admin_headers, "alice")
    bob = create_user(client, admin_headers, "bob")

    resp = client.patch(f"/api/users/{alice['id']}/license", json={"addDays": 10}, headers=admin_headers)
    assert resp.json() == {"ok": True}

    resp = client.post("/api/users/bulk-add-license", json={"days": 5}, headers=admin_headers)
    assert resp.json() == {"ok": True, "count": 1}

    users = {u["username"]: u for u in client.get("/api/users", headers=admin_headers).json()}
    remaining = users["alice"]["licenseExpiresAt"] - now_ms()
    assert 14 * DAY_MS < remaining <= 15 * DAY_MS
    assert users["bob"]["licenseExpiresAt"] is None

    resp = client.patch(f"/api/users/{alice['id']}/license", json={"removeDays": 100}, headers=admin_headers)
    assert resp.json() == {"ok": True}
    resp = client.patch(f"/api/users/{bob['id']}/license", json={"expiresAt": None}, headers=admin_headers)
    assert resp.json() == {"ok": True}
    users = {u["username"]: u for u in client.get("/api/users", headers=admin_headers).json()}
    assert users["alice"]["licenseExpiresAt"] is None
    assert users["alice"]["licenseExpired"] is True


def test_bulk_defaults_to_thirty_days(client, admin_headers):
    alice = create_user(client, admin_headers, "alice")
    client.patch(f"/api/users/{alice['id']}/license", json={"addDays": 1}, headers=admin_headers)
    assert client.post("/api/users/bulk-add-license", json={}, headers=admin_headers).json()["count"] == 1
    [user] = client.get("/api/users", headers=admin_headers).json()
    assert user["licenseExpiresAt"] - now_ms() > 30 * DAY_MS


def test_license_patch_unknown_user_is_404(client, admin_headers):
    resp = client.patch("/api/users/nope/license", json={"addDays": 1}, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not found"}


def test_visits_and_duration(client, admin_headers):
    assert client.post("/api/visits", json={"type": "login", "referrer": "direct", "cycle": 1}).status_code == 201
    client.post("/api/visits", json={"username": "alice", "type": "app", "cycle": 2, "timestamp": 10})
    client.post("/api/visits", json={"username": "alice", "type": "app", "cycle": 3, "timestamp": 20})

    resp = client.patch("/api/visits/last-duration", json={"username": "alice", "durationMs": 4999.5})
    assert resp.json() == {"ok": True}
    resp = client.patch("/api/visits/last-duration", json={"username": "nobody", "durationMs": 1})
    assert resp.json() == {"ok": True}

    log = client.get("/api/visits", headers=admin_headers).json()
    assert [v.get("durationMs") for v in log] == [None, None, 5000]
    assert log[1]["sessionStart"] == 10
    assert "timestamp" in log[0] and "sessionStart" not in log[0]

    grouped = client.get("/api/visits", params={"grouped": "true"}, headers=admin_headers).json()
    assert list(grouped) == ["(login page)", "alice"]
    assert len(grouped["alice"]) == 2


class BrokenStore(MemoryRecordStore):
    async def get_counter(self) -> int:
        raise BackendFailure("disk on fire", backend="broken")

    async def increment_counter(self) -> int:
        raise BackendFailure("disk on fire", backend="broken")


def test_backend_failure_is_503(settings):
    with TestClient(create_app(settings, store=BrokenStore())) as client:
        resp = client.post("/api/visit-count/inc")
        assert resp.status_code == 503
        assert resp.json() == {"error": "Storage unavailable, try again"}
        assert client.get("/api/visit-count").status_code == 503
