from common.security import verify_password
from modules.user.models import User

from tests.conftest import PASSWORD

NEW_USER = {
    "email": "Ama.Owusu@GoldBod.test",
    "full_name": "Ama Owusu",
    "password": "assay-room-7",
    "role": "LARGE_SCALE_ASSAYER",
}


# ==========================================
# Staff accounts
# ==========================================

def test_create_and_list_users(client, admin, db):
    res = client.post("/api/users", json=NEW_USER, headers=admin)
    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "ama.owusu@goldbod.test"
    assert body["role"] == "LARGE_SCALE_ASSAYER"
    assert body["is_active"] is True
    assert "password_hash" not in body

    stored = db.query(User).filter(User.id == body["id"]).one()
    assert stored.password_hash.startswith("$2b$")
    assert verify_password("assay-room-7", stored.password_hash)

    # the new account can sign in
    login = client.post("/api/auth/login", json={"email": "ama.owusu@goldbod.test", "password": "assay-room-7"})
    assert login.status_code == 200
    client.cookies.clear()

    listing = client.get("/api/users", params={"role": "LARGE_SCALE_ASSAYER"}, headers=admin).json()
    assert [u["email"] for u in listing["users"]] == ["ama.owusu@goldbod.test"]
    found = client.get("/api/users", params={"search": "owusu"}, headers=admin).json()
    assert len(found["users"]) == 1
    assert client.get(f"/api/users/{body['id']}", headers=admin).json()["full_name"] == "Ama Owusu"
    assert client.get("/api/users/999", headers=admin).status_code == 404


def test_create_user_validation(client, admin):
    client.post("/api/users", json=NEW_USER, headers=admin)
    dup = client.post("/api/users", json=dict(NEW_USER, email="ama.owusu@goldbod.test"), headers=admin)
    assert dup.status_code == 409
    assert dup.json() == {"error": "A user with this email already exists"}

    assert client.post("/api/users", json=dict(NEW_USER, email="x@y.test", role="AUDITOR"), headers=admin).status_code == 400
    assert client.post("/api/users", json=dict(NEW_USER, email="x@y.test", password="short"), headers=admin).status_code == 400
    assert client.post("/api/users", json=dict(NEW_USER, email="not-an-email"), headers=admin).status_code == 400


def test_update_user(client, admin, db):
    created = client.post("/api/users", json=NEW_USER, headers=admin).json()
    url = f"/api/users/{created['id']}"

    res = client.put(url, json={"role": "FINANCE", "full_name": "Ama K. Owusu", "password": "new-vault-pass"}, headers=admin)
    assert res.status_code == 200
    assert res.json()["role"] == "FINANCE"
    assert "reports" in res.json()["permissions"]
    db.expire_all()
    stored = db.query(User).filter(User.id == created["id"]).one()
    assert verify_password("new-vault-pass", stored.password_hash)

    client.post("/api/users", json=dict(NEW_USER, email="kofi@goldbod.test"), headers=admin)
    clash = client.put(url, json={"email": "KOFI@goldbod.test"}, headers=admin)
    assert clash.status_code == 409


def test_deactivated_user_cannot_sign_in(client, admin):
    created = client.post("/api/users", json=NEW_USER, headers=admin).json()
    res = client.put(f"/api/users/{created['id']}", json={"is_active": False}, headers=admin)
    assert res.json()["is_active"] is False

    login = client.post("/api/auth/login", json={"email": "ama.owusu@goldbod.test", "password": "assay-room-7"})
    assert login.status_code == 401


def test_delete_user(client, admin):
    created = client.post("/api/users", json=NEW_USER, headers=admin).json()
    assert client.delete(f"/api/users/{created['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/users/{created['id']}", headers=admin).status_code == 404
    assert client.delete(f"/api/users/{created['id']}", headers=admin).status_code == 404


def test_cannot_remove_own_account(client, admin):
    me = client.get("/api/auth/me", headers=admin).json()["user"]
    res = client.delete(f"/api/users/{me['id']}", headers=admin)
    assert res.status_code == 400
    assert res.json() == {"error": "You cannot delete your own account"}
    res = client.put(f"/api/users/{me['id']}", json={"is_active": False}, headers=admin)
    assert res.json() == {"error": "You cannot deactivate your own account"}


def test_only_superadmin_grants_superadmin(client, login, make_user):
    settings_admin = login("ADMIN")
    res = client.post("/api/users", json=dict(NEW_USER, role="SUPERADMIN"), headers=settings_admin)
    assert res.status_code == 403

    root = make_user("SUPERADMIN")
    assert client.delete(f"/api/users/{root.id}", headers=settings_admin).status_code == 403
    assert client.post("/api/users", json=NEW_USER, headers=settings_admin).status_code == 201


def test_user_management_requires_settings(client, login):
    for role in ("FINANCE", "EXECUTIVE", "LARGE_SCALE_ASSAYER"):
        headers = login(role)
        assert client.get("/api/users", headers=headers).status_code == 403
        assert client.post("/api/users", json=NEW_USER, headers=headers).status_code == 403
    assert client.get("/api/users").status_code == 401


# ==========================================
# Own password
# ==========================================

def test_change_password(client, login):
    headers = login("FINANCE")
    res = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "fresh-pass-2025"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["success"] is True

    old = client.post("/api/auth/login", json={"email": "finance@goldbod.test", "password": PASSWORD})
    assert old.status_code == 401
    new = client.post("/api/auth/login", json={"email": "finance@goldbod.test", "password": "fresh-pass-2025"})
    assert new.status_code == 200


def test_change_password_rules(client, login):
    headers = login("FINANCE")
    url = "/api/auth/change-password"

    wrong = client.post(url, json={"current_password": "nope", "new_password": "fresh-pass-2025"}, headers=headers)
    assert wrong.status_code == 400
    assert wrong.json() == {"error": "Current password is incorrect"}

    same = client.post(url, json={"current_password": PASSWORD, "new_password": PASSWORD}, headers=headers)
    assert same.json() == {"error": "New password must be different from current password"}

    short = client.post(url, json={"current_password": PASSWORD, "new_password": "short"}, headers=headers)
    assert short.status_code == 400

    assert client.post(url, json={"current_password": PASSWORD, "new_password": "fresh-pass-2025"}).status_code == 401


# ==========================================
# Audit trail
# ==========================================

def test_audit_trail_lists_requests(client, admin, exporters):
    client.get("/api/exporters", headers=admin)
    client.post("/api/exporters", json={"name": "Kumasi Metals", "code": "KMX"}, headers=admin)
    client.post("/api/exporters", json={"name": "Other", "code": "KMX"}, headers=admin)

    body = client.get("/api/audit-trails", params={"path_search": "exporters"}, headers=admin).json()
    assert body["pagination"]["total"] == 3
    newest = body["audit_trails"][0]
    assert newest["method"] == "POST"
    assert newest["status_code"] == 409
    assert newest["user_display"] == "superadmin@goldbod.test"

    posts = client.get("/api/audit-trails", params={"method": "post", "path_search": "exporters"}, headers=admin).json()
    assert posts["pagination"]["total"] == 2
    failed = client.get("/api/audit-trails", params={"status_group": "4xx", "path_search": "exporters"}, headers=admin).json()
    assert [log["status_code"] for log in failed["audit_trails"]] == [409]

    paged = client.get("/api/audit-trails", params={"path_search": "exporters", "limit": 2, "page": 2}, headers=admin).json()
    assert len(paged["audit_trails"]) == 1
    assert paged["pagination"]["has_previous"] is True
    assert paged["pagination"]["has_next"] is False


def test_audit_trail_masks_passwords(client, login, admin):
    headers = login("FINANCE")
    client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "fresh-pass-2025"},
        headers=headers,
    )
    body = client.get("/api/audit-trails", params={"path_search": "change-password"}, headers=admin).json()
    [log] = body["audit_trails"]
    assert PASSWORD not in log["body_preview"]
    assert "fresh-pass-2025" not in log["body_preview"]
    assert log["body_preview"].count("***") == 2


def test_audit_trail_filters_by_user(client, login, admin):
    finance = login("FINANCE")
    client.get("/api/reports/types", headers=finance)
    finance_id = client.get("/api/auth/me", headers=finance).json()["user"]["id"]

    body = client.get("/api/audit-trails", params={"user_id": finance_id}, headers=admin).json()
    assert body["audit_trails"]
    assert {log["user_id"] for log in body["audit_trails"]} == {finance_id}


def test_audit_trail_requires_settings(client, login):
    assert client.get("/api/audit-trails", headers=login("FINANCE")).status_code == 403
    assert client.get("/api/audit-trails", headers=login("ADMIN")).status_code == 200
