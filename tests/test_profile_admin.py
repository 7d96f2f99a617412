import pytest

from app.services import auth_service
from tests.fakes import bearer

API = "/api/v1"


@pytest.fixture
def registered(database, alice):
    """Alice with an auth account and a profile, as verify-otp leaves them."""
    database["auth_accounts"].docs["acc-alice"] = {
        "_id": "acc-alice", "uid": "alice", "email": "alice@example.com", "display_name": "Alice", "photo_url": None,
    }
    database["users"].docs["users/alice"] = {
        "_id": "users/alice",
        "_collection": "users",
        "full_name": "Alice",
        "email": "alice@example.com",
        "phone": "+923001234567",
        "cnic": "35202-1234567-1",
    }
    return alice


class TestProfile:

    def test_read_own_profile(self, client, registered):
        response = client.get(f"{API}/profile", headers=bearer(registered))
        assert response.status_code == 200
        assert response.json()["id"] == "alice"
        assert response.json()["full_name"] == "Alice"

    def test_missing_profile(self, client, bob):
        assert client.get(f"{API}/profile", headers=bearer(bob)).status_code == 404

    def test_update_writes_auth_record_and_profile(self, client, database, registered):
        body = {"full_name": "Alice Ahmed", "phone": "+923331234567", "avatar": "https://img/alice.png"}

        response = client.put(f"{API}/profile", json=body, headers=bearer(registered))

        assert response.status_code == 200
        profile = database["users"].docs["users/alice"]
        assert profile["full_name"] == "Alice Ahmed"
        assert profile["avatar"] == "https://img/alice.png"
        assert profile["cnic"] == "35202-1234567-1"

        account = database["auth_accounts"].docs
        [stored] = [a for a in account.values() if a["uid"] == "alice"]
        assert stored["display_name"] == "Alice Ahmed"
        assert stored["photo_url"] == "https://img/alice.png"

    def test_email_cannot_be_changed(self, client, database, registered):
        body = {"full_name": "Alice", "email": "attacker@example.com"}
        client.put(f"{API}/profile", json=body, headers=bearer(registered))
        assert database["users"].docs["users/alice"]["email"] == "alice@example.com"

    def test_profile_written_even_when_auth_record_missing(self, client, database, bob):
        response = client.put(f"{API}/profile", json={"full_name": "Bob"}, headers=bearer(bob))

        assert response.status_code == 404
        # Partial update stays in place
        assert database["users"].docs["users/bob"]["full_name"] == "Bob"

    def test_name_required(self, client, registered):
        response = client.put(f"{API}/profile", json={"full_name": "A"}, headers=bearer(registered))
        assert response.status_code == 422

    async def test_update_auth_profile_reports_unknown_account(self, database):
        assert await auth_service.update_auth_profile(database, "ghost", display_name="Ghost") is False


class TestAdmin:

    def test_stats_count_across_users(self, client, admin, alice, bob):
        qarz = {"debtor": "Bilal", "creditor": "Xavier", "amount": 10, "due_date": "2025-01-01"}
        setup = [
            client.post(f"{API}/users/alice/qarzs", json=qarz, headers=bearer(alice)),
            client.post(f"{API}/users/bob/qarzs", json=qarz, headers=bearer(bob)),
            client.post(f"{API}/users/bob/wasiyats", json={"will": "Bob's will"}, headers=bearer(bob)),
        ]
        assert [r.status_code for r in setup] == [201, 201, 201]

        response = client.get(f"{API}/admin/stats", headers=bearer(admin))

        assert response.status_code == 200
        assert response.json() == {"users": 0, "wasiyats": 1, "qarzs": 2, "amanats": 0}

    def test_user_list_sorted_without_secrets(self, client, database, admin):
        for uid, name in (("u2", "Zara"), ("u1", "Ahmed")):
            database["users"].docs[f"users/{uid}"] = {
                "_id": f"users/{uid}", "_collection": "users", "full_name": name, "password_hash": "x",
            }

        response = client.get(f"{API}/admin/users", headers=bearer(admin))

        assert response.status_code == 200
        users = response.json()
        assert [u["full_name"] for u in users] == ["Ahmed", "Zara"]
        assert [u["id"] for u in users] == ["u1", "u2"]
        assert all("password_hash" not in u for u in users)

    @pytest.mark.parametrize("endpoint", ["stats", "users"])
    def test_non_admin_denied(self, client, alice, endpoint):
        response = client.get(f"{API}/admin/{endpoint}", headers=bearer(alice))
        assert response.status_code == 403
        assert response.json()["code"] == "PERMISSION_DENIED"
