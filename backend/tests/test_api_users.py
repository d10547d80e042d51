from conftest import auth_headers
from nestlink.models.profile import ListingPreferences
from nestlink.modules.profiles.cache import ProfileCache
import uuid


class TestUserAuthentication:
    """Test cases for registration and login"""

    def register(self, client, email=None, **overrides):
        user_data = {
            "email": email or f"test_{uuid.uuid4()}@example.com",
            "password": "testpassword123",
            "name": "Test User",
            "badge": "seeker",
            "location": "Paris"
        }
        user_data.update(overrides)
        return client.post("/api/v1/users/register", json=user_data)

    def test_registration_success(self, client):
        response = self.register(client, badge="business")

        assert response.status_code == 200
        result = response.json()
        assert result["name"] == "Test User"
        assert result["badge"] == "business"
        assert result["location"] == "Paris"

        # Password should not be in response
        assert "password" not in result
        assert "hashed_password" not in result

    def test_registration_duplicate_email(self, client):
        email = f"duplicate_{uuid.uuid4()}@example.com"

        assert self.register(client, email=email).status_code == 200

        response = self.register(client, email=email)
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_registration_validation(self, client):
        assert self.register(client, email="invalid-email").status_code == 422
        assert self.register(client, badge="landlord").status_code == 422
        assert self.register(client, name="   ").status_code == 400

    def test_login_and_me(self, client):
        email = f"login_{uuid.uuid4()}@example.com"
        profile = self.register(client, email=email).json()

        response = client.post("/api/v1/users/login", json={"email": email, "password": "testpassword123"})

        assert response.status_code == 200
        token = response.json()
        assert token["token_type"] == "bearer"
        assert token["profile"]["id"] == profile["id"]

        me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token['access_token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == profile["id"]

    def test_login_wrong_password(self, client):
        email = f"wrong_{uuid.uuid4()}@example.com"
        self.register(client, email=email)

        response = client.post("/api/v1/users/login", json={"email": email, "password": "nope"})

        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/api/v1/users/me").status_code in (401, 403)


class TestProfiles:
    """Test cases for profile reads and updates"""

    def test_update_profile(self, client, make_profile):
        alice = make_profile("Alice")

        response = client.put(
            "/api/v1/users/me",
            json={"name": " Alicia ", "badge": "owner", "description": "Landlady"},
            headers=auth_headers(alice)
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Alicia"
        assert response.json()["badge"] == "owner"
        assert response.json()["location"] == "Paris"
        assert client.get(f"/api/v1/users/{alice.id}").json()["name"] == "Alicia"

    def test_update_rejects_null_name_and_badge(self, client, make_profile):
        alice = make_profile("Alice")

        for changes in [{"name": None}, {"badge": None}]:
            response = client.put("/api/v1/users/me", json=changes, headers=auth_headers(alice))
            assert response.status_code == 422

        me = client.get("/api/v1/users/me", headers=auth_headers(alice)).json()
        assert me["name"] == "Alice"
        assert me["badge"] == "seeker"

    def test_listing_preferences(self, client, make_profile):
        alice = make_profile("Alice", listing_preference="Marseille")
        headers = auth_headers(alice)

        legacy = client.get("/api/v1/users/me/listing-preferences", headers=headers).json()
        assert legacy["location"] == "Marseille"
        assert legacy["maxPrice"] == 5000

        response = client.put(
            "/api/v1/users/me/listing-preferences",
            json={"types": ["sale"], "minPrice": 100000, "maxPrice": 300000, "location": "Nice"},
            headers=headers
        )
        assert response.status_code == 200
        stored = ListingPreferences.model_validate_json(response.json()["listing_preference"])
        assert stored.min_price == 100000

        current = client.get("/api/v1/users/me/listing-preferences", headers=headers).json()
        assert current["types"] == ["sale"]
        assert current["location"] == "Nice"

    def test_search_for_mentions(self, client, make_profile):
        alice = make_profile("Alice")
        for name in ["Albert", "alfred", "Bob", "Alina", "Alvaro", "Alma", "Alan"]:
            make_profile(name)

        response = client.get("/api/v1/users/search", params={"q": "AL"}, headers=auth_headers(alice))

        assert response.status_code == 200
        names = [p["name"] for p in response.json()]
        assert len(names) == 5
        assert "Bob" not in names

    def test_unknown_profile(self, client):
        assert client.get(f"/api/v1/users/{uuid.uuid4()}").status_code == 404


class TestProfileCache:
    """Test cases for the request-scoped profile cache"""

    def test_get_many_caches_and_invalidates(self, test_db_session, make_profile):
        alice = make_profile("Alice")
        bob = make_profile("Bob")
        cache = ProfileCache(test_db_session)

        found = cache.get_many([str(alice.id), bob.id, "garbage", uuid.uuid4()])

        assert set(found) == {alice.id, bob.id}
        assert len(cache) == 2
        assert cache.name_of(alice.id) == "Alice"

        cache.invalidate(alice.id)
        assert len(cache) == 1
        cache.invalidate()
        assert len(cache) == 0
