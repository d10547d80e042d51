from conftest import auth_headers
from nestlink.models.profile import ListingPreferences, ListingType
from nestlink.modules.properties.service import to_property, matches_preferences
import uuid


class TestPropertyListing:
    """Test cases for browsing listings"""

    def test_filters(self, client, make_profile, make_property):
        owner = make_profile("Olivia", badge="owner")
        make_property(owner, title="Studio Montmartre", price=900, type="rent", location="Paris", area=25)
        make_property(owner, title="Family house", price=450000, type="sale", location="Lyon", area=140)
        make_property(owner, title="Loft", price=2100, type="rent", location="Paris", area=80)

        titles = lambda r: sorted(p["title"] for p in r.json())

        response = client.get("/api/v1/properties/", params={"type": "rent"})
        assert response.status_code == 200
        assert titles(response) == ["Loft", "Studio Montmartre"]

        response = client.get("/api/v1/properties/", params={"search": "montmartre"})
        assert titles(response) == ["Studio Montmartre"]

        response = client.get("/api/v1/properties/", params={"min_price": 1000, "max_price": 500000, "location": "lyon"})
        assert titles(response) == ["Family house"]

        response = client.get("/api/v1/properties/", params={"min_area": 50})
        assert titles(response) == ["Family house", "Loft"]

    def test_invalid_filters(self, client):
        assert client.get("/api/v1/properties/", params={"type": "castle"}).status_code == 400
        assert client.get("/api/v1/properties/", params={"min_price": 10, "max_price": 5}).status_code == 400

    def test_recommended_uses_listing_preference(self, client, make_profile, make_property):
        owner = make_profile("Olivia", badge="owner")
        make_property(owner, title="Cheap", price=700, location="Paris", area=30)
        make_property(owner, title="Too big", price=700, location="Paris", area=300)
        make_property(owner, title="Elsewhere", price=700, location="Lyon", area=30)
        # Legacy plain-text preference: location filter with default ranges
        seeker = make_profile("Sid", listing_preference="Paris")

        response = client.get("/api/v1/properties/recommended", headers=auth_headers(seeker))

        assert response.status_code == 200
        assert [p["title"] for p in response.json()] == ["Cheap"]

    def test_recommended_keeps_valid_fields_of_damaged_preference(self, client, make_profile, make_property):
        owner = make_profile("Olivia", badge="owner")
        make_property(owner, title="Cheap", price=700, location="Paris", area=30)
        make_property(owner, title="Elsewhere", price=700, location="Lyon", area=30)
        seeker = make_profile("Sid", listing_preference='{"types": ["both"], "location": "Paris"}')

        response = client.get("/api/v1/properties/recommended", headers=auth_headers(seeker))

        assert [p["title"] for p in response.json()] == ["Cheap"]

    def test_get_property(self, client, make_profile, make_property):
        owner = make_profile("Olivia")
        prop = make_property(owner, title="Loft")

        assert client.get(f"/api/v1/properties/{prop.id}").json()["title"] == "Loft"
        assert client.get(f"/api/v1/properties/{uuid.uuid4()}").status_code == 404
        assert client.get("/api/v1/properties/garbage").status_code == 404

    def test_list_by_owner(self, client, make_profile, make_property):
        owner = make_profile("Olivia")
        other = make_profile("Oscar")
        make_property(owner, title="Mine")
        make_property(other, title="Theirs")

        response = client.get(f"/api/v1/properties/owner/{owner.id}")

        assert [p["title"] for p in response.json()] == ["Mine"]


class TestPropertyOwnership:
    """Test cases for creating and editing listings"""

    def test_create_update_delete(self, client, make_profile):
        owner = make_profile("Olivia", badge="owner")
        other = make_profile("Oscar")

        response = client.post(
            "/api/v1/properties/",
            json={"title": "Loft", "price": 1500, "type": "rent", "location": "Paris", "area": 70},
            headers=auth_headers(owner)
        )
        assert response.status_code == 200
        created = response.json()
        assert created["owner_id"] == str(owner.id)
        assert created["bedrooms"] == 0

        url = f"/api/v1/properties/{created['id']}"
        assert client.put(url, json={"price": 1400}, headers=auth_headers(other)).status_code == 403

        response = client.put(url, json={"price": 1400}, headers=auth_headers(owner))
        assert response.status_code == 200
        assert response.json()["price"] == 1400
        assert response.json()["title"] == "Loft"

        assert client.delete(url, headers=auth_headers(other)).status_code == 403
        assert client.delete(url, headers=auth_headers(owner)).status_code == 200
        assert client.get(url).status_code == 404

    def test_update_rejects_null_required_fields(self, client, make_profile, make_property):
        owner = make_profile("Olivia", badge="owner")
        prop = make_property(owner, title="Loft")
        url = f"/api/v1/properties/{prop.id}"

        for field in ["title", "price", "type", "location"]:
            response = client.put(url, json={field: None}, headers=auth_headers(owner))
            assert response.status_code == 422, field

        # Nullable details can still be cleared
        response = client.put(url, json={"description": None}, headers=auth_headers(owner))
        assert response.status_code == 200
        assert client.get(url).json()["title"] == "Loft"

    def test_create_requires_authentication(self, client):
        response = client.post(
            "/api/v1/properties/",
            json={"title": "Loft", "price": 1500, "type": "rent", "location": "Paris"}
        )
        assert response.status_code in (401, 403)


class TestPreferenceMatching:
    """Test cases for the in-memory preference match"""

    def test_matches_preferences(self, make_profile, make_property):
        owner = make_profile("Olivia")
        prop = to_property(make_property(owner, price=1200, type="rent", location="Paris 11e", area=40))

        assert matches_preferences(prop, ListingPreferences(location="paris"))
        assert matches_preferences(prop, ListingPreferences(types=[ListingType.RENT]))
        assert not matches_preferences(prop, ListingPreferences(types=[ListingType.SALE]))
        assert not matches_preferences(prop, ListingPreferences(max_price=1000))
        assert not matches_preferences(prop, ListingPreferences(min_size=50))
