from conftest import auth_headers
import uuid


class TestBusinessRatings:
    """Test cases for rating business profiles"""

    def rate(self, client, rater, business, rating, comment=None):
        return client.put(
            f"/api/v1/ratings/{business.id}",
            json={"rating": rating, "comment": comment},
            headers=auth_headers(rater)
        )

    def test_rating_replaces_previous(self, client, make_profile):
        shop = make_profile("Movers Inc", badge="business")
        alice = make_profile("Alice")

        first = self.rate(client, alice, shop, 3, "ok")
        second = self.rate(client, alice, shop, 5, "  great  ")

        assert first.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["rating"] == 5
        assert second.json()["comment"] == "great"

        mine = client.get(f"/api/v1/ratings/{shop.id}/mine", headers=auth_headers(alice)).json()
        assert mine["rating"] == 5

    def test_reviews_and_stats(self, client, make_profile):
        shop = make_profile("Movers Inc", badge="business")
        other_shop = make_profile("Cleaners", badge="business")
        alice = make_profile("Alice")
        bob = make_profile("Bob", badge="owner")
        self.rate(client, alice, shop, 4, "solid")
        self.rate(client, bob, shop, 5)

        reviews = client.get(f"/api/v1/ratings/{shop.id}/reviews").json()
        assert sorted((r["rater_name"], r["rating"]) for r in reviews) == [("Alice", 4), ("Bob", 5)]

        response = client.get("/api/v1/ratings/stats", params={"business_ids": [str(shop.id), str(other_shop.id)]})
        assert response.status_code == 200
        stats = response.json()
        assert stats[str(shop.id)] == {"business_id": str(shop.id), "average_rating": 4.5, "total_ratings": 2}
        assert stats[str(other_shop.id)]["total_ratings"] == 0
        assert stats[str(other_shop.id)]["average_rating"] == 0.0

    def test_my_rating_defaults_to_zero(self, client, make_profile):
        shop = make_profile("Movers Inc", badge="business")
        alice = make_profile("Alice")

        response = client.get(f"/api/v1/ratings/{shop.id}/mine", headers=auth_headers(alice))

        assert response.json() == {"business_id": str(shop.id), "rating": 0}

    def test_invalid_ratings(self, client, make_profile):
        shop = make_profile("Movers Inc", badge="business")
        owner = make_profile("Olivia", badge="owner")
        alice = make_profile("Alice")

        assert self.rate(client, alice, shop, 6).status_code == 422
        assert self.rate(client, shop, shop, 5).status_code == 400
        assert self.rate(client, alice, owner, 5).status_code == 400

        response = client.put(
            f"/api/v1/ratings/{uuid.uuid4()}",
            json={"rating": 4},
            headers=auth_headers(alice)
        )
        assert response.status_code == 404
