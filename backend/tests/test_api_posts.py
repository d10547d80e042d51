from conftest import auth_headers
from nestlink.db.models import Notification
import uuid


def create_post(client, author, **fields):
    payload = {"content": "Just listed a new flat!"}
    payload.update(fields)
    response = client.post("/api/v1/posts/", json=payload, headers=auth_headers(author))
    assert response.status_code == 200
    return response.json()


class TestPosts:
    """Test cases for the feed"""

    def test_create_and_read_feed(self, client, make_profile, make_property):
        author = make_profile("Olivia", badge="owner")
        prop = make_property(author)

        post = create_post(client, author, property_id=str(prop.id), images=["https://img.example/1.jpg"])

        assert post["author_name"] == "Olivia"
        assert post["property_id"] == str(prop.id)
        assert post["likes"] == [] and post["comments"] == []

        feed = client.get("/api/v1/posts/").json()
        assert [p["id"] for p in feed] == [post["id"]]
        assert client.get(f"/api/v1/posts/author/{author.id}").json()[0]["id"] == post["id"]

    def test_unknown_property_reference(self, client, make_profile):
        author = make_profile("Olivia")

        response = client.post(
            "/api/v1/posts/",
            json={"content": "hello", "property_id": str(uuid.uuid4())},
            headers=auth_headers(author)
        )

        assert response.status_code == 404

    def test_empty_content_rejected(self, client, make_profile):
        author = make_profile("Olivia")
        response = client.post("/api/v1/posts/", json={"content": "  "}, headers=auth_headers(author))
        assert response.status_code == 422

    def test_mentions_notify_known_profiles_once(self, client, make_profile, publisher, test_db_session):
        author = make_profile("Olivia")
        bob = make_profile("Bob")
        carol = make_profile("Carol")

        post = create_post(
            client, author,
            tagged_users=[str(bob.id), str(uuid.uuid4()), str(carol.id), str(bob.id), str(author.id)]
        )

        assert post["tagged_users"] == [str(bob.id), str(carol.id), str(author.id)]
        rows = test_db_session.query(Notification).filter(Notification.type == "mention").all()
        assert sorted(str(r.user_id) for r in rows) == sorted([str(bob.id), str(carol.id)])
        assert sorted(n.user_id for n in publisher.published) == sorted([str(bob.id), str(carol.id)])

    def test_delete_own_post_only(self, client, make_profile):
        author = make_profile("Olivia")
        other = make_profile("Bob")
        post = create_post(client, author)

        assert client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(other)).status_code == 403
        assert client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(author)).status_code == 200
        assert client.get(f"/api/v1/posts/{post['id']}").status_code == 404


class TestLikesAndComments:
    """Test cases for likes, comments and their notifications"""

    def test_toggle_like(self, client, make_profile, publisher):
        author = make_profile("Olivia")
        fan = make_profile("Bob")
        post = create_post(client, author)
        url = f"/api/v1/posts/{post['id']}/like"

        liked = client.post(url, headers=auth_headers(fan)).json()
        assert liked == {"post_id": post["id"], "liked": True, "like_count": 1}
        assert [n.type for n in publisher.published] == ["like"]
        assert publisher.published[0].related_user_id == str(fan.id)

        unliked = client.post(url, headers=auth_headers(fan)).json()
        assert unliked["liked"] is False
        assert unliked["like_count"] == 0

    def test_liking_own_post_does_not_notify(self, client, make_profile, publisher):
        author = make_profile("Olivia")
        post = create_post(client, author)

        client.post(f"/api/v1/posts/{post['id']}/like", headers=auth_headers(author))

        assert publisher.published == []

    def test_comment(self, client, make_profile, publisher):
        author = make_profile("Olivia")
        commenter = make_profile("Bob")
        post = create_post(client, author)

        response = client.post(
            f"/api/v1/posts/{post['id']}/comments",
            json={"content": " Nice place "},
            headers=auth_headers(commenter)
        )

        assert response.status_code == 200
        comment = response.json()
        assert comment["content"] == "Nice place"
        assert publisher.published[-1].type == "comment"
        assert publisher.published[-1].comment_id == comment["id"]

        feed_post = client.get(f"/api/v1/posts/{post['id']}").json()
        assert [c["id"] for c in feed_post["comments"]] == [comment["id"]]

    def test_comment_on_missing_post(self, client, make_profile):
        commenter = make_profile("Bob")
        response = client.post(
            f"/api/v1/posts/{uuid.uuid4()}/comments",
            json={"content": "hello"},
            headers=auth_headers(commenter)
        )
        assert response.status_code == 404
