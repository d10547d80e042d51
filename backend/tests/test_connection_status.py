import pytest
from nestlink.models.connection import ConnectionStatus
from nestlink.modules.connections.status import (
    resolve_connection_status, find_pending_connection_id, suggestion_score, rank_suggestions
)

A, B, C = "a", "b", "c"


def edge(source, target, id="e1"):
    return {"id": id, "user_id": source, "connected_user_id": target, "status": "pending"}


class TestResolveConnectionStatus:
    """Test cases for the status shown between two profiles"""

    def test_no_relationship(self):
        """Unrelated profiles see none"""
        assert resolve_connection_status(A, B, [], []) == ConnectionStatus.NONE

    def test_pending_seen_from_both_sides(self):
        """A request A -> B is pending for A and received for B"""
        edges = [edge(A, B)]
        assert resolve_connection_status(A, B, [], edges) == ConnectionStatus.PENDING
        assert resolve_connection_status(B, A, [], edges) == ConnectionStatus.RECEIVED

    def test_connected_is_symmetric(self):
        """An accepted connection reads as connected from either side"""
        assert resolve_connection_status(A, B, [B], []) == ConnectionStatus.CONNECTED
        assert resolve_connection_status(B, A, [A], []) == ConnectionStatus.CONNECTED

    def test_connected_wins_over_pending(self):
        """A connected profile is connected even if a stale pending edge is around"""
        assert resolve_connection_status(A, B, [{"id": B}], [edge(A, B)]) == ConnectionStatus.CONNECTED

    def test_edges_for_other_profiles_are_ignored(self):
        edges = [edge(A, C), edge(C, A, id="e2")]
        assert resolve_connection_status(A, B, [C], edges) == ConnectionStatus.NONE

    def test_outgoing_edge_checked_before_incoming(self):
        """With edges in both directions the viewer's own request wins"""
        edges = [edge(B, A, id="e2"), edge(A, B)]
        assert resolve_connection_status(A, B, [], edges) == ConnectionStatus.PENDING

    def test_ids_compared_as_strings(self):
        """UUID objects and their string forms are the same profile"""
        import uuid
        a, b = uuid.uuid4(), uuid.uuid4()
        edges = [edge(str(a), b)]
        assert resolve_connection_status(a, str(b), [], edges) == ConnectionStatus.PENDING

    def test_accepts_iterators(self):
        """Pending edges may be a one-shot iterator"""
        edges = iter([edge(B, A)])
        assert resolve_connection_status(A, B, iter([]), edges) == ConnectionStatus.RECEIVED


class TestFindPendingConnectionId:

    def test_finds_edge_in_either_direction(self):
        assert find_pending_connection_id(A, B, [edge(A, B, id="x")]) == "x"
        assert find_pending_connection_id(A, B, [edge(B, A, id="y")]) == "y"

    def test_missing_edge(self):
        assert find_pending_connection_id(A, B, [edge(A, C)]) is None


class TestSuggestionRanking:
    """Test cases for connection suggestion relevance"""

    def test_score_components(self):
        viewer = {"badge": "seeker", "location": "Paris", "listing_preference": "x"}
        candidate = {"badge": "business", "location": "Paris", "listing_preference": "x"}
        assert suggestion_score(candidate, viewer) == 50 + 40 + 20

    def test_empty_preference_does_not_score(self):
        viewer = {"badge": "owner", "location": "Lyon", "listing_preference": None}
        candidate = {"badge": "seeker", "location": "Paris", "listing_preference": None}
        assert suggestion_score(candidate, viewer) == 30

    def test_rank_is_descending_and_stable(self):
        viewer = {"badge": "owner", "location": "Paris"}
        first = {"id": 1, "badge": "business", "location": "Nice"}   # 20
        second = {"id": 2, "badge": "seeker", "location": "Paris"}   # 80
        third = {"id": 3, "badge": "business", "location": "Lyon"}   # 20

        ranked = rank_suggestions([first, second, third], viewer)

        assert [c["id"] for c in ranked] == [2, 1, 3]

    @pytest.mark.parametrize("viewer_badge,candidate_badge,expected", [
        ("business", "owner", 35),
        ("business", "seeker", 25),
        ("business", "business", 15),
        ("seeker", "seeker", 0),
    ])
    def test_badge_affinity(self, viewer_badge, candidate_badge, expected):
        viewer = {"badge": viewer_badge, "location": "A"}
        candidate = {"badge": candidate_badge, "location": "B"}
        assert suggestion_score(candidate, viewer) == expected
