"""
Derivation of the connection status shown between two profiles.

Connections are stored as a single directed row (requester -> target) with a
status of ``pending`` or ``accepted``. Everything here is a pure function over
rows that were already fetched, so it can be called for every profile card on
a page without further queries.
"""
from typing import Iterable, List, Optional, Sequence
from nestlink.models.connection import ConnectionStatus

# Relevance weights for connection suggestions, by viewer badge then candidate badge
BADGE_AFFINITY = {
    "seeker": {"business": 40, "owner": 30},
    "owner": {"seeker": 30, "business": 20},
    "business": {"owner": 35, "seeker": 25, "business": 15},
}
SAME_LOCATION_SCORE = 50
SAME_PREFERENCE_SCORE = 20


def _get(row, name):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _same(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def _profile_id(profile):
    # accepts profile rows, dicts or bare ids
    if isinstance(profile, dict) or hasattr(profile, "id"):
        return _get(profile, "id")
    return profile


def resolve_connection_status(
    viewer_id,
    target_id,
    connected_profiles: Iterable,
    pending_edges: Iterable,
) -> ConnectionStatus:
    """
    Status of ``target_id`` as seen by ``viewer_id``.

    ``connected_profiles`` holds the viewer's accepted connections (profiles or
    ids), ``pending_edges`` the pending rows touching the viewer. At most one
    row exists per ordered pair; if duplicates slip in, the first match in
    iteration order wins and the result is not otherwise defined.
    """
    for profile in connected_profiles:
        if _same(_profile_id(profile), target_id):
            return ConnectionStatus.CONNECTED

    pending_edges = list(pending_edges)

    for edge in pending_edges:
        if _same(_get(edge, "user_id"), viewer_id) and _same(_get(edge, "connected_user_id"), target_id):
            return ConnectionStatus.PENDING

    for edge in pending_edges:
        if _same(_get(edge, "user_id"), target_id) and _same(_get(edge, "connected_user_id"), viewer_id):
            return ConnectionStatus.RECEIVED

    return ConnectionStatus.NONE


def find_pending_connection_id(viewer_id, target_id, pending_edges: Iterable) -> Optional[str]:
    """Id of the pending row between the two profiles, whichever side sent it"""
    for edge in pending_edges:
        source, target = _get(edge, "user_id"), _get(edge, "connected_user_id")
        if (_same(source, viewer_id) and _same(target, target_id)) or \
                (_same(source, target_id) and _same(target, viewer_id)):
            return str(_get(edge, "id"))
    return None


def suggestion_score(candidate, viewer) -> int:
    score = 0

    if _get(candidate, "location") == _get(viewer, "location"):
        score += SAME_LOCATION_SCORE

    score += BADGE_AFFINITY.get(_get(viewer, "badge"), {}).get(_get(candidate, "badge"), 0)

    viewer_preference = _get(viewer, "listing_preference")
    if viewer_preference and viewer_preference == _get(candidate, "listing_preference"):
        score += SAME_PREFERENCE_SCORE

    return score


def rank_suggestions(candidates: Sequence, viewer) -> List:
    """Order candidate profiles by relevance to the viewer, best first (stable)"""
    return sorted(candidates, key=lambda candidate: suggestion_score(candidate, viewer), reverse=True)
