"""
Pure helpers for shortlist sharing: invitation state transitions, status
derivation for invite buttons, and share links.
"""
from typing import Dict, Iterable, Optional
import secrets
from nestlink.models.shortlist import InvitationState, InvitationStatus, InviteOutcome

SHARE_TOKEN_BYTES = 24
SHARED_PATH = "/shortlist/shared/"


def generate_share_token() -> str:
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


def build_share_url(origin: str, share_token: str) -> str:
    return f"{origin.rstrip('/')}{SHARED_PATH}{share_token}"


def plan_invite(current: Optional[str]):
    """
    Decide what an invite call does given the existing invitation status.

    Returns ``(outcome, new_status)``; ``new_status`` is None when the row
    must be left untouched.
    """
    if current is None:
        return InviteOutcome.CREATED, InvitationState.PENDING
    if current == InvitationState.REJECTED.value:
        return InviteOutcome.REINVITED, InvitationState.PENDING
    if current == InvitationState.ACCEPTED.value:
        return InviteOutcome.ALREADY_ACCEPTED, None
    return InviteOutcome.ALREADY_PENDING, None


def invitation_status(invitation) -> InvitationStatus:
    if invitation is None:
        return InvitationStatus.NOT_INVITED
    return InvitationStatus(invitation.status)


def invitation_statuses(candidate_ids: Iterable[str], invitations: Iterable) -> Dict[str, InvitationStatus]:
    """Status per candidate id, ``not_invited`` for candidates without a row"""
    by_invitee = {str(inv.invitee_id): inv for inv in invitations}
    return {
        str(candidate): invitation_status(by_invitee.get(str(candidate)))
        for candidate in candidate_ids
    }
