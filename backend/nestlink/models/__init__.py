# Pydantic models for API contracts

from .profile import Badge, ListingType, ListingPreferences, Profile, ProfileUpdate, parse_listing_preference
from .property import Property, PropertyCreate, PropertyUpdate, PropertyFilter
from .connection import (
    ConnectionState, ConnectionStatus, RequestOutcome,
    Connection, ConnectionOverview, ConnectionStatusResponse, ConnectionRequestResult
)
from .shortlist import (
    # Enums
    MemberRole, InvitationState, InvitationStatus, InviteOutcome,

    # Shortlist models
    Shortlist, ShortlistMember, ShortlistDetail, SharedShortlist, ShortlistCreate,
    ShortlistUpdate, ShareLink,

    # Invitation models
    Invitation, InviteResult, InvitationStatuses, AddPropertyResult
)
from .post import Post, Comment, PostCreate, CommentCreate, LikeState
from .notification import Notification, NotificationType, UnreadCount
from .rating import RatingSubmission, BusinessRating, Review, RatingStats

__all__ = [
    # Profile models
    "Badge", "ListingType", "ListingPreferences", "Profile", "ProfileUpdate", "parse_listing_preference",

    # Property models
    "Property", "PropertyCreate", "PropertyUpdate", "PropertyFilter",

    # Connection models
    "ConnectionState", "ConnectionStatus", "RequestOutcome", "Connection",
    "ConnectionOverview", "ConnectionStatusResponse", "ConnectionRequestResult",

    # Shortlist models
    "MemberRole", "InvitationState", "InvitationStatus", "InviteOutcome",
    "Shortlist", "ShortlistMember", "ShortlistDetail", "SharedShortlist", "ShortlistCreate",
    "ShortlistUpdate", "ShareLink", "Invitation", "InviteResult", "InvitationStatuses",
    "AddPropertyResult",

    # Feed models
    "Post", "Comment", "PostCreate", "CommentCreate", "LikeState",
    "Notification", "NotificationType", "UnreadCount",

    # Rating models
    "RatingSubmission", "BusinessRating", "Review", "RatingStats"
]
