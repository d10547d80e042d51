from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum
from nestlink.models.property import Property


class MemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class InvitationState(str, Enum):
    """Stored status of an invitation row"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InvitationStatus(str, Enum):
    """Invitation status for a (shortlist, candidate) pair, including the no-row case"""
    NOT_INVITED = "not_invited"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InviteOutcome(str, Enum):
    CREATED = "created"
    REINVITED = "reinvited"
    ALREADY_PENDING = "already_pending"
    ALREADY_ACCEPTED = "already_accepted"


class Shortlist(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_shared: bool = False
    share_token: str
    role: Optional[MemberRole] = None  # viewer's role, when listed for a member
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShortlistMember(BaseModel):
    user_id: str
    name: Optional[str] = None
    role: MemberRole
    joined_at: Optional[datetime] = None


class ShortlistDetail(Shortlist):
    members: List[ShortlistMember] = []
    property_ids: List[str] = []


class SharedShortlist(BaseModel):
    """Read-only view served through the share token"""
    id: str
    name: str
    description: Optional[str] = None
    owner_name: Optional[str] = None
    properties: List[Property] = []


class ShortlistCreate(BaseModel):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Shortlist name must not be empty')
        return v.strip()


class ShortlistUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Shortlist name must not be empty')
        return v.strip() if v is not None else v


class ShareLink(BaseModel):
    shortlist_id: str
    is_shared: bool
    url: str


class Invitation(BaseModel):
    id: str
    shortlist_id: str
    inviter_id: str
    invitee_id: str
    status: InvitationState
    shortlist_name: Optional[str] = None
    inviter_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InviteResult(BaseModel):
    invitation: Invitation
    outcome: InviteOutcome


class InvitationStatuses(BaseModel):
    shortlist_id: str
    statuses: Dict[str, InvitationStatus]


class AddPropertyResult(BaseModel):
    shortlist_id: str
    property_id: str
    added: bool  # False when the property was already on the shortlist
