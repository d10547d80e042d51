from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import uuid
from nestlink.models.shortlist import (
    Shortlist, ShortlistDetail, ShortlistMember, SharedShortlist, ShortlistUpdate, ShareLink,
    Invitation, InviteResult, InvitationStatuses, InvitationState, AddPropertyResult, MemberRole
)
from nestlink.core.config import settings
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError, ConflictError
from nestlink.db.models import (
    Shortlist as DBShortlist, ShortlistMember as DBShortlistMember,
    ShortlistProperty as DBShortlistProperty, ShortlistInvitation as DBShortlistInvitation,
    Property as DBProperty
)
from nestlink.modules.profiles.cache import ProfileCache
from nestlink.modules.properties.service import to_property
from nestlink.modules.shortlists.status import (
    generate_share_token, build_share_url, plan_invite, invitation_statuses
)
import logging

logger = logging.getLogger(__name__)


def to_shortlist(db_shortlist: DBShortlist, role: Optional[str] = None) -> Shortlist:
    return Shortlist(
        id=str(db_shortlist.id),
        user_id=str(db_shortlist.user_id),
        name=db_shortlist.name,
        description=db_shortlist.description,
        is_shared=db_shortlist.is_shared,
        share_token=db_shortlist.share_token,
        role=role,
        created_at=db_shortlist.created_at,
        updated_at=db_shortlist.updated_at
    )


class ShortlistService:
    """
    Shortlists, their members, properties and invitations.

    Every shortlist has an explicit owner membership row, created with the
    shortlist, so membership checks only ever look at shortlist_members.
    Invitations follow pending -> accepted | rejected, and a rejected
    invitation goes back to pending when re-invited (same row).
    """

    def __init__(self, db: Session):
        self.db = db
        self.cache = ProfileCache(db)

    # Lookups

    def _get_shortlist(self, shortlist_id) -> DBShortlist:
        db_shortlist = self.db.query(DBShortlist).filter(
            DBShortlist.id == as_uuid(shortlist_id, "Shortlist")
        ).first()
        if not db_shortlist:
            raise NotFoundError("Shortlist not found")
        return db_shortlist

    def _membership(self, shortlist_id: uuid.UUID, profile_id: uuid.UUID) -> Optional[DBShortlistMember]:
        return self.db.query(DBShortlistMember).filter(
            and_(
                DBShortlistMember.shortlist_id == shortlist_id,
                DBShortlistMember.user_id == profile_id
            )
        ).first()

    def _require_member(self, db_shortlist: DBShortlist, viewer: uuid.UUID) -> DBShortlistMember:
        membership = self._membership(db_shortlist.id, viewer)
        if not membership:
            raise PermissionDeniedError("You are not a member of this shortlist")
        return membership

    @staticmethod
    def _require_owner(db_shortlist: DBShortlist, viewer: uuid.UUID) -> None:
        if db_shortlist.user_id != viewer:
            raise PermissionDeniedError("Only the shortlist owner can do this")

    def _get_invitation_row(self, shortlist_id: uuid.UUID, invitee: uuid.UUID) -> Optional[DBShortlistInvitation]:
        return self.db.query(DBShortlistInvitation).filter(
            and_(
                DBShortlistInvitation.shortlist_id == shortlist_id,
                DBShortlistInvitation.invitee_id == invitee
            )
        ).first()

    def _get_shortlist_property(self, shortlist_id: uuid.UUID, property_id: uuid.UUID) -> Optional[DBShortlistProperty]:
        return self.db.query(DBShortlistProperty).filter(
            and_(
                DBShortlistProperty.shortlist_id == shortlist_id,
                DBShortlistProperty.property_id == property_id
            )
        ).first()

    def _to_invitation(self, row: DBShortlistInvitation, shortlist_name: Optional[str] = None) -> Invitation:
        return Invitation(
            id=str(row.id),
            shortlist_id=str(row.shortlist_id),
            inviter_id=str(row.inviter_id),
            invitee_id=str(row.invitee_id),
            status=row.status,
            shortlist_name=shortlist_name,
            inviter_name=self.cache.name_of(row.inviter_id),
            created_at=row.created_at,
            updated_at=row.updated_at
        )

    # Shortlists

    async def create_shortlist(self, owner_id: str, name: str, description: Optional[str] = None) -> Shortlist:
        """Create a shortlist with a fresh share token and its owner membership"""
        owner = as_uuid(owner_id, "Profile")
        name = (name or "").strip()
        if not name:
            raise ValueError("Shortlist name must not be empty")

        try:
            now = datetime.utcnow()
            db_shortlist = DBShortlist(
                id=uuid.uuid4(),
                user_id=owner,
                name=name,
                description=description or None,
                is_shared=False,
                share_token=generate_share_token(),
                created_at=now,
                updated_at=now
            )
            self.db.add(db_shortlist)
            self.db.add(DBShortlistMember(
                id=uuid.uuid4(),
                shortlist_id=db_shortlist.id,
                user_id=owner,
                role=MemberRole.OWNER.value,
                joined_at=now
            ))
            self.db.commit()
            self.db.refresh(db_shortlist)

            logger.info(f"Shortlist {db_shortlist.id} created by {owner}")
            return to_shortlist(db_shortlist, MemberRole.OWNER.value)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create shortlist: {e}")
            raise

    async def list_shortlists(self, viewer_id: str) -> List[Shortlist]:
        """Shortlists the viewer owns (newest first), then those shared with them"""
        viewer = as_uuid(viewer_id, "Profile")

        owned = self.db.query(DBShortlist).filter(
            DBShortlist.user_id == viewer
        ).order_by(desc(DBShortlist.created_at)).all()

        joined = (
            self.db.query(DBShortlist)
            .join(DBShortlistMember, DBShortlistMember.shortlist_id == DBShortlist.id)
            .filter(
                and_(
                    DBShortlistMember.user_id == viewer,
                    DBShortlistMember.role != MemberRole.OWNER.value
                )
            )
            .order_by(desc(DBShortlistMember.joined_at))
            .all()
        )

        return (
            [to_shortlist(s, MemberRole.OWNER.value) for s in owned] +
            [to_shortlist(s, MemberRole.MEMBER.value) for s in joined]
        )

    async def get_shortlist(self, viewer_id: str, shortlist_id: str) -> ShortlistDetail:
        viewer = as_uuid(viewer_id, "Profile")
        db_shortlist = self._get_shortlist(shortlist_id)
        membership = self._require_member(db_shortlist, viewer)

        members = sorted(db_shortlist.members, key=lambda m: (m.role != MemberRole.OWNER.value, m.joined_at or datetime.min))
        names = self.cache.get_many(m.user_id for m in members)
        entries = sorted(db_shortlist.properties, key=lambda p: p.created_at or datetime.min)

        return ShortlistDetail(
            **to_shortlist(db_shortlist, membership.role).model_dump(),
            members=[
                ShortlistMember(
                    user_id=str(m.user_id),
                    name=names[m.user_id].name if m.user_id in names else None,
                    role=m.role,
                    joined_at=m.joined_at
                )
                for m in members
            ],
            property_ids=[str(entry.property_id) for entry in entries]
        )

    async def update_shortlist(self, viewer_id: str, shortlist_id: str, changes: ShortlistUpdate) -> Shortlist:
        viewer = as_uuid(viewer_id, "Profile")
        try:
            db_shortlist = self._get_shortlist(shortlist_id)
            self._require_owner(db_shortlist, viewer)

            if changes.name is not None:
                db_shortlist.name = changes.name
            if changes.description is not None:
                db_shortlist.description = changes.description or None
            db_shortlist.updated_at = datetime.utcnow()

            self.db.commit()
            self.db.refresh(db_shortlist)
            return to_shortlist(db_shortlist, MemberRole.OWNER.value)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update shortlist {shortlist_id}: {e}")
            raise

    async def delete_shortlist(self, viewer_id: str, shortlist_id: str) -> None:
        viewer = as_uuid(viewer_id, "Profile")
        try:
            db_shortlist = self._get_shortlist(shortlist_id)
            self._require_owner(db_shortlist, viewer)

            self.db.delete(db_shortlist)
            self.db.commit()
            logger.info(f"Shortlist {shortlist_id} deleted by {viewer}")

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete shortlist {shortlist_id}: {e}")
            raise

    # Sharing

    async def set_sharing(self, viewer_id: str, shortlist_id: str, is_shared: bool) -> Shortlist:
        """Flip link access on or off; the share token itself never changes"""
        viewer = as_uuid(viewer_id, "Profile")
        try:
            db_shortlist = self._get_shortlist(shortlist_id)
            self._require_owner(db_shortlist, viewer)

            db_shortlist.is_shared = is_shared
            db_shortlist.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(db_shortlist)

            logger.info(f"Shortlist {shortlist_id} sharing {'enabled' if is_shared else 'disabled'}")
            return to_shortlist(db_shortlist, MemberRole.OWNER.value)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update sharing for shortlist {shortlist_id}: {e}")
            raise

    async def get_share_link(self, viewer_id: str, shortlist_id: str) -> ShareLink:
        db_shortlist = self._get_shortlist(shortlist_id)
        self._require_member(db_shortlist, as_uuid(viewer_id, "Profile"))

        return ShareLink(
            shortlist_id=str(db_shortlist.id),
            is_shared=db_shortlist.is_shared,
            url=build_share_url(settings.PUBLIC_APP_ORIGIN, db_shortlist.share_token)
        )

    async def get_shared_shortlist(self, share_token: str) -> SharedShortlist:
        """
        Read-only view for link holders.

        Knowing the token is all it takes while sharing is on; with sharing
        off, or an unknown token, the shortlist does not exist.
        """
        db_shortlist = self.db.query(DBShortlist).filter(
            and_(DBShortlist.share_token == share_token, DBShortlist.is_shared == True)
        ).first()
        if not db_shortlist:
            raise NotFoundError("Shared shortlist not found")

        properties = (
            self.db.query(DBProperty)
            .join(DBShortlistProperty, DBShortlistProperty.property_id == DBProperty.id)
            .filter(DBShortlistProperty.shortlist_id == db_shortlist.id)
            .order_by(DBShortlistProperty.created_at)
            .all()
        )

        return SharedShortlist(
            id=str(db_shortlist.id),
            name=db_shortlist.name,
            description=db_shortlist.description,
            owner_name=self.cache.name_of(db_shortlist.user_id),
            properties=[to_property(p) for p in properties]
        )

    # Properties

    async def add_property(self, viewer_id: str, shortlist_id: str, property_id: str) -> AddPropertyResult:
        """Add a property once; adding it again is reported as already present"""
        viewer = as_uuid(viewer_id, "Profile")
        db_shortlist = self._get_shortlist(shortlist_id)
        self._require_member(db_shortlist, viewer)

        prop_id = as_uuid(property_id, "Property")
        if not self.db.query(DBProperty.id).filter(DBProperty.id == prop_id).first():
            raise NotFoundError("Property not found")

        result = AddPropertyResult(shortlist_id=str(db_shortlist.id), property_id=str(prop_id), added=False)

        if self._get_shortlist_property(db_shortlist.id, prop_id):
            return result

        try:
            self.db.add(DBShortlistProperty(
                id=uuid.uuid4(),
                shortlist_id=db_shortlist.id,
                property_id=prop_id,
                added_by=viewer,
                created_at=datetime.utcnow()
            ))
            self.db.commit()
            result.added = True
            return result

        except IntegrityError:
            # Lost a race with another add of the same property
            self.db.rollback()
            return result
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add property {property_id} to shortlist {shortlist_id}: {e}")
            raise

    async def remove_property(self, viewer_id: str, shortlist_id: str, property_id: str) -> None:
        viewer = as_uuid(viewer_id, "Profile")
        try:
            db_shortlist = self._get_shortlist(shortlist_id)
            self._require_member(db_shortlist, viewer)

            deleted = self.db.query(DBShortlistProperty).filter(
                and_(
                    DBShortlistProperty.shortlist_id == db_shortlist.id,
                    DBShortlistProperty.property_id == as_uuid(property_id, "Property")
                )
            ).delete(synchronize_session=False)
            if not deleted:
                raise NotFoundError("Property is not on this shortlist")

            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to remove property {property_id} from shortlist {shortlist_id}: {e}")
            raise

    # Invitations

    async def invite(self, viewer_id: str, shortlist_id: str, invitee_id: str) -> InviteResult:
        """
        Invite a profile to a shortlist.

        Creates a pending invitation, revives a rejected one, and leaves
        pending or accepted ones untouched. Safe to retry: a concurrent
        insert for the same invitee is resolved by re-reading the row.
        """
        viewer = as_uuid(viewer_id, "Profile")
        invitee = as_uuid(invitee_id, "Profile")

        db_shortlist = self._get_shortlist(shortlist_id)
        self._require_member(db_shortlist, viewer)

        if invitee == viewer:
            raise ValueError("You cannot invite yourself")
        if invitee == db_shortlist.user_id:
            raise ValueError("The owner is already a member of this shortlist")
        if not self.cache.get(invitee):
            raise NotFoundError("Profile not found")

        for attempt in range(2):
            try:
                return self._apply_invite(db_shortlist, viewer, invitee)
            except IntegrityError:
                self.db.rollback()
                if attempt:
                    raise
                logger.info(f"Concurrent invitation for {invitee} on {db_shortlist.id}, re-reading")
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to invite {invitee_id} to shortlist {shortlist_id}: {e}")
                raise

    def _apply_invite(self, db_shortlist: DBShortlist, viewer: uuid.UUID, invitee: uuid.UUID) -> InviteResult:
        row = self._get_invitation_row(db_shortlist.id, invitee)
        outcome, new_status = plan_invite(row.status if row else None)

        if new_status is not None:
            now = datetime.utcnow()
            if row is None:
                row = DBShortlistInvitation(
                    id=uuid.uuid4(),
                    shortlist_id=db_shortlist.id,
                    invitee_id=invitee,
                    created_at=now
                )
                self.db.add(row)
            row.inviter_id = viewer
            row.status = new_status.value
            row.updated_at = now
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Invitation {row.id} for {invitee} on {db_shortlist.id}: {outcome.value}")

        return InviteResult(invitation=self._to_invitation(row, db_shortlist.name), outcome=outcome)

    async def get_invitation_statuses(self, viewer_id: str, shortlist_id: str, candidate_ids: List[str]) -> InvitationStatuses:
        db_shortlist = self._get_shortlist(shortlist_id)
        self._require_member(db_shortlist, as_uuid(viewer_id, "Profile"))

        rows = self.db.query(DBShortlistInvitation).filter(
            DBShortlistInvitation.shortlist_id == db_shortlist.id
        ).all()

        return InvitationStatuses(
            shortlist_id=str(db_shortlist.id),
            statuses=invitation_statuses(candidate_ids, rows)
        )

    async def get_pending_invitations(self, viewer_id: str) -> List[Invitation]:
        """Invitations awaiting the viewer's answer, newest first, with shortlist and inviter names"""
        viewer = as_uuid(viewer_id, "Profile")

        rows = (
            self.db.query(DBShortlistInvitation, DBShortlist.name)
            .join(DBShortlist, DBShortlist.id == DBShortlistInvitation.shortlist_id)
            .filter(
                and_(
                    DBShortlistInvitation.invitee_id == viewer,
                    DBShortlistInvitation.status == InvitationState.PENDING.value
                )
            )
            .order_by(desc(DBShortlistInvitation.updated_at))
            .all()
        )

        self.cache.get_many(row.inviter_id for row, _ in rows)
        return [self._to_invitation(row, name) for row, name in rows]

    async def respond_to_invitation(self, viewer_id: str, invitation_id: str, accept: bool) -> Invitation:
        """
        Accept or reject an invitation addressed to the viewer.

        Accepting marks the invitation and creates the membership in the same
        transaction, so neither can exist without the other.
        """
        viewer = as_uuid(viewer_id, "Profile")
        inv_id = as_uuid(invitation_id, "Invitation")

        for attempt in range(2):
            try:
                row = self.db.query(DBShortlistInvitation).filter(DBShortlistInvitation.id == inv_id).first()
                if not row:
                    raise NotFoundError("Invitation not found")
                if row.invitee_id != viewer:
                    raise PermissionDeniedError("This invitation was sent to someone else")
                if row.status != InvitationState.PENDING.value:
                    raise ConflictError(f"Invitation already {row.status}")

                row.status = (InvitationState.ACCEPTED if accept else InvitationState.REJECTED).value
                row.updated_at = datetime.utcnow()

                if accept and not self._membership(row.shortlist_id, viewer):
                    self.db.add(DBShortlistMember(
                        id=uuid.uuid4(),
                        shortlist_id=row.shortlist_id,
                        user_id=viewer,
                        role=MemberRole.MEMBER.value,
                        joined_at=datetime.utcnow()
                    ))

                self.db.commit()
                self.db.refresh(row)
                logger.info(f"Invitation {row.id} {row.status} by {viewer}")

                shortlist_name = self.db.query(DBShortlist.name).filter(DBShortlist.id == row.shortlist_id).scalar()
                return self._to_invitation(row, shortlist_name)

            except IntegrityError:
                # Membership appeared concurrently; retry sees it and only flips the status
                self.db.rollback()
                if attempt:
                    raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to respond to invitation {invitation_id}: {e}")
                raise
