from typing import List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import uuid
from nestlink.models.connection import (
    Connection, ConnectionOverview, ConnectionState, ConnectionStatusResponse,
    ConnectionRequestResult, RequestOutcome
)
from nestlink.models.profile import Profile
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError
from nestlink.db.models import Connection as DBConnection, Profile as DBProfile
from nestlink.modules.connections.status import (
    resolve_connection_status, find_pending_connection_id, rank_suggestions
)
from nestlink.modules.profiles.cache import ProfileCache
from nestlink.modules.profiles.service import to_profile
import logging

logger = logging.getLogger(__name__)


def to_connection(db_connection: DBConnection) -> Connection:
    return Connection(
        id=str(db_connection.id),
        user_id=str(db_connection.user_id),
        connected_user_id=str(db_connection.connected_user_id),
        status=db_connection.status,
        created_at=db_connection.created_at
    )


class ConnectionService:
    """Connection requests between profiles: one directed row per pair plus a status"""

    def __init__(self, db: Session):
        self.db = db
        self.cache = ProfileCache(db)

    def _rows_touching(self, profile_id: uuid.UUID, status: ConnectionState) -> List[DBConnection]:
        return self.db.query(DBConnection).filter(
            and_(
                or_(DBConnection.user_id == profile_id, DBConnection.connected_user_id == profile_id),
                DBConnection.status == status.value
            )
        ).order_by(DBConnection.created_at).all()

    def _row_between(self, a: uuid.UUID, b: uuid.UUID):
        return self.db.query(DBConnection).filter(
            or_(
                and_(DBConnection.user_id == a, DBConnection.connected_user_id == b),
                and_(DBConnection.user_id == b, DBConnection.connected_user_id == a)
            )
        ).first()

    def _load(self, viewer: uuid.UUID) -> Tuple[List[uuid.UUID], List[DBConnection]]:
        accepted = self._rows_touching(viewer, ConnectionState.ACCEPTED)
        connected_ids = [
            row.connected_user_id if row.user_id == viewer else row.user_id
            for row in accepted
        ]
        pending = self._rows_touching(viewer, ConnectionState.PENDING)
        return connected_ids, pending

    async def get_overview(self, viewer_id: str) -> ConnectionOverview:
        """Accepted connections as profiles, plus pending rows sent or received"""
        viewer = as_uuid(viewer_id, "Profile")
        connected_ids, pending = self._load(viewer)

        profiles = self.cache.get_many(connected_ids)
        connections = [to_profile(profiles[pid]) for pid in connected_ids if pid in profiles]

        return ConnectionOverview(
            connections=connections,
            pending=[to_connection(row) for row in pending]
        )

    async def get_connected_ids(self, viewer_id: str) -> List[str]:
        connected_ids, _ = self._load(as_uuid(viewer_id, "Profile"))
        return [str(pid) for pid in connected_ids]

    async def get_suggestions(self, viewer_id: str) -> List[Profile]:
        """Everyone except the viewer and accepted connections; pending ones stay listed"""
        viewer = as_uuid(viewer_id, "Profile")
        db_viewer = self.cache.get(viewer)
        if not db_viewer:
            raise NotFoundError("Profile not found")

        connected_ids, _ = self._load(viewer)
        excluded = [viewer, *connected_ids]

        candidates = self.db.query(DBProfile).filter(DBProfile.id.notin_(excluded)).order_by(DBProfile.created_at).all()
        return [to_profile(row) for row in rank_suggestions(candidates, db_viewer)]

    async def get_status(self, viewer_id: str, target_id: str) -> ConnectionStatusResponse:
        viewer = as_uuid(viewer_id, "Profile")
        target = as_uuid(target_id, "Profile")
        connected_ids, pending = self._load(viewer)

        return ConnectionStatusResponse(
            profile_id=str(target),
            status=resolve_connection_status(viewer, target, connected_ids, pending),
            pending_connection_id=find_pending_connection_id(viewer, target, pending)
        )

    async def request_connection(self, viewer_id: str, target_id: str) -> ConnectionRequestResult:
        """
        Send a connection request from the viewer to the target.

        Repeating the request, or requesting someone who already asked the
        viewer, leaves the existing row alone and reports what is there.
        """
        viewer = as_uuid(viewer_id, "Profile")
        target = as_uuid(target_id, "Profile")

        if viewer == target:
            raise ValueError("You cannot connect with yourself")
        if not self.cache.get(target):
            raise NotFoundError("Profile not found")

        existing = self._row_between(viewer, target)
        if existing:
            return ConnectionRequestResult(
                connection=to_connection(existing),
                outcome=self._outcome_for(existing, viewer)
            )

        try:
            db_connection = DBConnection(
                id=uuid.uuid4(),
                user_id=viewer,
                connected_user_id=target,
                status=ConnectionState.PENDING.value,
                created_at=datetime.utcnow()
            )
            self.db.add(db_connection)
            self.db.commit()
            self.db.refresh(db_connection)

            logger.info(f"Connection requested {viewer} -> {target}")
            return ConnectionRequestResult(
                connection=to_connection(db_connection),
                outcome=RequestOutcome.CREATED
            )

        except IntegrityError:
            # Concurrent request for the same pair won the insert
            self.db.rollback()
            existing = self._row_between(viewer, target)
            if not existing:
                raise
            return ConnectionRequestResult(
                connection=to_connection(existing),
                outcome=self._outcome_for(existing, viewer)
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to request connection: {e}")
            raise

    @staticmethod
    def _outcome_for(row: DBConnection, viewer: uuid.UUID) -> RequestOutcome:
        if row.status == ConnectionState.ACCEPTED.value:
            return RequestOutcome.ALREADY_CONNECTED
        if row.user_id == viewer:
            return RequestOutcome.ALREADY_PENDING
        return RequestOutcome.ALREADY_RECEIVED

    async def accept_connection(self, viewer_id: str, connection_id: str) -> Connection:
        """Accept a pending request; only the profile it was sent to may do so"""
        viewer = as_uuid(viewer_id, "Profile")
        try:
            row = self.db.query(DBConnection).filter(
                DBConnection.id == as_uuid(connection_id, "Connection request")
            ).first()
            if not row:
                raise NotFoundError("Connection request not found")
            if row.connected_user_id != viewer:
                raise PermissionDeniedError("Only the recipient can accept this request")

            if row.status != ConnectionState.ACCEPTED.value:
                row.status = ConnectionState.ACCEPTED.value
                self.db.commit()
                self.db.refresh(row)
                logger.info(f"Connection {row.id} accepted by {viewer}")

            return to_connection(row)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to accept connection {connection_id}: {e}")
            raise

    async def disconnect(self, viewer_id: str, other_profile_id: str) -> int:
        """
        Remove whatever links the two profiles, in either direction.

        Used to sever a connection, withdraw a sent request or decline a
        received one. Returns the number of rows removed.
        """
        viewer = as_uuid(viewer_id, "Profile")
        other = as_uuid(other_profile_id, "Profile")
        try:
            deleted = self.db.query(DBConnection).filter(
                or_(
                    and_(DBConnection.user_id == viewer, DBConnection.connected_user_id == other),
                    and_(DBConnection.user_id == other, DBConnection.connected_user_id == viewer)
                )
            ).delete(synchronize_session=False)

            if not deleted:
                raise NotFoundError("Connection not found")

            self.db.commit()
            logger.info(f"Removed {deleted} connection row(s) between {viewer} and {other}")
            return deleted

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to disconnect {viewer_id} from {other_profile_id}: {e}")
            raise
