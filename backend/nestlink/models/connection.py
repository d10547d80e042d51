from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from enum import Enum
from nestlink.models.profile import Profile


class ConnectionState(str, Enum):
    """Stored status of a connection row"""
    PENDING = "pending"
    ACCEPTED = "accepted"


class ConnectionStatus(str, Enum):
    """Relationship between the viewer and another profile, as shown in the UI"""
    NONE = "none"
    PENDING = "pending"      # viewer sent a request
    RECEIVED = "received"    # viewer has a request to answer
    CONNECTED = "connected"


class RequestOutcome(str, Enum):
    CREATED = "created"
    ALREADY_PENDING = "already_pending"
    ALREADY_RECEIVED = "already_received"
    ALREADY_CONNECTED = "already_connected"


class Connection(BaseModel):
    id: str
    user_id: str
    connected_user_id: str
    status: ConnectionState
    created_at: Optional[datetime] = None


class ConnectionOverview(BaseModel):
    connections: List[Profile] = []
    pending: List[Connection] = []


class ConnectionStatusResponse(BaseModel):
    profile_id: str
    status: ConnectionStatus
    pending_connection_id: Optional[str] = None


class ConnectionRequestResult(BaseModel):
    connection: Connection
    outcome: RequestOutcome
