from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, JSON, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from nestlink.core.database import Base
import uuid


class User(Base):
    """Authentication account; every user owns exactly one profile"""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login = Column(DateTime(timezone=True))

    profile = relationship("Profile", back_populates="user", uselist=False)

    __table_args__ = (
        Index('idx_users_email', 'email', unique=True),
    )


class Profile(Base):
    """Public identity of a user: name, avatar, badge and listing preference"""
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    email = Column(String(255))
    avatar_url = Column(String(1000))
    description = Column(Text)
    location = Column(String(200))
    badge = Column(String(20), nullable=False, default="seeker")  # owner, seeker, business

    # JSON text of the listing preferences; legacy rows hold plain text
    listing_preference = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="profile")

    __table_args__ = (
        Index('idx_profiles_user_id', 'user_id', unique=True),
        Index('idx_profiles_name', 'name'),
    )


class Connection(Base):
    """Directed connection request; status accepted means the pair is connected"""
    __tablename__ = "connections"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    connected_user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, accepted

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_connections_pair', 'user_id', 'connected_user_id', unique=True),
        Index('idx_connections_connected_user_id', 'connected_user_id'),
        Index('idx_connections_status', 'status'),
    )


class Property(Base):
    """Property listing for rent or sale"""
    __tablename__ = "properties"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)

    title = Column(String(500), nullable=False)
    description = Column(Text)
    price = Column(Float, nullable=False)
    type = Column(String(10), nullable=False)  # rent, sale
    location = Column(String(500), nullable=False)
    bedrooms = Column(Integer)
    bathrooms = Column(Integer)
    area = Column(Float)  # in square meters

    images = Column(JSON)  # Array of image URLs
    features = Column(JSON)  # Array of feature labels

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_properties_owner_id', 'owner_id'),
        Index('idx_properties_price', 'price'),
        Index('idx_properties_type', 'type'),
        Index('idx_properties_location', 'location'),
    )


class Shortlist(Base):
    """Named collection of properties, optionally readable through its share token"""
    __tablename__ = "shortlists"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    description = Column(Text)
    is_shared = Column(Boolean, nullable=False, default=False)
    share_token = Column(String(64), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship("ShortlistMember", back_populates="shortlist", cascade="all, delete-orphan")
    properties = relationship("ShortlistProperty", back_populates="shortlist", cascade="all, delete-orphan")
    invitations = relationship("ShortlistInvitation", back_populates="shortlist", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_shortlists_user_id', 'user_id'),
        Index('idx_shortlists_share_token', 'share_token', unique=True),
    )


class ShortlistMember(Base):
    __tablename__ = "shortlist_members"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shortlist_id = Column(Uuid(as_uuid=True), ForeignKey('shortlists.id', ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False, default="member")  # owner, member

    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    shortlist = relationship("Shortlist", back_populates="members")

    __table_args__ = (
        Index('idx_shortlist_members_unique', 'shortlist_id', 'user_id', unique=True),
        Index('idx_shortlist_members_user_id', 'user_id'),
    )


class ShortlistProperty(Base):
    __tablename__ = "shortlist_properties"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shortlist_id = Column(Uuid(as_uuid=True), ForeignKey('shortlists.id', ondelete="CASCADE"), nullable=False)
    property_id = Column(Uuid(as_uuid=True), ForeignKey('properties.id', ondelete="CASCADE"), nullable=False)
    added_by = Column(Uuid(as_uuid=True), ForeignKey('profiles.id'), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    shortlist = relationship("Shortlist", back_populates="properties")

    __table_args__ = (
        # Unique constraint to prevent duplicate entries
        Index('idx_shortlist_properties_unique', 'shortlist_id', 'property_id', unique=True),
    )


class ShortlistInvitation(Base):
    __tablename__ = "shortlist_invitations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shortlist_id = Column(Uuid(as_uuid=True), ForeignKey('shortlists.id', ondelete="CASCADE"), nullable=False)
    inviter_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    invitee_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, accepted, rejected

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    shortlist = relationship("Shortlist", back_populates="invitations")

    __table_args__ = (
        # At most one live invitation per invitee; re-invites reuse the row
        Index('idx_shortlist_invitations_unique', 'shortlist_id', 'invitee_id', unique=True),
        Index('idx_shortlist_invitations_invitee', 'invitee_id', 'status'),
    )


class Post(Base):
    __tablename__ = "posts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)

    content = Column(Text, nullable=False)
    images = Column(JSON)  # Array of image URLs
    property_id = Column(Uuid(as_uuid=True), ForeignKey('properties.id', ondelete="SET NULL"))
    tagged_users = Column(JSON)  # Array of mentioned profile ids

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    likes = relationship("PostLike", cascade="all, delete-orphan")
    comments = relationship("PostComment", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_posts_user_id', 'user_id'),
        Index('idx_posts_created_at', 'created_at'),
    )


class PostLike(Base):
    __tablename__ = "post_likes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid(as_uuid=True), ForeignKey('posts.id', ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_post_likes_unique', 'post_id', 'user_id', unique=True),
    )


class PostComment(Base):
    __tablename__ = "post_comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid(as_uuid=True), ForeignKey('posts.id', ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_post_comments_post_id', 'post_id'),
    )


class Notification(Base):
    """Activity notification for a profile (like, comment, mention)"""
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)  # like, comment, mention
    related_user_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    post_id = Column(Uuid(as_uuid=True), ForeignKey('posts.id', ondelete="CASCADE"), nullable=False)
    comment_id = Column(Uuid(as_uuid=True), ForeignKey('post_comments.id', ondelete="CASCADE"))
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_notifications_user_id', 'user_id', 'created_at'),
        Index('idx_notifications_unread', 'user_id', 'is_read'),
    )


class BusinessRating(Base):
    __tablename__ = "business_ratings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    rater_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    business_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1 to 5
    comment = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_business_ratings_unique', 'rater_id', 'business_id', unique=True),
        Index('idx_business_ratings_business_id', 'business_id'),
    )
