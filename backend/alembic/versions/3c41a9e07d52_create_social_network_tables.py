"""Create social network tables

Revision ID: 3c41a9e07d52
Revises:
Create Date: 2025-09-14 10:12:08.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c41a9e07d52'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Accounts and profiles
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_users_email', 'users', ['email'], unique=True)

    op.create_table('profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.String(length=1000), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.Column('badge', sa.String(length=20), nullable=False),
        sa.Column('listing_preference', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_profiles_user_id', 'profiles', ['user_id'], unique=True)
    op.create_index('idx_profiles_name', 'profiles', ['name'], unique=False)

    # Connections
    op.create_table('connections',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('connected_user_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['connected_user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_connections_pair', 'connections', ['user_id', 'connected_user_id'], unique=True)
    op.create_index('idx_connections_connected_user_id', 'connections', ['connected_user_id'], unique=False)
    op.create_index('idx_connections_status', 'connections', ['status'], unique=False)

    # Listings
    op.create_table('properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('location', sa.String(length=500), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Integer(), nullable=True),
        sa.Column('area', sa.Float(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_properties_owner_id', 'properties', ['owner_id'], unique=False)
    op.create_index('idx_properties_price', 'properties', ['price'], unique=False)
    op.create_index('idx_properties_type', 'properties', ['type'], unique=False)
    op.create_index('idx_properties_location', 'properties', ['location'], unique=False)

    # Shortlists
    op.create_table('shortlists',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_shared', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('share_token', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_shortlists_user_id', 'shortlists', ['user_id'], unique=False)
    op.create_index('idx_shortlists_share_token', 'shortlists', ['share_token'], unique=True)

    op.create_table('shortlist_members',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('shortlist_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['shortlist_id'], ['shortlists.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_shortlist_members_unique', 'shortlist_members', ['shortlist_id', 'user_id'], unique=True)
    op.create_index('idx_shortlist_members_user_id', 'shortlist_members', ['user_id'], unique=False)

    op.create_table('shortlist_properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('shortlist_id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('added_by', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['shortlist_id'], ['shortlists.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['added_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_shortlist_properties_unique', 'shortlist_properties', ['shortlist_id', 'property_id'], unique=True)

    op.create_table('shortlist_invitations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('shortlist_id', sa.Uuid(), nullable=False),
        sa.Column('inviter_id', sa.Uuid(), nullable=False),
        sa.Column('invitee_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['shortlist_id'], ['shortlists.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['inviter_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invitee_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_shortlist_invitations_unique', 'shortlist_invitations', ['shortlist_id', 'invitee_id'], unique=True)
    op.create_index('idx_shortlist_invitations_invitee', 'shortlist_invitations', ['invitee_id', 'status'], unique=False)

    # Feed
    op.create_table('posts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('property_id', sa.Uuid(), nullable=True),
        sa.Column('tagged_users', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_posts_user_id', 'posts', ['user_id'], unique=False)
    op.create_index('idx_posts_created_at', 'posts', ['created_at'], unique=False)

    op.create_table('post_likes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('post_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_post_likes_unique', 'post_likes', ['post_id', 'user_id'], unique=True)

    op.create_table('post_comments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('post_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_post_comments_post_id', 'post_comments', ['post_id'], unique=False)

    op.create_table('notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('related_user_id', sa.Uuid(), nullable=False),
        sa.Column('post_id', sa.Uuid(), nullable=False),
        sa.Column('comment_id', sa.Uuid(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['comment_id'], ['post_comments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_notifications_user_id', 'notifications', ['user_id', 'created_at'], unique=False)
    op.create_index('idx_notifications_unread', 'notifications', ['user_id', 'is_read'], unique=False)

    # Business ratings
    op.create_table('business_ratings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('rater_id', sa.Uuid(), nullable=False),
        sa.Column('business_id', sa.Uuid(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['rater_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['business_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_business_ratings_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_business_ratings_unique', 'business_ratings', ['rater_id', 'business_id'], unique=True)
    op.create_index('idx_business_ratings_business_id', 'business_ratings', ['business_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_business_ratings_business_id', table_name='business_ratings')
    op.drop_index('idx_business_ratings_unique', table_name='business_ratings')
    op.drop_table('business_ratings')

    op.drop_index('idx_notifications_unread', table_name='notifications')
    op.drop_index('idx_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('idx_post_comments_post_id', table_name='post_comments')
    op.drop_table('post_comments')
    op.drop_index('idx_post_likes_unique', table_name='post_likes')
    op.drop_table('post_likes')
    op.drop_index('idx_posts_created_at', table_name='posts')
    op.drop_index('idx_posts_user_id', table_name='posts')
    op.drop_table('posts')

    op.drop_index('idx_shortlist_invitations_invitee', table_name='shortlist_invitations')
    op.drop_index('idx_shortlist_invitations_unique', table_name='shortlist_invitations')
    op.drop_table('shortlist_invitations')
    op.drop_index('idx_shortlist_properties_unique', table_name='shortlist_properties')
    op.drop_table('shortlist_properties')
    op.drop_index('idx_shortlist_members_user_id', table_name='shortlist_members')
    op.drop_index('idx_shortlist_members_unique', table_name='shortlist_members')
    op.drop_table('shortlist_members')
    op.drop_index('idx_shortlists_share_token', table_name='shortlists')
    op.drop_index('idx_shortlists_user_id', table_name='shortlists')
    op.drop_table('shortlists')

    op.drop_index('idx_properties_location', table_name='properties')
    op.drop_index('idx_properties_type', table_name='properties')
    op.drop_index('idx_properties_price', table_name='properties')
    op.drop_index('idx_properties_owner_id', table_name='properties')
    op.drop_table('properties')

    op.drop_index('idx_connections_status', table_name='connections')
    op.drop_index('idx_connections_connected_user_id', table_name='connections')
    op.drop_index('idx_connections_pair', table_name='connections')
    op.drop_table('connections')

    op.drop_index('idx_profiles_name', table_name='profiles')
    op.drop_index('idx_profiles_user_id', table_name='profiles')
    op.drop_table('profiles')
    op.drop_index('idx_users_email', table_name='users')
    op.drop_table('users')
