"""Create lead tree schema: users, leads, lead_links, profiles, events, rewards

Revision ID: 3f1a9c2d7e40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('session', sa.Text(), nullable=True, unique=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'leads',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('hash', sa.Text(), nullable=False),
        sa.Column('source', sa.Text(), nullable=False, server_default='unknown'),
        sa.Column('motivation', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=True),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('color', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Text(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_leads_hash', 'leads', ['hash'])
    op.create_index('ix_leads_user_id', 'leads', ['user_id'])

    # -- HAS_LEAD parent → child edges --
    op.create_table(
        'lead_links',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('parent_id', sa.Text(), sa.ForeignKey('leads.id'), nullable=False),
        sa.Column('child_id', sa.Text(), sa.ForeignKey('leads.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_lead_links_parent_id', 'lead_links', ['parent_id'])
    op.create_index('ix_lead_links_child_id', 'lead_links', ['child_id'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('user_id', sa.Text(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('lead_id', sa.Text(), sa.ForeignKey('leads.id'), nullable=True),
        sa.Column('name', sa.Text(), server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'])
    op.create_index('ix_profiles_lead_id', 'profiles', ['lead_id'])

    op.create_table(
        'events',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('lead_id', sa.Text(), sa.ForeignKey('leads.id'), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_events_lead_id', 'events', ['lead_id'])

    # -- RECEIVED_REWARD / CAUSED_REWARD --
    op.create_table(
        'rewards',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('received_by_lead_id', sa.Text(), sa.ForeignKey('leads.id'), nullable=False),
        sa.Column('caused_by_lead_id', sa.Text(), sa.ForeignKey('leads.id'), nullable=True),
        sa.Column('kind', sa.Text(), nullable=False),
        sa.Column('points', sa.Integer(), server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_rewards_received_by_lead_id', 'rewards', ['received_by_lead_id'])
    op.create_index('ix_rewards_caused_by_lead_id', 'rewards', ['caused_by_lead_id'])


def downgrade() -> None:
    op.drop_table('rewards')
    op.drop_table('events')
    op.drop_table('profiles')
    op.drop_table('lead_links')
    op.drop_table('leads')
    op.drop_table('users')
