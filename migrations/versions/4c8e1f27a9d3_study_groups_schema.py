"""study groups schema: users, courses, roster, groups, members, messages, reactions, audit

Revision ID: 4c8e1f27a9d3
Revises:
Create Date: 2026-10-19 10:12:41.502113

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c8e1f27a9d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing = set(insp.get_table_names())

    if 'users' not in existing:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_name', sa.String(length=100), nullable=False),
            sa.Column('role', sa.String(length=16), nullable=False, server_default='student'),
            sa.Column('hashed_pw', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_users_user_name', 'users', ['user_name'], unique=True)

    if 'courses' not in existing:
        op.create_table(
            'courses',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code', sa.String(length=32), nullable=False, unique=True),
            sa.Column('title', sa.String(length=200), nullable=False),
        )

    if 'roster_entries' not in existing:
        op.create_table(
            'roster_entries',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('course_code', sa.String(length=32), sa.ForeignKey('courses.code', ondelete='CASCADE'), nullable=False),
            sa.Column('user_name', sa.String(length=100), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('course_code', 'user_name', name='uq_roster_course_user'),
        )
        op.create_index('ix_roster_entries_course_code', 'roster_entries', ['course_code'])
        op.create_index('ix_roster_entries_user_name', 'roster_entries', ['user_name'])

    if 'groups' not in existing:
        op.create_table(
            'groups',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=160), nullable=False),
            sa.Column('course_code', sa.String(length=32), sa.ForeignKey('courses.code', ondelete='CASCADE'), nullable=False),
            sa.Column('creator_name', sa.String(length=100), nullable=False),
            sa.Column('is_open', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_groups_course_code', 'groups', ['course_code'])

    if 'group_members' not in existing:
        op.create_table(
            'group_members',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
            sa.Column('course_code', sa.String(length=32), nullable=False),
            sa.Column('user_name', sa.String(length=100), nullable=False),
            sa.Column('created_at', sa.DateTime()),
            sa.UniqueConstraint('group_id', 'user_name', name='uq_group_members_group_user'),
            sa.UniqueConstraint('course_code', 'user_name', name='uq_group_members_course_user'),
        )
        op.create_index('ix_group_members_group_id', 'group_members', ['group_id'])
        op.create_index('ix_group_members_user_name', 'group_members', ['user_name'])

    if 'messages' not in existing:
        op.create_table(
            'messages',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
            sa.Column('author', sa.String(length=100), nullable=False),
            sa.Column('text', sa.String(length=500), nullable=False),
            sa.Column('timestamp', sa.DateTime(), nullable=False),
            sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('reported', sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.create_index('ix_messages_author', 'messages', ['author'])
        op.create_index('ix_messages_group_timestamp', 'messages', ['group_id', 'timestamp'])

    if 'reactions' not in existing:
        op.create_table(
            'reactions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('message_id', sa.Integer(), sa.ForeignKey('messages.id', ondelete='CASCADE'), nullable=False),
            sa.Column('user_name', sa.String(length=100), nullable=False),
            sa.Column('emoji', sa.String(length=16), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('message_id', 'user_name', 'emoji', name='uq_reactions_message_user_emoji'),
        )
        op.create_index('ix_reactions_message_id', 'reactions', ['message_id'])

    if 'audit_logs' not in existing:
        op.create_table(
            'audit_logs',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('actor', sa.String(length=100), nullable=False),
            sa.Column('action', sa.String(length=40), nullable=False),
            sa.Column('entity_type', sa.String(length=20)),
            sa.Column('entity_id', sa.String(length=64)),
            sa.Column('detail', sa.String(length=255)),
            sa.Column('timestamp', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
        op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing = set(insp.get_table_names())

    for table in ('audit_logs', 'reactions', 'messages', 'group_members',
                  'groups', 'roster_entries', 'courses', 'users'):
        if table in existing:
            op.drop_table(table)
