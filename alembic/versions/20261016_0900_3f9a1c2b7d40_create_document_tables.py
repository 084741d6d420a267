"""create_document_tables

Revision ID: 3f9a1c2b7d40
Revises: 
Create Date: 2026-10-16 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create document tables, the shared id-set table and task assignments. No foreign keys."""
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('designation', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='employee'),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'teams',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_teams_created_by', 'teams', ['created_by'])

    op.create_table(
        'projects',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('team_id', UUID(as_uuid=True), nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_projects_team_id', 'projects', ['team_id'])

    op.create_table(
        'tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('project_id', UUID(as_uuid=True), nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'])

    op.create_table(
        'task_assignments',
        sa.Column('task_id', UUID(as_uuid=True), primary_key=True),
        sa.Column('member_id', UUID(as_uuid=True), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='to-do'),
    )
    op.create_index('ix_task_assignments_member_id', 'task_assignments', ['member_id'])

    op.create_table(
        'id_set_entries',
        sa.Column('collection', sa.String(length=16), primary_key=True),
        sa.Column('owner_id', UUID(as_uuid=True), primary_key=True),
        sa.Column('field', sa.String(length=32), primary_key=True),
        sa.Column('value', UUID(as_uuid=True), primary_key=True),
    )
    op.create_index('ix_id_set_entries_lookup', 'id_set_entries', ['collection', 'field', 'value'])


def downgrade() -> None:
    """Drop all document tables."""
    op.drop_index('ix_id_set_entries_lookup', table_name='id_set_entries')
    op.drop_table('id_set_entries')
    op.drop_index('ix_task_assignments_member_id', table_name='task_assignments')
    op.drop_table('task_assignments')
    op.drop_index('ix_tasks_project_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_projects_team_id', table_name='projects')
    op.drop_table('projects')
    op.drop_index('ix_teams_created_by', table_name='teams')
    op.drop_table('teams')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
