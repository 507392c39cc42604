"""create_resume_tables

Revision ID: a1c4e7b2d9f0
Revises:
Create Date: 2026-10-17 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7b2d9f0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _resume_fk() -> sa.Column:
    return sa.Column(
        'resume_id', sa.Uuid(), sa.ForeignKey('resumes.id', ondelete='CASCADE'), nullable=False
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('current_refresh_token', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'resumes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('gender', sa.String(length=50), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('job_status', sa.String(length=50), nullable=False),
        sa.Column('photo', sa.String(length=1000), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_resumes_user_id', 'resumes', ['user_id'])

    op.create_table(
        'educations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _resume_fk(),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('school_name', sa.String(length=255), nullable=False),
        sa.Column('major', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'experiences',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _resume_fk(),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('position', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=255), nullable=False),
        sa.Column('job_role', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'skills',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _resume_fk(),
        sa.Column('skill_name', sa.String(length=255), nullable=False),
        sa.Column('level', sa.String(length=50), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'portfolios',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _resume_fk(),
        sa.Column('storage_key', sa.String(length=1000), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('file_url', sa.String(length=2000), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('resume_id', 'original_name', name='uq_portfolios_resume_original_name'),
    )

    for table in ('educations', 'experiences', 'skills', 'portfolios'):
        op.create_index(f'ix_{table}_resume_id', table, ['resume_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ('portfolios', 'skills', 'experiences', 'educations'):
        op.drop_index(f'ix_{table}_resume_id', table_name=table)
        op.drop_table(table)
    op.drop_index('ix_resumes_user_id', table_name='resumes')
    op.drop_table('resumes')
    op.drop_table('users')
