"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - qr_codes table: Short codes, redirect targets and render colors
    - scans table: One row per redirect, for analytics
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'qr_codes' not in existing_tables:
        op.create_table(
            'qr_codes',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('short_code', sa.String(length=12), nullable=False),
            sa.Column('target_url', sa.Text(), nullable=False),
            sa.Column('fg_color', sa.String(length=7), nullable=False),
            sa.Column('bg_color', sa.String(length=7), nullable=False),
            sa.Column('author', sa.String(length=30), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )

        op.create_index(
            'ix_qr_codes_short_code',
            'qr_codes',
            ['short_code'],
            unique=True
        )

        op.create_index(
            'ix_qr_codes_created_at',
            'qr_codes',
            ['created_at']
        )

    if 'scans' not in existing_tables:
        op.create_table(
            'scans',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('qr_code_id', sa.Integer(), nullable=False),
            sa.Column('scanned_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('user_agent', sa.Text(), nullable=True),
            sa.Column('ip_address', sa.String(length=45), nullable=True),
            sa.Column('country', sa.String(length=100), nullable=True),
            sa.Column('city', sa.String(length=200), nullable=True),
            sa.Column('device_type', sa.String(length=20), nullable=True),
            sa.Column('browser', sa.String(length=100), nullable=True),
            sa.ForeignKeyConstraint(['qr_code_id'], ['qr_codes.id']),
            sa.PrimaryKeyConstraint('id')
        )

        op.create_index(
            'ix_scans_qr_code_id',
            'scans',
            ['qr_code_id']
        )

        op.create_index(
            'ix_scans_scanned_at',
            'scans',
            ['scanned_at']
        )


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_scans_scanned_at', table_name='scans')
    op.drop_index('ix_scans_qr_code_id', table_name='scans')
    op.drop_table('scans')

    op.drop_index('ix_qr_codes_created_at', table_name='qr_codes')
    op.drop_index('ix_qr_codes_short_code', table_name='qr_codes')
    op.drop_table('qr_codes')
