"""create farms and soil readings tables

Revision ID: 001_create_soil_tables
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001_create_soil_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Farms ---
    op.create_table(
        'farms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('crop_type', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('soil_type', sa.String(), nullable=True),
        sa.Column('irrigation', sa.String(), nullable=True),
        sa.Column('size_value', sa.Float(), nullable=True),
        sa.Column('size_unit', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_index('ix_farms_owner_id', 'farms', ['owner_id'])

    # --- Soil readings ---
    op.create_table(
        'soil_readings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('farm_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('ph', sa.Float(), nullable=False),
        sa.Column('nitrogen', sa.Float(), nullable=False),
        sa.Column('phosphorus', sa.Float(), nullable=False),
        sa.Column('potassium', sa.Float(), nullable=False),
        sa.Column('moisture', sa.Float(), nullable=False),
        sa.Column('organic_matter', sa.Float(), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('texture', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('health_score', sa.Integer(), nullable=True),
        sa.Column('urgency', sa.String(), nullable=True),
        sa.Column('analysis', sa.JSON(), nullable=True),
        sa.Column('reading_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id']),
    )

    op.create_index('ix_soil_readings_farm_id', 'soil_readings', ['farm_id'])
    op.create_index('ix_soil_readings_user_id', 'soil_readings', ['user_id'])
    op.create_index('ix_soil_readings_reading_date', 'soil_readings', ['reading_date'])


def downgrade() -> None:
    op.drop_index('ix_soil_readings_reading_date', table_name='soil_readings')
    op.drop_index('ix_soil_readings_user_id', table_name='soil_readings')
    op.drop_index('ix_soil_readings_farm_id', table_name='soil_readings')
    op.drop_table('soil_readings')

    op.drop_index('ix_farms_owner_id', table_name='farms')
    op.drop_table('farms')
