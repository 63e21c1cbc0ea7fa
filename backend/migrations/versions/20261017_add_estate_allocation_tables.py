"""Add profile, beneficiary, asset and allocation tables.

Revision ID: add_estate_allocation_tables
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'add_estate_allocation_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(200), nullable=True),
        sa.Column('title', sa.String(20), nullable=True),
        sa.Column('id_number', sa.String(50), nullable=True),
        sa.Column('email', sa.String(200), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('marital_status', sa.String(20), nullable=True),
        sa.Column('marriage_property_regime', sa.String(30), nullable=True),
        sa.Column('has_life_partner', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('spouse_uuid', sa.String(36), nullable=True),
        sa.Column('spouse_title', sa.String(20), nullable=True),
        sa.Column('spouse_first_name', sa.String(200), nullable=True),
        sa.Column('spouse_last_name', sa.String(200), nullable=True),
        sa.Column('spouse_id_number', sa.String(50), nullable=True),
        sa.Column('spouse_phone', sa.String(50), nullable=True),
        sa.Column('spouse_email', sa.String(200), nullable=True),
        sa.Column('partner_uuid', sa.String(36), nullable=True),
        sa.Column('partner_title', sa.String(20), nullable=True),
        sa.Column('partner_first_name', sa.String(200), nullable=True),
        sa.Column('partner_last_name', sa.String(200), nullable=True),
        sa.Column('partner_id_number', sa.String(50), nullable=True),
        sa.Column('partner_phone', sa.String(50), nullable=True),
        sa.Column('partner_email', sa.String(200), nullable=True),
        sa.Column('profile_setup_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assets_added', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('beneficiaries_chosen', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_wishes_documented', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('executor_chosen', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('will_reviewed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('will_downloaded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('has_beneficiaries', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assets_fully_allocated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('residue_fully_allocated', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    # Create children table
    op.create_table(
        'children',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('title', sa.String(20), nullable=True),
        sa.Column('first_names', sa.String(200), nullable=False),
        sa.Column('last_name', sa.String(200), nullable=False),
        sa.Column('id_number', sa.String(50), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(200), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_children_profile', 'children', ['profile_id'])

    # Create beneficiaries table
    op.create_table(
        'beneficiaries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('is_family_member', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('family_member_type', sa.String(20), nullable=True),
        sa.Column('family_member_id', sa.String(36), nullable=True),
        sa.Column('title', sa.String(20), nullable=True),
        sa.Column('first_names', sa.String(200), nullable=False),
        sa.Column('last_name', sa.String(200), nullable=False),
        sa.Column('id_number', sa.String(50), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(200), nullable=True),
        sa.Column('relationship', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_beneficiaries_profile', 'beneficiaries', ['profile_id'])
    op.create_index(
        'idx_beneficiaries_family', 'beneficiaries',
        ['profile_id', 'family_member_type', 'family_member_id'],
    )

    # Create assets table
    op.create_table(
        'assets',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('asset_type', sa.String(50), nullable=False),
        sa.Column('estimated_value', sa.Numeric(18, 2), nullable=True),
        sa.Column('is_fully_paid', sa.Boolean(), nullable=True),
        sa.Column('debt_handling_method', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_assets_profile', 'assets', ['profile_id'])

    # Create asset_allocations table
    op.create_table(
        'asset_allocations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.id'), nullable=False),
        sa.Column('beneficiary_id', sa.String(36), sa.ForeignKey('beneficiaries.id'), nullable=False),
        sa.Column('allocation_percentage', sa.Numeric(5, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_asset_allocations_asset', 'asset_allocations', ['asset_id'])
    op.create_index('idx_asset_allocations_beneficiary', 'asset_allocations', ['beneficiary_id'])

    # Create residue_allocations table
    op.create_table(
        'residue_allocations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('beneficiary_id', sa.String(36), sa.ForeignKey('beneficiaries.id'), nullable=False),
        sa.Column('allocation_percentage', sa.Numeric(5, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_residue_allocations_profile', 'residue_allocations', ['profile_id'])
    op.create_index('idx_residue_allocations_beneficiary', 'residue_allocations', ['beneficiary_id'])


def downgrade() -> None:
    op.drop_table('residue_allocations')
    op.drop_table('asset_allocations')
    op.drop_table('assets')
    op.drop_table('beneficiaries')
    op.drop_table('children')
    op.drop_table('profiles')
