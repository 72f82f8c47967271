"""Create catalog and generated entry tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog, generated entry and attribute value tables."""
    op.create_table(
        'families',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('name', name='uq_families_name'),
    )

    op.create_table(
        'variants',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'family_id',
            sa.String(36),
            sa.ForeignKey('families.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('variant_level', sa.String(10), nullable=False, server_default='FIRST'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Variant codes are unique per family and level
        sa.UniqueConstraint('family_id', 'variant_level', 'code', name='uq_variants_family_level_code'),
    )
    op.create_index('ix_variants_family_id', 'variants', ['family_id'])

    op.create_table(
        'variant_exclusions',
        sa.Column(
            'variant_id_1',
            sa.String(36),
            sa.ForeignKey('variants.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'variant_id_2',
            sa.String(36),
            sa.ForeignKey('variants.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )

    op.create_table(
        'technical_characteristics',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('enum_options', sa.JSON(), nullable=True),
        sa.Column('enum_multiple', sa.Boolean(), nullable=True),
        sa.Column('unique_in_itself', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('name', name='uq_technical_characteristics_name'),
    )

    op.create_table(
        'technical_characteristic_families',
        sa.Column(
            'technical_characteristic_id',
            sa.String(36),
            sa.ForeignKey('technical_characteristics.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'family_id',
            sa.String(36),
            sa.ForeignKey('families.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )

    op.create_table(
        'technical_characteristic_variants',
        sa.Column(
            'technical_characteristic_id',
            sa.String(36),
            sa.ForeignKey('technical_characteristics.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'variant_id',
            sa.String(36),
            sa.ForeignKey('variants.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )

    op.create_table(
        'product_types',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('name', name='uq_product_types_name'),
        sa.UniqueConstraint('code', name='uq_product_types_code'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('family_id', sa.String(36), sa.ForeignKey('families.id'), nullable=False),
        sa.Column('product_type_id', sa.String(36), sa.ForeignKey('product_types.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('name', name='uq_products_name'),
        sa.UniqueConstraint('code', name='uq_products_code'),
    )
    op.create_index('ix_products_family_id', 'products', ['family_id'])
    op.create_index('ix_products_product_type_id', 'products', ['product_type_id'])

    # Generated entries; generated_code is the final arbiter against
    # concurrent allocations of the same code
    op.create_table(
        'generated_entries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('product_id', sa.String(36), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('variant1_id', sa.String(36), sa.ForeignKey('variants.id'), nullable=True),
        sa.Column('variant2_id', sa.String(36), sa.ForeignKey('variants.id'), nullable=True),
        sa.Column('generated_code', sa.String(100), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('updated_by', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('generated_code', name='uq_generated_entries_generated_code'),
    )
    op.create_index('ix_generated_entries_product_id', 'generated_entries', ['product_id'])
    op.create_index('ix_generated_entries_variant1_id', 'generated_entries', ['variant1_id'])
    op.create_index('ix_generated_entries_variant2_id', 'generated_entries', ['variant2_id'])

    op.create_table(
        'attribute_values',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'generated_entry_id',
            sa.String(36),
            sa.ForeignKey('generated_entries.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'technical_characteristic_id',
            sa.String(36),
            sa.ForeignKey('technical_characteristics.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('value', sa.String(255), nullable=False),
        # One value per characteristic and entry
        sa.UniqueConstraint(
            'generated_entry_id',
            'technical_characteristic_id',
            name='uq_attribute_values_entry_characteristic',
        ),
    )
    op.create_index('ix_attribute_values_generated_entry_id', 'attribute_values', ['generated_entry_id'])
    op.create_index(
        'ix_attribute_values_technical_characteristic_id',
        'attribute_values',
        ['technical_characteristic_id'],
    )


def downgrade() -> None:
    """Drop catalog, generated entry and attribute value tables."""
    op.drop_table('attribute_values')
    op.drop_table('generated_entries')
    op.drop_table('products')
    op.drop_table('product_types')
    op.drop_table('technical_characteristic_variants')
    op.drop_table('technical_characteristic_families')
    op.drop_table('technical_characteristics')
    op.drop_table('variant_exclusions')
    op.drop_table('variants')
    op.drop_table('families')
