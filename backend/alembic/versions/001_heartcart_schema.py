"""HeartCart schema: catalog, drafts, cart and favourites.

Revision ID: 001_heartcart
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_heartcart'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB()


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now())
        )
    return columns


def upgrade() -> None:
    # ### Users ###
    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('username', sa.String(100), nullable=False, unique=True, index=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('phone_number', sa.String(50)),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True)),
        *_timestamps(),
    )

    # ### Suppliers and catalogs ###
    op.create_table(
        'suppliers',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('contact_name', sa.String(255)),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('city', sa.String(100)),
        sa.Column('country', sa.String(100), server_default='South Africa'),
        sa.Column('website', sa.String(255)),
        sa.Column('logo', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_table(
        'catalogs',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('supplier_id', UUID, sa.ForeignKey('suppliers.id', ondelete='SET NULL'), index=True),
        sa.Column('default_markup_percentage', sa.Integer(), server_default='50'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('cover_image', sa.Text()),
        sa.Column('tags', JSONB, server_default='[]'),
        sa.Column('start_date', sa.DateTime(timezone=True)),
        sa.Column('end_date', sa.DateTime(timezone=True)),
        *_timestamps(),
    )

    # ### Categories and pricing rules ###
    op.create_table(
        'categories',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('description', sa.Text()),
        sa.Column('icon', sa.String(100)),
        sa.Column('image_url', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('parent_id', UUID, sa.ForeignKey('categories.id', ondelete='RESTRICT'), index=True),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('name', 'parent_id', name='uq_categories_name_parent'),
    )
    op.create_table(
        'pricing_rules',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id', ondelete='CASCADE'), unique=True),
        sa.Column('markup_percentage', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('description', sa.Text()),
        *_timestamps(),
    )

    # ### Products ###
    op.create_table(
        'products',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('sku', sa.String(100), unique=True),
        sa.Column('description', sa.Text()),
        sa.Column('brand', sa.String(255)),
        sa.Column('tags', JSONB, server_default='[]'),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id', ondelete='SET NULL'), index=True),
        sa.Column('catalog_id', UUID, sa.ForeignKey('catalogs.id', ondelete='SET NULL'), index=True),
        sa.Column('supplier_id', UUID, sa.ForeignKey('suppliers.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('cost_price', sa.Numeric(12, 2)),
        sa.Column('sale_price', sa.Numeric(12, 2)),
        sa.Column('minimum_price', sa.Numeric(12, 2)),
        sa.Column('compare_at_price', sa.Numeric(12, 2)),
        sa.Column('markup_percentage', sa.Integer()),
        sa.Column('discount_label', sa.String(255)),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('minimum_order', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('image_url', sa.Text()),
        sa.Column('additional_images', JSONB, server_default='[]'),
        sa.Column('weight', sa.Float()),
        sa.Column('dimensions', sa.String(100)),
        sa.Column('free_shipping', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true(), index=True),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_flash_deal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('flash_deal_end', sa.DateTime(timezone=True)),
        sa.Column('special_sale_text', sa.Text()),
        sa.Column('special_sale_start', sa.DateTime(timezone=True)),
        sa.Column('special_sale_end', sa.DateTime(timezone=True)),
        sa.Column('display_order', sa.Integer(), server_default='999'),
        sa.Column('meta_title', sa.String(255)),
        sa.Column('meta_description', sa.Text()),
        sa.Column('meta_keywords', sa.Text()),
        sa.Column('canonical_url', sa.Text()),
        sa.Column('required_attribute_ids', JSONB, server_default='[]'),
        sa.Column('rating', sa.Float()),
        sa.Column('review_count', sa.Integer(), server_default='0'),
        sa.Column('sold_count', sa.Integer(), server_default='0'),
        *_timestamps(),
    )
    op.create_table(
        'product_images',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('object_key', sa.Text(), nullable=False),
        sa.Column('alt_text', sa.String(500)),
        sa.Column('is_main', sa.Boolean(), server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        *_timestamps(updated=False),
    )

    # ### Attributes ###
    op.create_table(
        'attributes',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('attribute_type', sa.String(50), nullable=False, server_default='select'),
        sa.Column('validation_rules', JSONB),
        sa.Column('is_required', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_filterable', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_comparable', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_swatch', sa.Boolean(), server_default=sa.false()),
        sa.Column('display_in_product_summary', sa.Boolean(), server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        *_timestamps(),
    )
    op.create_table(
        'attribute_options',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('attribute_id', UUID, sa.ForeignKey('attributes.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('value', sa.String(255), nullable=False),
        sa.Column('display_value', sa.String(255), nullable=False),
        sa.Column('metadata', JSONB),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('attribute_id', 'value', name='uq_attribute_options_value'),
    )
    op.create_table(
        'product_attributes',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('attribute_id', UUID, sa.ForeignKey('attributes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('override_display_name', sa.String(100)),
        sa.Column('override_description', sa.Text()),
        sa.Column('is_required', sa.Boolean()),
        sa.Column('selected_options', JSONB, server_default='[]'),
        sa.Column('text_value', sa.Text()),
        sa.Column('price_adjustment', sa.Numeric(10, 2), server_default='0'),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('product_id', 'attribute_id', name='uq_product_attributes'),
    )

    # ### Product drafts ###
    op.create_table(
        'product_drafts',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('original_product_id', UUID, sa.ForeignKey('products.id', ondelete='SET NULL'), index=True),
        sa.Column('draft_status', sa.String(30), nullable=False, server_default='draft', index=True),
        sa.Column('created_by', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), index=True),
        sa.Column('name', sa.String(500)),
        sa.Column('slug', sa.String(255)),
        sa.Column('sku', sa.String(100)),
        sa.Column('description', sa.Text()),
        sa.Column('brand', sa.String(255)),
        sa.Column('tags', JSONB, server_default='[]'),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id', ondelete='SET NULL'), index=True),
        sa.Column('catalog_id', UUID, sa.ForeignKey('catalogs.id', ondelete='SET NULL'), index=True),
        sa.Column('supplier_id', UUID, sa.ForeignKey('suppliers.id', ondelete='SET NULL'), index=True),
        sa.Column('supplier_url', sa.Text()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('is_featured', sa.Boolean(), server_default=sa.false()),
        sa.Column('cost_price', sa.Numeric(12, 2)),
        sa.Column('regular_price', sa.Numeric(12, 2)),
        sa.Column('sale_price', sa.Numeric(12, 2)),
        sa.Column('on_sale', sa.Boolean(), server_default=sa.false()),
        sa.Column('markup_percentage', sa.Integer()),
        sa.Column('minimum_price', sa.Numeric(12, 2)),
        sa.Column('compare_at_price', sa.Numeric(12, 2)),
        sa.Column('image_urls', JSONB, server_default='[]'),
        sa.Column('image_object_keys', JSONB, server_default='[]'),
        sa.Column('main_image_index', sa.Integer(), server_default='0'),
        sa.Column('stock_level', sa.Integer(), server_default='0'),
        sa.Column('minimum_order', sa.Integer(), server_default='1'),
        sa.Column('low_stock_threshold', sa.Integer(), server_default='5'),
        sa.Column('backorder_enabled', sa.Boolean(), server_default=sa.false()),
        sa.Column('selected_attributes', JSONB, server_default='{}'),
        sa.Column('weight', sa.Float()),
        sa.Column('dimensions', sa.String(100)),
        sa.Column('free_shipping', sa.Boolean(), server_default=sa.false()),
        sa.Column('discount_label', sa.String(255)),
        sa.Column('special_sale_text', sa.Text()),
        sa.Column('special_sale_start', sa.DateTime(timezone=True)),
        sa.Column('special_sale_end', sa.DateTime(timezone=True)),
        sa.Column('is_flash_deal', sa.Boolean(), server_default=sa.false()),
        sa.Column('flash_deal_end', sa.DateTime(timezone=True)),
        sa.Column('meta_title', sa.String(255)),
        sa.Column('meta_description', sa.Text()),
        sa.Column('meta_keywords', sa.Text()),
        sa.Column('canonical_url', sa.Text()),
        sa.Column('has_ai_description', sa.Boolean(), server_default=sa.false()),
        sa.Column('has_ai_seo', sa.Boolean(), server_default=sa.false()),
        sa.Column('ai_suggestions', JSONB, server_default='{}'),
        sa.Column('wizard_progress', JSONB, server_default='{}'),
        sa.Column('completed_steps', JSONB, server_default='[]'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('change_history', JSONB, server_default='[]'),
        sa.Column('last_reviewer', UUID, sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('rejection_reason', sa.Text()),
        sa.Column('published_at', sa.DateTime(timezone=True)),
        sa.Column('published_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('last_modified', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    # ### Cart ###
    op.create_table(
        'cart_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('item_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('attribute_selections', JSONB),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_cart_items_user_product'),
    )

    # ### Favourites and interactions ###
    op.create_table(
        'user_favourites',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_user_favourites'),
    )
    op.create_table(
        'product_interactions',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), index=True),
        sa.Column('session_id', sa.String(255)),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('interaction_type', sa.String(30), nullable=False),
        sa.Column('referrer', sa.Text()),
        sa.Column('user_agent', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )
    op.create_index(
        'ix_product_interactions_product_type',
        'product_interactions',
        ['product_id', 'interaction_type'],
    )


def downgrade() -> None:
    op.drop_index('ix_product_interactions_product_type', 'product_interactions')
    op.drop_table('product_interactions')
    op.drop_table('user_favourites')
    op.drop_table('cart_items')
    op.drop_table('product_drafts')
    op.drop_table('product_attributes')
    op.drop_table('attribute_options')
    op.drop_table('attributes')
    op.drop_table('product_images')
    op.drop_table('products')
    op.drop_table('pricing_rules')
    op.drop_table('categories')
    op.drop_table('catalogs')
    op.drop_table('suppliers')
    op.drop_table('users')
