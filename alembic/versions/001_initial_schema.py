"""Initial schema: users, categories, perks, leads, blog, SEO and site settings

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name, nullable=True):
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=nullable)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'users',
        _uuid('id', nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lock_until', sa.DateTime(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'categories',
        _uuid('id', nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _uuid('parent_id'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('path', sa.String(length=500), nullable=True),
        sa.Column('image', sa.JSON(), nullable=True),
        sa.Column('icon', sa.String(length=100), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False),
        sa.Column('show_in_menu', sa.Boolean(), nullable=False),
        sa.Column('show_in_filter', sa.Boolean(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('seo_title', sa.String(length=60), nullable=True),
        sa.Column('seo_description', sa.String(length=160), nullable=True),
        sa.Column('seo_keywords', sa.JSON(), nullable=False),
        sa.Column('perk_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_perk_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subcategory_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        _uuid('created_by'),
        _uuid('updated_by'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_categories_slug'), 'categories', ['slug'], unique=True)
    op.create_index(op.f('ix_categories_parent_id'), 'categories', ['parent_id'], unique=False)
    op.create_index(op.f('ix_categories_status'), 'categories', ['status'], unique=False)
    op.create_index(op.f('ix_categories_created_at'), 'categories', ['created_at'], unique=False)

    op.create_table(
        'perks',
        _uuid('id', nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('short_description', sa.String(length=300), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('vendor_name', sa.String(length=200), nullable=False),
        sa.Column('vendor_email', sa.String(length=255), nullable=True),
        sa.Column('vendor_website', sa.String(length=500), nullable=True),
        sa.Column('vendor_description', sa.Text(), nullable=True),
        sa.Column('vendor_logo', sa.JSON(), nullable=True),
        sa.Column('main_image', sa.JSON(), nullable=True),
        sa.Column('gallery', sa.JSON(), nullable=False),
        sa.Column('original_price', sa.Float(), nullable=True),
        sa.Column('discounted_price', sa.Float(), nullable=True),
        sa.Column('discount_percentage', sa.Float(), nullable=True),
        sa.Column('redemption_method', sa.String(length=30), nullable=False),
        sa.Column('affiliate_url', sa.String(length=1000), nullable=True),
        sa.Column('coupon_code', sa.String(length=100), nullable=True),
        sa.Column('location', sa.String(length=20), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        _uuid('category_id'),
        _uuid('client_id'),
        _uuid('created_by'),
        _uuid('updated_by'),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('approval_status', sa.String(length=20), nullable=False),
        _uuid('reviewed_by'),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('approval_notes', sa.JSON(), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('is_exclusive', sa.Boolean(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('total_quantity', sa.Integer(), nullable=True),
        sa.Column('redeemed_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('redemption_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('conversion_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('seo', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_perks_slug'), 'perks', ['slug'], unique=True)
    op.create_index(op.f('ix_perks_category_id'), 'perks', ['category_id'], unique=False)
    op.create_index(op.f('ix_perks_client_id'), 'perks', ['client_id'], unique=False)
    op.create_index(op.f('ix_perks_status'), 'perks', ['status'], unique=False)
    op.create_index(op.f('ix_perks_approval_status'), 'perks', ['approval_status'], unique=False)
    op.create_index(op.f('ix_perks_is_featured'), 'perks', ['is_featured'], unique=False)
    op.create_index(op.f('ix_perks_end_date'), 'perks', ['end_date'], unique=False)
    op.create_index(op.f('ix_perks_created_at'), 'perks', ['created_at'], unique=False)

    op.create_table(
        'leads',
        _uuid('id', nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('company_name', sa.String(length=200), nullable=True),
        sa.Column('company_website', sa.String(length=500), nullable=True),
        sa.Column('company_size', sa.String(length=20), nullable=False),
        sa.Column('job_title', sa.String(length=100), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('interests', sa.JSON(), nullable=False),
        sa.Column('budget_range', sa.String(length=20), nullable=False),
        sa.Column('budget_currency', sa.String(length=3), nullable=False),
        sa.Column('timeline', sa.String(length=20), nullable=False),
        sa.Column('preferred_contact_method', sa.String(length=20), nullable=False),
        _uuid('perk_id'),
        sa.Column('perk_title', sa.String(length=200), nullable=True),
        _uuid('category_id'),
        sa.Column('category_name', sa.String(length=100), nullable=True),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('lead_score', sa.Integer(), nullable=False, server_default='0'),
        _uuid('assigned_to'),
        sa.Column('assigned_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.JSON(), nullable=False),
        sa.Column('next_follow_up_at', sa.DateTime(), nullable=True),
        sa.Column('last_contacted_at', sa.DateTime(), nullable=True),
        sa.Column('contact_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('converted_at', sa.DateTime(), nullable=True),
        sa.Column('conversion_value', sa.Float(), nullable=True),
        sa.Column('conversion_type', sa.String(length=20), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('referrer', sa.String(length=500), nullable=True),
        sa.Column('utm_source', sa.String(length=100), nullable=True),
        sa.Column('utm_medium', sa.String(length=100), nullable=True),
        sa.Column('utm_campaign', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('marketing_opt_in', sa.Boolean(), nullable=False),
        sa.Column('data_processing_consent', sa.Boolean(), nullable=False),
        sa.Column('consent_date', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', 'perk_id', name='uq_leads_email_perk'),
    )
    for column in ('email', 'perk_id', 'category_id', 'source', 'status', 'lead_score',
                   'assigned_to', 'next_follow_up_at', 'created_at'):
        op.create_index(op.f(f'ix_leads_{column}'), 'leads', [column], unique=False)

    op.create_table(
        'blog_categories',
        _uuid('id', nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('image', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False),
        sa.Column('show_in_menu', sa.Boolean(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('seo', sa.JSON(), nullable=False),
        sa.Column('post_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        _uuid('created_by'),
        _uuid('updated_by'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_blog_categories_slug'), 'blog_categories', ['slug'], unique=True)
    op.create_index(op.f('ix_blog_categories_status'), 'blog_categories', ['status'], unique=False)

    op.create_table(
        'blog_posts',
        _uuid('id', nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('excerpt', sa.String(length=500), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        _uuid('category_id'),
        sa.Column('tags', sa.JSON(), nullable=False),
        _uuid('author_id'),
        sa.Column('author_name', sa.String(length=100), nullable=True),
        sa.Column('featured_image', sa.JSON(), nullable=True),
        sa.Column('gallery', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('read_time', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('share_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('seo', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_blog_posts_slug'), 'blog_posts', ['slug'], unique=True)
    op.create_index(op.f('ix_blog_posts_category_id'), 'blog_posts', ['category_id'], unique=False)
    op.create_index(op.f('ix_blog_posts_status'), 'blog_posts', ['status'], unique=False)
    op.create_index(op.f('ix_blog_posts_published_at'), 'blog_posts', ['published_at'], unique=False)
    op.create_index(op.f('ix_blog_posts_created_at'), 'blog_posts', ['created_at'], unique=False)

    op.create_table(
        'seo_settings',
        _uuid('id', nullable=False),
        sa.Column('site_name', sa.String(length=100), nullable=False),
        sa.Column('site_description', sa.String(length=500), nullable=False),
        sa.Column('site_url', sa.String(length=500), nullable=False),
        sa.Column('default_meta_title', sa.String(length=60), nullable=False),
        sa.Column('default_meta_description', sa.String(length=160), nullable=False),
        sa.Column('default_meta_keywords', sa.JSON(), nullable=False),
        sa.Column('default_og_title', sa.String(length=60), nullable=True),
        sa.Column('default_og_description', sa.String(length=160), nullable=True),
        sa.Column('default_og_image', sa.JSON(), nullable=True),
        sa.Column('og_type', sa.String(length=20), nullable=False),
        sa.Column('twitter_card_type', sa.String(length=30), nullable=False),
        sa.Column('twitter_site', sa.String(length=50), nullable=True),
        sa.Column('twitter_creator', sa.String(length=50), nullable=True),
        sa.Column('organization', sa.JSON(), nullable=False),
        sa.Column('sitemap_settings', sa.JSON(), nullable=False),
        sa.Column('robots_settings', sa.JSON(), nullable=False),
        sa.Column('analytics', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _uuid('created_by'),
        _uuid('updated_by'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_seo_settings_is_active'), 'seo_settings', ['is_active'], unique=False)

    op.create_table(
        'site_settings',
        _uuid('id', nullable=False),
        sa.Column('seo', sa.JSON(), nullable=False),
        sa.Column('homepage', sa.JSON(), nullable=False),
        sa.Column('contact', sa.JSON(), nullable=False),
        sa.Column('social_links', sa.JSON(), nullable=False),
        sa.Column('footer_text', sa.Text(), nullable=True),
        _uuid('updated_by'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('site_settings')
    op.drop_index(op.f('ix_seo_settings_is_active'), table_name='seo_settings')
    op.drop_table('seo_settings')
    op.drop_table('blog_posts')
    op.drop_table('blog_categories')
    op.drop_table('leads')
    op.drop_table('perks')
    op.drop_table('categories')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
