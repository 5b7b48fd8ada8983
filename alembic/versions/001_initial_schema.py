"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-08-05 17:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

LOOKUP_TABLES = ('classifications', 'sources', 'meals', 'courses', 'preparations')


def _timestamps():
    return (
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def upgrade():
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(), nullable=True),
        sa.Column('subscription_tier', sa.Integer(), nullable=False),
        sa.Column('subscription_status', sa.String(length=50), nullable=False),
        sa.Column('subscription_expires_at', sa.DateTime(), nullable=True),
        sa.Column('admin_override', sa.Boolean(), nullable=False),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # Create lookup tables
    for table in LOOKUP_TABLES:
        op.create_table(table,
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id')
        )

    # Create recipes table
    op.create_table('recipes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('ingredients', sa.Text(), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=False),
        sa.Column('source_id', sa.String(length=36), nullable=True),
        sa.Column('classification_id', sa.String(length=36), nullable=True),
        sa.Column('date_added', sa.DateTime(), nullable=True),
        sa.Column('calories', sa.Integer(), nullable=True),
        sa.Column('fat', sa.Float(), nullable=True),
        sa.Column('cholesterol', sa.Float(), nullable=True),
        sa.Column('sodium', sa.Float(), nullable=True),
        sa.Column('protein', sa.Float(), nullable=True),
        sa.Column('marked', sa.Boolean(), nullable=True),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['source_id'], ['sources.id'], ),
        sa.ForeignKeyConstraint(['classification_id'], ['classifications.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_recipes_name'), 'recipes', ['name'], unique=False)
    op.create_index(op.f('ix_recipes_user_id'), 'recipes', ['user_id'], unique=False)

    # Create recipe join tables
    for table, column, target, constraint in (
        ('recipe_meals', 'meal_id', 'meals', 'uq_recipe_meal'),
        ('recipe_courses', 'course_id', 'courses', 'uq_recipe_course'),
        ('recipe_preparations', 'preparation_id', 'preparations', 'uq_recipe_preparation'),
    ):
        op.create_table(table,
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('recipe_id', sa.String(length=36), nullable=False),
            sa.Column(column, sa.String(length=36), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint([column], [f'{target}.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('recipe_id', column, name=constraint)
        )

    # Create cookbooks table
    op.create_table('cookbooks',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image', sa.String(length=500), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cookbooks_user_id'), 'cookbooks', ['user_id'], unique=False)

    # Create cookbook_recipes table
    op.create_table('cookbook_recipes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('cookbook_id', sa.String(length=36), nullable=False),
        sa.Column('recipe_id', sa.String(length=36), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cookbook_id'], ['cookbooks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cookbook_id', 'recipe_id', name='uq_cookbook_recipe')
    )


def downgrade():
    op.drop_table('cookbook_recipes')
    op.drop_index(op.f('ix_cookbooks_user_id'), table_name='cookbooks')
    op.drop_table('cookbooks')
    op.drop_table('recipe_preparations')
    op.drop_table('recipe_courses')
    op.drop_table('recipe_meals')
    op.drop_index(op.f('ix_recipes_user_id'), table_name='recipes')
    op.drop_index(op.f('ix_recipes_name'), table_name='recipes')
    op.drop_table('recipes')
    for table in reversed(LOOKUP_TABLES):
        op.drop_table(table)
    op.drop_table('users')
