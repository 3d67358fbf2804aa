"""add_alt_onboarding_pending

Revision ID: a84d0e6c5b21
Revises: 3f1c2a7b9e10
Create Date: 2026-02-16 09:41:52.083611

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a84d0e6c5b21'
down_revision: Union[str, Sequence[str], None] = '3f1c2a7b9e10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None



def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('alt_onboarding_pending',
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('consumed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('consumed_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('token')
    )
    op.create_index(op.f('ix_alt_onboarding_pending_email'), 'alt_onboarding_pending', ['email'], unique=False)
    # At most one unconsumed token per email.
    op.create_index(
        'ix_alt_onboarding_pending_active_email', 'alt_onboarding_pending', ['email'],
        unique=True, postgresql_where=sa.text('consumed_at IS NULL'))

    op.add_column('users', sa.Column('alt_onboarding_private', postgresql.JSONB(astext_type=sa.Text()), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_column('users', 'alt_onboarding_private')
    op.drop_index('ix_alt_onboarding_pending_active_email', table_name='alt_onboarding_pending')
    op.drop_index(op.f('ix_alt_onboarding_pending_email'), table_name='alt_onboarding_pending')
    op.drop_table('alt_onboarding_pending')
