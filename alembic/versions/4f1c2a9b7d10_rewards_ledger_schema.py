"""users, rides, partners, rewards and redemptions

Revision ID: 4f1c2a9b7d10
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    # Databases created by the app's create_all at startup already have the schema.
    if inspector.has_table("redemptions"):
        return

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100)),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_distance_km", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_co2_saved_g", sa.Float(), nullable=False, server_default="0"),
        sa.Column("ledger_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "partners",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(255)),
        sa.Column("address", sa.String(255)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("image_url", sa.String(500)),
        sa.Column("category", sa.String(50), nullable=False, server_default="cafe"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
    )

    op.create_table(
        "rides",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("healthkit_uuid", sa.String(100), nullable=False),
        sa.Column("start_date", sa.TIMESTAMP(), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(), nullable=False),
        sa.Column("distance_km", sa.Float(), nullable=False),
        sa.Column("duration_minutes", sa.Float(), nullable=False),
        sa.Column("calories_burned", sa.Float()),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("co2_saved_g", sa.Float(), nullable=False),
        sa.Column("synced_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.UniqueConstraint("healthkit_uuid", name="uq_rides_healthkit_uuid"),
    )
    op.create_index("ix_rides_user_id", "rides", ["user_id"])

    op.create_table(
        "rewards",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("partner_id", sa.Uuid(), sa.ForeignKey("partners.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(255)),
        sa.Column("points_cost", sa.Integer(), nullable=False),
        sa.Column("image_url", sa.String(500)),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.CheckConstraint("points_cost > 0", name="ck_rewards_points_cost_positive"),
    )
    op.create_index("ix_rewards_partner_id", "rewards", ["partner_id"])

    op.create_table(
        "redemptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reward_id", sa.Uuid(), sa.ForeignKey("rewards.id"), nullable=False),
        sa.Column("partner_id", sa.Uuid(), sa.ForeignKey("partners.id"), nullable=False),
        sa.Column("points_spent", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.TIMESTAMP(), nullable=False),
        sa.Column("redeemed_at", sa.TIMESTAMP()),
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now()),
        sa.UniqueConstraint("code", name="uq_redemptions_code"),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'expired')",
            name="ck_redemptions_status",
        ),
    )
    op.create_index("ix_redemptions_user_status", "redemptions", ["user_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_redemptions_user_status", table_name="redemptions")
    op.drop_table("redemptions")
    op.drop_index("ix_rewards_partner_id", table_name="rewards")
    op.drop_table("rewards")
    op.drop_index("ix_rides_user_id", table_name="rides")
    op.drop_table("rides")
    op.drop_table("partners")
    op.drop_table("users")
