from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "guides",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("nationality", sa.String(), nullable=True),
        sa.Column("institute", sa.String(), nullable=True),
        sa.Column("gender", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
        sa.Column("trips_hosted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("no_show_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reliability_badge", sa.String(), nullable=True),
        sa.Column("interests", sa.JSON(), nullable=False),
        sa.Column("acceptance_rate", sa.Float(), nullable=True),
    )
    # matches the fetch filter + ordering
    op.create_index("ix_guides_city_status", "guides", ["city", "status"])

    op.create_table(
        "guide_languages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guide_id", sa.String(), sa.ForeignKey("guides.id", ondelete="CASCADE"), nullable=False),
        sa.Column("language", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_guide_languages_guide_id", "guide_languages", ["guide_id"])
    op.create_index("ix_guide_languages_language", "guide_languages", ["language"])

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guide_id", sa.String(), sa.ForeignKey("guides.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(), nullable=False),
        sa.Column("end_time", sa.String(), nullable=False),
        sa.Column("note", sa.String(), nullable=True),
    )
    op.create_index("ix_availability_slots_guide_id", "availability_slots", ["guide_id"])

    op.create_table(
        "trip_requests",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("dates", sa.JSON(), nullable=True),
        sa.Column("preferred_time", sa.String(), nullable=True),
        sa.Column("interests", sa.JSON(), nullable=False),
        sa.Column("preferred_nationality", sa.String(), nullable=True),
        sa.Column("preferred_languages", sa.JSON(), nullable=False),
        sa.Column("preferred_gender", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
    )


def downgrade():
    op.drop_table("trip_requests")
    op.drop_table("availability_slots")
    op.drop_table("guide_languages")
    op.drop_table("guides")
