"""Create match history tables for the lineup pairing engine

Revision ID: 3e1a5c0b7d42
Revises:
Create Date: 2026-03-01 12:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "3e1a5c0b7d42"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("dupr_rating", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=True,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "roster_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.String(length=36), nullable=False),
        sa.Column("team_id", sa.String(length=36), nullable=False),
        sa.Column("division_id", sa.String(length=36), nullable=False),
        sa.Column("season_year", sa.Integer(), nullable=False),
        sa.Column("season_number", sa.Integer(), nullable=False),
        sa.Column("is_sub", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=True,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "player_id", "team_id", "division_id", "season_year", "season_number", "snapshot_date",
            name="uq_roster_entry_snapshot",
        ),
    )
    op.create_index(
        "idx_roster_team_season",
        "roster_entries",
        ["division_id", "team_id", "season_year", "season_number"],
        unique=False,
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("division_id", sa.String(length=36), nullable=True),
        sa.Column("home_team_id", sa.String(length=36), nullable=True),
        sa.Column("away_team_id", sa.String(length=36), nullable=True),
        sa.Column("week_number", sa.Integer(), nullable=True),
        sa.Column("match_type", sa.String(length=10), nullable=True),
        sa.Column("match_instant", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=True,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "match_type IS NULL OR match_type IN ('mixed', 'female', 'male')",
            name="ck_matches_match_type",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_matches_match_instant", "matches", ["match_instant"], unique=False)
    op.create_index("idx_matches_division_week", "matches", ["division_id", "week_number"], unique=False)

    op.create_table(
        "match_participations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.String(length=36), nullable=False),
        sa.Column("player_id", sa.String(length=36), nullable=False),
        sa.Column("partner_id", sa.String(length=36), nullable=True),
        sa.Column("won", sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["partner_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "player_id", name="uq_participation_match_player"),
    )
    op.create_index(
        "idx_participation_player_partner",
        "match_participations",
        ["player_id", "partner_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_participation_player_partner", table_name="match_participations")
    op.drop_table("match_participations")

    op.drop_index("idx_matches_division_week", table_name="matches")
    op.drop_index("idx_matches_match_instant", table_name="matches")
    op.drop_table("matches")

    op.drop_index("idx_roster_team_season", table_name="roster_entries")
    op.drop_table("roster_entries")

    op.drop_table("players")
