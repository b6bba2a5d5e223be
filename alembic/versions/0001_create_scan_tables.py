"""create token scan cache tables

Revision ID: 0001_create_scan_tables
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_create_scan_tables"
down_revision = None
branch_labels = None
depends_on = None

JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def _key_columns() -> list:
    return [
        sa.Column("token_address", sa.String(length=100), nullable=False),
        sa.Column("chain_id", sa.String(length=20), nullable=False),
    ]


def _snapshot_columns() -> list:
    return [
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("token_address", "chain_id"),
    ]


def upgrade() -> None:
    op.create_table(
        "token_data_cache",
        *_key_columns(),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("symbol", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.String(), nullable=True),
        sa.Column("website_url", sa.String(), nullable=True),
        sa.Column("twitter_handle", sa.String(length=50), nullable=True),
        sa.Column("github_url", sa.String(), nullable=True),
        sa.Column("discord_url", sa.String(), nullable=True),
        sa.Column("telegram_url", sa.String(), nullable=True),
        sa.Column("price_usd", sa.Float(), nullable=True),
        sa.Column("price_change_24h", sa.Float(), nullable=True),
        sa.Column("market_cap_usd", sa.Float(), nullable=True),
        sa.Column("volume_24h_usd", sa.Float(), nullable=True),
        sa.Column("total_supply", sa.Float(), nullable=True),
        sa.Column("overall_score", sa.Integer(), nullable=False),
        sa.Column("degraded", sa.Boolean(), nullable=False),
        sa.Column("data_sources", JSON, nullable=True),
        sa.Column("provenance", JSON, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("token_address", "chain_id"),
    )
    op.create_index("ix_token_data_cache_symbol", "token_data_cache", ["symbol"])

    op.create_table(
        "token_security_cache",
        *_key_columns(),
        sa.Column("ownership_renounced", sa.Boolean(), nullable=True),
        sa.Column("can_mint", sa.Boolean(), nullable=True),
        sa.Column("honeypot_detected", sa.Boolean(), nullable=True),
        sa.Column("freeze_authority", sa.Boolean(), nullable=True),
        sa.Column("audit_status", sa.String(length=50), nullable=True),
        sa.Column("contract_verified", sa.Boolean(), nullable=True),
        sa.Column("is_proxy", sa.Boolean(), nullable=True),
        sa.Column("is_blacklisted", sa.Boolean(), nullable=True),
        sa.Column("buy_tax", sa.Float(), nullable=True),
        sa.Column("sell_tax", sa.Float(), nullable=True),
        sa.Column("is_liquidity_locked", sa.Boolean(), nullable=True),
        sa.Column("liquidity_lock_info", sa.String(), nullable=True),
        sa.Column("lock_days", sa.Integer(), nullable=False),
        sa.Column("webacy_risk_score", sa.Float(), nullable=True),
        sa.Column("webacy_severity", sa.String(length=50), nullable=True),
        sa.Column("webacy_flags", JSON, nullable=True),
        *_snapshot_columns(),
    )

    op.create_table(
        "token_tokenomics_cache",
        *_key_columns(),
        sa.Column("total_supply", sa.Float(), nullable=True),
        sa.Column("total_holders", sa.Integer(), nullable=True),
        sa.Column("gini_coefficient", sa.Float(), nullable=True),
        sa.Column("concentration_bucket", sa.String(length=20), nullable=True),
        sa.Column("distribution_label", sa.String(length=20), nullable=False),
        sa.Column("verified_contract", sa.Boolean(), nullable=True),
        sa.Column("possible_spam", sa.Boolean(), nullable=True),
        sa.Column("tvl_usd", sa.Float(), nullable=True),
        sa.Column("data_confidence", sa.Integer(), nullable=False),
        *_snapshot_columns(),
    )

    op.create_table(
        "token_liquidity_cache",
        *_key_columns(),
        sa.Column("volume_24h_usd", sa.Float(), nullable=True),
        sa.Column("market_cap_usd", sa.Float(), nullable=True),
        sa.Column("total_liquidity_usd", sa.Float(), nullable=True),
        sa.Column("tvl_usd", sa.Float(), nullable=True),
        sa.Column("cex_listings", sa.Integer(), nullable=True),
        sa.Column("major_pairs", JSON, nullable=True),
        *_snapshot_columns(),
    )

    op.create_table(
        "token_community_cache",
        *_key_columns(),
        sa.Column("twitter_handle", sa.String(length=50), nullable=True),
        sa.Column("twitter_followers", sa.Integer(), nullable=True),
        sa.Column("discord_url", sa.String(), nullable=True),
        sa.Column("discord_members", sa.Integer(), nullable=True),
        sa.Column("telegram_url", sa.String(), nullable=True),
        sa.Column("telegram_members", sa.Integer(), nullable=True),
        *_snapshot_columns(),
    )

    op.create_table(
        "token_development_cache",
        *_key_columns(),
        sa.Column("github_url", sa.String(), nullable=True),
        sa.Column("stars", sa.Integer(), nullable=True),
        sa.Column("forks", sa.Integer(), nullable=True),
        sa.Column("contributors", sa.Integer(), nullable=True),
        sa.Column("commits_30d", sa.Integer(), nullable=True),
        sa.Column("last_push", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=True),
        sa.Column("language", sa.String(length=50), nullable=True),
        *_snapshot_columns(),
    )

    op.create_table(
        "token_scans",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=True),
        sa.Column("token_address", sa.String(length=100), nullable=False),
        sa.Column("chain_id", sa.String(length=20), nullable=False),
        sa.Column("score_total", sa.Integer(), nullable=False),
        sa.Column("privileged", sa.Boolean(), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False),
        sa.Column("from_cache", sa.Boolean(), nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_token_scans_user_id", "token_scans", ["user_id"])
    op.create_index("ix_token_scans_token_address", "token_scans", ["token_address"])
    op.create_index("ix_token_scans_scanned_at", "token_scans", ["scanned_at"])


def downgrade() -> None:
    op.drop_index("ix_token_scans_scanned_at", table_name="token_scans")
    op.drop_index("ix_token_scans_token_address", table_name="token_scans")
    op.drop_index("ix_token_scans_user_id", table_name="token_scans")
    op.drop_table("token_scans")
    for table in (
        "token_development_cache",
        "token_community_cache",
        "token_liquidity_cache",
        "token_tokenomics_cache",
        "token_security_cache",
    ):
        op.drop_table(table)
    op.drop_index("ix_token_data_cache_symbol", table_name="token_data_cache")
    op.drop_table("token_data_cache")
