"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import Boolean, Column, DateTime, MetaData, String, Table, Text, UniqueConstraint, false

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# USERS TABLE
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),  # UUID as string
    Column("external_id", String(255), nullable=False),  # Provider subject id
    Column("email", String(320), nullable=True),
    Column("name", String(255), nullable=False),
    Column("profile_picture_url", Text, nullable=True),
    Column("access_token", Text, nullable=True),  # Provider credentials, never exposed
    Column("refresh_token", Text, nullable=True),
    Column("persona", String(64), nullable=True),
    Column("vertical", String(64), nullable=True),
    Column("profile_completed", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=True),
    UniqueConstraint("external_id", name="uq_users_external_id"),
    UniqueConstraint("email", name="uq_users_email"),
)
