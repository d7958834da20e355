"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates every LocalMarket table: users, parcels, tracking_events,
       riders, payments, notifications, products, reviews, orders,
       advertisements, watchlist.
How:   Each table starts with the shared document columns (UUID id,
       created_at, extra JSON) followed by its typed columns.

Rollback: downgrade() drops all tables (destructive).
"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = (
    "watchlist",
    "advertisements",
    "orders",
    "reviews",
    "products",
    "notifications",
    "payments",
    "riders",
    "tracking_events",
    "parcels",
    "users",
)


def _document_columns() -> List[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("extra", sa.JSON(), nullable=False),
    ]


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        *_document_columns(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        _timestamp("last_login_at"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "parcels",
        *_document_columns(),
        sa.Column("tracking_id", sa.String(64), nullable=False, unique=True),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("parcel_type", sa.String(32), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("sender_region", sa.String(100), nullable=True),
        sa.Column("sender_district", sa.String(100), nullable=True),
        sa.Column("receiver_region", sa.String(100), nullable=True),
        sa.Column("receiver_district", sa.String(100), nullable=True),
        sa.Column("delivery_status", sa.String(32), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        _timestamp("paid_at"),
        sa.Column("assigned_rider_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_rider_email", sa.String(255), nullable=True),
        sa.Column("assigned_rider_name", sa.String(255), nullable=True),
        _timestamp("assigned_at"),
        _timestamp("picked_at"),
        _timestamp("delivered_at"),
        sa.Column("cashout_status", sa.String(16), nullable=True),
        _timestamp("cashed_out_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_parcels_created_by", "parcels", ["created_by"])
    op.create_index("ix_parcels_assigned_rider_email", "parcels", ["assigned_rider_email"])
    op.create_index("idx_parcels_created_at", "parcels", ["created_at"])
    op.create_index("idx_parcels_delivery_status", "parcels", ["delivery_status"])

    op.create_table(
        "tracking_events",
        *_document_columns(),
        sa.Column("tracking_id", sa.String(64), nullable=False),
        sa.Column("parcel_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(64), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(255), nullable=True),
    )
    op.create_index("ix_tracking_events_tracking_id", "tracking_events", ["tracking_id"])
    op.create_index("ix_tracking_events_parcel_id", "tracking_events", ["parcel_id"])

    op.create_table(
        "riders",
        *_document_columns(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("district", sa.String(100), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("work_status", sa.String(16), nullable=False),
        _timestamp("approved_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_riders_email", "riders", ["email"])
    op.create_index("ix_riders_district", "riders", ["district"])
    op.create_index("ix_riders_status", "riders", ["status"])

    op.create_table(
        "payments",
        *_document_columns(),
        sa.Column("parcel_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("transaction_id", sa.String(255), nullable=False),
        sa.Column("payment_method", sa.String(64), nullable=False),
        _timestamp("paid_at", nullable=False),
    )
    op.create_index("ix_payments_parcel_id", "payments", ["parcel_id"])
    op.create_index("ix_payments_email", "payments", ["email"])

    op.create_table(
        "notifications",
        *_document_columns(),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("from_role", sa.String(20), nullable=True),
        sa.Column("to_role", sa.String(20), nullable=False),
        sa.Column("to_email", sa.String(255), nullable=True),
        sa.Column("parcel_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        _timestamp("read_at"),
    )
    op.create_index("ix_notifications_to_role", "notifications", ["to_role"])
    op.create_index("ix_notifications_to_email", "notifications", ["to_email"])

    op.create_table(
        "products",
        *_document_columns(),
        sa.Column("vendor_email", sa.String(255), nullable=False),
        sa.Column("vendor_name", sa.String(255), nullable=True),
        sa.Column("market_name", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
        _timestamp("updated_at"),
    )
    op.create_index("ix_products_vendor_email", "products", ["vendor_email"])
    op.create_index("ix_products_status", "products", ["status"])

    op.create_table(
        "reviews",
        *_document_columns(),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
    )
    op.create_index("ix_reviews_product_id", "reviews", ["product_id"])

    op.create_table(
        "orders",
        *_document_columns(),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=True),
        sa.Column("buyer_email", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("accepted_by_email", sa.String(255), nullable=True),
        sa.Column("accepted_by_role", sa.String(20), nullable=True),
        _timestamp("accepted_at"),
    )
    op.create_index("ix_orders_buyer_email", "orders", ["buyer_email"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "advertisements",
        *_document_columns(),
        sa.Column("vendor_email", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
    )
    op.create_index("ix_advertisements_vendor_email", "advertisements", ["vendor_email"])

    op.create_table(
        "watchlist",
        *_document_columns(),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=True),
        sa.UniqueConstraint("user_email", "product_id", name="uq_watchlist_user_product"),
    )
    op.create_index("ix_watchlist_user_email", "watchlist", ["user_email"])


def downgrade() -> None:
    for table in TABLES:
        op.drop_table(table)
