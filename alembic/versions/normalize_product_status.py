"""normalize_product_status

Older rows carry the Thai literal 'ไม่ว่าง' (in use) and 'unavailable'.
Map them onto the closed status set and backfill the unique-item
back-reference from the oldest active borrow.

Revision ID: normalize_product_status
Revises: create_inventory_schema
Create Date: 2026-09-29 09:40:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "normalize_product_status"
down_revision: Union[str, None] = "create_inventory_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LEGACY_STATUS_MAP = {
    "ไม่ว่าง": "borrowed",
    "unavailable": "requisitioned",
}


def upgrade() -> None:
    products = sa.table(
        "products",
        sa.column("status", sa.String),
    )
    for legacy, canonical in LEGACY_STATUS_MAP.items():
        op.execute(
            products.update()
            .where(products.c.status == legacy)
            .values(status=canonical)
        )

    op.execute(
        sa.text(
            """
            UPDATE products
            SET active_borrow_id = (
                SELECT t.id FROM transactions t
                WHERE t.product_id = products.id
                  AND t.type = 'borrow'
                  AND t.status = 'active'
                ORDER BY t.borrow_date ASC
                LIMIT 1
            )
            WHERE kind = 'unique'
              AND status = 'borrowed'
              AND active_borrow_id IS NULL
            """
        )
    )


def downgrade() -> None:
    # Legacy literals are not restored; canonical values stay valid.
    pass
