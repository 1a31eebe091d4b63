# app/utils/id_generators.py
import re

from sqlalchemy.orm import Session

from app.core.catalog import CATEGORY_PREFIXES, DEFAULT_CATEGORY_PREFIX
from app.models.product import Product


def category_prefix(category: str | None) -> str:
    """
    Asset-tag prefix for a category.

    Known categories use the catalogue mapping; anything else uses its first
    three ASCII letters, upper-cased. Falls back to DEFAULT_CATEGORY_PREFIX.
    """
    if not category or not category.strip():
        return DEFAULT_CATEGORY_PREFIX

    key = category.strip().lower()
    if key in CATEGORY_PREFIXES:
        return CATEGORY_PREFIXES[key]

    letters = re.sub(r"[^A-Za-z]", "", category)
    if len(letters) >= 3:
        return letters[:3].upper()
    return DEFAULT_CATEGORY_PREFIX


def generate_stock_id(db: Session, category: str | None) -> str:
    """
    Generate the next asset tag in format: {PREFIX}-{sequential}

    Where:
    - {PREFIX} = category prefix, e.g. COM
    - {sequential} = next number for that prefix (zero-padded to 3 digits)

    Example: COM-001, COM-002, etc. Soft-deleted products keep their tag,
    so numbers are never reused.
    """
    prefix = f"{category_prefix(category)}-"

    existing_codes = (
        db.query(Product.stock_id)
        .filter(Product.stock_id.like(f"{prefix}%"))
        .all()
    )

    max_seq = 0
    for (code,) in existing_codes:
        if code and code.startswith(prefix):
            try:
                seq_num = int(code[len(prefix) :])
                max_seq = max(max_seq, seq_num)
            except ValueError:
                continue

    next_seq = max_seq + 1
    return f"{prefix}{next_seq:03d}"
