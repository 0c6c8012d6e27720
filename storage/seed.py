"""
Reference data the API expects to exist: user types and order statuses.
"""

from typing import Dict

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import OrderStatus, UserType

logger = structlog.get_logger(__name__)

# Signup assigns the first user type flagged is_user
DEFAULT_USER_TYPES = [
    {"title": "user", "is_user": True},
    {"title": "manager", "is_manager": True},
    {"title": "admin", "is_admin": True},
]

DEFAULT_ORDER_STATUSES = [
    {"title": "awaiting payment", "is_awaiting_payment": True},
    {"title": "paid", "is_paid": True},
    {"title": "confirmed", "is_confirmed": True},
    {"title": "in progress", "is_performed": True},
    {"title": "done", "is_done": True},
    {"title": "canceled", "is_canceled": True},
]


async def _seed_table(session: AsyncSession, model: type, rows: list) -> int:
    existing = (await session.execute(select(func.count()).select_from(model))).scalar_one()
    if existing:
        logger.info("Table already populated, skipping seed", table=model.__tablename__, rows=existing)
        return 0

    session.add_all(model(**row) for row in rows)
    return len(rows)


async def seed_reference_data(session: AsyncSession) -> Dict[str, int]:
    """
    Insert default user types and order statuses into empty tables.

    Args:
        session: Session to write with; committed on success

    Returns:
        Number of rows inserted per table
    """
    inserted = {
        UserType.__tablename__: await _seed_table(session, UserType, DEFAULT_USER_TYPES),
        OrderStatus.__tablename__: await _seed_table(session, OrderStatus, DEFAULT_ORDER_STATUSES),
    }
    await session.commit()
    logger.info("Reference data seeded", **inserted)
    return inserted
