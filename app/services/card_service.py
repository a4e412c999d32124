import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError, NotFoundError
from app.models.card import Card, CardSet
from app.models.user import User


async def get_card_set_or_public(
    db: AsyncSession, set_id: uuid.UUID, user: User,
) -> CardSet:
    result = await db.execute(select(CardSet).where(CardSet.id == set_id))
    card_set = result.scalar_one_or_none()
    if card_set is None:
        raise NotFoundError("Card set not found")
    if card_set.user_id != user.id and not card_set.is_public:
        raise AccessDeniedError()
    return card_set


async def list_set_cards(db: AsyncSession, card_set_id: uuid.UUID) -> list[Card]:
    """Cards of a set in card-index order."""
    result = await db.execute(
        select(Card)
        .where(Card.card_set_id == card_set_id)
        .order_by(Card.order_index, Card.created_at, Card.id)
    )
    return list(result.scalars().all())
