import json
import logging
from collections.abc import Sequence

from sqlalchemy import delete, func, insert, literal_column, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memvocab.core.exceptions import CardStorageError
from memvocab.core.live_query import CARDS, ChangeCallback, LiveQuery, LiveQueryRegistry
from memvocab.core.store import Store
from memvocab.models.card import Card
from memvocab.schemas.card import CardCreate, CardResponse, CardUpdate

logger = logging.getLogger(__name__)

SEARCH_FIELDS = (
    "source_word",
    "target_word",
    "source_language",
    "target_language",
    "pronunciation",
    "remark",
)
NULLABLE_FIELDS = frozenset({"remark"})


# --- Helpers ---

def _scoped(query, deck_id: str | None):
    if deck_id is not None:
        query = query.where(Card.deck_id == deck_id)
    return query


async def _select_cards(db: AsyncSession, deck_id: str | None = None) -> list[Card]:
    query = _scoped(select(Card), deck_id).order_by(literal_column("cards.rowid"))
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_cards(db: AsyncSession, deck_id: str | None = None) -> int:
    result = await db.execute(_scoped(select(func.count()).select_from(Card), deck_id))
    return result.scalar_one()


async def delete_cards(db: AsyncSession, deck_id: str | None = None) -> int:
    result = await db.execute(
        _scoped(delete(Card), deck_id).execution_options(synchronize_session=False)
    )
    return result.rowcount


async def replace_cards(
    db: AsyncSession, cards: Sequence[CardCreate], deck_id: str | None = None,
) -> int:
    """Delete the scoped cards and insert ``cards``; returns the number removed."""
    removed = await delete_cards(db, deck_id)
    if cards:
        await db.execute(insert(Card), [card.model_dump() for card in cards])
    return removed


def check_deck(cards: Sequence[CardCreate], deck_id: str) -> None:
    strays = [card.id for card in cards if card.deck_id != deck_id]
    if strays:
        raise ValueError(f"Cards {strays} do not belong to deck {deck_id!r}")


def patch_values(data, nullable: frozenset[str] = frozenset()) -> dict:
    """Fields explicitly set on a partial update; ``None`` only where allowed."""
    values = data.model_dump(exclude_unset=True)
    return {
        field: value for field, value in values.items()
        if value is not None or field in nullable
    }


def card_matches(card: CardResponse, needle: str) -> bool:
    for field in SEARCH_FIELDS:
        value = getattr(card, field) or ""
        if needle in value.casefold():
            return True
    return False


def _to_response(cards: Sequence[Card]) -> list[CardResponse]:
    return [CardResponse.model_validate(card) for card in cards]


class CardRepository:
    """Cards table access, optionally scoped to one deck."""

    def __init__(self, store: Store, live: LiveQueryRegistry) -> None:
        self.store = store
        self.live = live

    def _failure(self, operation: str) -> CardStorageError:
        logger.exception("Failed to %s cards in %s", operation, self.store.url)
        return CardStorageError(operation)

    # --- Reads ---

    async def get_by_deck(self, deck_id: str) -> list[CardResponse]:
        try:
            async with self.store.session() as db:
                return _to_response(await _select_cards(db, deck_id))
        except SQLAlchemyError as exc:
            raise self._failure("load") from exc

    async def get_all(self) -> list[CardResponse]:
        try:
            async with self.store.session() as db:
                return _to_response(await _select_cards(db))
        except SQLAlchemyError as exc:
            raise self._failure("load") from exc

    async def get_by_id(self, card_id: str) -> CardResponse | None:
        try:
            async with self.store.session() as db:
                card = await db.get(Card, card_id)
        except SQLAlchemyError as exc:
            raise self._failure("load") from exc
        return CardResponse.model_validate(card) if card is not None else None

    async def count(self, deck_id: str | None = None) -> int:
        try:
            async with self.store.session() as db:
                return await count_cards(db, deck_id)
        except SQLAlchemyError as exc:
            raise self._failure("count") from exc

    async def exists(self, deck_id: str | None = None) -> bool:
        return await self.count(deck_id) > 0

    async def search(self, query: str, deck_id: str | None = None) -> list[CardResponse]:
        """Case-insensitive substring search; a blank query returns every card."""
        try:
            async with self.store.session() as db:
                cards = _to_response(await _select_cards(db, deck_id))
        except SQLAlchemyError as exc:
            raise self._failure("search") from exc

        needle = query.strip().casefold()
        if not needle:
            return cards
        return [card for card in cards if card_matches(card, needle)]

    async def export_json(self, deck_id: str) -> str:
        """Cards of a deck as the JSON blob edited by the deck form."""
        cards = await self.get_by_deck(deck_id)
        payload = [
            card.model_dump(by_alias=True, exclude={"deck_id"}, exclude_none=True)
            for card in cards
        ]
        return json.dumps(payload, ensure_ascii=False, indent=2)

    # --- Writes ---

    async def save_all(
        self, cards: Sequence[CardCreate], deck_id: str | None = None,
    ) -> None:
        """Replace the cards of ``deck_id`` (or of every deck) in one transaction.

        Readers keep seeing the previous cards until the new ones are
        committed, never an empty intermediate state.
        """
        if deck_id is not None:
            check_deck(cards, deck_id)

        try:
            async with self.store.transaction() as db:
                removed = await replace_cards(db, cards, deck_id)
        except SQLAlchemyError as exc:
            raise self._failure("save") from exc

        logger.info(
            "Replaced %d cards with %d (deck=%s)", removed, len(cards), deck_id or "*",
        )
        self.live.notify(CARDS)

    async def add(self, card: CardCreate) -> str:
        try:
            async with self.store.transaction() as db:
                db.add(Card(**card.model_dump()))
        except SQLAlchemyError as exc:
            raise self._failure("add") from exc
        self.live.notify(CARDS)
        return card.id

    async def update(self, card_id: str, data: CardUpdate) -> int:
        values = patch_values(data, NULLABLE_FIELDS)
        if not values:
            return 0
        try:
            async with self.store.transaction() as db:
                result = await db.execute(
                    update(Card)
                    .where(Card.id == card_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            raise self._failure("update") from exc

        if result.rowcount:
            self.live.notify(CARDS)
        return result.rowcount

    async def delete(self, card_id: str) -> None:
        try:
            async with self.store.transaction() as db:
                await db.execute(
                    delete(Card)
                    .where(Card.id == card_id)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            raise self._failure("delete") from exc
        self.live.notify(CARDS)

    async def delete_by_deck(self, deck_id: str) -> int:
        try:
            async with self.store.transaction() as db:
                removed = await delete_cards(db, deck_id)
        except SQLAlchemyError as exc:
            raise self._failure("delete") from exc
        self.live.notify(CARDS)
        return removed

    # --- Live queries ---

    def watch_by_deck(
        self, deck_id: str, on_change: ChangeCallback | None = None,
    ) -> LiveQuery:
        return self.live.subscribe([CARDS], lambda: self.get_by_deck(deck_id), on_change)

    def watch_search(
        self,
        query: str,
        deck_id: str | None = None,
        on_change: ChangeCallback | None = None,
    ) -> LiveQuery:
        return self.live.subscribe(
            [CARDS], lambda: self.search(query, deck_id), on_change,
        )

    def watch_count(
        self, deck_id: str | None = None, on_change: ChangeCallback | None = None,
    ) -> LiveQuery:
        return self.live.subscribe([CARDS], lambda: self.count(deck_id), on_change)
