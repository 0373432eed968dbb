import logging
from collections.abc import Sequence

from sqlalchemy import delete, func, insert, literal_column, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memvocab.core.exceptions import CardStorageError, DeckStorageError
from memvocab.core.live_query import (
    CARDS,
    DECKS,
    ChangeCallback,
    LiveQuery,
    LiveQueryRegistry,
)
from memvocab.core.store import Store
from memvocab.models.card import Deck
from memvocab.schemas.card import (
    CardCreate,
    DeckCreate,
    DeckResponse,
    DeckUpdate,
    DeckWithAmount,
)
from memvocab.services.card_service import (
    CardRepository,
    check_deck,
    delete_cards,
    patch_values,
    replace_cards,
)

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("topic", "description", "language_from", "language_to")
NULLABLE_FIELDS = frozenset({"description", "prompt_to_ai_agent"})


# --- Helpers ---

async def _select_decks(db: AsyncSession) -> list[Deck]:
    result = await db.execute(select(Deck).order_by(literal_column("decks.rowid")))
    return list(result.scalars().all())


async def count_decks(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Deck))
    return result.scalar_one()


def deck_matches(deck: DeckResponse, needle: str) -> bool:
    for field in SEARCH_FIELDS:
        value = getattr(deck, field) or ""
        if needle in value.casefold():
            return True
    return False


class DeckRepository:
    """Decks table access; every deck read carries its live card amount."""

    def __init__(
        self, store: Store, live: LiveQueryRegistry, cards: CardRepository,
    ) -> None:
        self.store = store
        self.live = live
        self.cards = cards

    def _failure(self, operation: str) -> DeckStorageError:
        logger.exception("Failed to %s decks in %s", operation, self.store.url)
        return DeckStorageError(operation)

    async def _with_amount(self, decks: Sequence[Deck]) -> list[DeckWithAmount]:
        # One count per deck; fine for hundreds of decks
        result = []
        for deck in decks:
            try:
                amount = await self.cards.count(deck.id)
            except CardStorageError as exc:
                raise self._failure("load") from exc
            result.append(
                DeckWithAmount(
                    **DeckResponse.model_validate(deck).model_dump(),
                    amount=amount,
                )
            )
        return result

    async def _load(self) -> list[Deck]:
        try:
            async with self.store.session() as db:
                return await _select_decks(db)
        except SQLAlchemyError as exc:
            raise self._failure("load") from exc

    # --- Reads ---

    async def get_all(self) -> list[DeckWithAmount]:
        return await self._with_amount(await self._load())

    async def get_by_id(self, deck_id: str) -> DeckWithAmount | None:
        try:
            async with self.store.session() as db:
                deck = await db.get(Deck, deck_id)
        except SQLAlchemyError as exc:
            raise self._failure("load") from exc
        if deck is None:
            return None
        return (await self._with_amount([deck]))[0]

    async def search(self, query: str) -> list[DeckWithAmount]:
        needle = query.strip().casefold()
        try:
            async with self.store.session() as db:
                decks = await _select_decks(db)
        except SQLAlchemyError as exc:
            raise self._failure("search") from exc

        if needle:
            decks = [
                deck for deck in decks
                if deck_matches(DeckResponse.model_validate(deck), needle)
            ]
        return await self._with_amount(decks)

    async def count(self) -> int:
        try:
            async with self.store.session() as db:
                return await count_decks(db)
        except SQLAlchemyError as exc:
            raise self._failure("count") from exc

    async def exists(self) -> bool:
        return await self.count() > 0

    # --- Writes ---

    async def save(self, deck: DeckCreate) -> str:
        try:
            async with self.store.transaction() as db:
                db.add(Deck(**deck.model_dump()))
        except SQLAlchemyError as exc:
            raise self._failure("save") from exc
        self.live.notify(DECKS)
        return deck.id

    async def save_many(self, decks: Sequence[DeckCreate]) -> None:
        if not decks:
            return
        try:
            async with self.store.transaction() as db:
                await db.execute(insert(Deck), [deck.model_dump() for deck in decks])
        except SQLAlchemyError as exc:
            raise self._failure("save") from exc
        self.live.notify(DECKS)

    async def update(self, deck_id: str, data: DeckUpdate) -> int:
        values = patch_values(data, NULLABLE_FIELDS)
        if not values:
            return 0
        try:
            async with self.store.transaction() as db:
                result = await db.execute(
                    update(Deck)
                    .where(Deck.id == deck_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            raise self._failure("update") from exc

        if result.rowcount:
            self.live.notify(DECKS)
        return result.rowcount

    async def save_with_cards(self, deck: DeckCreate, cards: Sequence[CardCreate]) -> str:
        """Insert the deck and replace its cards in one transaction."""
        check_deck(cards, deck.id)
        try:
            async with self.store.transaction() as db:
                db.add(Deck(**deck.model_dump()))
                await db.flush()
                await replace_cards(db, cards, deck.id)
        except SQLAlchemyError as exc:
            raise self._failure("save") from exc

        logger.info("Created deck %s with %d cards", deck.id, len(cards))
        self.live.notify(DECKS, CARDS)
        return deck.id

    async def update_with_cards(
        self, deck_id: str, data: DeckUpdate, cards: Sequence[CardCreate],
    ) -> int:
        """Patch the deck and replace its cards in one transaction.

        Returns the number of decks updated; an unknown deck changes nothing.
        """
        check_deck(cards, deck_id)
        values = patch_values(data, NULLABLE_FIELDS)
        try:
            async with self.store.transaction() as db:
                if await db.get(Deck, deck_id) is None:
                    return 0
                if values:
                    await db.execute(
                        update(Deck)
                        .where(Deck.id == deck_id)
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )
                await replace_cards(db, cards, deck_id)
        except SQLAlchemyError as exc:
            raise self._failure("save") from exc

        self.live.notify(DECKS, CARDS)
        return 1

    async def delete(self, deck_id: str) -> None:
        """Remove the deck only; its cards stay behind (see delete_with_cards)."""
        try:
            async with self.store.transaction() as db:
                await db.execute(
                    delete(Deck)
                    .where(Deck.id == deck_id)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            raise self._failure("delete") from exc
        self.live.notify(DECKS)

    async def delete_with_cards(self, deck_id: str) -> int:
        """Remove the deck and its cards atomically; returns the cards removed."""
        try:
            async with self.store.transaction() as db:
                removed = await delete_cards(db, deck_id)
                await db.execute(
                    delete(Deck)
                    .where(Deck.id == deck_id)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            raise self._failure("delete") from exc

        logger.info("Deleted deck %s with %d cards", deck_id, removed)
        self.live.notify(DECKS, CARDS)
        return removed

    # --- Live queries ---

    def watch_all(self, on_change: ChangeCallback | None = None) -> LiveQuery:
        return self.live.subscribe([DECKS, CARDS], self.get_all, on_change)

    def watch_search(
        self, query: str, on_change: ChangeCallback | None = None,
    ) -> LiveQuery:
        return self.live.subscribe([DECKS, CARDS], lambda: self.search(query), on_change)
