import asyncio
import logging
import random

from memvocab.config import settings
from memvocab.core.exceptions import SeedingError, StorageError
from memvocab.core.seed_data import DEFAULT_CARDS, DEFAULT_DECKS
from memvocab.schemas.card import CardCreate, CardResponse, DeckCreate, DeckWithAmount
from memvocab.services.card_service import CardRepository
from memvocab.services.deck_service import DeckRepository

logger = logging.getLogger(__name__)


class SeedService:
    """Writes the built-in decks and cards into an empty store, exactly once.

    The built-in data stands in for a remote source, so every call waits a
    random delay first; pass ``delay=(0, 0)`` to skip it.
    """

    def __init__(
        self,
        decks: DeckRepository,
        cards: CardRepository,
        delay: tuple[float, float] | None = None,
    ) -> None:
        self.decks = decks
        self.cards = cards
        self.delay = delay or (
            settings.SEED_DELAY_MIN_SECONDS,
            settings.SEED_DELAY_MAX_SECONDS,
        )
        self._lock = asyncio.Lock()

    async def _simulate_latency(self) -> None:
        low, high = self.delay
        if high <= 0:
            return
        await asyncio.sleep(random.uniform(max(low, 0), high))

    async def ensure_default_decks(self) -> list[DeckWithAmount]:
        """Insert the default decks if there are none; return all decks."""
        await self._simulate_latency()
        async with self._lock:
            try:
                if await self.decks.exists():
                    logger.info("Decks already present, nothing to seed")
                else:
                    defaults = [DeckCreate(**data) for data in DEFAULT_DECKS]
                    await self.decks.save_many(defaults)
                    logger.info("Seeded %d default decks", len(defaults))
                return await self.decks.get_all()
            except StorageError as exc:
                logger.exception("Seeding default decks failed")
                raise SeedingError("seed") from exc

    async def ensure_default_cards(self, deck_id: str) -> list[CardResponse]:
        """Insert the built-in cards of ``deck_id`` if it has none; return its cards."""
        await self._simulate_latency()
        async with self._lock:
            try:
                if await self.cards.exists(deck_id):
                    logger.info("Deck %s already has cards, nothing to seed", deck_id)
                else:
                    defaults = [CardCreate(**data) for data in DEFAULT_CARDS.get(deck_id, [])]
                    if defaults:
                        await self.cards.save_all(defaults, deck_id)
                        logger.info("Seeded %d default cards into deck %s", len(defaults), deck_id)
                return await self.cards.get_by_deck(deck_id)
            except StorageError as exc:
                logger.exception("Seeding cards of deck %s failed", deck_id)
                raise SeedingError("seed") from exc

    async def get_default_deck(self) -> DeckWithAmount:
        decks = await self.ensure_default_decks()
        if not decks:
            raise SeedingError("seed", "No default deck available")
        return decks[0]
