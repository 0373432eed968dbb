import logging
from collections.abc import Sequence

from memvocab.core.exceptions import MemVocabError
from memvocab.core.live_query import CARDS
from memvocab.schemas.card import CardCreate, CardResponse, CardUpdate
from memvocab.services.card_service import CardRepository
from memvocab.services.seed_service import SeedService
from memvocab.stores.base import StateStore
from memvocab.stores.decks_store import DecksStore

logger = logging.getLogger(__name__)


class CardsStore(StateStore):
    """Cards of one deck at a time; the deck defaults to the current deck."""

    def __init__(
        self,
        repository: CardRepository,
        seeder: SeedService,
        decks_store: DecksStore | None = None,
    ) -> None:
        super().__init__()
        self.repository = repository
        self.seeder = seeder
        self.decks_store = decks_store
        self.cards: list[CardResponse] = []
        self.deck_id: str | None = None

    def _target(self, deck_id: str | None) -> str | None:
        if deck_id is not None:
            return deck_id
        if self.decks_store is not None and self.decks_store.current_deck is not None:
            return self.decks_store.current_deck.id
        return self.deck_id

    async def _resolve_deck_id(self, deck_id: str | None) -> str:
        if deck_id is None and self.decks_store is not None:
            if self.decks_store.current_deck is None:
                # Waits for a decks initialization already in flight
                await self.decks_store.initialize()
        target = self._target(deck_id)
        if target is None:
            raise MemVocabError("No deck available for card initialization")
        return target

    async def _fetch(self, deck_id: str | None) -> list[CardResponse]:
        if deck_id is None:
            return await self.repository.get_all()
        return await self.repository.get_by_deck(deck_id)

    async def _reload(self) -> None:
        self.cards = await self._fetch(self.deck_id)

    async def initialize(self, deck_id: str | None = None) -> None:
        """Load the deck's cards, seeding the built-in ones into an empty deck.

        No-op once initialized; concurrent callers share the run in flight.
        Failures are recorded, not raised.
        """
        await self._initialize_once(lambda: self._seed(deck_id))

    async def _seed(self, deck_id: str | None) -> None:
        try:
            target = await self._resolve_deck_id(deck_id)
            cards = await self.seeder.ensure_default_cards(target)
        except MemVocabError as exc:
            logger.warning("Card initialization failed: %s", exc)
            self._fail(
                exc, "Failed to load initial cards",
                retry=lambda: self.initialize(deck_id),
            )
            return

        self.deck_id = target
        self.cards = cards
        self.has_initialized = True
        self._finish()

    # --- Reads ---

    async def load(self, deck_id: str | None = None) -> None:
        async def action() -> None:
            target = self._target(deck_id)
            self.cards = await self._fetch(target)
            self.deck_id = target
            self.has_initialized = True

        await self._run(action, "Failed to load cards from storage")

    async def search(self, query: str, deck_id: str | None = None) -> list[CardResponse]:
        return await self._run(
            lambda: self.repository.search(query, self._target(deck_id)),
            "Failed to search cards",
        )

    async def count(self, deck_id: str | None = None) -> int:
        try:
            return await self.repository.count(self._target(deck_id))
        except MemVocabError as exc:
            logger.warning("Failed to count stored cards: %s", exc)
            return 0

    # --- Writes ---

    async def save_cards(
        self, cards: Sequence[CardCreate], deck_id: str | None = None,
    ) -> None:
        """Replace the cards of the deck (all cards when no deck is known)."""
        async def action() -> None:
            target = self._target(deck_id)
            await self.repository.save_all(cards, target)
            self.deck_id = target
            self.has_initialized = True
            await self._reload()

        await self._run(action, "Failed to save cards")

    async def add_card(self, card: CardCreate) -> str:
        async def action() -> str:
            card_id = await self.repository.add(card)
            await self._reload()
            return card_id

        return await self._run(action, "Failed to add card")

    async def update_card(self, card_id: str, data: CardUpdate) -> int:
        async def action() -> int:
            affected = await self.repository.update(card_id, data)
            await self._reload()
            return affected

        return await self._run(action, "Failed to update card")

    async def delete_card(self, card_id: str) -> None:
        async def action() -> None:
            await self.repository.delete(card_id)
            await self._reload()

        await self._run(action, "Failed to delete card")

    async def clear_cards(self, deck_id: str | None = None) -> None:
        async def action() -> None:
            target = self._target(deck_id)
            if target is None:
                await self.repository.save_all([])
            else:
                await self.repository.delete_by_deck(target)
            self.cards = []
            self.has_initialized = False

        await self._run(action, "Failed to clear stored cards")

    def clear(self) -> None:
        self.cards = []

    # --- Live updates ---

    def watch(self, deck_id: str | None = None) -> None:
        """Keep ``cards`` in step with the deck's stored cards.

        Watching another deck re-binds the subscription; results still in
        flight for the previous deck are dropped.
        """
        target = self._target(deck_id)
        self.deck_id = target

        def query():
            return self._fetch(target)

        if self.is_watching:
            self._live.rebind(query)
        else:
            self._live = self.repository.live.subscribe(
                [CARDS], query, on_change=self._on_change,
            )

    def _on_change(self, cards: list[CardResponse]) -> None:
        self.cards = cards
