import logging

from memvocab.core.exceptions import MemVocabError
from memvocab.schemas.card import DeckCreate, DeckUpdate, DeckWithAmount
from memvocab.schemas.forms import DeckForm
from memvocab.services.card_service import CardRepository
from memvocab.services.deck_service import DeckRepository
from memvocab.services.seed_service import SeedService
from memvocab.stores.base import StateStore

logger = logging.getLogger(__name__)


class DecksStore(StateStore):
    def __init__(
        self,
        deck_repository: DeckRepository,
        card_repository: CardRepository,
        seeder: SeedService,
    ) -> None:
        super().__init__()
        self.deck_repository = deck_repository
        self.card_repository = card_repository
        self.seeder = seeder
        self.decks: list[DeckWithAmount] = []
        self.current_deck: DeckWithAmount | None = None

    async def initialize(self) -> None:
        """Seed the default decks on first use and pick the current deck.

        Calls after success do nothing, and a call arriving while a run is
        in flight waits for that run. Seeding failures do not raise: the
        store falls back to whatever decks exist and keeps a retryable error.
        """
        await self._initialize_once(self._seed)

    async def _seed(self) -> None:
        try:
            decks = await self.seeder.ensure_default_decks()
        except MemVocabError as exc:
            logger.warning("Deck initialization failed: %s", exc)
            self._fail(exc, "Failed to initialize decks", retry=self.initialize)
            self.decks = await self._fallback_decks()
            return

        self._set_decks(decks)
        if self.current_deck is None and decks:
            self.current_deck = decks[0]
        self.has_initialized = True
        self._finish()

    async def _fallback_decks(self) -> list[DeckWithAmount]:
        try:
            return await self.deck_repository.get_all()
        except MemVocabError:
            logger.warning("Decks unavailable, continuing with an empty list")
            return []

    def _set_decks(self, decks: list[DeckWithAmount]) -> None:
        self.decks = decks
        if self.current_deck is not None:
            # Keep the current deck in step with the list (amount, edits, removal)
            self.current_deck = next(
                (deck for deck in decks if deck.id == self.current_deck.id), None,
            )

    async def _reload(self) -> None:
        self._set_decks(await self.deck_repository.get_all())

    # --- Reads ---

    async def load_all(self) -> None:
        await self._run(self._reload, "Failed to fetch decks", reraise=False)

    async def get_deck_by_id(self, deck_id: str) -> DeckWithAmount | None:
        try:
            return await self.deck_repository.get_by_id(deck_id)
        except MemVocabError as exc:
            logger.warning("Failed to look up deck %s: %s", deck_id, exc)
            return None

    async def search_decks(self, query: str) -> list[DeckWithAmount]:
        return await self._run(
            lambda: self.deck_repository.search(query),
            "Failed to search decks",
            reraise=False,
            default=[],
        )

    def set_current_deck(self, deck: DeckWithAmount | None) -> None:
        self.current_deck = deck

    # --- Writes ---

    async def create_deck(self, deck: DeckCreate) -> str:
        async def action() -> str:
            deck_id = await self.deck_repository.save(deck)
            await self._reload()
            return deck_id

        return await self._run(action, "Failed to create deck")

    async def update_deck(self, deck_id: str, data: DeckUpdate) -> None:
        async def action() -> None:
            await self.deck_repository.update(deck_id, data)
            await self._reload()

        await self._run(action, "Failed to update deck")

    async def delete_deck(self, deck_id: str) -> None:
        """Delete the deck together with its cards."""
        async def action() -> None:
            await self.deck_repository.delete_with_cards(deck_id)
            await self._reload()

        await self._run(action, "Failed to delete deck")

    async def save_deck_form(self, form: DeckForm, deck_id: str | None = None) -> str:
        """Create or edit a deck from the editing form, replacing its cards.

        The deck and its cards are written in one transaction, so a failed
        save leaves nothing behind and a retry starts from a clean slate.
        """
        new_deck = form.to_deck_create() if deck_id is None else None

        async def action() -> str:
            if new_deck is not None:
                target = new_deck.id
                await self.deck_repository.save_with_cards(new_deck, form.to_cards(target))
            else:
                target = deck_id
                await self.deck_repository.update_with_cards(
                    target, form.to_deck_update(), form.to_cards(target),
                )
            await self._reload()
            return target

        return await self._run(action, "Failed to save deck")

    # --- Live updates ---

    def watch(self) -> None:
        """Keep ``decks`` (and their amounts) current after any write."""
        if self.is_watching:
            return
        self._live = self.deck_repository.watch_all(on_change=self._on_change)

    def _on_change(self, decks: list[DeckWithAmount]) -> None:
        self._set_decks(decks)
