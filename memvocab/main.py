import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from memvocab.config import Settings, settings as default_settings
from memvocab.core.live_query import ExternalChangeWatcher, LiveQueryRegistry
from memvocab.core.store import Store
from memvocab.services.card_service import CardRepository
from memvocab.services.deck_service import DeckRepository
from memvocab.services.seed_service import SeedService
from memvocab.stores.cards_store import CardsStore
from memvocab.stores.decks_store import DecksStore

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or default_settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class AppState:
    """Everything the UI layer talks to, built once per process."""

    store: Store
    live: LiveQueryRegistry
    cards: CardRepository
    decks: DeckRepository
    seeder: SeedService
    decks_store: DecksStore
    cards_store: CardsStore
    watcher: ExternalChangeWatcher | None = None


def build_app_state(settings: Settings | None = None) -> AppState:
    settings = settings or default_settings
    store = Store(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    live = LiveQueryRegistry()
    cards = CardRepository(store, live)
    decks = DeckRepository(store, live, cards)
    seeder = SeedService(
        decks,
        cards,
        delay=(settings.SEED_DELAY_MIN_SECONDS, settings.SEED_DELAY_MAX_SECONDS),
    )
    decks_store = DecksStore(decks, cards, seeder)
    cards_store = CardsStore(cards, seeder, decks_store)

    watcher = None
    if settings.LIVE_QUERY_POLL_INTERVAL_SECONDS > 0:
        watcher = ExternalChangeWatcher(
            store, live, interval=settings.LIVE_QUERY_POLL_INTERVAL_SECONDS,
        )

    return AppState(
        store=store,
        live=live,
        cards=cards,
        decks=decks,
        seeder=seeder,
        decks_store=decks_store,
        cards_store=cards_store,
        watcher=watcher,
    )


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Open the local store, yield the wired application, and shut it down."""
    state = build_app_state(settings)
    await state.store.open()
    if state.watcher is not None:
        await state.watcher.start()
    logger.info("%s ready", (settings or default_settings).APP_NAME)
    try:
        yield state
    finally:
        if state.watcher is not None:
            await state.watcher.stop()
        state.decks_store.unwatch()
        state.cards_store.unwatch()
        state.live.close()
        await state.live.flush()
        await state.store.close()
