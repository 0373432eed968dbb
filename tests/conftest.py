import pytest

from memvocab.core.live_query import LiveQueryRegistry
from memvocab.core.store import Store
from memvocab.schemas.card import CardCreate, DeckCreate
from memvocab.services.card_service import CardRepository
from memvocab.services.deck_service import DeckRepository
from memvocab.services.seed_service import SeedService
from memvocab.stores.cards_store import CardsStore
from memvocab.stores.decks_store import DecksStore


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'memvocab.db'}"


@pytest.fixture
async def store(db_url):
    store = Store(db_url)
    await store.open()
    yield store
    await store.close()


@pytest.fixture
async def live():
    registry = LiveQueryRegistry()
    yield registry
    registry.close()
    await registry.flush()


@pytest.fixture
def card_repo(store, live):
    return CardRepository(store, live)


@pytest.fixture
def deck_repo(store, live, card_repo):
    return DeckRepository(store, live, card_repo)


@pytest.fixture
def seeder(deck_repo, card_repo):
    return SeedService(deck_repo, card_repo, delay=(0, 0))


@pytest.fixture
def decks_store(deck_repo, card_repo, seeder):
    return DecksStore(deck_repo, card_repo, seeder)


@pytest.fixture
def cards_store(card_repo, seeder, decks_store):
    return CardsStore(card_repo, seeder, decks_store)


@pytest.fixture
def make_deck():
    def factory(deck_id="d1", **overrides) -> DeckCreate:
        data = {
            "id": deck_id,
            "topic": "Food",
            "description": "Things to eat",
            "language_from": "Polish",
            "language_to": "English",
        }
        data.update(overrides)
        return DeckCreate(**data)

    return factory


@pytest.fixture
def make_card():
    def factory(card_id, deck_id="d1", **overrides) -> CardCreate:
        data = {
            "id": card_id,
            "deck_id": deck_id,
            "source_language": "Polish",
            "target_language": "English",
            "source_word": f"word-{card_id}",
            "target_word": f"translation-{card_id}",
            "pronunciation": "",
        }
        data.update(overrides)
        return CardCreate(**data)

    return factory
