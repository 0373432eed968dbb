"""Tests for seeding the built-in decks and cards."""

import asyncio

import pytest

from memvocab.core.exceptions import DeckStorageError, SeedingError
from memvocab.core.seed_data import DEFAULT_CARDS, DEFAULT_DECK_ID, DEFAULT_DECKS
from memvocab.services.seed_service import SeedService


class TestDefaultDecks:
    async def test_seeds_empty_store(self, seeder, deck_repo):
        decks = await seeder.ensure_default_decks()

        assert [deck.id for deck in decks] == [deck["id"] for deck in DEFAULT_DECKS]
        assert decks[0].topic == "Polish Common Phrases"
        assert await deck_repo.count() == len(DEFAULT_DECKS)

    async def test_is_idempotent(self, seeder, deck_repo):
        await seeder.ensure_default_decks()
        await seeder.ensure_default_decks()
        assert await deck_repo.count() == len(DEFAULT_DECKS)

    async def test_concurrent_calls_seed_once(self, seeder, deck_repo):
        results = await asyncio.gather(
            seeder.ensure_default_decks(),
            seeder.ensure_default_decks(),
            seeder.ensure_default_decks(),
        )
        assert await deck_repo.count() == len(DEFAULT_DECKS)
        assert all(len(decks) == len(DEFAULT_DECKS) for decks in results)

    async def test_existing_decks_are_left_alone(self, seeder, deck_repo, make_deck):
        await deck_repo.save(make_deck("mine"))

        decks = await seeder.ensure_default_decks()

        assert [deck.id for deck in decks] == ["mine"]

    async def test_get_default_deck(self, seeder):
        deck = await seeder.get_default_deck()
        assert deck.id == DEFAULT_DECK_ID

    async def test_storage_failure(self, seeder, deck_repo, monkeypatch):
        async def broken():
            raise DeckStorageError("count")

        monkeypatch.setattr(deck_repo, "exists", broken)

        with pytest.raises(SeedingError, match="Failed to seed default data to local storage") as info:
            await seeder.ensure_default_decks()
        assert isinstance(info.value.__cause__, DeckStorageError)


class TestDefaultCards:
    async def test_seeds_default_deck(self, seeder, card_repo):
        cards = await seeder.ensure_default_cards(DEFAULT_DECK_ID)

        assert len(cards) == len(DEFAULT_CARDS[DEFAULT_DECK_ID])
        assert cards[0].source_word == "Dzień dobry"
        assert all(card.deck_id == DEFAULT_DECK_ID for card in cards)

    async def test_seeds_once(self, seeder, card_repo):
        await asyncio.gather(
            seeder.ensure_default_cards(DEFAULT_DECK_ID),
            seeder.ensure_default_cards(DEFAULT_DECK_ID),
        )
        assert await card_repo.count(DEFAULT_DECK_ID) == len(DEFAULT_CARDS[DEFAULT_DECK_ID])

    async def test_deck_with_cards_is_left_alone(self, seeder, card_repo, make_card):
        await card_repo.save_all([make_card("c1", deck_id=DEFAULT_DECK_ID)], DEFAULT_DECK_ID)

        cards = await seeder.ensure_default_cards(DEFAULT_DECK_ID)

        assert [card.id for card in cards] == ["c1"]

    async def test_unknown_deck_gets_nothing(self, seeder):
        assert await seeder.ensure_default_cards("other") == []


class TestDelay:
    async def test_waits_before_seeding(self, deck_repo, card_repo, monkeypatch):
        waits = []

        async def fake_sleep(seconds):
            waits.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        seeder = SeedService(deck_repo, card_repo, delay=(0.5, 1.5))

        await seeder.ensure_default_decks()

        assert len(waits) == 1
        assert 0.5 <= waits[0] <= 1.5

    async def test_zero_delay_skips_waiting(self, deck_repo, card_repo, monkeypatch):
        waits = []

        async def fake_sleep(seconds):
            waits.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        seeder = SeedService(deck_repo, card_repo, delay=(0, 0))

        await seeder.ensure_default_decks()

        assert waits == []
