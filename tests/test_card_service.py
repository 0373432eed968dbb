"""Tests for the cards repository."""

import asyncio
import json

import pytest
from sqlalchemy.exc import OperationalError

from memvocab.core.exceptions import CardStorageError
from memvocab.schemas.card import CardUpdate
from memvocab.services import card_service


class TestRoundTrip:
    async def test_save_and_load(self, card_repo, make_card):
        cards = [
            make_card("c1", remark="a note"),
            make_card("c2", pronunciation="/x/"),
        ]
        await card_repo.save_all(cards, "d1")

        loaded = await card_repo.get_by_deck("d1")
        assert [card.model_dump() for card in loaded] == [card.model_dump() for card in cards]

    async def test_missing_remark_stays_none(self, card_repo, make_card):
        await card_repo.add(make_card("c1"))
        card = await card_repo.get_by_id("c1")
        assert card.remark is None
        assert card.pronunciation == ""

    async def test_get_by_id_unknown(self, card_repo):
        assert await card_repo.get_by_id("nope") is None

    async def test_insertion_order_is_kept(self, card_repo, make_card):
        ids = ["c9", "c1", "c5"]
        await card_repo.save_all([make_card(card_id) for card_id in ids], "d1")
        assert [card.id for card in await card_repo.get_all()] == ids


class TestSaveAll:
    async def test_replaces_only_the_given_deck(self, card_repo, make_card):
        await card_repo.save_all([make_card("a1"), make_card("a2")], "d1")
        await card_repo.save_all([make_card("b1", deck_id="d2")], "d2")

        await card_repo.save_all([make_card("a3")], "d1")

        assert [card.id for card in await card_repo.get_by_deck("d1")] == ["a3"]
        assert [card.id for card in await card_repo.get_by_deck("d2")] == ["b1"]

    async def test_without_deck_replaces_everything(self, card_repo, make_card):
        await card_repo.save_all([make_card("a1")], "d1")
        await card_repo.save_all([make_card("b1", deck_id="d2")], "d2")

        await card_repo.save_all([make_card("x1", deck_id="d3")])

        assert [card.id for card in await card_repo.get_all()] == ["x1"]

    async def test_empty_list_clears_the_deck(self, card_repo, make_card):
        await card_repo.save_all([make_card("a1")], "d1")
        await card_repo.save_all([], "d1")
        assert await card_repo.get_by_deck("d1") == []

    async def test_cards_of_another_deck_are_rejected(self, card_repo, make_card):
        await card_repo.save_all([make_card("a1")], "d1")

        with pytest.raises(ValueError, match="do not belong"):
            await card_repo.save_all([make_card("a2"), make_card("b1", deck_id="d2")], "d1")

        assert [card.id for card in await card_repo.get_by_deck("d1")] == ["a1"]

    async def test_failed_replace_keeps_previous_cards(self, card_repo, make_card):
        await card_repo.save_all([make_card("a1"), make_card("a2")], "d1")

        # Duplicate primary key fails the insert after the delete ran
        with pytest.raises(CardStorageError, match="Failed to save cards to local storage"):
            await card_repo.save_all([make_card("a3"), make_card("a3")], "d1")

        assert [card.id for card in await card_repo.get_by_deck("d1")] == ["a1", "a2"]

    async def test_readers_never_see_an_empty_deck(self, card_repo, make_card):
        await card_repo.save_all([make_card(f"c0-{i}") for i in range(3)], "d1")
        observed = []

        async def reader():
            for _ in range(30):
                observed.append(len(await card_repo.get_by_deck("d1")))
                await asyncio.sleep(0)

        async def writer():
            for round_ in range(1, 6):
                await card_repo.save_all(
                    [make_card(f"c{round_}-{i}") for i in range(3)], "d1",
                )

        await asyncio.gather(reader(), writer())

        assert observed
        assert set(observed) == {3}


class TestUpdateDelete:
    async def test_partial_update(self, card_repo, make_card):
        await card_repo.add(make_card("c1", remark="old"))

        affected = await card_repo.update("c1", CardUpdate(target_word="bread"))

        card = await card_repo.get_by_id("c1")
        assert affected == 1
        assert card.target_word == "bread"
        assert card.source_word == "word-c1"
        assert card.remark == "old"

    async def test_remark_can_be_cleared(self, card_repo, make_card):
        await card_repo.add(make_card("c1", remark="old"))
        await card_repo.update("c1", CardUpdate(remark=None))
        assert (await card_repo.get_by_id("c1")).remark is None

    async def test_update_unknown_card(self, card_repo):
        assert await card_repo.update("nope", CardUpdate(target_word="x")) == 0

    async def test_empty_update(self, card_repo, make_card):
        await card_repo.add(make_card("c1"))
        assert await card_repo.update("c1", CardUpdate()) == 0

    async def test_delete(self, card_repo, make_card):
        await card_repo.save_all([make_card("c1"), make_card("c2")], "d1")
        await card_repo.delete("c1")
        assert [card.id for card in await card_repo.get_by_deck("d1")] == ["c2"]

    async def test_delete_by_deck(self, card_repo, make_card):
        await card_repo.save_all([make_card("a1"), make_card("a2")], "d1")
        await card_repo.save_all([make_card("b1", deck_id="d2")], "d2")

        assert await card_repo.delete_by_deck("d1") == 2
        assert await card_repo.count() == 1


class TestCount:
    async def test_count_and_exists(self, card_repo, make_card):
        assert await card_repo.count() == 0
        assert not await card_repo.exists()

        await card_repo.save_all([make_card("a1"), make_card("a2")], "d1")
        await card_repo.save_all([make_card("b1", deck_id="d2")], "d2")

        assert await card_repo.count() == 3
        assert await card_repo.count("d1") == 2
        assert await card_repo.exists("d2")
        assert not await card_repo.exists("d3")


class TestSearch:
    @pytest.fixture
    async def polish_cards(self, card_repo, make_card):
        await card_repo.save_all(
            [
                make_card("c1", source_word="Dzień dobry", target_word="Good morning"),
                make_card("c2", source_word="Dobranoc", target_word="Good night",
                          remark="Said before sleep"),
                make_card("c3", source_word="Tak", target_word="Yes"),
            ],
            "d1",
        )
        await card_repo.save_all(
            [make_card("x1", deck_id="d2", source_word="Dzień", target_word="Day")],
            "d2",
        )

    async def test_case_insensitive_substring(self, card_repo, polish_cards):
        found = await card_repo.search("dzień", "d1")
        assert [card.id for card in found] == ["c1"]

    async def test_matches_target_word_and_remark(self, card_repo, polish_cards):
        assert [card.id for card in await card_repo.search("GOOD", "d1")] == ["c1", "c2"]
        assert [card.id for card in await card_repo.search("sleep", "d1")] == ["c2"]

    async def test_no_match(self, card_repo, polish_cards):
        assert await card_repo.search("xyz123", "d1") == []

    async def test_blank_query_returns_deck(self, card_repo, polish_cards):
        assert len(await card_repo.search("   ", "d1")) == 3

    async def test_without_deck_searches_all(self, card_repo, polish_cards):
        found = await card_repo.search("dzień")
        assert {card.id for card in found} == {"c1", "x1"}

    async def test_none_remark_is_skipped(self, card_repo, polish_cards):
        # c1 and c3 have no remark and must not break matching
        assert [card.id for card in await card_repo.search("yes", "d1")] == ["c3"]


class TestExport:
    async def test_export_json(self, card_repo, make_card):
        await card_repo.save_all(
            [make_card("c1", source_word="Cześć", remark="informal"), make_card("c2")],
            "d1",
        )

        payload = json.loads(await card_repo.export_json("d1"))

        assert payload[0] == {
            "id": "c1",
            "sourceLanguage": "Polish",
            "targetLanguage": "English",
            "sourceWord": "Cześć",
            "targetWord": "translation-c1",
            "pronunciation": "",
            "remark": "informal",
        }
        assert "remark" not in payload[1]

    async def test_export_keeps_unicode(self, card_repo, make_card):
        await card_repo.add(make_card("c1", source_word="Dziękuję"))
        assert "Dziękuję" in await card_repo.export_json("d1")


class TestErrors:
    async def test_driver_errors_are_wrapped(self, card_repo, monkeypatch):
        async def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(card_service, "_select_cards", broken)

        with pytest.raises(CardStorageError, match="Failed to load cards from local storage") as info:
            await card_repo.get_by_deck("d1")
        assert isinstance(info.value.__cause__, OperationalError)
        assert info.value.operation == "load"

    async def test_search_error_message(self, card_repo, monkeypatch):
        async def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(card_service, "_select_cards", broken)

        with pytest.raises(CardStorageError, match="Failed to search cards in local storage"):
            await card_repo.search("x")
