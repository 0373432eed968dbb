import json

from pydantic import (
    BaseModel,
    Field,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from memvocab.ai.prompts import build_cards_prompt
from memvocab.core.exceptions import CardImportError
from memvocab.core.languages import is_supported
from memvocab.schemas.card import CAMEL_CONFIG, CardCreate, DeckCreate, DeckUpdate


# --- Cards JSON blob ---

class CardImport(BaseModel):
    """One item of the cards JSON blob; ``deckId`` is optional and overwritten."""

    id: StrictStr = Field(min_length=1, max_length=64)
    deck_id: StrictStr | None = None
    source_language: StrictStr
    target_language: StrictStr
    source_word: StrictStr
    target_word: StrictStr
    pronunciation: StrictStr
    remark: StrictStr | None = None

    model_config = CAMEL_CONFIG


_CARD_LIST = TypeAdapter(list[CardImport])


def parse_cards_json(raw: str, deck_id: str) -> list[CardCreate]:
    """Validate the cards JSON blob and stamp every card with ``deck_id``."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CardImportError("Invalid JSON format") from exc
    if not isinstance(data, list):
        raise CardImportError("Cards JSON must be an array")

    try:
        items = _CARD_LIST.validate_python(data)
    except ValidationError as exc:
        raise CardImportError("Cards must be an array of valid card objects") from exc

    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise CardImportError("Card ids must be unique")

    return [
        CardCreate(**item.model_dump(exclude={"deck_id"}), deck_id=deck_id)
        for item in items
    ]


# --- Deck editing form ---

def _supported_language(value: str) -> str:
    if not is_supported(value):
        raise ValueError(f"Invalid language: {value!r}")
    return value.strip().capitalize()


class DeckForm(BaseModel):
    topic: str = Field(min_length=1, max_length=255)
    description: str | None = None
    language_from: str
    language_to: str
    prompt_to_ai_agent: str | None = None
    cards: str = Field(min_length=1)

    model_config = {**CAMEL_CONFIG, "str_strip_whitespace": True}

    @field_validator("language_from", "language_to")
    @classmethod
    def validate_language(cls, value: str) -> str:
        return _supported_language(value)

    @field_validator("cards")
    @classmethod
    def validate_cards(cls, value: str) -> str:
        try:
            parse_cards_json(value, deck_id="form")
        except CardImportError as exc:
            raise ValueError(str(exc)) from exc
        return value

    def to_deck_create(self, deck_id: str | None = None) -> DeckCreate:
        """New deck from the form; a missing prompt gets the default card prompt."""
        data = self.model_dump(exclude={"cards"})
        if not data["prompt_to_ai_agent"]:
            data["prompt_to_ai_agent"] = build_cards_prompt(
                self.topic, self.language_from, self.language_to, self.description,
            )
        if deck_id is not None:
            data["id"] = deck_id
        return DeckCreate(**data)

    def to_deck_update(self) -> DeckUpdate:
        return DeckUpdate(**self.model_dump(exclude={"cards"}))

    def to_cards(self, deck_id: str) -> list[CardCreate]:
        return parse_cards_json(self.cards, deck_id)
