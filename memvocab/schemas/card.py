from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from memvocab.models.card import generate_id

# Field names are snake_case in Python and camelCase in the JSON blobs the
# editing flow exchanges; both spellings are accepted on input.
CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


# --- Deck schemas ---

class DeckCreate(BaseModel):
    id: str = Field(default_factory=generate_id, min_length=1, max_length=64)
    topic: str = Field(min_length=1, max_length=255)
    description: str | None = None
    language_from: str = Field(min_length=1, max_length=64)
    language_to: str = Field(min_length=1, max_length=64)
    prompt_to_ai_agent: str | None = None

    model_config = CAMEL_CONFIG


class DeckUpdate(BaseModel):
    topic: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    language_from: str | None = Field(default=None, min_length=1, max_length=64)
    language_to: str | None = Field(default=None, min_length=1, max_length=64)
    prompt_to_ai_agent: str | None = None

    model_config = CAMEL_CONFIG


class DeckResponse(BaseModel):
    id: str
    topic: str
    description: str | None = None
    language_from: str
    language_to: str
    prompt_to_ai_agent: str | None = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}


class DeckWithAmount(DeckResponse):
    amount: int = 0


# --- Card schemas ---

class CardCreate(BaseModel):
    id: str = Field(default_factory=generate_id, min_length=1, max_length=64)
    deck_id: str = Field(min_length=1, max_length=64)
    source_language: str
    target_language: str
    source_word: str
    target_word: str
    pronunciation: str = ""
    remark: str | None = None

    model_config = CAMEL_CONFIG


class CardUpdate(BaseModel):
    deck_id: str | None = Field(default=None, min_length=1, max_length=64)
    source_language: str | None = None
    target_language: str | None = None
    source_word: str | None = None
    target_word: str | None = None
    pronunciation: str | None = None
    remark: str | None = None

    model_config = CAMEL_CONFIG


class CardResponse(BaseModel):
    id: str
    deck_id: str
    source_language: str
    target_language: str
    source_word: str
    target_word: str
    pronunciation: str
    remark: str | None = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}
