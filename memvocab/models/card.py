import uuid

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from memvocab.database import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class Deck(Base):
    __tablename__ = "decks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    language_from: Mapped[str] = mapped_column(String(64), nullable=False)
    language_to: Mapped[str] = mapped_column(String(64), nullable=False)
    prompt_to_ai_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Card count is derived from the cards table at read time, never stored
    __table_args__ = (
        Index("ix_decks_topic", "topic"),
        Index("ix_decks_description", "description"),
        Index("ix_decks_language_from", "language_from"),
        Index("ix_decks_language_to", "language_to"),
    )


class Card(Base):
    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    # No foreign key: orphaned cards are possible when a deck is removed alone
    deck_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source_language: Mapped[str] = mapped_column(String(64), nullable=False)
    target_language: Mapped[str] = mapped_column(String(64), nullable=False)
    source_word: Mapped[str] = mapped_column(Text, nullable=False)
    target_word: Mapped[str] = mapped_column(Text, nullable=False)
    pronunciation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_cards_deck_id", "deck_id"),
        Index("ix_cards_source_language", "source_language"),
        Index("ix_cards_target_language", "target_language"),
        Index("ix_cards_source_word", "source_word"),
        Index("ix_cards_target_word", "target_word"),
        Index("ix_cards_pronunciation", "pronunciation"),
        Index("ix_cards_remark", "remark"),
    )
