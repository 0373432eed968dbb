from memvocab.models.card import Card, Deck

__all__ = [
    "Card",
    "Deck",
]
