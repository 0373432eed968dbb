CARDS_PROMPT = """\
Please, create JSON with an array of the following structure and values:

id: A unique identifier for the word pair (uuid)
sourceLanguage: {source_language}
targetLanguage: {target_language}
sourceWord: The word/short phrase in the source language
targetWord: The word/short phrase in the target language
pronunciation: IPA pronunciation transcription
remark: (Optional) Additional context or meaning clarification, if needed to clarify the meaning of the word/phrase

Parameters:

Source language: {source_language}
Target language: {target_language}
Topic: {topic}
Description (additional context for the topic): {description}
Limit: {amount} items
"""

DEFAULT_AMOUNT = 10


def build_cards_prompt(
    topic: str,
    source_language: str,
    target_language: str,
    description: str | None = None,
    amount: int = DEFAULT_AMOUNT,
) -> str:
    """Prompt asking a chat assistant for a deck's cards as a JSON blob."""
    return CARDS_PROMPT.format(
        topic=topic,
        description=description or "",
        source_language=source_language,
        target_language=target_language,
        amount=amount if amount > 0 else DEFAULT_AMOUNT,
    )
