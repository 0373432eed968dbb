# Language name -> BCP 47 locale used for speech synthesis
LANGUAGE_MAP: dict[str, str] = {
    "polish": "pl-PL",
    "english": "en-US",
    "spanish": "es-ES",
    "french": "fr-FR",
    "german": "de-DE",
    "italian": "it-IT",
    "portuguese": "pt-PT",
    "russian": "ru-RU",
    "chinese": "zh-CN",
    "japanese": "ja-JP",
    "korean": "ko-KR",
    "arabic": "ar-SA",
    "hindi": "hi-IN",
    "dutch": "nl-NL",
    "swedish": "sv-SE",
    "norwegian": "no-NO",
    "danish": "da-DK",
    "finnish": "fi-FI",
}

SUPPORTED_LANGUAGES = list(LANGUAGE_MAP)

SUPPORTED_LANGUAGES_NAMES = sorted(language.capitalize() for language in SUPPORTED_LANGUAGES)


def is_supported(language: str) -> bool:
    return language.strip().lower() in LANGUAGE_MAP


def speech_locale(language: str, default: str = "en-US") -> str:
    return LANGUAGE_MAP.get(language.strip().lower(), default)
