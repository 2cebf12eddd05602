"""
Language metadata used when bootstrapping a workspace.

Each known language maps to a small immutable profile: the native script
label, the romanization scheme, and teaching notes that are inlined into
the tutor instruction document. Anything not in the table falls back to
``DEFAULT_PROFILE``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageProfile:
    """Static metadata for one target language."""

    native_script: str
    romanization: str
    notes: str


DEFAULT_PROFILE = LanguageProfile(
    native_script="Native Script",
    romanization="none",
    notes="""## Language-Specific Considerations

- Research and add language-specific grammar patterns as you encounter them
- Pay attention to any unique features of this language
- Adapt greeting and teaching style to cultural norms
- Start with the simplest possible greeting and self-introduction""",
)

_CHINESE = LanguageProfile(
    native_script="汉字",
    romanization="pinyin",
    notes="""## Chinese-Specific Considerations

- **Tones**: Pay attention to tone usage in learner's pinyin (if provided)
- **Characters vs Pinyin**: Track if learner uses characters or pinyin
- **Measure words (量词)**: Track these as grammar constructs
- **Common structures**: 是...的, 把-sentences, 被-passive, 了/过/着 aspects
- **Cold start**: Use "👋 你好 (nǐ hǎo)" - one word with emoji and pinyin""",
)

LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    "chinese": _CHINESE,
    "mandarin": _CHINESE,
    "korean": LanguageProfile(
        native_script="한글",
        romanization="none",
        notes="""## Korean-Specific Considerations

- **Politeness levels**: Track which speech levels the learner knows (합쇼체, 해요체, 해체, etc.)
- **Particles**: Track particles (은/는, 이/가, 을/를, etc.) as grammar
- **Verb conjugation**: Track tense and politeness conjugation patterns
- **Honorifics**: Note when learner uses/should use honorific forms
- **Cold start**: Use "👋 안녕 (annyeong)" - one word with emoji and romanization""",
    ),
    "japanese": LanguageProfile(
        native_script="日本語",
        romanization="romaji",
        notes="""## Japanese-Specific Considerations

- **Politeness levels**: Track です/ます vs casual forms
- **Particles**: Track particles (は, が, を, に, で, etc.) as grammar
- **Verb groups**: Note which verb conjugation patterns learner knows
- **Kanji vs Kana**: Track which kanji the learner knows
- **Cold start**: Use "👋 こんにちは (konnichiwa)" - one word with emoji and romaji""",
    ),
    "spanish": LanguageProfile(
        native_script="Español",
        romanization="none",
        notes="""## Spanish-Specific Considerations

- **Verb conjugation**: Track which tenses and moods learner knows
- **Ser vs Estar**: Track as separate grammar constructs
- **Subjunctive**: Introduce gradually, it's complex
- **Gender agreement**: Track as grammar construct
- **Cold start**: Use "👋 Hola" - one word with emoji""",
    ),
    "french": LanguageProfile(
        native_script="Français",
        romanization="none",
        notes="""## French-Specific Considerations

- **Verb conjugation**: Track which tenses and moods learner knows
- **Gender and articles**: Track as grammar constructs
- **Liaisons**: Note pronunciation patterns
- **Formal vs informal (tu/vous)**: Track which the learner uses
- **Cold start**: Use "👋 Bonjour" - one word with emoji""",
    ),
    "german": LanguageProfile(
        native_script="Deutsch",
        romanization="none",
        notes="""## German-Specific Considerations

- **Cases**: Track nominative, accusative, dative, genitive separately
- **Verb position**: Track V2 rule, subordinate clause order
- **Gender and articles**: Track der/die/das patterns
- **Formal vs informal (Sie/du)**: Track which the learner uses
- **Cold start**: Use "👋 Hallo" - one word with emoji""",
    ),
}


def get_language_profile(language: str) -> LanguageProfile:
    """Look up the profile for a language name (case-insensitive)."""
    return LANGUAGE_PROFILES.get(language.lower(), DEFAULT_PROFILE)
