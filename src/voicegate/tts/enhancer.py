"""Lexical emotion detection and prosody annotation for synthesis text.

Everything here is a pure function: identical input always yields
identical output, and no state is kept between calls.
"""

import re

from .models import DEFAULT_PROFILE, PROFILE_PRESETS, EmotionTag, VoiceProfile

# Checked in order; the first vocabulary that matches wins
EMOTION_PATTERNS: tuple[tuple[EmotionTag, re.Pattern[str]], ...] = (
    (
        EmotionTag.CONCERNED,
        re.compile(r"\b(error|problem|failed|issue|warning)\b", re.IGNORECASE),
    ),
    (
        EmotionTag.EXCITED,
        re.compile(r"\b(excellent|perfect|success|completed|great)\b", re.IGNORECASE),
    ),
    (
        EmotionTag.CALM,
        re.compile(r"\b(calm|relax|peace|stable|normal)\b", re.IGNORECASE),
    ),
)

HONORIFIC_PAUSE = '<break time="500ms"/>'
LEADING_PAUSE = '<break time="300ms"/>'

_HONORIFIC = re.compile(r"\b(Sir)\b", re.IGNORECASE)
_IMPORTANT_TERMS = re.compile(
    r"\b(system|status|analysis|diagnostic|protocol|initialized|activated)\b",
    re.IGNORECASE,
)
_ANNOUNCEMENT = re.compile(r"^(Alert|Warning|Error|System)\b", re.IGNORECASE)

PHONEMES: dict[str, str] = {
    "API": "ˈeɪ.piː.aɪ",
    "CPU": "ˈsiː.piː.juː",
    "GPU": "ˈdʒiː.piː.juː",
}
_ACRONYMS = re.compile(r"\b(" + "|".join(PHONEMES) + r")\b")


def classify_emotion(text: str) -> EmotionTag:
    """Detect the emotional context of text by keyword matching.

    Args:
        text: Raw text to classify

    Returns:
        Matching EmotionTag, or EmotionTag.DEFAULT when nothing matches
    """
    if not text:
        return EmotionTag.DEFAULT
    for tag, pattern in EMOTION_PATTERNS:
        if pattern.search(text):
            return tag
    return EmotionTag.DEFAULT


def select_profile(
    emotion: EmotionTag, default: VoiceProfile = DEFAULT_PROFILE
) -> VoiceProfile:
    """Look up the voice profile for an emotion.

    Args:
        emotion: Detected emotion tag
        default: Profile used for EmotionTag.DEFAULT (usually from config)
    """
    if emotion is EmotionTag.DEFAULT:
        return default
    return PROFILE_PRESETS.get(emotion, default)


def annotate(text: str) -> str:
    """Insert prosody markers without changing words or their order.

    Adds a pause after the honorific "Sir", emphasis around technical
    status terms, a short pause before leading announcements, and IPA
    pronunciations for common acronyms.
    """
    if not text:
        return text

    enhanced = _HONORIFIC.sub(lambda m: f"{m.group(1)}{HONORIFIC_PAUSE}", text)
    # Leading pause goes in before emphasis so "System ..." keeps both markers
    enhanced = _ANNOUNCEMENT.sub(lambda m: f"{LEADING_PAUSE}{m.group(1)}", enhanced)
    enhanced = _IMPORTANT_TERMS.sub(
        lambda m: f'<emphasis level="moderate">{m.group(1)}</emphasis>', enhanced
    )
    enhanced = _ACRONYMS.sub(
        lambda m: (
            f'<phoneme alphabet="ipa" ph="{PHONEMES[m.group(1)]}">'
            f"{m.group(1)}</phoneme>"
        ),
        enhanced,
    )
    return enhanced


def enhance(
    text: str, default: VoiceProfile = DEFAULT_PROFILE
) -> tuple[str, VoiceProfile]:
    """Return the annotated text and the profile matching its emotion."""
    return annotate(text), select_profile(classify_emotion(text), default)
