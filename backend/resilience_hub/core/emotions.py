import re
from enum import Enum
from typing import NamedTuple, Optional


class CoreEmotion(str, Enum):
    """Top-level categories of the emotion wheel."""
    JOY      = "Joy"
    SADNESS  = "Sadness"
    FEAR     = "Fear"
    ANGER    = "Anger"
    DISGUST  = "Disgust"
    SURPRISE = "Surprise"
    LOVE     = "Love"
    TRUST    = "Trust"


class Valence(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL  = "neutral"


class EmotionMeta(NamedTuple):
    color  : str
    valence: Valence


# Single lookup table for chart colours and affect classification.
# Surprise and Trust are context-dependent and stay out of the
# positive/negative balance.
EMOTION_METADATA: dict[CoreEmotion, EmotionMeta] = {
    CoreEmotion.JOY     : EmotionMeta("#FFC107", Valence.POSITIVE),
    CoreEmotion.LOVE    : EmotionMeta("#E91E63", Valence.POSITIVE),
    CoreEmotion.SADNESS : EmotionMeta("#3F51B5", Valence.NEGATIVE),
    CoreEmotion.FEAR    : EmotionMeta("#8A65AA", Valence.NEGATIVE),
    CoreEmotion.ANGER   : EmotionMeta("#F44336", Valence.NEGATIVE),
    CoreEmotion.DISGUST : EmotionMeta("#4CAF50", Valence.NEGATIVE),
    CoreEmotion.SURPRISE: EmotionMeta("#F47B20", Valence.NEUTRAL),
    CoreEmotion.TRUST   : EmotionMeta("#8DC4BD", Valence.NEUTRAL),
}

POSITIVE_EMOTIONS = frozenset(
    emotion for emotion, meta in EMOTION_METADATA.items()
    if meta.valence is Valence.POSITIVE
)
NEGATIVE_EMOTIONS = frozenset(
    emotion for emotion, meta in EMOTION_METADATA.items()
    if meta.valence is Valence.NEGATIVE
)

_BY_LOWER_NAME = {emotion.value.lower(): emotion for emotion in CoreEmotion}


def parse_core_emotion(label: Optional[str]) -> Optional[CoreEmotion]:
    """
    Maps a free-form label onto a CoreEmotion, ignoring case and
    surrounding whitespace. Unknown labels return None.
    """
    if not label:
        return None
    return _BY_LOWER_NAME.get(label.strip().lower())


def format_distortion_name(distortion: Optional[str]) -> str:
    """
    Turns a stored distortion key into a display name.

    "all-or-nothing" -> "All Or Nothing"
    "mind_reading"   -> "Mind Reading"
    "fortuneTelling" -> "Fortune Telling"
    """
    if not distortion:
        return "Unknown"

    spaced = re.sub(r"(?<=[a-z])([A-Z])", r" \1", distortion)
    words  = re.split(r"[-_\s]+", spaced.strip())

    return " ".join(word[:1].upper() + word[1:].lower() for word in words if word)
