from __future__ import annotations
from typing import Iterable, Optional

# Plain substring match on lower-cased text. No stemming, negation or context:
# "hopeless" used figuratively still matches, paraphrased ideation does not.
CRISIS_KEYWORDS = [
    "suicide", "suicidal", "kill myself", "end my life", "self-harm", "self harm",
    "hurt myself", "cutting", "overdose", "want to die", "don't want to live",
    "no reason to live", "hopeless", "worthless", "harm others",
]

CRISIS_RESPONSE = (
    "I notice you may be experiencing some very difficult feelings right now. "
    "Your safety is the most important thing.\n\n"
    "**Please reach out for immediate support:**\n"
    "- **988 Suicide & Crisis Lifeline:** Call or text 988 (US)\n"
    "- **Crisis Text Line:** Text HOME to 741741\n"
    "- **Emergency Services:** Call 911 if you are in immediate danger\n\n"
    "Please contact your therapist directly or go to your nearest emergency room if you are in crisis. "
    "This platform is not equipped to provide crisis intervention."
)


def detect_crisis_language(text: Optional[str]) -> bool:
    s = (text or "").lower()
    return any(kw in s for kw in CRISIS_KEYWORDS)


def join_monitored_text(parts: Iterable[Optional[str]]) -> str:
    """Concatenate the non-empty free-text fields of a submission with single spaces."""
    return " ".join(p for p in parts if p)
