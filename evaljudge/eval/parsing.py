"""Classify free-text judge replies into verdicts."""

import re
from collections.abc import Iterable

from evaljudge.errors import ConfigurationError
from evaljudge.models import Verdict

DEFAULT_AFFIRMATIVE_TOKENS = frozenset({"yes"})
DEFAULT_NEGATIVE_TOKENS = frozenset({"no"})

_LEADING_NOISE = re.compile(r"^[\s\"'`*_]+")
_ANSWER_LABEL = re.compile(r"^(?:final\s+)?(?:answer|verdict)\s*[:\-]\s*")


def normalize_tokens(tokens: Iterable[str], kind: str) -> frozenset[str]:
    if isinstance(tokens, str):
        tokens = [tokens]
    normalized = frozenset(
        t.strip().casefold() for t in tokens if t is not None and t.strip()
    )
    if not normalized:
        raise ConfigurationError(f"{kind} token set must not be empty")
    return normalized


def normalize_reply(text: str) -> str:
    """Trim, case-fold and drop leading quotes, emphasis or an 'Answer:' label."""
    if not text:
        return ""
    reply = text.strip().casefold()
    reply = _LEADING_NOISE.sub("", reply)
    reply = _ANSWER_LABEL.sub("", reply)
    return _LEADING_NOISE.sub("", reply)


def _starts_with_token(reply: str, token: str) -> bool:
    if not reply.startswith(token):
        return False
    # "yes." and "yes, because" match "yes"; "yesterday" does not.
    return len(reply) == len(token) or not reply[len(token)].isalnum()


def classify_reply(
    text: str,
    affirmative: frozenset[str] = DEFAULT_AFFIRMATIVE_TOKENS,
    negative: frozenset[str] = DEFAULT_NEGATIVE_TOKENS,
) -> Verdict:
    reply = normalize_reply(text)
    if not reply:
        return Verdict.AMBIGUOUS

    candidates = [(token, Verdict.AFFIRMATIVE) for token in affirmative]
    candidates += [(token, Verdict.NEGATIVE) for token in negative]
    candidates.sort(key=lambda c: (-len(c[0]), c[0]))

    for token, verdict in candidates:
        if _starts_with_token(reply, token):
            return verdict
    return Verdict.AMBIGUOUS
