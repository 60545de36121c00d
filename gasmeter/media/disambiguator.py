"""
Resolution of uncertain digits.

The vision model marks digits it cannot read with "?". A second, text-only
inference call fills them in, using the previously confirmed reading of the
same meter as a hint.
"""

from __future__ import annotations

import logging
from typing import Optional

from gasmeter.errors import InferenceFailed, InvalidInput, MeterReaderError
from gasmeter.media.models import UNCERTAINTY_MARKER
from gasmeter.media.prompts import build_fix_ambiguous_prompt
from gasmeter.services.inference import InferenceGateway, SamplingConfig

logger = logging.getLogger(__name__)

AMBIGUOUS_ALPHABET = frozenset(".0123456789" + UNCERTAINTY_MARKER)
RESOLVED_ALPHABET = frozenset(".0123456789")


def contains_only(value: str, allowed: frozenset) -> bool:
    return all(ch in allowed for ch in value)


def validate_ambiguous_reading(value: str) -> None:
    """
    Reject anything that is not digits, '.' and '?' before it reaches the
    model. Structured output occasionally drifts (units, spaces, letters).
    """
    if not value:
        raise InvalidInput("ambiguous value string is empty")
    if not contains_only(value, AMBIGUOUS_ALPHABET):
        raise InvalidInput(f"ambiguous value string, {value!r} is not valid")


def verify_resolved_reading(ambiguous: str, resolved: str) -> str:
    """
    Check the model's answer against the ambiguous input.

    Returns the answer stripped of surrounding whitespace. Raises
    InvalidInput when it changes length, keeps or introduces non-digit
    characters, or alters a digit that was already certain.
    """
    candidate = resolved.strip()

    if len(candidate) != len(ambiguous):
        raise InvalidInput(
            f"resolved value {candidate!r} has length {len(candidate)}, expected {len(ambiguous)}"
        )
    if not contains_only(candidate, RESOLVED_ALPHABET):
        raise InvalidInput(f"resolved value {candidate!r} is not a plain reading")

    for position, (before, after) in enumerate(zip(ambiguous, candidate)):
        if before != UNCERTAINTY_MARKER and before != after:
            raise InvalidInput(
                f"resolved value {candidate!r} changed {before!r} at position {position}"
            )

    return candidate


def resolve_ambiguous_digits(
    ambiguous: str,
    previous: str,
    *,
    gateway: InferenceGateway,
    sampling: SamplingConfig,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> str:
    """
    Replace the '?' markers in `ambiguous` with the model's best guess.

    Args:
        ambiguous: Reading with '?' markers, e.g. "12?.5".
        previous: Last confirmed reading; an empty string means none.
        gateway: Inference gateway for the text-only call.
        sampling: Same policy as the extraction call.
        verify: Check the answer's shape; when False the raw text is
            returned as the model produced it.
        timeout: Per-call timeout in seconds, forwarded to the gateway.

    Raises:
        InvalidInput: bad input (before any call), an answer that still has
            "?" markers, or, with verify, any other malformed answer.
        InferenceFailed: the gateway call failed.
    """
    validate_ambiguous_reading(ambiguous)

    prompt = build_fix_ambiguous_prompt(ambiguous, previous)
    try:
        resolved = gateway.generate_text(prompt, sampling, timeout=timeout)
    except MeterReaderError:
        raise
    except Exception as e:  # noqa: BLE001
        raise InferenceFailed(f"failed to generate: {e}", stage="resolving") from e

    if not verify:
        # Unverified answers pass through as-is, but never with markers left in.
        if UNCERTAINTY_MARKER in resolved:
            raise InvalidInput(f"resolved value {resolved!r} still has uncertain digits")
        return resolved

    candidate = verify_resolved_reading(ambiguous, resolved)
    logger.info("[RESOLVED] %s -> %s (previous=%r)", ambiguous, candidate, previous)
    return candidate
