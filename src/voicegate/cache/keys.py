"""Deterministic cache key derivation for synthesis requests."""

import hashlib
import json

from ..tts.models import SynthesisRequest, VoiceProfile


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and trim the ends; case is preserved."""
    return " ".join(text.split())


def make_cache_key(
    text: str | SynthesisRequest,
    voice_id: str | None = None,
    profile: VoiceProfile | dict | None = None,
) -> str:
    """Compute the fingerprint of a (text, voice, profile) triple.

    The profile is serialized canonically (sorted keys, fixed separators)
    so field order never changes the key, and the three parts are framed
    in a JSON document so no two distinct triples share a preimage.

    Args:
        text: Request text, or a SynthesisRequest carrying all three parts
        voice_id: Voice identifier (ignored when a request is given)
        profile: Voice profile or equivalent mapping

    Returns:
        Hex-encoded SHA-256 digest
    """
    if isinstance(text, SynthesisRequest):
        request = text
        text, voice_id, profile = request.text, request.voice_id, request.voice_settings

    if isinstance(profile, VoiceProfile):
        settings = profile.to_dict()
    else:
        settings = {k: float(v) for k, v in (profile or {}).items()}

    canonical = json.dumps(
        {
            "text": normalize_text(text),
            "voice_id": voice_id or "",
            "voice_settings": settings,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
