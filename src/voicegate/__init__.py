"""voicegate - resilient text-to-speech in front of the ElevenLabs API."""

__version__ = "0.1.0"
__all__ = ["VoicePipeline", "create_pipeline", "speak"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in ("speak", "create_pipeline"):
        from . import api

        return getattr(api, name)
    if name == "VoicePipeline":
        from .tts.pipeline import VoicePipeline

        return VoicePipeline
    raise AttributeError(f"module 'voicegate' has no attribute {name!r}")
