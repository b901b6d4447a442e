"""Speech synthesis core for voicegate.

Only the dependency-free pieces are exported here; import the remote
client and the orchestrator from ``voicegate.tts.client`` and
``voicegate.tts.pipeline``.
"""

from .enhancer import annotate, classify_emotion, enhance, select_profile
from .errors import (
    ConfigurationError,
    RecognitionUnsupportedError,
    ServiceDisposedError,
    TTSAPIError,
    TTSAuthError,
    TTSError,
    TTSTimeoutError,
)
from .models import (
    DEFAULT_PROFILE,
    PROFILE_PRESETS,
    EmotionTag,
    QuotaInfo,
    SynthesisRequest,
    VoiceInfo,
    VoiceProfile,
)
from .streaming import AudioChunkStream, iter_chunks

__all__ = [
    "DEFAULT_PROFILE",
    "PROFILE_PRESETS",
    "AudioChunkStream",
    "ConfigurationError",
    "EmotionTag",
    "QuotaInfo",
    "RecognitionUnsupportedError",
    "ServiceDisposedError",
    "SynthesisRequest",
    "TTSAPIError",
    "TTSAuthError",
    "TTSError",
    "TTSTimeoutError",
    "VoiceInfo",
    "VoiceProfile",
    "annotate",
    "classify_emotion",
    "enhance",
    "iter_chunks",
    "select_profile",
]
