"""Unit tests for cache key derivation."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from voicegate.cache import make_cache_key, normalize_text
from voicegate.tts.models import PROFILE_PRESETS, EmotionTag, SynthesisRequest, VoiceProfile


class TestNormalizeText:
    """Test text normalization before hashing."""

    def test_collapses_whitespace(self) -> None:
        """Test runs of whitespace collapse to single spaces."""
        assert normalize_text("  Hello \n\t world  ") == "Hello world"

    def test_preserves_case(self) -> None:
        """Test case is significant."""
        assert normalize_text("Sir") != normalize_text("sir")


class TestMakeCacheKey:
    """Test fingerprint determinism and separation."""

    def test_same_inputs_same_key(self) -> None:
        """Test identical requests produce identical keys."""
        profile = VoiceProfile()

        assert make_cache_key("Hello", "v1", profile) == make_cache_key(
            "Hello", "v1", VoiceProfile()
        )

    def test_key_is_sha256_hex(self) -> None:
        """Test the key is a 64 character hex digest."""
        key = make_cache_key("Hello", "v1", VoiceProfile())

        assert len(key) == 64
        int(key, 16)

    def test_whitespace_variants_share_key(self) -> None:
        """Test normalized text is what gets hashed."""
        profile = VoiceProfile()

        assert make_cache_key("Hello  world", "v1", profile) == make_cache_key(
            " Hello world ", "v1", profile
        )

    def test_profile_field_order_irrelevant(self) -> None:
        """Test dict profiles hash the same regardless of key order."""
        a = {"stability": 0.5, "similarity_boost": 0.7, "style": 0.1, "speaking_rate": 1.0}
        b = {"speaking_rate": 1.0, "style": 0.1, "similarity_boost": 0.7, "stability": 0.5}

        assert make_cache_key("Hi", "v1", a) == make_cache_key("Hi", "v1", b)

    def test_dataclass_and_dict_profiles_agree(self) -> None:
        """Test a VoiceProfile and its dict form give the same key."""
        profile = PROFILE_PRESETS[EmotionTag.EXCITED]

        assert make_cache_key("Hi", "v1", profile) == make_cache_key(
            "Hi", "v1", profile.to_dict()
        )

    def test_distinct_parts_give_distinct_keys(self) -> None:
        """Test text, voice and profile all contribute to the key."""
        base = make_cache_key("Hello", "v1", VoiceProfile())

        assert make_cache_key("Hello!", "v1", VoiceProfile()) != base
        assert make_cache_key("Hello", "v2", VoiceProfile()) != base
        assert make_cache_key("Hello", "v1", VoiceProfile(stability=0.5)) != base

    def test_boundary_between_fields_is_unambiguous(self) -> None:
        """Test shifting characters between text and voice changes the key."""
        profile = VoiceProfile()

        assert make_cache_key("ab", "c", profile) != make_cache_key("a", "bc", profile)

    def test_accepts_synthesis_request(self) -> None:
        """Test a SynthesisRequest hashes like its three parts."""
        profile = VoiceProfile(style=0.2)
        request = SynthesisRequest(text="Hello", voice_id="v1", voice_settings=profile)

        assert make_cache_key(request) == make_cache_key("Hello", "v1", profile)
