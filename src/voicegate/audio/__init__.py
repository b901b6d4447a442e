"""Audio playback package for voicegate.

Plays or saves synthesized speech using pygame.
"""

from .player import AudioPlayer

__all__ = ["AudioPlayer"]
