"""Best-effort sound playback for winner announcements."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

import pygame


LOGGER = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    """Sound sink used by the animator. Implementations must never raise."""

    def play(self, url: str, volume: float) -> None:
        ...


class NullAudioPlayer:
    """Silent player for muted or headless displays."""

    def play(self, url: str, volume: float) -> None:
        LOGGER.debug("Muted playback of %s", url)


class PygameAudioPlayer:
    """Play sound files through ``pygame.mixer``, swallowing every failure."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self.base_dir = base_dir
        self._sounds: dict[Path, pygame.mixer.Sound] = {}
        self._mixer_failed = False

    def _resolve(self, url: str) -> Path:
        path = Path(url).expanduser()
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path

    def _ensure_mixer(self) -> bool:
        if self._mixer_failed:
            return False
        if pygame.mixer.get_init():
            return True
        try:
            pygame.mixer.init()
        except pygame.error as exc:
            LOGGER.warning("Audio mixer unavailable: %s", exc)
            self._mixer_failed = True
            return False
        return True

    def play(self, url: str, volume: float) -> None:
        try:
            if not self._ensure_mixer():
                return
            path = self._resolve(url)
            sound = self._sounds.get(path)
            if sound is None:
                sound = pygame.mixer.Sound(str(path))
                self._sounds[path] = sound
            sound.set_volume(max(0.0, min(1.0, float(volume))))
            sound.play()
        except (pygame.error, OSError, TypeError, ValueError) as exc:
            LOGGER.warning("Unable to play %s: %s", url, exc)


__all__ = ["AudioPlayer", "NullAudioPlayer", "PygameAudioPlayer"]
