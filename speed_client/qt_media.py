"""Media elements backed by QMediaPlayer."""
from __future__ import annotations

import logging
from pathlib import Path

from PyQt6.QtCore import QUrl
from PyQt6.QtMultimedia import QAudioOutput, QMediaPlayer
from PyQt6.QtMultimediaWidgets import QVideoWidget
from PyQt6.QtWidgets import QWidget

from speed_client.qt_indicator import build_graphics_effect

_LOGGER = logging.getLogger("TabSpeed.Client.Media")

AUDIO_SUFFIXES = frozenset({".mp3", ".ogg", ".oga", ".wav", ".flac", ".m4a", ".aac", ".opus"})


class QtMediaElement:
    """Adapts one QMediaPlayer to the media element attributes the trackers use.

    Times are in seconds; Qt reports milliseconds.
    """

    def __init__(self, source: str, parent: QWidget | None = None) -> None:
        path = Path(source).expanduser()
        self.source = str(path)
        self.tag_name = "audio" if path.suffix.lower() in AUDIO_SUFFIXES else "video"
        self._style_filter = ""
        self.audio_output = QAudioOutput(parent)
        self.player = QMediaPlayer(parent)
        self.player.setAudioOutput(self.audio_output)
        self.widget = QVideoWidget(parent)
        if self.tag_name == "video":
            self.player.setVideoOutput(self.widget)
        else:
            self.widget.setFixedHeight(0)
        self.player.errorOccurred.connect(self._log_error)
        self.player.setSource(QUrl.fromLocalFile(str(path.resolve())))

    def __repr__(self) -> str:
        return f"QtMediaElement({self.tag_name}, {self.source!r})"

    @property
    def playback_rate(self) -> float:
        return float(self.player.playbackRate())

    @playback_rate.setter
    def playback_rate(self, value: float) -> None:
        self.player.setPlaybackRate(float(value))

    @property
    def current_time(self) -> float:
        return self.player.position() / 1000.0

    @current_time.setter
    def current_time(self, value: float) -> None:
        self.player.setPosition(int(round(float(value) * 1000)))

    @property
    def duration(self) -> float:
        return self.player.duration() / 1000.0

    @property
    def paused(self) -> bool:
        return self.player.playbackState() != QMediaPlayer.PlaybackState.PlayingState

    @property
    def muted(self) -> bool:
        return bool(self.audio_output.isMuted())

    @muted.setter
    def muted(self, value: bool) -> None:
        self.audio_output.setMuted(bool(value))

    @property
    def style_filter(self) -> str:
        return self._style_filter

    @style_filter.setter
    def style_filter(self, value: str) -> None:
        self._style_filter = value or ""
        self.widget.setGraphicsEffect(build_graphics_effect(self._style_filter) if self._style_filter else None)

    def play(self) -> None:
        self.player.play()

    def pause(self) -> None:
        self.player.pause()

    def _log_error(self, error, message: str) -> None:
        _LOGGER.warning("Playback error for %s: %s", self.source, message or error)
