"""Completion sounds, synthesized with numpy and played with QSoundEffect.

Every selectable ``SoundOption`` (apart from ``silent``) maps to one WAV
file generated from sine waves with an ADSR envelope.  Files are cached on
disk so later launches only load them.

Sound names
-----------
- ``systemDefault`` — bright ascending arpeggio
- ``chime``         — three soft ascending notes
- ``bell``          — meditation bell with a long decay
- ``tick``          — short double tap
- ``alert``         — insistent repeated tone, the fallback when
                      notifications are not authorized
"""

from __future__ import annotations

import io
import wave
from pathlib import Path

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from ..models import SoundOption
from ..notifications import FeedbackGateway
from ..settings import APP_SUPPORT_DIR


# ── paths ────────────────────────────────────────────────────────────────

SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"

ALERT_SOUND = "alert"

SOUND_NAMES = (
    SoundOption.SYSTEM_DEFAULT.value,
    SoundOption.CHIME.value,
    SoundOption.BELL.value,
    SoundOption.TICK.value,
    ALERT_SOUND,
)

SAMPLE_RATE = 44100


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _make_envelope(
    length: int,
    attack: int = 200,
    decay: int = 400,
    sustain_level: float = 0.7,
    release: int = 800,
) -> np.ndarray:
    """ADSR envelope (all durations in samples)."""
    env = np.ones(length, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    d_end = min(a + decay, length)
    if decay > 0 and d_end > a:
        env[a:d_end] = np.linspace(1.0, sustain_level, d_end - a)
    s_end = max(length - release, d_end)
    if s_end > d_end:
        env[d_end:s_end] = sustain_level
    if release > 0 and s_end < length:
        env[s_end:] = np.linspace(sustain_level, 0.0, length - s_end)
    return env


def _sine(freq: float, duration_s: float) -> np.ndarray:
    """Pure sine wave at *freq* Hz for *duration_s* seconds."""
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _silence(duration_s: float) -> np.ndarray:
    return np.zeros(int(SAMPLE_RATE * duration_s))


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 numpy array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _generate_arpeggio() -> bytes:
    """Default completion — C5→E5→G5→C6, last note held."""
    notes = [523.25, 659.25, 783.99, 1046.50]
    parts: list[np.ndarray] = []
    for i, freq in enumerate(notes):
        if i == len(notes) - 1:
            tone = _sine(freq, 0.35) * 0.5
            env = _make_envelope(len(tone), attack=80, decay=300, sustain_level=0.5, release=600)
            parts.append(tone * env)
        else:
            tone = _sine(freq, 0.10) * 0.5
            env = _make_envelope(len(tone), attack=60, decay=150, sustain_level=0.3, release=200)
            parts.append(tone * env)
            parts.append(_silence(0.02))
    return _to_wav_bytes(np.concatenate(parts))


def _generate_chime() -> bytes:
    """Three ascending notes (C5→E5→G5) with a short tail."""
    parts: list[np.ndarray] = []
    for freq in (523.25, 659.25, 783.99):
        tone = _sine(freq, 0.12) * 0.6
        env = _make_envelope(len(tone), attack=100, decay=200, sustain_level=0.4, release=300)
        parts.append(tone * env)
        parts.append(_silence(0.03))
    parts.append(_silence(0.05))
    return _to_wav_bytes(np.concatenate(parts))


def _generate_bell() -> bytes:
    """A4 with an octave overtone, slow attack, long decay."""
    duration = 1.0
    combined = _sine(440.0, duration) * 0.35 + _sine(880.0, duration) * 0.08
    env = _make_envelope(
        len(combined),
        attack=int(SAMPLE_RATE * 0.08),
        decay=int(SAMPLE_RATE * 0.3),
        sustain_level=0.25,
        release=int(SAMPLE_RATE * 0.55),
    )
    return _to_wav_bytes(combined * env)


def _generate_tick() -> bytes:
    """Two 800 Hz taps, 80 ms apart."""
    tap = _sine(800.0, 0.04) * 0.35
    tap = tap * _make_envelope(len(tap), attack=40, decay=100, sustain_level=0.2, release=200)
    return _to_wav_bytes(np.concatenate([tap, _silence(0.08), tap, _silence(0.05)]))


def _generate_alert() -> bytes:
    """Three loud 1 kHz beeps."""
    beep = _sine(1000.0, 0.18) * 0.8
    beep = beep * _make_envelope(len(beep), attack=60, decay=200, sustain_level=0.8, release=300)
    gap = _silence(0.12)
    return _to_wav_bytes(np.concatenate([beep, gap, beep, gap, beep]))


_GENERATORS: dict[str, callable] = {
    SoundOption.SYSTEM_DEFAULT.value: _generate_arpeggio,
    SoundOption.CHIME.value: _generate_chime,
    SoundOption.BELL.value: _generate_bell,
    SoundOption.TICK.value: _generate_tick,
    ALERT_SOUND: _generate_alert,
}


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject, FeedbackGateway):
    """Feedback gateway backed by cached, synthesized WAV files.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        mgr.play_completion(SoundOption.BELL)
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        self._effects: dict[str, QSoundEffect] = {}

        self._ensure_wav_files()
        self._load_effects()

    # ── feedback gateway ──────────────────────────────────────────────

    def play_completion(self, sound: SoundOption) -> None:
        if sound is SoundOption.SILENT:
            return
        self.play(sound.value)

    def alert(self) -> None:
        self.play(ALERT_SOUND)

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set volume (0-100).  Updates all loaded effects."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def play(self, name: str) -> None:
        """Play a sound by name.  No-op if disabled or name unknown."""
        if not self._enabled:
            return
        effect = self._effects.get(name)
        if effect is not None:
            effect.play()

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_files(self) -> None:
        """Generate any missing WAV files to the cache directory."""
        self._sounds_dir.mkdir(parents=True, exist_ok=True)
        for name, gen_fn in _GENERATORS.items():
            path = self._sounds_dir / f"{name}.wav"
            if not path.exists():
                path.write_bytes(gen_fn())

    def _load_effects(self) -> None:
        for name in SOUND_NAMES:
            path = self._sounds_dir / f"{name}.wav"
            if path.exists():
                effect = QSoundEffect(self)
                effect.setSource(QUrl.fromLocalFile(str(path)))
                effect.setVolume(self._volume)
                self._effects[name] = effect
