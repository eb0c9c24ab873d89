"""Tests for completion sound synthesis and the SoundManager feedback gateway."""

from __future__ import annotations

import io
import wave

import pytest

from tasktimers.audio.sounds import (
    ALERT_SOUND,
    SOUND_NAMES,
    SoundManager,
    _generate_alert,
    _generate_arpeggio,
    _generate_bell,
    _generate_chime,
    _generate_tick,
)
from tasktimers.models import SoundOption


GENERATORS = [
    _generate_arpeggio,
    _generate_chime,
    _generate_bell,
    _generate_tick,
    _generate_alert,
]


# ═══════════════════════════════════════════════════════════════════════
#  SOUND SYNTHESIS
# ═══════════════════════════════════════════════════════════════════════


class TestSoundGeneration:

    @pytest.mark.parametrize("gen_fn", GENERATORS)
    def test_generator_produces_wav(self, gen_fn):
        data = gen_fn()
        assert isinstance(data, bytes)
        assert len(data) > 100
        assert data[:4] == b"RIFF"

    @pytest.mark.parametrize("gen_fn", GENERATORS)
    def test_wav_is_parseable(self, gen_fn):
        with wave.open(io.BytesIO(gen_fn()), "rb") as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 44100
            assert wf.getnframes() > 0

    def test_every_audible_option_has_a_sound(self):
        audible = {s.value for s in SoundOption if s is not SoundOption.SILENT}
        assert audible <= set(SOUND_NAMES)
        assert ALERT_SOUND in SOUND_NAMES


# ═══════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════


class _RecordingManager(SoundManager):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.played: list[str] = []

    def play(self, name: str) -> None:
        self.played.append(name)
        super().play(name)


@pytest.mark.usefixtures("qapp")
class TestSoundManager:

    def test_wav_files_generated(self, tmp_path):
        SoundManager(parent=None, sounds_dir=tmp_path)
        for name in SOUND_NAMES:
            path = tmp_path / f"{name}.wav"
            assert path.exists(), f"Missing WAV: {name}"
            assert path.stat().st_size > 100

    def test_existing_files_are_reused(self, tmp_path):
        SoundManager(parent=None, sounds_dir=tmp_path)
        path = tmp_path / f"{ALERT_SOUND}.wav"
        before = path.stat().st_mtime_ns
        SoundManager(parent=None, sounds_dir=tmp_path)
        assert path.stat().st_mtime_ns == before

    def test_all_sounds_loaded(self, tmp_path):
        mgr = SoundManager(parent=None, sounds_dir=tmp_path)
        for name in SOUND_NAMES:
            assert name in mgr._effects

    def test_set_volume_clamps(self, tmp_path):
        mgr = SoundManager(parent=None, sounds_dir=tmp_path)
        mgr.set_volume(30)
        assert mgr._volume == pytest.approx(0.3)
        mgr.set_volume(200)
        assert mgr._volume == 1.0
        mgr.set_volume(-10)
        assert mgr._volume == 0.0

    def test_set_volume_updates_loaded_effects(self, tmp_path):
        mgr = SoundManager(parent=None, sounds_dir=tmp_path)
        mgr.set_volume(40)
        for effect in mgr._effects.values():
            assert effect.volume() == pytest.approx(0.4)

    def test_play_completion_uses_option(self, tmp_path):
        mgr = _RecordingManager(sounds_dir=tmp_path)
        mgr.play_completion(SoundOption.BELL)
        assert mgr.played == ["bell"]

    def test_silent_plays_nothing(self, tmp_path):
        mgr = _RecordingManager(sounds_dir=tmp_path)
        mgr.play_completion(SoundOption.SILENT)
        assert mgr.played == []

    def test_alert(self, tmp_path):
        mgr = _RecordingManager(sounds_dir=tmp_path)
        mgr.alert()
        assert mgr.played == [ALERT_SOUND]

    def test_play_unknown_no_crash(self, tmp_path):
        mgr = SoundManager(parent=None, sounds_dir=tmp_path)
        mgr.play("nonexistent_sound")

    def test_disabled_manager_plays_nothing(self, tmp_path):
        played = []

        class _Effect:
            def play(self):
                played.append(True)

        mgr = SoundManager(parent=None, sounds_dir=tmp_path)
        mgr._effects = {name: _Effect() for name in SOUND_NAMES}
        mgr.set_enabled(False)
        mgr.play_completion(SoundOption.CHIME)
        mgr.alert()
        assert played == []
        mgr.set_enabled(True)
        mgr.alert()
        assert played == [True]
