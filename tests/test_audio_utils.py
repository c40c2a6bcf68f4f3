import wave
from pathlib import Path

import numpy as np
import pytest

from vidctx.utils.audio import peak_dbfs, read_wave


def test_read_wave_keeps_shape_and_rate(write_wav, tmp_path: Path) -> None:
    sample_rate = 16000
    t = np.linspace(0, 1, sample_rate, endpoint=False)
    stereo = np.stack([np.sin(2 * np.pi * 440 * t), np.sin(2 * np.pi * 880 * t)], axis=1) * 0.5

    path = tmp_path / "tone.wav"
    write_wav(path, stereo.astype(np.float32), sample_rate)

    data, sr = read_wave(path)
    assert sr == sample_rate
    assert data.shape == (sample_rate, 2)


def test_peak_of_half_scale_tone(write_wav, tmp_path: Path) -> None:
    sample_rate = 16000
    t = np.linspace(0, 1, sample_rate, endpoint=False)
    tone = (np.sin(2 * np.pi * 440 * t) * 0.5).astype(np.float32)

    path = tmp_path / "tone.wav"
    write_wav(path, tone, sample_rate)

    assert peak_dbfs(path) == pytest.approx(-6.02, abs=0.05)


def test_read_wave_rejects_8_bit_pcm(tmp_path: Path) -> None:
    path = tmp_path / "8bit.wav"
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(1)
        wf.setframerate(8000)
        wf.writeframes(bytes([128] * 800))

    with pytest.raises(ValueError):
        read_wave(path)
