"""PCM wave helpers."""

from __future__ import annotations

import math
import wave
from pathlib import Path
from typing import Tuple

import numpy as np


def read_wave(path: Path) -> Tuple[np.ndarray, int]:
    """Return 16-bit PCM samples scaled to [-1, 1] with shape (frames, channels)."""

    with wave.open(str(path), "rb") as wf:
        if wf.getsampwidth() != 2:
            raise ValueError(f"{Path(path).name} is not 16-bit PCM")
        frames = wf.readframes(wf.getnframes())
        channels = wf.getnchannels()
        sample_rate = wf.getframerate()
    data = np.frombuffer(frames, dtype=np.int16).astype(np.float32)
    data = data.reshape(-1, max(channels, 1))
    data /= 32768.0
    return data, sample_rate


def peak_dbfs(path: Path) -> float:
    """Peak level of a PCM wave in dBFS; ``-inf`` for digital silence or no samples."""

    data, _ = read_wave(path)
    if data.size == 0:
        return -math.inf
    peak = float(np.max(np.abs(data)))
    if peak <= 0.0:
        return -math.inf
    return 20.0 * math.log10(peak)


__all__ = ["peak_dbfs", "read_wave"]
