import io

import numpy as np
import pytest
import soundfile as sf

from client.livecaption.audio.source import FileSource, MicrophoneError
from client.livecaption.audio.transcoder import ChunkTranscoder
from client.livecaption.services.logger import LogBuffer

SAMPLE_RATE = 16_000


class BlockSource:
    """Serves pre-recorded PCM blocks, then reports end of capture."""

    sample_rate = SAMPLE_RATE

    def __init__(self, blocks):
        self.blocks = list(blocks)
        self.requested = []

    def read(self, frames):
        self.requested.append(frames)
        if not self.blocks:
            return None
        return self.blocks.pop(0)

    def close(self):
        self.blocks = []


def _noise(seconds: float, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(-12000, 12000, int(seconds * SAMPLE_RATE), dtype=np.int16)


def _silence(seconds: float) -> np.ndarray:
    return np.zeros(int(seconds * SAMPLE_RATE), dtype=np.int16)


def test_segments_are_independently_decodable():
    source = BlockSource([_noise(5, 1), _noise(5, 2)])
    segments = list(ChunkTranscoder(source, segment_seconds=5))
    assert [segment.index for segment in segments] == [0, 1]
    assert source.requested[0] == 5 * SAMPLE_RATE
    for segment in segments:
        audio, rate = sf.read(io.BytesIO(segment.data), dtype="int16")
        assert rate == SAMPLE_RATE
        assert len(audio) == 5 * SAMPLE_RATE
        assert segment.filename.endswith(".flac")


def test_offsets_follow_captured_samples():
    source = BlockSource([_noise(5), _noise(5), _noise(2.5)])
    segments = list(ChunkTranscoder(source, segment_seconds=5))
    assert [(s.start_ms, s.end_ms) for s in segments] == [(0, 5000), (5000, 10000), (10000, 12500)]


def test_small_segments_are_suppressed_but_consume_an_index():
    logger = LogBuffer()
    source = BlockSource([_noise(5, 1), _silence(5), _noise(5, 3)])
    transcoder = ChunkTranscoder(source, segment_seconds=5, min_segment_bytes=20_000, logger=logger)
    segments = list(transcoder)
    assert [segment.index for segment in segments] == [0, 2]
    assert segments[1].start_ms == 10000
    assert transcoder.next_index == 3
    assert any("Segment 1" in line for line in logger.get())


def test_first_index_resumes_numbering():
    source = BlockSource([_noise(3)])
    segments = list(ChunkTranscoder(source, segment_seconds=3, first_index=7))
    assert segments[0].index == 7


def test_sequence_is_not_restartable():
    transcoder = ChunkTranscoder(BlockSource([_noise(3)]), segment_seconds=3)
    assert len(list(transcoder)) == 1
    assert list(transcoder) == []


@pytest.mark.parametrize("seconds", [2, 16])
def test_segment_duration_bounds(seconds):
    with pytest.raises(ValueError):
        ChunkTranscoder(BlockSource([]), segment_seconds=seconds)


def test_file_source_replays_audio(tmp_path):
    path = tmp_path / "talk.wav"
    sf.write(str(path), _noise(7), SAMPLE_RATE, subtype="PCM_16")
    source = FileSource(path)
    segments = list(ChunkTranscoder(source, segment_seconds=5))
    source.close()
    assert [(s.index, s.end_ms) for s in segments] == [(0, 5000), (1, 7000)]


def test_file_source_missing_file_is_microphone_error(tmp_path):
    with pytest.raises(MicrophoneError):
        FileSource(tmp_path / "missing.wav")
