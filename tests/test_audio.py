"""
SoundPress v1 Audio Utility Tests

Coverage:
- Mean downmix (idempotent, channel count, frame count)
- Deterministic resampling
- Window framing and encoder blocks
"""

import numpy as np
import pytest

from soundpress.audio import iter_blocks, reduce_to_mono, resample, window_offsets
from soundpress.buffer import SampleBuffer
from soundpress.errors import ConfigError

from tests.conftest import TEST_SAMPLE_RATE, sine, stereo_frames


@pytest.fixture
def stereo_buffer() -> SampleBuffer:
    return SampleBuffer.from_frames(stereo_frames(), TEST_SAMPLE_RATE)


# =============================================================================
# Test: Downmix
# =============================================================================


class TestReduceToMono:
    def test_mono_is_identity(self):
        buf = SampleBuffer(sine(440.0), TEST_SAMPLE_RATE, 1)
        assert reduce_to_mono(buf) is buf

    def test_idempotent(self, stereo_buffer):
        once = reduce_to_mono(stereo_buffer)
        assert reduce_to_mono(once) == once

    @pytest.mark.parametrize("channels", [2, 3, 6])
    def test_channels_and_frames(self, channels):
        rng = np.random.default_rng(channels)
        frames = rng.uniform(-1, 1, size=(1000, channels))
        buf = SampleBuffer.from_frames(frames, 22050)
        mono = reduce_to_mono(buf)
        assert mono.channels == 1
        assert mono.frames == buf.frames
        assert mono.sample_rate == buf.sample_rate

    def test_mean_of_channels(self):
        buf = SampleBuffer(np.array([1.0, 0.0, 0.5, -0.5, -1.0, -0.5]), 8000, 2)
        mono = reduce_to_mono(buf)
        np.testing.assert_allclose(mono.samples, [0.5, 0.0, -0.75])

    def test_input_untouched(self, stereo_buffer):
        before = stereo_buffer.samples.copy()
        reduce_to_mono(stereo_buffer)
        np.testing.assert_array_equal(stereo_buffer.samples, before)


# =============================================================================
# Test: Resample
# =============================================================================


class TestResample:
    def test_frame_count_scales(self, stereo_buffer):
        out = resample(stereo_buffer, TEST_SAMPLE_RATE * 2)
        assert out.sample_rate == TEST_SAMPLE_RATE * 2
        assert out.channels == 2
        assert out.frames == stereo_buffer.frames * 2

    def test_downsample_non_integer_ratio(self):
        buf = SampleBuffer(sine(440.0, duration_sec=1.0, sr=44100), 44100, 1)
        out = resample(buf, 16000)
        assert out.frames == 16000

    def test_same_rate_keeps_samples(self, stereo_buffer):
        assert resample(stereo_buffer, TEST_SAMPLE_RATE) == stereo_buffer

    def test_deterministic(self, stereo_buffer):
        assert resample(stereo_buffer, 11025) == resample(stereo_buffer, 11025)

    def test_invalid_rate(self, stereo_buffer):
        with pytest.raises(ConfigError):
            resample(stereo_buffer, 0)


# =============================================================================
# Test: Framing
# =============================================================================


class TestFraming:
    def test_tail_dropped(self):
        assert list(window_offsets(10, 4, 3)) == [0, 3, 6]

    def test_exact_fit(self):
        assert list(window_offsets(8, 4, 4)) == [0, 4]

    def test_shorter_than_window(self):
        assert len(window_offsets(3, 4, 1)) == 0

    def test_blocks_cover_buffer(self):
        buf = SampleBuffer(np.linspace(-2, 2, 1300 * 2), 8000, 2)
        blocks = list(iter_blocks(buf, 512))
        assert [b.shape for b in blocks] == [(512, 2), (512, 2), (276, 2)]
        assert max(float(np.abs(b).max()) for b in blocks) == 1.0
