import numpy as np
import pytest

from gtcrn_stream.errors import ConfigurationError
from gtcrn_stream.framing import FrameAssembler

from conftest import random_chunks


def collect(asm, samples):
    return [frame.copy() for frame in asm.push(samples)]


def test_first_frame_starts_with_zero_overlap():
    asm = FrameAssembler(8, 4)
    frames = collect(asm, np.arange(1, 5))
    assert len(frames) == 1
    np.testing.assert_array_equal(frames[0], [0, 0, 0, 0, 1, 2, 3, 4])
    assert asm.pending == 0


def test_partial_hop_is_buffered():
    asm = FrameAssembler(8, 4)
    assert collect(asm, [1, 2, 3]) == []
    assert asm.pending == 3
    frames = collect(asm, [4])
    assert len(frames) == 1
    np.testing.assert_array_equal(frames[0][4:], [1, 2, 3, 4])


def test_empty_push():
    asm = FrameAssembler(8, 4)
    assert collect(asm, []) == []
    assert asm.pending == 0


def test_multiple_frames_in_one_push_in_order():
    asm = FrameAssembler(8, 4)
    frames = collect(asm, np.arange(1, 14))
    assert len(frames) == 3
    np.testing.assert_array_equal(frames[0], [0, 0, 0, 0, 1, 2, 3, 4])
    np.testing.assert_array_equal(frames[1], [1, 2, 3, 4, 5, 6, 7, 8])
    np.testing.assert_array_equal(frames[2], [5, 6, 7, 8, 9, 10, 11, 12])
    assert asm.pending == 1


def test_consecutive_frames_overlap_by_one_hop():
    asm = FrameAssembler(16, 4)
    frames = collect(asm, np.arange(64, dtype=float))
    for prev, cur in zip(frames, frames[1:]):
        np.testing.assert_array_equal(cur[:12], prev[4:])


def test_frames_after_counts_completed_hops():
    asm = FrameAssembler(8, 4)
    assert asm.frames_after(3) == 0
    assert asm.frames_after(9) == 2
    collect(asm, [1, 2, 3])
    assert asm.frames_after(1) == 1
    assert asm.frames_after(0) == 0


def test_chunking_does_not_change_frames(rng):
    x = rng.standard_normal(3001)
    reference = collect(FrameAssembler(512, 256), x)

    asm = FrameAssembler(512, 256)
    chunked = []
    for start, end in random_chunks(rng, x.size, 700):
        chunked.extend(collect(asm, x[start:end]))

    single = FrameAssembler(512, 256)
    one_by_one = []
    for sample in x:
        one_by_one.extend(collect(single, [sample]))

    assert len(reference) == len(chunked) == len(one_by_one) == 3001 // 256
    for a, b, c in zip(reference, chunked, one_by_one):
        np.testing.assert_array_equal(a, b)
        np.testing.assert_array_equal(a, c)
    assert asm.pending == single.pending == 3001 % 256


def test_frame_buffer_is_reused():
    asm = FrameAssembler(4, 2)
    frames = asm.push([1, 2, 3, 4])
    first = next(frames)
    np.testing.assert_array_equal(first, [0, 0, 1, 2])
    second = next(frames)
    assert second is first
    np.testing.assert_array_equal(second, [1, 2, 3, 4])


def test_float32_input_is_widened():
    asm = FrameAssembler(4, 2)
    frames = collect(asm, np.array([0.1, 0.2], dtype=np.float32))
    assert frames[0].dtype == np.float64
    np.testing.assert_allclose(frames[0][2:], [0.1, 0.2], rtol=1e-6)


def test_checkpoint_rollback_and_reset():
    asm = FrameAssembler(8, 4)
    collect(asm, [1, 2, 3, 4, 5, 6])
    asm.checkpoint()
    collect(asm, [7, 8, 9, 10])
    asm.rollback()
    assert asm.pending == 2
    frames = collect(asm, [7, 8])
    np.testing.assert_array_equal(frames[0], [1, 2, 3, 4, 5, 6, 7, 8])

    asm.reset()
    assert asm.pending == 0
    np.testing.assert_array_equal(next(asm.push([1, 1, 1, 1])), [0, 0, 0, 0, 1, 1, 1, 1])


@pytest.mark.parametrize("hop", [0, -1, 9])
def test_invalid_hop(hop):
    with pytest.raises(ConfigurationError):
        FrameAssembler(8, hop)
