import numpy as np
import pytest
import soundfile as sf

from gtcrn_stream import ConfigurationError, EngineConfig, FunctionAdapter
from gtcrn_stream.__main__ import build_parser, main
from gtcrn_stream.inference import StreamInference


@pytest.fixture
def inferencer():
    return StreamInference(config=EngineConfig(block_size=160))


def test_enhance_identity_is_aligned(inferencer, speech_like):
    x = speech_like[:5000]
    y = inferencer.enhance(x)
    assert y.size == x.size
    np.testing.assert_allclose(y, x, atol=1e-5)
    assert inferencer.last_stats.frames == 5000 // 256
    assert inferencer.last_rtf is not None


@pytest.mark.parametrize("block_size", [1, 37, 256, 4096])
def test_enhance_block_size_does_not_matter(inferencer, speech_like, block_size):
    x = speech_like[:3000]
    np.testing.assert_array_equal(inferencer.enhance(x, block_size), inferencer.enhance(x, 256))


def test_enhance_empty(inferencer):
    assert inferencer.enhance(np.zeros(0, dtype=np.float32)).size == 0


def test_explicit_adapter():
    inferencer = StreamInference(config=EngineConfig(), adapter=FunctionAdapter(lambda s, st: (s * 0, st)))
    y = inferencer.enhance(np.ones(2000, dtype=np.float32))
    np.testing.assert_allclose(y, 0.0, atol=1e-12)


def test_process_file_round_trip(tmp_path, inferencer, speech_like):
    src = tmp_path / "noisy.wav"
    dst = tmp_path / "out" / "enhanced.wav"
    sf.write(str(src), speech_like, 16000, subtype='FLOAT')

    inferencer.process_file(str(src), str(dst))

    y, sr = sf.read(str(dst), dtype='float32')
    assert sr == 16000
    assert y.size == speech_like.size
    np.testing.assert_allclose(y, speech_like, atol=1e-4)


def test_load_audio_mixes_down_and_resamples(tmp_path, inferencer):
    stereo = np.zeros((800, 2), dtype=np.float32)
    stereo[:, 0] = 0.5
    path = tmp_path / "stereo_8k.wav"
    sf.write(str(path), stereo, 8000, subtype='FLOAT')

    audio, sr = inferencer.load_audio(str(path))
    assert sr == 16000
    assert audio.dtype == np.float32
    assert audio.ndim == 1
    assert audio.size == 1600
    np.testing.assert_allclose(audio[400:1200], 0.25, atol=1e-2)


def test_process_directory(tmp_path, inferencer, speech_like):
    in_dir = tmp_path / "noisy"
    (in_dir / "sub").mkdir(parents=True)
    sf.write(str(in_dir / "a.wav"), speech_like[:4000], 16000)
    sf.write(str(in_dir / "sub" / "b.flac"), speech_like[:3000], 16000)
    (in_dir / "broken.wav").write_bytes(b"not a wav file")

    out_dir = tmp_path / "enhanced"
    success, failed = inferencer.process_directory(str(in_dir), str(out_dir), suffix="_enh")

    assert success == 2
    assert failed == [str(in_dir / "broken.wav")]
    assert (out_dir / "a_enh.wav").exists()
    assert (out_dir / "sub" / "b_enh.flac").exists()
    assert sf.info(str(out_dir / "a_enh.wav")).frames == 4000


def test_process_directory_rejects_file(tmp_path, inferencer):
    path = tmp_path / "x.wav"
    path.write_bytes(b"")
    with pytest.raises(ValueError):
        inferencer.process_directory(str(path), str(tmp_path / "out"))


def test_cli_single_file(tmp_path, speech_like, capsys):
    src = tmp_path / "in.wav"
    dst = tmp_path / "out.wav"
    sf.write(str(src), speech_like[:4000], 16000, subtype='FLOAT')

    assert main(['-i', str(src), '-o', str(dst), '-b', '100', '-t', 'radix2']) == 0
    assert dst.exists()
    assert "saved to" in capsys.readouterr().out


def test_cli_missing_model(tmp_path, capsys):
    code = main(['-m', str(tmp_path / "nope.onnx"), '-i', 'a.wav', '-o', 'b.wav'])
    assert code == 2
    assert "error" in capsys.readouterr().err


def test_cli_requires_io():
    with pytest.raises(SystemExit):
        main([])
    with pytest.raises(SystemExit):
        main(['-i', 'a.wav'])


@pytest.mark.parametrize("block_size", [0, -5])
def test_enhance_rejects_non_positive_block_size(inferencer, block_size):
    with pytest.raises(ConfigurationError):
        inferencer.enhance(np.ones(3000, dtype=np.float32), block_size)


def test_cli_periodic_window_without_normalization(tmp_path, speech_like):
    src = tmp_path / "in.wav"
    dst = tmp_path / "out.wav"
    sf.write(str(src), speech_like[:4000], 16000, subtype='FLOAT')

    args = build_parser().parse_args(['-i', str(src), '-o', str(dst), '--periodic_window'])
    assert args.periodic_window

    assert main(['-i', str(src), '-o', str(dst), '--periodic_window', '--no_normalize']) == 0
    y, _ = sf.read(str(dst), dtype='float32')
    np.testing.assert_allclose(y, speech_like[:4000], atol=1e-4)
