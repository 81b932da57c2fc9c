"""
Streaming GTCRN speech enhancement.

Usage:
    # single file
    python -m gtcrn_stream -m gtcrn_stream.onnx -i noisy.wav -o enhanced.wav

    # batch
    python -m gtcrn_stream -m gtcrn_stream.onnx --input_dir ./noisy --output_dir ./enhanced

    # no model: identity adapter, checks the analysis/synthesis round trip
    python -m gtcrn_stream -i noisy.wav -o passthrough.wav
"""
import argparse
import logging
import sys

from .config import EngineConfig
from .errors import StreamError
from .inference import StreamInference
from .transform import TRANSFORMS


def build_parser():
    parser = argparse.ArgumentParser(
        prog='gtcrn_stream',
        description='Streaming GTCRN speech enhancement',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('--model_path', '-m', type=str, default=None,
                        help='streaming GTCRN ONNX model (omit for identity pass-through)')

    parser.add_argument('--input', '-i', type=str, default=None, help='input audio file')
    parser.add_argument('--output', '-o', type=str, default=None, help='output audio file')

    parser.add_argument('--input_dir', type=str, default=None, help='input folder (batch mode)')
    parser.add_argument('--output_dir', type=str, default=None, help='output folder (batch mode)')
    parser.add_argument('--suffix', type=str, default="", help='output file name suffix, e.g. "_enhanced"')
    parser.add_argument('--no_keep_structure', action='store_true', help='do not keep sub-folder structure')

    parser.add_argument('--frame_size', type=int, default=None, help='FFT frame size (default: 512)')
    parser.add_argument('--hop_size', type=int, default=None, help='hop size (default: 256)')
    parser.add_argument('--block_size', '-b', type=int, default=None,
                        help='samples per process() call, simulates the device callback size')
    parser.add_argument('--transform', '-t', type=str, default=None, choices=sorted(TRANSFORMS),
                        help='FFT backend')
    parser.add_argument('--no_normalize', action='store_true',
                        help='skip the squared-window overlap normalization')
    parser.add_argument('--periodic_window', action='store_true',
                        help='periodic sqrt-Hann (denominator N) instead of the symmetric one')
    parser.add_argument('--verbose', '-v', action='store_true', help='enable debug logging')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    single_file_mode = args.input is not None or args.output is not None
    batch_mode = args.input_dir is not None or args.output_dir is not None
    if single_file_mode and batch_mode:
        parser.error("use either -i/-o or --input_dir/--output_dir, not both")
    if single_file_mode and (args.input is None or args.output is None):
        parser.error("single file mode needs both -i and -o")
    if batch_mode and (args.input_dir is None or args.output_dir is None):
        parser.error("batch mode needs both --input_dir and --output_dir")
    if not single_file_mode and not batch_mode:
        parser.error("specify -i/-o or --input_dir/--output_dir")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        config = EngineConfig.from_env().override(
            frame_size=args.frame_size,
            hop_size=args.hop_size,
            block_size=args.block_size,
            transform=args.transform,
            normalize=False if args.no_normalize else None,
            periodic_window=True if args.periodic_window else None,
        )
        inferencer = StreamInference(args.model_path, config)
    except (StreamError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if single_file_mode:
        print(f"processing: {args.input}")
        enhanced = inferencer.process_file(args.input, args.output)
        stats = inferencer.last_stats
        print(f"  length: {len(enhanced) / inferencer.sample_rate:.2f}s")
        print(f"  frames: {stats.frames}, mean adapter time: {stats.mean_frame_ms:.3f}ms per frame")
        if inferencer.last_rtf is not None:
            print(f"  RTF: {inferencer.last_rtf:.3f}")
        print(f"saved to: {args.output}")
        return 0

    _, failed = inferencer.process_directory(
        args.input_dir,
        args.output_dir,
        suffix=args.suffix,
        keep_structure=not args.no_keep_structure,
    )
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
