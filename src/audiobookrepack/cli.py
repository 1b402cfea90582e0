"""
Command-line interface for audiobookrepack.
"""

import argparse
import sys
import os
import logging
from datetime import datetime

from . import __version__
from .config import load_settings
from .core.processor import RepackProcessor
from .utils.progress_tracker import create_progress_tracker, ProcessingTimer
from .exceptions import RepackError, DependencyError, classify_error


def setup_logging(quiet=False, log_dir=None):
    """
    Sets up the logging configuration for the application.

    Args:
        quiet (bool): If True, reduces console output verbosity.
        log_dir (str): Directory for the log file (default: current directory).
    """
    now = datetime.now()
    dt_string = now.strftime("%Y-%m-%d_%H-%M-%S")
    log_file = os.path.join(log_dir or os.getcwd(), f'logfile_{dt_string}.log')

    # Configure file logging
    logging.basicConfig(
        filename=log_file,
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    # Add console handler for warnings and errors (unless quiet mode)
    if not quiet:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(message)s')
        console_handler.setFormatter(console_formatter)
        logging.getLogger().addHandler(console_handler)


def parse_arguments(argv=None):
    """
    Parses and validates command line arguments for the application.

    Returns:
        argparse.Namespace: Parsed command line arguments.
    """
    parser = argparse.ArgumentParser(
        prog="audiobookrepack",
        description="audiobookrepack - Join audiobook chapter files into one file with chapter markers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  audiobookrepack "/books/Dune - Written by Frank Herbert - Narrated by Scott Brick"
  audiobookrepack /books/Dune --output-dir /books/out
  audiobookrepack /books/Dune --batch-size 3 --probe-timeout 30

The folder name supplies title, author and narrator when the first chapter
file has no title/album tags.
        """
    )

    parser.add_argument(
        'folder',
        help='Folder containing the chapter files of one audiobook'
    )

    parser.add_argument(
        '--output-dir', '-o',
        help='Output directory (default: "<folder>_repack" next to the folder)'
    )

    parser.add_argument(
        '--config',
        help='Path to a JSON settings file (default: ~/.audiobookrepack_config.json)'
    )

    parser.add_argument(
        '--batch-size',
        type=int,
        help='Number of chapter files probed concurrently (default: 5)'
    )

    parser.add_argument(
        '--probe-timeout',
        type=float,
        help='Seconds before a single ffprobe call is abandoned (default: 120)'
    )

    parser.add_argument(
        '--keep-temp',
        action='store_true',
        default=None,
        help='Keep the file list and metadata documents after a successful run'
    )

    parser.add_argument(
        '--no-audiobook-tag',
        action='store_false',
        dest='mark_as_audiobook',
        default=None,
        help='Do not mark the output file as an audiobook'
    )

    parser.add_argument(
        '--no-progress-bars',
        action='store_true',
        help='Print plain progress lines instead of progress bars'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Reduce output verbosity'
    )

    parser.add_argument(
        '--log-dir',
        help='Directory for the log file (default: current directory)'
    )

    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'audiobookrepack {__version__}'
    )

    args = parser.parse_args(argv)

    args.folder = args.folder.replace('"', '')
    if not os.path.isdir(args.folder):
        parser.error(f"Folder does not exist: {args.folder}")
    if args.log_dir and not os.path.isdir(args.log_dir):
        parser.error(f"Log directory does not exist: {args.log_dir}")

    return args


def main(argv=None):
    """Main entry point for the CLI application."""
    try:
        args = parse_arguments(argv)
        setup_logging(quiet=args.quiet, log_dir=args.log_dir)

        settings = load_settings(args.config).with_overrides(
            batch_size=args.batch_size,
            probe_timeout=args.probe_timeout,
            keep_temp_files=args.keep_temp,
            mark_as_audiobook=args.mark_as_audiobook,
        )

        progress_tracker = create_progress_tracker(quiet=args.quiet, disable_bars=args.no_progress_bars)
        processing_timer = ProcessingTimer()
        processing_timer.start()

        processor = RepackProcessor(settings=settings, progress_tracker=progress_tracker)
        result = processor.repack(args.folder, output_dir=args.output_dir)

        processing_duration = processing_timer.stop()
        progress_tracker.print_summary(
            result.output_file, len(result.chapters),
            result.total_duration_seconds, processing_duration
        )

        if result.warnings and not args.quiet:
            print("\nWarnings encountered:")
            for warning in result.warnings:
                print(f"   - {warning}")

        sys.exit(0)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        logging.warning('Operation cancelled by user')
        sys.exit(130)
    except DependencyError as e:
        print(f"\nDependency Error: {e.get_user_message()}", file=sys.stderr)
        logging.error(f'Dependency error: {e}')
        sys.exit(1)
    except RepackError as e:
        print(f"\nError: {e.get_user_message()}", file=sys.stderr)
        logging.error(f'Repack failed ({classify_error(e)}): {e}')
        sys.exit(1)
    except Exception as e:
        print(f"\nUnexpected error: {str(e)}", file=sys.stderr)
        logging.exception(f'Unexpected error: {str(e)}')
        sys.exit(1)


if __name__ == '__main__':
    main()
