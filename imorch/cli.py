#!/usr/bin/env python3
"""
imorch CLI entry point with file + console logging
"""

from __future__ import annotations
import sys
import argparse
import signal
import os
import logging
import logging.handlers
import traceback
from pathlib import Path

from imorch.log import level_for
from __version__ import __version__

# Global logger instance
logger = None


def setup_logging(debug: bool = False, log_file: str | None = None, trace: bool = False) -> logging.Logger:
    """Setup logging to both console and file

    Args:
        debug: Enable debug level logging
        trace: Also log every raw editor notification (TRACE level)
        log_file: Path to log file (default: ~/.imorch.log)
    """
    global logger

    if logger is not None:
        return logger

    logger = logging.getLogger('imorch')
    level = level_for(debug=debug, trace=trace)
    logger.setLevel(level)

    if log_file is None:
        log_file = os.path.expanduser('~/.imorch.log')

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    fmt = logging.Formatter(
        '[%(asctime)s] %(levelname)-8s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler (rotate log file when it gets too large)
    try:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10 MB
            backupCount=5,
            encoding='utf-8',
        )
        file_handler.setLevel(min(level, logging.DEBUG))
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)
    except OSError as e:
        print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    # Console goes to stderr: stdin carries editor notifications
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level if level < logging.INFO else logging.WARNING)
    console_handler.setFormatter(fmt)
    logger.addHandler(console_handler)

    return logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='imorch',
        description='Switch the input method on Vim-mode and math-region transitions',
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode with verbose logging'
    )
    parser.add_argument(
        '--trace',
        action='store_true',
        help='Log every raw editor notification (implies --debug)'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to config file (default: ~/.config/imorch/config.json)'
    )
    parser.add_argument(
        '--logfile',
        type=str,
        default=None,
        help='Path to log file (default: ~/.imorch.log)'
    )
    parser.add_argument(
        '--input',
        type=str,
        default=None,
        help='JSON-lines notification source, e.g. a FIFO (default: stdin)'
    )
    parser.add_argument(
        '--headless',
        action='store_true',
        help='Run without the tray icon'
    )
    parser.add_argument(
        '--sync',
        action='store_true',
        help='Run IME commands synchronously on the event thread'
    )
    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s ' + __version__
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for imorch"""
    args = parse_args(argv)

    debug = args.debug or args.trace
    log = setup_logging(debug=debug, log_file=args.logfile, trace=args.trace)

    log.info("imorch started (version %s, pid %d)", __version__, os.getpid())
    log.info("Debug mode: %s", debug)

    # Import after args parsing to avoid import-time side effects
    from imorch.app import IMEOrchestratorApp
    from imorch.editor.stream import StreamEditorAdapter

    exit_reason = None
    stream = None

    try:
        app = IMEOrchestratorApp(headless=args.headless, debug=debug, config_path=args.config)
        if args.sync:
            app.config.override('async_exec', False)
        log.info("Config loaded from %s", app.config.config_path)

        if args.input:
            stream = open(args.input, 'r', encoding='utf-8')
        editor = StreamEditorAdapter(stream or sys.stdin)

        def signal_handler(signum: int, frame) -> None:
            nonlocal exit_reason
            exit_reason = f"Signal {signal.Signals(signum).name} (code {signum})"
            log.warning("Received signal: %s", exit_reason)
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        app.run(editor)

        exit_reason = "Input stream closed"
        return 0

    except KeyboardInterrupt:
        exit_reason = "Keyboard interrupt (Ctrl+C)"
        return 0

    except OSError as e:
        exit_reason = f"OS error: {e}"
        log.error("OS error: %s", e)
        log.debug(traceback.format_exc())
        return 1

    except Exception as e:
        exit_reason = f"Unhandled exception: {type(e).__name__}: {e}"
        log.error("Unhandled error: %s", e)
        log.debug(traceback.format_exc())
        return 1

    finally:
        if stream is not None:
            stream.close()
        if exit_reason:
            log.info("Exit reason: %s", exit_reason)
        log.info("imorch shutdown")


if __name__ == '__main__':
    sys.exit(main())
