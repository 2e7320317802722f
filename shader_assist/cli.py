from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from enum import Enum
from typing import Iterable, Optional, TextIO

from . import __version__
from .compiler import CompileDispatcher
from .config import DEFAULT_CONFIG_FILE, ConfigError, ShaderAssistConfig
from .logging_config import configure_logging
from .signals import CommandChannel
from .watcher import POLL_INTERVAL_SECONDS, ShaderWatcher

logger = logging.getLogger(__name__)


class Command(str, Enum):
    HELP = "help"
    QUIT = "quit"
    RECOMPILE = "recompile"
    STATUS = "status"


_COMMANDS = {
    "-h": Command.HELP,
    "-help": Command.HELP,
    "help": Command.HELP,
    "-q": Command.QUIT,
    "-quit": Command.QUIT,
    "quit": Command.QUIT,
    "exit": Command.QUIT,
    "-r": Command.RECOMPILE,
    "-recompile": Command.RECOMPILE,
    "-s": Command.STATUS,
    "-status": Command.STATUS,
    "status": Command.STATUS,
}

HELP_TEXT = """commands:
-h|-help|help:        list of commands
-q|-quit|quit|exit:   quit ShaderAssist
-r|-recompile:        recompile all shaders
-s|-status|status:    show watcher status"""


def parse_command(line: str) -> Optional[Command]:
    """Map an input line to a Command. Unrecognized lines give None."""
    return _COMMANDS.get(line.strip())


def handle_command(
    command: Command,
    channel: CommandChannel,
    watcher: Optional[ShaderWatcher] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Apply one command to the channel, printing any feedback to out."""
    if out is None:
        out = sys.stdout
    if command is Command.HELP:
        print(HELP_TEXT, file=out)
    elif command is Command.QUIT:
        channel.request_exit()
    elif command is Command.RECOMPILE:
        print("forcing recompile", file=out)
        channel.request_recompile()
    elif command is Command.STATUS:
        if watcher is None:
            return
        stats = watcher.stats()
        print("[ShaderAssist Status]", file=out)
        print(f"  State: {stats['state']}", file=out)
        print(f"  Tracked files: {stats['tracked_files']}", file=out)
        print(f"  Passes: {stats['passes']}", file=out)
        print(f"  Compiled: {stats['compiled']} ok, {stats['failed']} failed", file=out)


def command_loop(
    lines: Iterable[str],
    channel: CommandChannel,
    watcher: Optional[ShaderWatcher] = None,
    out: Optional[TextIO] = None,
) -> None:
    """
    Read commands until quit or end of input.

    End of input counts as quit so the watcher never outlives its
    control surface.
    """
    for line in lines:
        command = parse_command(line)
        if command is not None:
            handle_command(command, channel, watcher, out)
        if channel.exit_requested:
            return
    channel.request_exit()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shader-assist",
        description="ShaderAssist - recompile GLSL shaders to SPIR-V whenever they change",
    )
    ap.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                    help=f"Settings file (.ini, .yaml or .json, default: {DEFAULT_CONFIG_FILE})")
    ap.add_argument("--compile-on-startup", action="store_true",
                    help="Compile all existing shaders on the first scan")
    ap.add_argument("--interval", type=float, default=POLL_INTERVAL_SECONDS,
                    help="Seconds between directory scans")
    ap.add_argument("--log-level", default="INFO",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                    help="Console log level")
    ap.add_argument("--log-dir", default=None, help="Also write rotating log files here")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(level=args.log_level, log_dir=args.log_dir)

    try:
        config = ShaderAssistConfig.load(args.config)
    except ConfigError as e:
        logger.error(f"Failed to read config file: {e}")
        return 1

    if args.compile_on_startup:
        config = replace(config, compile_on_startup=True)
    config = config.resolve_paths(os.getcwd())

    dispatcher = CompileDispatcher(config)
    try:
        dispatcher.ensure_output_dir()
    except OSError as e:
        logger.error(f"Cannot create output directory {config.spirv_output_path}: {e}")
        return 1

    channel = CommandChannel()
    watcher = ShaderWatcher(
        config,
        channel=channel,
        dispatcher=dispatcher,
        interval=args.interval,
    )

    print(f"ShaderAssist {__version__}")
    print("Enter -h for the list of commands.")

    watcher.start()
    try:
        command_loop(iter(sys.stdin.readline, ""), channel, watcher)
    except KeyboardInterrupt:
        print()
    finally:
        watcher.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
