"""
Voice History CLI
Inspect and manage the local transcription history.

Usage:
    voice-history list                 # List saved transcriptions
    voice-history delete ID            # Delete one transcription
    voice-history clear                # Delete all transcriptions
    voice-history usage                # Show storage usage against quota
    voice-history import response.json # Save a service response to history
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from voice_history.config import Config
from voice_history.exceptions import TranscriptionError
from voice_history.storage.history_store import HistoryItem, HistoryStore
from voice_history.storage.quota import QuotaProber
from voice_history.storage.substrate import FileStore, KeyValueStore
from voice_history.storage.usage import UsageReporter
from voice_history.transport import parse_response

logger = logging.getLogger(__name__)

LOG_FILE = "voice-history.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(debug: bool = False, log_file: str = LOG_FILE) -> None:
    """
    Route log records to stderr, and to log_file as well when debugging.

    Quiet by default: only warnings reach the terminal.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if debug:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        handlers=handlers,
    )


def print_items(items: List[HistoryItem]) -> None:
    """Print history items, newest first."""
    if not items:
        print("History is empty.")
        return

    print(f"{len(items)} saved transcription(s):")
    print("-" * 65)
    for item in items:
        print(f"{item.id}  {item.timestamp}  {item.model or '-'}")
        if item.audio_info.file_name:
            print(f"  File:       {item.audio_info.file_name} ({item.audio_info.file_size_formatted})")
        print(f"  Chinese:    {item.ai_response.china}")
        print(f"  Pinyin:     {item.ai_response.pinyin}")
        print(f"  Vietnamese: {item.ai_response.vietnamese}")
        print("-" * 65)


async def run_command(parsed: argparse.Namespace, config: Config, store: KeyValueStore) -> int:
    """Run one CLI command against the given store."""
    history = HistoryStore(store, key=config.history_key, max_items=config.max_items)

    if parsed.command == "list":
        print_items(await history.list())
        return 0

    elif parsed.command == "delete":
        outcome = await history.delete(parsed.id)
        print(f"{parsed.id}: {outcome.value}")
        return 0 if outcome.ok else 1

    elif parsed.command == "clear":
        outcome = await history.clear()
        print(f"History {outcome.value}")
        return 0 if outcome.ok else 1

    elif parsed.command == "usage":
        prober = QuotaProber(store)
        await prober.probe()
        usage = await UsageReporter(store, prober).get_usage()
        if usage is None:
            print("Storage usage unavailable")
            return 1
        print(f"Used:  {usage.used_formatted} of {usage.total_formatted} ({usage.percentage:.1f}%)")
        return 0

    elif parsed.command == "import":
        try:
            body = Path(parsed.file).read_bytes()
            result = parse_response(body)
        except OSError as e:
            print(f"Error: cannot read {parsed.file}: {e}")
            return 1
        except TranscriptionError as e:
            print(f"Error: {e}")
            return 1
        outcome = await history.save(result)
        print(f"Transcription {outcome.value}")
        return 0 if outcome.ok else 1

    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="voice-history",
        description="Manage the local history of voice transcriptions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  voice-history list                      List saved transcriptions
  voice-history delete 1700000000000_abc  Delete one transcription
  voice-history usage                     Probe quota and show usage
  voice-history import response.json      Save a service response
        """
    )

    parser.add_argument(
        "--storage",
        type=str,
        default=None,
        help="Storage file (default: $VOICE_HISTORY_PATH or ~/.voice-history/storage.json)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("list", help="List saved transcriptions, newest first")

    delete_parser = subparsers.add_parser("delete", help="Delete a transcription by ID")
    delete_parser.add_argument("id", type=str, help="History item ID")

    subparsers.add_parser("clear", help="Delete all saved transcriptions")

    subparsers.add_parser("usage", help="Show storage usage against the probed quota")

    import_parser = subparsers.add_parser(
        "import",
        help="Save a transcription service response (JSON file) to history"
    )
    import_parser.add_argument("file", type=str, help="Path to the JSON response")

    return parser


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the Voice History CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    setup_logging(debug=parsed.debug or config.debug)
    for warning in config.validate():
        logger.warning(warning)

    if not parsed.command:
        parser.print_help()
        return 0

    path = Path(parsed.storage).expanduser() if parsed.storage else config.storage_path
    store = FileStore(path, capacity=config.storage_capacity)
    return asyncio.run(run_command(parsed, config, store))


if __name__ == "__main__":
    sys.exit(main())
