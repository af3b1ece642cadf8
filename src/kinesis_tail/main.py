"""Command-line entry point: ``kin tail``."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from . import __version__
from .clients.kinesis_client import KinesisStreamClient
from .config.aws_config import AWSClientManager
from .config.settings import TailSettings, load_settings
from .errors import TailError
from .options import resolve_tail_options
from .tail import StreamTailer
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kin",
        description="Tools for Amazon Kinesis Data Streams"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tail = subparsers.add_parser(
        "tail",
        help="Tail records from a Kinesis Data Stream",
        description=(
            "Continuously reads records from the target stream. Each record's payload "
            "is deserialized as JSON if possible; otherwise it is printed as a "
            "base64-encoded string."
        )
    )
    tail.add_argument("-n", "--stream-name", required=True, help="Stream name (required)")
    tail.add_argument("-s", "--shard", help="Shard id; if not specified, all shards will be tailed")
    tail.add_argument(
        "-t", "--timestamp",
        help="Timestamp at which to begin consuming events (ex: 2021-09-10T11:12:13Z)"
    )
    tail.add_argument(
        "--from", dest="from_",
        help="Start tailing events starting from this long ago (ex: 1h)"
    )
    tail.add_argument("--config", help="YAML configuration file")
    tail.add_argument("--region", help="AWS region override")
    tail.add_argument("--profile", help="AWS profile name")
    tail.add_argument("--endpoint-url", help="Kinesis endpoint URL (e.g. LocalStack)")
    tail.add_argument(
        "--poll-interval", type=float,
        help="Seconds to wait between polls of a shard (default: 2)"
    )
    tail.add_argument("--log-level", help="Diagnostic log level (default: WARNING)")
    return parser


def apply_overrides(settings: TailSettings, args: argparse.Namespace) -> TailSettings:
    """Return settings with command-line flags taking precedence."""
    aws = {
        key: value for key, value in (
            ("region", args.region),
            ("profile", args.profile),
            ("endpoint_url", args.endpoint_url),
        ) if value is not None
    }
    tail = {}
    if args.poll_interval is not None:
        tail["poll_interval_seconds"] = args.poll_interval
    log = {}
    if args.log_level is not None:
        log["level"] = args.log_level

    data = settings.model_dump()
    data["aws"].update(aws)
    data["tail"].update(tail)
    data["logging"].update(log)
    return TailSettings(**data)


def _install_signal_handlers(tailer: StreamTailer):
    loop = asyncio.get_event_loop()

    def signal_handler(signum):
        logger.info(f"Received signal {signum}, initiating shutdown")
        tailer.stop()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, signal_handler, signum)
        except NotImplementedError:
            # Windows event loops: Ctrl-C falls back to KeyboardInterrupt
            logger.debug(f"Signal handlers unavailable for {signum}")


def _silence_stdout():
    # Further writes, including the flush at interpreter exit, go nowhere
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, sys.stdout.fileno())


async def run_tail(tailer: StreamTailer):
    """Run a tailer with SIGINT/SIGTERM wired to a graceful stop."""
    _install_signal_handlers(tailer)
    await tailer.run()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        options = resolve_tail_options(args.timestamp, args.from_)
        settings = apply_overrides(load_settings(args.config), args)
    except (TailError, ValueError, FileNotFoundError) as e:
        print(e, file=sys.stderr)
        return 1

    setup_logging(settings.logging, settings.service_name)

    try:
        kinesis_client = AWSClientManager(settings.aws).kinesis_client
    except TailError as e:
        print(e, file=sys.stderr)
        return 1

    tailer = StreamTailer(
        KinesisStreamClient(kinesis_client),
        args.stream_name,
        options,
        shard_id=args.shard,
        config=settings.tail
    )

    try:
        asyncio.run(run_tail(tailer))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except BrokenPipeError:
        # Reader of stdout went away, e.g. `kin tail ... | head`
        logger.info("Output closed, stopping")
        _silence_stdout()
        return 0
    except TailError as e:
        print(e, file=sys.stderr)
        return 1

    if tailer.all_shards_failed:
        print(f"All shards of {args.stream_name} failed; see log for details", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
