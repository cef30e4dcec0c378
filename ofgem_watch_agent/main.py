"""Main entry point for the Ofgem publication watcher."""

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional

from .channels import ApiChannel, PageChannel
from .config import AppConfig, load_config
from .detector import RelevanceFilter
from .email_notifier import NotificationDispatcher, SmtpTransport
from .extractors import MarkupExtractor, StructuredExtractor
from .fetcher import FetchOrchestrator
from .http_client import create_session
from .poller import PollLoop
from .state_store import StateStore

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def build_loop(config: AppConfig) -> PollLoop:
    """Wire the configured collaborators into a PollLoop."""
    session = create_session()
    markup = MarkupExtractor(config.source.base_url, config.source.selectors)
    structured = StructuredExtractor(
        config.source.base_url,
        records_key=config.source.records_key,
        markup_key=config.source.markup_key,
        markup_extractor=markup,
    )
    fetcher = FetchOrchestrator.from_config(
        config.fetch,
        primary=ApiChannel(
            session, config.source.api_url, structured, timeout=config.fetch.timeout_seconds
        ),
        secondary=PageChannel(
            session, config.source.search_url, markup, timeout=config.fetch.timeout_seconds
        ),
    )
    dispatcher = NotificationDispatcher(
        SmtpTransport(config.smtp),
        sender=config.notification.sender,
        subject=config.notification.subject,
    )
    relevance_filter = RelevanceFilter(config.notification.keywords)
    if not relevance_filter.enabled:
        relevance_filter = None
    else:
        logger.info(f"Target keywords: {', '.join(config.notification.keywords)}")

    max_runtime_seconds = None
    if config.poll.max_runtime_minutes:
        max_runtime_seconds = config.poll.max_runtime_minutes * 60

    return PollLoop(
        fetcher=fetcher,
        store=StateStore(config.poll.state_file),
        dispatcher=dispatcher,
        recipients=config.notification.recipients,
        interval_seconds=config.poll.interval_minutes * 60,
        relevance_filter=relevance_filter,
        max_runtime_seconds=max_runtime_seconds,
    )


def install_signal_handlers(loop: PollLoop) -> None:
    """SIGINT and SIGTERM both trigger a graceful shutdown."""
    def _handle(signum, frame):
        logger.info(f"Received signal {signal.Signals(signum).name}")
        loop.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch Ofgem for new publications and email a notification for each one"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single poll cycle and exit (for cron-style scheduling)"
    )
    parser.add_argument(
        "--reset-state",
        action="store_true",
        help="Delete the last seen publication before polling (the current latest will be notified)"
    )
    parser.add_argument(
        "--max-runtime",
        type=float,
        default=None,
        metavar="MINUTES",
        help="Stop after this many minutes (overrides MAX_RUNTIME_MINUTES)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with command-line argument parsing."""
    args = _parse_args(argv)
    _configure_logging()

    if args.max_runtime is not None:
        os.environ["MAX_RUNTIME_MINUTES"] = str(args.max_runtime)

    try:
        logger.info("Loading configuration...")
        config = load_config()
    except ValueError as e:
        logger.error(f"FATAL: configuration error: {e}")
        return 1

    loop = build_loop(config)

    if args.reset_state:
        logger.info("Clearing last seen publication...")
        try:
            loop.store.clear()
        except OSError as e:
            logger.error(f"FATAL: could not remove state file {loop.store.path}: {e}")
            return 1

    if args.once:
        loop.run_cycle()
        return 0

    install_signal_handlers(loop)
    return loop.run()


if __name__ == "__main__":
    sys.exit(main())
