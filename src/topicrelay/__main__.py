"""Application entry point for topicrelay."""

import argparse
import asyncio
import signal
import sys
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError
from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from topicrelay.application.services.orchestrator import MessageOrchestrator
from topicrelay.config import (
    ConfigError,
    ConfigFileNotFoundError,
    load_config,
)
from topicrelay.domain.entities.event import InboundEvent
from topicrelay.infrastructure import (
    AssistantClient,
    Database,
    EventQueue,
    SlackPlatform,
    SqliteThreadTopicRepository,
)
from topicrelay.infrastructure.logging import get_logger, setup_logging
from topicrelay.presentation.http.server import HTTPServer

# Shutdown timeout in seconds
SHUTDOWN_TIMEOUT = 30


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="topicrelay - Slack to assistant API relay"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    return parser.parse_args(args)


async def run_main_loop(
    event_queue: EventQueue,
    orchestrator: MessageOrchestrator,
    shutdown_event: asyncio.Event,
    running_check: Callable[[], bool],
    logger: BoundLogger,
) -> None:
    """Process queued events until shutdown is signaled.

    Args:
        event_queue: EventQueue instance for retrieving events.
        orchestrator: MessageOrchestrator instance for processing events.
        shutdown_event: Event that signals shutdown.
        running_check: Callable that returns whether the loop should continue.
        logger: Logger instance.
    """
    while running_check():
        dequeue_task = asyncio.create_task(event_queue.dequeue())
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        try:
            done, pending = await asyncio.wait(
                [dequeue_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            # An event dequeued in the same tick as shutdown is still handled
            if dequeue_task in done:
                event = dequeue_task.result()
                await _process_event(event, orchestrator, event_queue, logger)

            if shutdown_task in done:
                break

        except asyncio.CancelledError:
            for task in (dequeue_task, shutdown_task):
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            raise


async def _process_event(
    event: InboundEvent,
    orchestrator: MessageOrchestrator,
    event_queue: EventQueue,
    logger: BoundLogger,
) -> None:
    """Process a single event.

    Args:
        event: Event to process.
        orchestrator: MessageOrchestrator instance.
        event_queue: EventQueue instance for marking done.
        logger: Logger instance.
    """
    try:
        await orchestrator.process(event)
    except Exception as e:
        logger.error("Error processing event", event_id=event.id, error=str(e))
    finally:
        event_queue.mark_done(event)


async def main_async(
    config_path: Path,
    shutdown_timeout: float = SHUTDOWN_TIMEOUT,
) -> int:
    """Async main function.

    Args:
        config_path: Path to configuration file.
        shutdown_timeout: Maximum time in seconds to wait for graceful shutdown.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    config = load_config(config_path)

    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info("Starting topicrelay", config_path=str(config_path))

    database = Database(config.database.url)
    await database.initialize()
    topics = SqliteThreadTopicRepository(database)
    purged = await topics.purge_expired()
    logger.info("Thread topic store ready", purged=purged)

    event_queue = EventQueue()
    assistant = AssistantClient(config=config.assistant, logger=get_logger("assistant"))
    platform = SlackPlatform(
        client=AsyncWebClient(token=config.slack.bot_token),
        logger=get_logger("slack"),
        bot_user_id=config.slack.bot_user_id,
    )
    orchestrator = MessageOrchestrator(
        assistant=assistant,
        topics=topics,
        platform=platform,
        config=config.relay,
        logger=get_logger("orchestrator"),
    )
    http_server = HTTPServer(
        config=config.server,
        event_queue=event_queue,
        logger=get_logger("http_server"),
        signing_secret=config.slack.signing_secret,
        bot_user_id=config.slack.bot_user_id,
    )

    running = True
    shutdown_event = asyncio.Event()

    def is_running() -> bool:
        return running

    def signal_handler(sig: signal.Signals) -> None:
        nonlocal running
        logger.info("Received signal, initiating shutdown", signal=sig.name)
        running = False
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    try:
        await http_server.start()
        logger.info("topicrelay started successfully")

        await run_main_loop(
            event_queue=event_queue,
            orchestrator=orchestrator,
            shutdown_event=shutdown_event,
            running_check=is_running,
            logger=logger,
        )

    except asyncio.CancelledError:
        logger.info("Main loop cancelled")

    finally:
        logger.info("Shutting down")
        try:
            await asyncio.wait_for(http_server.stop(), timeout=shutdown_timeout)
        except TimeoutError:
            logger.warning(
                "Shutdown timed out, forcing termination",
                timeout_seconds=shutdown_timeout,
            )
        await assistant.close()
        await database.close()
        logger.info("topicrelay stopped")

    return 0


def main() -> None:
    """Main entry point."""
    args = parse_args()
    config_path = args.config

    try:
        exit_code = asyncio.run(main_async(config_path))
        sys.exit(exit_code)
    except ConfigFileNotFoundError:
        print(f"Error: {config_path} not found", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Configuration validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
