"""
Socket Mode entry point for wap-bot.
Connects to Slack via WebSocket and runs the event loop until SIGINT/SIGTERM.

Usage:
    python -m wap_bot.main_socket
"""
import signal
import threading

import httpx
from slack_sdk import WebClient

from .config import get_settings
from .extractors import build_default_registry
from .extractors.titles import DEFAULT_HEADERS
from .log import setup_logging, get_logger
from .mlops.tracing import MLflowTracer
from .pipeline.summarize import ThreadSummarizer
from .slack.client import SlackClientWrapper
from .slack.dispatcher import SlackEventDispatcher
from .slack.socket import SocketEventSource

logger = get_logger("socket_listener")


def install_signal_handlers(stop: threading.Event):
    def handle_signal(signum, frame):
        logger.info("shutdown signal received, gracefully shutting down...")
        stop.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def main():
    """Start the Socket Mode listener and block until shutdown."""
    settings = get_settings()
    setup_logging(settings)

    stop = threading.Event()
    install_signal_handlers(stop)

    tracer = MLflowTracer.from_settings(settings)
    web_client = WebClient(token=settings.SLACK_BOT_TOKEN)

    with httpx.Client(follow_redirects=True, headers=DEFAULT_HEADERS) as http:
        registry = build_default_registry(
            http,
            timeout=settings.TITLE_REQUEST_TIMEOUT,
            attempts=settings.TITLE_REQUEST_RETRIES,
        )
        summarizer = ThreadSummarizer(registry, tracer=tracer)
        slack = SlackClientWrapper(web_client, cancel=stop)
        source = SocketEventSource(settings.SLACK_APP_TOKEN, web_client=web_client, trace_enabled=settings.DEBUG)
        dispatcher = SlackEventDispatcher(
            slack,
            summarizer,
            acknowledge=source.ack,
            tracer=tracer,
            cancel=stop,
            replies_limit=settings.REPLIES_PAGE_LIMIT,
        )

        logger.info("starting slack socket connection...")
        try:
            source.connect()
            dispatcher.run(source.events, stop, poll_interval=settings.EVENT_POLL_INTERVAL)
        finally:
            stop.set()
            source.close()

    logger.info("shutdown complete")

if __name__ == "__main__":
    main()
