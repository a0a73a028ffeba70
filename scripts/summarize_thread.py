#!/usr/bin/env python3
"""
Utility: build the CSV summary of a thread without uploading it.

Usage:
  python scripts/summarize_thread.py --channel C12345 --thread 1712345678.000100 --out summary.csv

Fetches the thread replies with the bot token, runs the same summarizer the bot
uses and writes the result locally (or prints it when --out is omitted).

Requires: SLACK_BOT_TOKEN and SLACK_APP_TOKEN in environment (same as the main app).
"""
from __future__ import annotations
import argparse
import sys

import httpx
from slack_sdk import WebClient

from wap_bot.config import get_settings
from wap_bot.extractors import build_default_registry
from wap_bot.extractors.titles import DEFAULT_HEADERS
from wap_bot.log import setup_logging
from wap_bot.pipeline.summarize import ThreadSummarizer
from wap_bot.slack.client import SlackClientWrapper


def main():
    p = argparse.ArgumentParser(description="Summarize the music links of a Slack thread")
    p.add_argument("--channel", required=True, help="Channel ID of the thread (e.g., C12345)")
    p.add_argument("--thread", required=True, help="Timestamp of the thread's parent message")
    p.add_argument("--out", help="Write the CSV to this path instead of stdout")
    args = p.parse_args()

    settings = get_settings()
    setup_logging(settings)

    slack = SlackClientWrapper(WebClient(token=settings.SLACK_BOT_TOKEN))
    messages = slack.get_thread_replies(args.channel, args.thread, limit=settings.REPLIES_PAGE_LIMIT)
    print(f"Fetched {len(messages)} messages from {args.channel}/{args.thread}", file=sys.stderr)

    with httpx.Client(follow_redirects=True, headers=DEFAULT_HEADERS) as http:
        registry = build_default_registry(http, timeout=settings.TITLE_REQUEST_TIMEOUT, attempts=settings.TITLE_REQUEST_RETRIES)
        artifact = ThreadSummarizer(registry).summarize(messages, args.channel, args.thread)

    print(artifact.initial_comment, file=sys.stderr)
    if args.out:
        with open(args.out, "wb") as f:
            f.write(artifact.content)
        print(f"Wrote {artifact.size} bytes to {args.out}", file=sys.stderr)
    else:
        sys.stdout.write(artifact.content.decode("utf-8"))


if __name__ == '__main__':
    main()
