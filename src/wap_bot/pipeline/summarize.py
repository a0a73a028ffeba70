"""Thread summarizer: turns the replies of a thread into a CSV of music links.

Every message goes through extraction then title resolution. A failure at either
step only drops that message; the rest of the thread is still summarized.
"""

import csv
import io
import threading
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from ..errors import CancelledError, ExtractionError, TitleError
from ..extractors import ProviderRegistry
from ..log import ContextLogger, bind_logger, get_logger
from ..mlops.tracing import NULL_TRACER, MLflowTracer
from ..schemas.links import ParsedLink, Provider, SummaryArtifact, ThreadMessage

logger = get_logger("summarizer")

CSV_DELIMITER = ";"
TITLE_COLUMN = "Title"


def build_csv(links: Iterable[ParsedLink], providers: Sequence[Provider]) -> bytes:
    """Serializes links into a ';' separated UTF-8 table, one URL column per provider."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=CSV_DELIMITER, lineterminator="\n")
    writer.writerow([TITLE_COLUMN] + [p.column for p in providers])
    for link in links:
        writer.writerow([link.title] + [link.url if p == link.provider else "" for p in providers])
    return buffer.getvalue().encode("utf-8")


def artifact_filename(channel_id: str, thread_ts: str) -> str:
    return f"{channel_id}-{thread_ts}.csv"


class ThreadSummarizer:
    def __init__(self, registry: ProviderRegistry, tracer: Optional[MLflowTracer] = None):
        self.registry = registry
        self.tracer = tracer or NULL_TRACER

    def extract_link(self, text: str, cancel: Optional[threading.Event] = None) -> ParsedLink:
        url, provider = self.registry.extract(text)
        with self.tracer.span("titles.resolve", span_type="RETRIEVER", attributes={"provider": provider.value}, inputs={"url": url}):
            title = self.registry.resolver(provider).resolve(url, cancel=cancel)
        return ParsedLink(title=title, url=url, provider=provider)

    def summarize(
        self,
        messages: Sequence[ThreadMessage],
        channel_id: str,
        thread_ts: str,
        cancel: Optional[threading.Event] = None,
        log: Optional[ContextLogger] = None,
    ) -> SummaryArtifact:
        log = bind_logger(log or logger, channel_id=channel_id, thread_ts=thread_ts)
        links: List[ParsedLink] = []
        skipped: Counter = Counter()

        with self.tracer.span("summarizer.summarize", span_type="CHAIN", attributes={"channel_id": channel_id, "thread_ts": thread_ts}) as span:
            for message in messages:
                if cancel is not None and cancel.is_set():
                    raise CancelledError("summarizer.summarize")
                try:
                    link = self.extract_link(message.text, cancel=cancel)
                except (ExtractionError, TitleError) as e:
                    skipped[type(e).__name__] += 1
                    log.warning(
                        "unable to process url in reply",
                        extra={"fields": {"text": message.text, "username": message.author, "error": e}},
                    )
                    continue
                log.debug(f"Parsed {link.provider.value} link: {link.title}")
                links.append(link)

            content = build_csv(links, self.registry.providers)
            self.tracer.set_attributes(span, {"row_count": len(links), "skipped_count": sum(skipped.values())})

        if skipped:
            log.info(f"Skipped {sum(skipped.values())}/{len(messages)} replies: {dict(skipped)}")

        filename = artifact_filename(channel_id, thread_ts)
        return SummaryArtifact(
            content=content,
            filename=filename,
            title=filename,
            initial_comment=f"Found {len(links)} music URLs in this thread",
            channel=channel_id,
            thread_ts=thread_ts,
            row_count=len(links),
        )
