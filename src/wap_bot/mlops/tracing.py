"""
MLflow tracing integration.
Provides span-based tracing for thread summarization, title lookups and Slack uploads.
"""
import logging
import time
from typing import Optional, Dict, Any
from contextlib import contextmanager

import mlflow

logger = logging.getLogger(__name__)


class MLflowTracer:
    """Opens MLflow spans around operations; every method is a no-op when disabled."""
    
    def __init__(self, enabled: bool = False, tracking_uri: Optional[str] = None):
        self.enabled = enabled
        if self.enabled:
            try:
                if tracking_uri:
                    mlflow.set_tracking_uri(tracking_uri)
                logger.info("MLflow tracing enabled")
            except Exception as e:
                logger.warning(f"Failed to initialize MLflow tracing: {e}")
                self.enabled = False
        else:
            logger.debug("MLflow tracing disabled")

    @classmethod
    def from_settings(cls, settings) -> "MLflowTracer":
        return cls(enabled=settings.MLFLOW_ENABLE_TRACING, tracking_uri=settings.MLFLOW_TRACKING_URI)
    
    @contextmanager
    def span(
        self,
        name: str,
        span_type: str = "UNKNOWN",
        attributes: Optional[Dict[str, Any]] = None,
        inputs: Optional[Dict[str, Any]] = None
    ):
        """
        Create a traced span for an operation.
        
        Args:
            name: Name of the span (e.g., "summarizer.summarize", "titles.resolve")
            span_type: Type of span (e.g., "CHAIN", "RETRIEVER", "TOOL")
            attributes: Additional metadata for the span
            inputs: Input data to the operation
        """
        if not self.enabled:
            yield None
            return
        
        with mlflow.start_span(name=name, span_type=span_type) as span:
            if attributes:
                span.set_attributes(attributes)
            if inputs:
                span.set_inputs(inputs)
            
            start_time = time.time()
            try:
                yield span
            except Exception as e:
                span.set_attribute("error", repr(e))
                raise
            finally:
                span.set_attribute("latency_ms", int((time.time() - start_time) * 1000))

    def set_attributes(self, span, attributes: Dict[str, Any]):
        """Attach attributes to a span yielded by span(); ignores the disabled (None) case."""
        if span is None:
            return
        try:
            span.set_attributes(attributes)
        except Exception as e:
            logger.warning(f"Failed to set span attributes: {e}")


# Used wherever no tracer is injected
NULL_TRACER = MLflowTracer(enabled=False)
