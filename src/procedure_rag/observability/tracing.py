"""Lightweight request tracing with spans."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from procedure_rag.models.domain import QualityAssessment, Trace, VerificationResult


@dataclass
class Span:
    name: str
    start_ms: float
    end_ms: float = 0.0
    metadata: dict = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        return self.end_ms - self.start_ms


class TraceContext:
    def __init__(self, kind: str = "search", trace_id: str | None = None) -> None:
        self.kind = kind
        self.trace_id = trace_id or str(uuid4())
        self.spans: list[Span] = []
        self.start_time = time.monotonic()
        self._epoch = time.time()

    @contextmanager
    def span(self, name: str, **metadata):
        s = Span(
            name=name,
            start_ms=(time.monotonic() - self.start_time) * 1000,
            metadata=metadata,
        )
        try:
            yield s
        finally:
            s.end_ms = (time.monotonic() - self.start_time) * 1000
            self.spans.append(s)

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000

    def timings(self) -> dict[str, float]:
        return {s.name: round(s.duration_ms, 2) for s in self.spans}

    def to_trace(
        self,
        query: str,
        detected_language: str | None = None,
        quality: QualityAssessment | None = None,
        verification: VerificationResult | None = None,
    ) -> Trace:
        return Trace(
            trace_id=self.trace_id,
            kind=self.kind,
            query=query,
            timestamp=datetime.fromtimestamp(self._epoch, tz=timezone.utc),
            latency_ms=self.elapsed_ms,
            detected_language=detected_language,
            quality_passed=quality.passed if quality else None,
            quality_confidence=quality.confidence if quality else None,
            verification_status=verification.status if verification else None,
            verification_confidence=verification.confidence if verification else None,
            spans=[
                {
                    "name": s.name,
                    "start_ms": s.start_ms,
                    "end_ms": s.end_ms,
                    "duration_ms": s.duration_ms,
                    **s.metadata,
                }
                for s in self.spans
            ],
        )
