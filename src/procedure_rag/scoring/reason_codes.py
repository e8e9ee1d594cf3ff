"""Reason codes attached to a failed retrieval-quality assessment."""

from __future__ import annotations

from enum import Enum


class ReasonCode(str, Enum):
    NO_SOURCES_FOUND = "no_sources_found"
    LOW_RELEVANCE = "low_relevance"
    WEAK_SOURCES = "weak_sources"
    INSUFFICIENT_SOURCES = "insufficient_sources"
