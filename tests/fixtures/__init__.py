"""
Test fixtures for Orbit cache tests.
Provides a manual clock, fake fetchers and sample records.
"""

from .fake_clock import ManualClock
from .fake_fetchers import CountingFetcher, FailingFetcher, GatedFetcher
from .sample_records import (
    ORG_1,
    ORG_2,
    SAMPLE_COMPANIES,
    SAMPLE_CONTACTS,
    SAMPLE_MARKETS,
    SAMPLE_VERTICALS,
    SAMPLE_PE_PLATFORMS,
)

__all__ = [
    "ManualClock",
    "CountingFetcher",
    "FailingFetcher",
    "GatedFetcher",
    "ORG_1",
    "ORG_2",
    "SAMPLE_COMPANIES",
    "SAMPLE_CONTACTS",
    "SAMPLE_MARKETS",
    "SAMPLE_VERTICALS",
    "SAMPLE_PE_PLATFORMS",
]
