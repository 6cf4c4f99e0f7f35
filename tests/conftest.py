"""Pytest configuration and fixtures."""
import asyncio
from typing import Dict, List, Optional, Set

import pytest

from table_enrich.clients.base import BaseResearcher
from table_enrich.models import (
    ResearchConfig,
    ResearchResult,
    ResearchTask,
    Source,
    Table,
)


class StubResearcher(BaseResearcher):
    """Deterministic researcher that records calls and concurrency."""

    name = "stub"

    def __init__(
        self,
        fail_subjects: Optional[Set[str]] = None,
        raise_subjects: Optional[Set[str]] = None,
        errors: Optional[List[str]] = None,
    ):
        self.fail_subjects = fail_subjects or set()
        self.raise_subjects = raise_subjects or set()
        self.errors = errors or []
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call = None

    def validate(self) -> List[str]:
        return list(self.errors)

    async def research(self, subject, prompt, context, use_high_quality=False):
        self.calls.append((subject, prompt, context, use_high_quality))
        if self.on_call:
            self.on_call(subject)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

        if subject in self.raise_subjects:
            raise RuntimeError(f"provider exploded for {subject}")
        if subject in self.fail_subjects:
            return ResearchResult.error()
        return ResearchResult(
            text=f"{prompt} -> {subject}",
            sources=(Source(title=f"{subject} page", uri=f"https://example.com/{subject}"),),
        )


class SleepRecorder:
    """Stands in for asyncio.sleep between batches."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def researcher() -> StubResearcher:
    return StubResearcher()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


def make_companies(count: int) -> Table:
    records: List[Dict[str, str]] = [
        {"Company": f"Co{i}", "City": f"City{i}", "Notes": f"note {i}"}
        for i in range(count)
    ]
    return Table.from_records(["Company", "City", "Notes"], records)


@pytest.fixture
def companies() -> Table:
    """Twelve-row company table."""
    return make_companies(12)


@pytest.fixture
def one_task_config() -> ResearchConfig:
    return ResearchConfig(
        target_columns=["Company"],
        tasks=[ResearchTask(new_column_name="CEO", prompt="Who is the CEO?")],
    )


@pytest.fixture
def three_task_config() -> ResearchConfig:
    return ResearchConfig(
        target_columns=["Company"],
        tasks=[
            ResearchTask(new_column_name="CEO", prompt="Who is the CEO?"),
            ResearchTask(new_column_name="Website", prompt="Official website?"),
            ResearchTask(new_column_name="Revenue", prompt="Latest revenue?"),
        ],
    )


@pytest.fixture
def researcher_cls():
    return StubResearcher


@pytest.fixture
def table_factory():
    return make_companies
