"""
Abstract base class for research invokers.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import ResearchResult


class BaseResearcher(ABC):
    """
    Answers one research question about one subject.

    Implementations must not raise for ordinary provider failures: they
    return `ResearchResult.error()` ("Error") or `ResearchResult.not_found()`
    ("N/A") instead. Configuration faults are reported by `validate()` so a
    run can be refused before it starts.
    """

    name = "base"

    def validate(self) -> List[str]:
        """Check configuration. Returns list of errors (empty if ready)."""
        return []

    @abstractmethod
    async def research(
        self,
        subject: str,
        prompt: str,
        context: str,
        use_high_quality: bool = False,
    ) -> ResearchResult:
        """
        Research a single question.

        Args:
            subject: Resolved entity string for the row
            prompt: Task instruction
            context: Other column values formatted as 'name: value, ...'
            use_high_quality: Use the slower, higher quality tier

        Returns:
            ResearchResult with answer text and sources
        """
        pass
