# src/pr_reviewer/providers/base.py
from abc import ABC, abstractmethod
from pr_reviewer.models.review import ReviewResult


class LLMProvider(ABC):
    @abstractmethod
    async def review(self, prompt: str) -> ReviewResult:
        """Send prompt to LLM and return parsed review result."""
        pass
