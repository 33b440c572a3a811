import asyncio
from dataclasses import dataclass, field


@dataclass
class ReviewSession:
    """Run-wide state shared by every file pass: the model call budget."""
    max_llm_calls: int = 100
    llm_calls: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def remaining(self) -> int:
        return max(0, self.max_llm_calls - self.llm_calls)

    @property
    def exhausted(self) -> bool:
        return self.llm_calls >= self.max_llm_calls

    async def try_acquire_call(self) -> bool:
        """Reserve one model call. Returns False once the budget is spent."""
        async with self._lock:
            if self.llm_calls >= self.max_llm_calls:
                return False
            self.llm_calls += 1
            return True
