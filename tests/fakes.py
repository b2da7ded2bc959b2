import asyncio
from typing import Any, Dict, List, Optional, Union

from seqthink.models.internal import GenerationResult

Scripted = Union[str, GenerationResult, Exception]


class FakeClock:
    """Manual monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeBackend:
    """Backend returning scripted generations."""

    def __init__(
        self,
        name: str = "fake",
        label: str = "",
        responses: Optional[List[Scripted]] = None,
        default: Scripted = "A generated thought.",
        clock: Optional[FakeClock] = None,
        duration: float = 0.0,
        gate: Optional[asyncio.Event] = None,
        signal: Optional[asyncio.Event] = None,
    ) -> None:
        self.name = name
        self.display_name = label or name.capitalize()
        self.responses = list(responses or [])
        self.default = default
        self.clock = clock
        self.duration = duration
        self.gate = gate
        self.signal = signal
        self.calls: List[Dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, system_prompt: str, user_prompt: str) -> GenerationResult:
        self.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "started_at": self.clock() if self.clock else None,
        })
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.signal is not None:
                self.signal.set()
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(0)
            if self.clock is not None and self.duration:
                self.clock.advance(self.duration)

            scripted = self.responses.pop(0) if self.responses else self.default
            if isinstance(scripted, Exception):
                raise scripted
            if isinstance(scripted, GenerationResult):
                return scripted
            return GenerationResult.success(scripted)
        finally:
            self.in_flight -= 1


class FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeHTTPSession:
    """Stand-in for aiohttp.ClientSession.post with scripted replies."""

    def __init__(self, replies: Optional[List[Union[FakeResponse, Exception]]] = None) -> None:
        self.replies = list(replies or [])
        self.requests: List[Dict[str, Any]] = []

    def post(self, url: str, json: Any = None, headers: Any = None, timeout: Any = None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply
