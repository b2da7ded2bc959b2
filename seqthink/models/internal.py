"""Internal data structures for the thinking process."""
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field

from seqthink.models.api import CodeContext


class ToolRequest(BaseModel):
    """A tool lookup the generated text appears to ask for."""
    tool_type: str
    query: str


class GenerationResult(BaseModel):
    """Outcome of one backend generation call.

    Exactly one of ``text`` or ``error`` is meaningful, selected by ``ok``.
    """
    ok: bool
    text: str = ""
    error: Optional[str] = None

    @classmethod
    def success(cls, text: str) -> "GenerationResult":
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, error: str) -> "GenerationResult":
        return cls(ok=False, error=error)


class ThoughtRecord(BaseModel):
    """A single committed reasoning step."""
    original_query: str
    current_thinking: str
    thought_number: int = Field(ge=1)
    total_thoughts: int = Field(ge=1)
    next_thought_needed: bool
    thought: str
    is_revision: Optional[bool] = None
    revises_thought: Optional[int] = None
    branch_from_thought: Optional[int] = None
    branch_id: Optional[str] = None
    needs_more_thoughts: Optional[bool] = None
    reasoning_mode: str
    user_context: Optional[Union[str, CodeContext]] = None
    suggested_tool_use: Optional[ToolRequest] = None
    error: Optional[str] = None
    created_at: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None


class ThinkingSession:
    """History of one reasoning session, owned by a single server.

    The history is append-only. ``branches`` indexes it by branch id and can
    always be rebuilt from the records.
    """

    def __init__(self):
        self.history: List[ThoughtRecord] = []
        self.branches: Dict[str, List[int]] = {}
        self.original_query: Optional[str] = None
        self.last_thought_timestamp: Optional[float] = None

    def __len__(self) -> int:
        return len(self.history)

    def latest(self) -> Optional[ThoughtRecord]:
        """Return the most recently committed record."""
        return self.history[-1] if self.history else None

    def has_thought(self, thought_number: int) -> bool:
        return any(r.thought_number == thought_number for r in self.history)

    def previous_thoughts(self, before: int, limit: int = 2) -> List[ThoughtRecord]:
        """Return up to ``limit`` records numbered below ``before``, most recent first.

        Higher thought numbers count as more recent; among records sharing a
        number the later arrival wins. Failed generations are skipped.
        """
        candidates = [
            (record.thought_number, index, record)
            for index, record in enumerate(self.history)
            if record.thought_number < before and not record.failed
        ]
        candidates.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [record for _, _, record in candidates[:limit]]

    def remember_query(self, current_thinking: str, thought_number: int) -> str:
        """Record the original query and return it.

        A thought numbered 1 starts a new line of reasoning and replaces the
        stored query.
        """
        if thought_number == 1 or self.original_query is None:
            self.original_query = current_thinking
        return self.original_query

    def append(self, record: ThoughtRecord) -> None:
        """Commit a record and update the branch index."""
        self.history.append(record)
        self.last_thought_timestamp = record.created_at
        self._index_branch(record)

    def rebuild_branches(self) -> Dict[str, List[int]]:
        """Recompute the branch index from history."""
        self.branches = {}
        for record in self.history:
            self._index_branch(record)
        return self.branches

    def _index_branch(self, record: ThoughtRecord) -> None:
        if record.branch_from_thought and record.branch_id:
            self.branches.setdefault(record.branch_id, []).append(record.thought_number)

    def reset(self) -> None:
        """Drop all session state."""
        self.history = []
        self.branches = {}
        self.original_query = None
        self.last_thought_timestamp = None
