"""Single-backend sequential thinking server."""
import asyncio
import json
from typing import Optional

from seqthink.core.detector import detect_tool_request
from seqthink.core.pacing import PacingGate
from seqthink.core.prompts import PromptAssembler
from seqthink.models.api import (
    SequentialThinkingRequest,
    SuggestedToolUse,
    ThoughtResponse,
    ToolResponse,
)
from seqthink.models.internal import (
    GenerationResult,
    ThinkingSession,
    ThoughtRecord,
    ToolRequest,
)
from seqthink.utils.logging import get_logger

logger = get_logger(__name__)

SIMILAR_THINKING_ERROR = "ERROR: The currentThinking parameter must be different for each thought."
STATUS_FAILED = "failed"
HINT_USE_TOOL = "Consider using the suggested tool before continuing with sequential thinking"
HINT_NEXT_THOUGHT = "Use this thought as input for next call"


def generation_error_text(error: str) -> str:
    return f"Error generating thought: {error}"


def tool_suggestion(request: ToolRequest) -> SuggestedToolUse:
    return SuggestedToolUse(
        tool_type=request.tool_type,
        query=request.query,
        message=(
            f'Consider using the {request.tool_type} tool with query: "{request.query}" '
            "before continuing with sequential thinking"
        ),
    )


class SequentialThinkingServer:
    """Drive one model backend through the per-thought cycle.

    The server owns its session exclusively. Calls are serialized on an
    asyncio lock so that pacing and history appends never interleave.
    """

    def __init__(
        self,
        backend,
        assembler: PromptAssembler,
        pacing: Optional[PacingGate] = None,
        session: Optional[ThinkingSession] = None,
    ):
        self.backend = backend
        self.assembler = assembler
        self.pacing = pacing or PacingGate()
        self.session = session or ThinkingSession()
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.backend.name

    def is_thinking_too_similar(self, current_thinking: str) -> bool:
        latest = self.session.latest()
        return latest is not None and latest.current_thinking == current_thinking

    async def process_sequential_thinking(self, request: SequentialThinkingRequest) -> ToolResponse:
        """Generate, record and return the next thought."""
        async with self._lock:
            return await self._process(request)

    async def _process(self, request: SequentialThinkingRequest) -> ToolResponse:
        if self.is_thinking_too_similar(request.current_thinking):
            logger.warning(
                "thinking_rejected_similar",
                backend=self.name,
                thought_number=request.thought_number,
            )
            return ToolResponse.from_text(
                json.dumps({"error": SIMILAR_THINKING_ERROR, "status": STATUS_FAILED}, indent=2),
                is_error=True,
            )

        await self.pacing.wait(self.session.last_thought_timestamp)

        self._check_references(request)
        original_query = self.session.remember_query(
            request.current_thinking, request.thought_number
        )
        prompt = self.assembler.build(self.session, request)

        logger.info(
            "thought_start",
            backend=self.name,
            thought_number=request.thought_number,
            total_thoughts=request.total_thoughts,
            reasoning_mode=prompt.reasoning_mode,
        )

        result = await self._generate(prompt.system, prompt.user)

        if result.ok:
            thought = result.text
            tool_request = detect_tool_request(thought)
        else:
            thought = generation_error_text(result.error)
            tool_request = None

        record = ThoughtRecord(
            original_query=original_query,
            current_thinking=request.current_thinking,
            thought_number=request.thought_number,
            total_thoughts=request.total_thoughts,
            next_thought_needed=request.next_thought_needed,
            thought=thought,
            is_revision=request.is_revision,
            revises_thought=request.revises_thought,
            branch_from_thought=request.branch_from_thought,
            branch_id=request.branch_id,
            needs_more_thoughts=request.needs_more_thoughts,
            reasoning_mode=prompt.reasoning_mode,
            user_context=request.user_context,
            suggested_tool_use=tool_request,
            error=result.error,
            created_at=self.pacing.now(),
        )
        self.session.append(record)

        logger.info(
            "thought_committed",
            backend=self.name,
            thought_number=record.thought_number,
            history=len(self.session),
            failed=record.failed,
            suggested_tool=tool_request.tool_type if tool_request else None,
        )

        if record.failed:
            return ToolResponse.from_text(thought, is_error=True)

        response = ThoughtResponse(
            thought=thought,
            thought_number=request.thought_number,
            total_thoughts=request.total_thoughts,
            next_thought_needed=request.next_thought_needed,
            suggested_tool_use=tool_suggestion(tool_request) if tool_request else None,
            hint=HINT_USE_TOOL if tool_request else HINT_NEXT_THOUGHT,
        )
        return ToolResponse.from_text(
            response.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        )

    async def _generate(self, system_prompt: str, user_prompt: str) -> GenerationResult:
        try:
            return await self.backend.generate(system_prompt, user_prompt)
        except Exception as e:
            logger.exception("backend_exception", backend=self.name, error=str(e))
            return GenerationResult.failure(str(e) or type(e).__name__)

    def _check_references(self, request: SequentialThinkingRequest) -> None:
        for field, number in (
            ("revises_thought", request.revises_thought),
            ("branch_from_thought", request.branch_from_thought),
        ):
            if number is not None and not self.session.has_thought(number):
                logger.warning(
                    "unknown_thought_reference",
                    backend=self.name,
                    field=field,
                    thought_number=number,
                )

    def reset(self) -> None:
        """Start a fresh session."""
        self.session.reset()
        logger.info("session_reset", backend=self.name)
