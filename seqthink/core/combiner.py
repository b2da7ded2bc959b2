"""Fan a thought out to several backends and combine their answers."""
import asyncio
import json
from typing import Dict, List, Optional

from seqthink.core.server import STATUS_FAILED, SequentialThinkingServer
from seqthink.models.api import (
    CombinedSequentialThinkingRequest,
    SequentialThinkingRequest,
    TextContent,
    ToolResponse,
)
from seqthink.utils.logging import get_logger

logger = get_logger(__name__)

ALL_MODELS = "all"


class CombinedThinkingServer:
    """Route a thought to one named backend, or to all of them at once.

    Each backend keeps its own session; the combined view never merges
    histories. A partial failure still returns a successful response with the
    failing backends marked.
    """

    def __init__(self, servers: Dict[str, SequentialThinkingServer]):
        self.servers = servers

    @property
    def model_types(self) -> List[str]:
        return [*self.servers, ALL_MODELS]

    async def process_sequential_thinking(
        self,
        request: CombinedSequentialThinkingRequest,
    ) -> ToolResponse:
        model_type = request.model_type
        common = request.for_backend()

        if model_type in self.servers:
            return await self.servers[model_type].process_sequential_thinking(common)

        if model_type != ALL_MODELS:
            return ToolResponse.from_text(
                f"Unknown model type: {model_type}. Valid options: {', '.join(self.model_types)}",
                is_error=True,
            )

        return await self._process_all(common)

    async def _process_all(self, request: SequentialThinkingRequest) -> ToolResponse:
        names = list(self.servers)
        logger.info("combined_start", backends=names, thought_number=request.thought_number)

        results = await asyncio.gather(
            *(self.servers[name].process_sequential_thinking(request) for name in names),
            return_exceptions=True,
        )

        errors: Dict[str, str] = {}
        payloads: Dict[str, Optional[dict]] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error("combined_backend_exception", backend=name, error=str(result))
                errors[name] = f"Error processing request: {result}"
                payloads[name] = None
            elif result.is_error:
                errors[name] = result.content[0].text
                payloads[name] = None
            else:
                payloads[name] = self._parse_payload(name, result)
                if payloads[name] is None:
                    errors[name] = result.content[0].text

        if len(errors) == len(names):
            logger.error("combined_all_failed", backends=names)
            return ToolResponse.from_text(
                json.dumps(
                    {
                        "error": "All models returned errors",
                        "errors": errors,
                        "status": STATUS_FAILED,
                    },
                    indent=2,
                ),
                is_error=True,
            )

        logger.info(
            "combined_complete",
            succeeded=[n for n in names if n not in errors],
            failed=list(errors),
        )

        return ToolResponse(
            content=[
                TextContent(text=self._format_block(name, payloads[name], request))
                for name in names
            ]
        )

    def _parse_payload(self, name: str, result: ToolResponse) -> Optional[dict]:
        try:
            return json.loads(result.content[0].text)
        except ValueError as e:
            logger.error("combined_parse_failed", backend=name, error=str(e))
            return None

    def _format_block(
        self,
        name: str,
        payload: Optional[dict],
        request: SequentialThinkingRequest,
    ) -> str:
        label = self.servers[name].backend.display_name
        data = payload or {}
        thought = data.get("thought") or f"{label} processing failed"
        suggested = data.get("suggestedToolUse")

        return "\n".join([
            f"=== {label.upper()} (THOUGHT #{request.thought_number}) ===",
            "",
            thought,
            "",
            "META:",
            f"- Thought Number: {request.thought_number}",
            f"- Total Thoughts: {request.total_thoughts}",
            f"- Next Thought Needed: {str(request.next_thought_needed).lower()}",
            f"- Suggested Tool: {json.dumps(suggested) if suggested else 'None'}",
        ])
