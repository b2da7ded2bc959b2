"""Named tool operations exposed to the protocol layer."""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from seqthink.config import ThinkingConfig
from seqthink.core.combiner import ALL_MODELS, CombinedThinkingServer
from seqthink.core.pacing import PacingGate
from seqthink.core.prompts import PromptAssembler
from seqthink.core.server import SequentialThinkingServer
from seqthink.core.thinker import ThinkerServer
from seqthink.models.api import (
    CombinedSequentialThinkingRequest,
    SequentialThinkingRequest,
    ThinkerRequest,
    ToolInfo,
    ToolResponse,
)
from seqthink.utils.logging import get_logger

logger = get_logger(__name__)

COMBINED_TOOL = "combined-sequential-thinking"

SEQUENTIAL_DESCRIPTION = """\
Dynamic and reflective problem-solving through sequential thinking powered by {model}.
Each call generates one thought that builds on, questions, or revises previous ones.

Usage workflow:
1. Start with the initial question or problem in currentThinking.
2. For subsequent calls, pass the generated thought back as currentThinking.
   currentThinking MUST differ from the previous call.
3. If a tool is suggested, run it and pass its output via externalToolResult.
4. Revise earlier thoughts (isRevision/revisesThought) or branch
   (branchFromThought/branchId) as understanding changes.
5. Stop when a satisfactory conclusion is reached (nextThoughtNeeded=false).

reasoningMode selects the style: analytical, creative, critical or reflective.
userContext accepts plain text or a structured codeContext object.
needsMoreThoughts is informational and does not change the engine's behaviour."""

THINKER_DESCRIPTION = """\
A cognitive exploration tool that uses {model} to analyze a problem from multiple
perspectives in a single call and return structured thinking. Useful for complex
reasoning tasks, comparing viewpoints, or revealing a step-by-step thought process.
mode selects the style (reasoning_partner by default); output_count sets how many
perspectives or options to generate."""

COMBINED_DESCRIPTION = """\
Sequential thinking across several models at once. modelType selects one
backend ({choices}) or "all" (default) to ask every backend concurrently and
return one labeled answer per backend. Backends keep separate histories.
Other arguments are the same as for the single-model tools."""


@dataclass
class Tool:
    """A registered operation."""
    name: str
    description: str
    request_model: Type[BaseModel]
    handler: Callable[[Any], Awaitable[ToolResponse]]
    reset: Optional[Callable[[], None]] = None
    input_schema: Optional[Dict[str, Any]] = None

    def info(self) -> ToolInfo:
        return ToolInfo(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema or self.request_model.model_json_schema(by_alias=True),
        )


def combined_schema(model_types: List[str]) -> Dict[str, Any]:
    """Input schema of the combined tool with the backend selectors listed."""
    schema = CombinedSequentialThinkingRequest.model_json_schema(by_alias=True)
    schema["properties"]["modelType"]["enum"] = list(model_types)
    return schema


def format_validation_error(exc: ValidationError) -> str:
    details = ", ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return f"Invalid arguments: {details}"


class ToolRegistry:
    """Validate arguments and dispatch calls to registered tools."""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[ToolInfo]:
        return [tool.info() for tool in self._tools.values()]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> ToolResponse:
        """Run one tool call; every failure becomes an error response."""
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("unknown_tool", tool=name)
            return ToolResponse.from_text(f"Unknown tool: {name}", is_error=True)

        try:
            request = tool.request_model.model_validate(arguments or {})
        except ValidationError as e:
            logger.warning("invalid_arguments", tool=name, errors=e.error_count())
            return ToolResponse.from_text(format_validation_error(e), is_error=True)

        try:
            return await tool.handler(request)
        except Exception as e:
            logger.exception("tool_failed", tool=name, error=str(e))
            return ToolResponse.from_text(f"Error processing request: {e}", is_error=True)

    def reset(self, name: str) -> bool:
        """Reset the session state behind a tool; False if it has none."""
        tool = self._tools.get(name)
        if tool is None or tool.reset is None:
            return False
        tool.reset()
        return True


def build_registry(
    backends: List,
    templates: Dict[str, Any],
    config: Optional[ThinkingConfig] = None,
    pacing_factory: Optional[Callable[[], PacingGate]] = None,
    thinker_templates: Optional[Dict[str, Any]] = None,
) -> ToolRegistry:
    """Register the tools for every backend plus the combined tool.

    Each backend gets a sequential thinking tool and, when thinker templates
    are given, a single-shot thinker tool.

    The combined tool gets its own server per backend, so its sessions are
    independent from the single-backend tools.
    """
    config = config or ThinkingConfig()
    assembler = PromptAssembler(templates, config)
    if pacing_factory is None:
        def pacing_factory():
            return PacingGate(config.min_interval_ms)

    registry = ToolRegistry()

    for backend in backends:
        server = SequentialThinkingServer(backend, assembler, pacing_factory())
        registry.register(Tool(
            name=f"{backend.name}-sequential-thinking",
            description=SEQUENTIAL_DESCRIPTION.format(model=backend.display_name),
            request_model=SequentialThinkingRequest,
            handler=server.process_sequential_thinking,
            reset=server.reset,
        ))

        if thinker_templates:
            thinker = ThinkerServer(backend, thinker_templates)
            registry.register(Tool(
                name=f"{backend.name}-thinker",
                description=THINKER_DESCRIPTION.format(model=backend.display_name),
                request_model=ThinkerRequest,
                handler=thinker.process_request,
            ))

    if backends:
        combined = CombinedThinkingServer({
            backend.name: SequentialThinkingServer(backend, assembler, pacing_factory())
            for backend in backends
        })

        def reset_combined():
            for server in combined.servers.values():
                server.reset()

        registry.register(Tool(
            name=COMBINED_TOOL,
            description=COMBINED_DESCRIPTION.format(
                choices=", ".join(b.name for b in backends),
            ),
            request_model=CombinedSequentialThinkingRequest,
            handler=combined.process_sequential_thinking,
            reset=reset_combined,
            input_schema=combined_schema(combined.model_types),
        ))

    logger.info("tools_registered", tools=registry.names, combined_default=ALL_MODELS)
    return registry
