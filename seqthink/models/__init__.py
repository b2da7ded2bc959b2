"""Data models for the thinking service."""
from .api import (
    CodeContext,
    CodeError,
    CodeFile,
    CodeSymbol,
    CombinedSequentialThinkingRequest,
    ExternalToolResult,
    HealthResponse,
    ProjectInfo,
    SequentialThinkingRequest,
    SuggestedToolUse,
    TextContent,
    ThinkerRequest,
    ThoughtResponse,
    ToolInfo,
    ToolResponse,
)
from .internal import (
    GenerationResult,
    ThinkingSession,
    ThoughtRecord,
    ToolRequest,
)

__all__ = [
    "CodeContext",
    "CodeError",
    "CodeFile",
    "CodeSymbol",
    "CombinedSequentialThinkingRequest",
    "ExternalToolResult",
    "HealthResponse",
    "ProjectInfo",
    "SequentialThinkingRequest",
    "SuggestedToolUse",
    "TextContent",
    "ThinkerRequest",
    "ThoughtResponse",
    "ToolInfo",
    "ToolResponse",
    "GenerationResult",
    "ThinkingSession",
    "ThoughtRecord",
    "ToolRequest",
]
