"""Core business logic modules."""
from .client import ModelBackend, ModelClient
from .combiner import CombinedThinkingServer
from .detector import detect_tool_request
from .pacing import PacingGate
from .prompts import Prompt, PromptAssembler, format_code_context
from .server import SequentialThinkingServer
from .thinker import ThinkerServer
from .tools import Tool, ToolRegistry, build_registry

__all__ = [
    "ModelBackend",
    "ModelClient",
    "CombinedThinkingServer",
    "detect_tool_request",
    "PacingGate",
    "Prompt",
    "PromptAssembler",
    "format_code_context",
    "SequentialThinkingServer",
    "ThinkerServer",
    "Tool",
    "ToolRegistry",
    "build_registry",
]
