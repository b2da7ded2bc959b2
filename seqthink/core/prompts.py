"""Prompt assembly for sequential thinking steps."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from seqthink.config import ThinkingConfig
from seqthink.models.api import CodeContext, SequentialThinkingRequest
from seqthink.models.internal import ThinkingSession, ThoughtRecord
from seqthink.utils.logging import get_logger

logger = get_logger(__name__)


class Prompt(BaseModel):
    """System and user prompt for one generation call."""
    system: str
    user: str
    reasoning_mode: str


def format_code_context(context: CodeContext) -> str:
    """Render a structured code context as markdown.

    Only the fields that are present are rendered.
    """
    parts = ["\n\n**Code Context:**\n"]

    if context.query:
        parts.append(f"Question about: {context.query}\n\n")

    for file in context.files or []:
        header = f"**File:** {file.path}"
        if file.language:
            header += f" ({file.language})"
        parts.append(header + "\n")

        if file.start_line is not None and file.end_line is not None:
            parts.append(f"Lines {file.start_line}-{file.end_line}\n")

        if file.snippet:
            parts.append(f"```{file.language or ''}\n{file.snippet}\n```\n")

        if file.symbols:
            parts.append("\n**Relevant Symbols:**\n")
            for symbol in file.symbols:
                line = f"- {symbol.name} ({symbol.type})"
                if symbol.line is not None:
                    line += f" at line {symbol.line}"
                parts.append(line + "\n")
            parts.append("\n")

    error = context.error
    if error and (error.message or error.stack):
        parts.append("\n**Error Information:**\n")
        if error.message:
            parts.append(f"Error: {error.message}\n")
        if error.stack:
            parts.append(f"```\n{error.stack}\n```\n")

    info = context.project_info
    if info and (info.structure or info.dependencies):
        parts.append("\n**Project Information:**\n")
        if info.structure:
            parts.append(f"Structure: {info.structure}\n")
        if info.dependencies:
            parts.append(f"Dependencies: {', '.join(info.dependencies)}\n")

    return "".join(parts)


class PromptAssembler:
    """Build prompts from session state and the incoming request."""

    def __init__(self, templates: Dict[str, Any], config: Optional[ThinkingConfig] = None):
        self.templates = templates or {}
        self.config = config or ThinkingConfig()

    def _section(self, name: str, **values: Any) -> str:
        template = self.templates.get("sections", {}).get(name, "")
        return template.format(**values)

    def system_prompt(self, reasoning_mode: str) -> str:
        return self.templates.get("system", {}).get(reasoning_mode, "")

    def build(self, session: ThinkingSession, request: SequentialThinkingRequest) -> Prompt:
        """Assemble the prompt for ``request``.

        Identical session state and request always give the same prompt.
        """
        mode = request.reasoning_mode or self.config.default_reasoning_mode
        original_query = session.original_query or request.current_thinking

        previous = session.previous_thoughts(
            request.thought_number, limit=self.config.previous_thoughts
        )

        user = self.templates.get("user_template", "").format(
            thought_number=request.thought_number,
            total_thoughts=request.total_thoughts,
            original_query=original_query,
            user_context=self._user_context(request),
            current_thinking=request.current_thinking,
            intro=self._intro(session, request),
            previous_thoughts=self._previous_thoughts(previous),
            external_tool=self._external_tool(request),
            ending=self._ending(request),
            mode_directive=self._section("mode_directive", mode=mode),
        )

        logger.debug(
            "prompt_built",
            thought_number=request.thought_number,
            reasoning_mode=mode,
            previous=[r.thought_number for r in previous],
            length=len(user),
        )

        return Prompt(system=self.system_prompt(mode), user=user, reasoning_mode=mode)

    def _user_context(self, request: SequentialThinkingRequest) -> str:
        context = request.user_context
        if not context:
            return self._section("no_user_context")
        if isinstance(context, CodeContext):
            return format_code_context(context)
        return self._section("user_context", context=context)

    def _intro(self, session: ThinkingSession, request: SequentialThinkingRequest) -> str:
        if request.thought_number == 1:
            intro = self._section("first_thought")
        else:
            intro = self._section("thought_number", thought_number=request.thought_number)

        if request.is_revision:
            target = request.revises_thought
            if target is None:
                intro += self._section("revision_unspecified")
            elif session.has_thought(target):
                intro += self._section("revision", thought_number=target)
            else:
                intro += self._section("revision_unknown", thought_number=target)
        elif request.branch_from_thought:
            target = request.branch_from_thought
            if session.has_thought(target):
                intro += self._section("branch", thought_number=target)
            else:
                intro += self._section("branch_unknown", thought_number=target)

        return intro

    def _previous_thoughts(self, previous: List[ThoughtRecord]) -> str:
        if not previous:
            return ""
        rendered = "\n\n".join(
            self._section("previous_thought", thought_number=r.thought_number, thought=r.thought)
            for r in reversed(previous)
        )
        return self._section("previous_thoughts", thoughts=rendered)

    def _external_tool(self, request: SequentialThinkingRequest) -> str:
        result = request.external_tool_result
        if result is None:
            return ""
        return self._section(
            "external_tool",
            tool_type=result.tool_type,
            query=result.query,
            result=result.result,
        )

    def _ending(self, request: SequentialThinkingRequest) -> str:
        if request.thought_number >= request.total_thoughts:
            return self._section("final_thought")
        return ""
