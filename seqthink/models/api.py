"""Tool-protocol request and response models."""
from typing import List, Optional, Literal, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
import time

from seqthink.config import ReasoningMode

ThinkerMode = Literal[
    "reasoning_partner",
    "generate_perspectives",
    "brainstorm_options",
    "analyze_pros_cons",
    "compare_contrast",
    "simulate_debate",
]


class CamelModel(BaseModel):
    """Base model exchanged with callers in camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class CodeSymbol(CamelModel):
    """A symbol relevant to a code question."""
    name: str = Field(description="Symbol name")
    type: str = Field(description="Symbol type (function, class, variable, etc.)")
    line: Optional[int] = Field(default=None, description="Line number where symbol is defined")


class CodeFile(CamelModel):
    """A file related to a code question."""
    path: str = Field(description="Path to the file")
    language: Optional[str] = Field(default=None, description="Programming language")
    snippet: Optional[str] = Field(default=None, description="Relevant code snippet")
    start_line: Optional[int] = Field(default=None, description="Starting line number")
    end_line: Optional[int] = Field(default=None, description="Ending line number")
    symbols: Optional[List[CodeSymbol]] = Field(default=None, description="Relevant symbols in the file")


class CodeError(CamelModel):
    """Error information for debugging contexts."""
    message: Optional[str] = Field(default=None, description="Error message if debugging")
    stack: Optional[str] = Field(default=None, description="Stack trace if available")


class ProjectInfo(CamelModel):
    """Project-level information."""
    structure: Optional[str] = Field(default=None, description="Brief description of relevant project structure")
    dependencies: Optional[List[str]] = Field(default=None, description="Relevant dependencies")


class CodeContext(CamelModel):
    """Structured code context supplied alongside a thought."""
    type: Literal["codeContext"] = "codeContext"
    version: str = "1.0"
    query: Optional[str] = Field(default=None, description="The original user question about code")
    files: Optional[List[CodeFile]] = Field(default=None, description="Files related to the code question")
    error: Optional[CodeError] = Field(default=None, description="Error information for debugging contexts")
    project_info: Optional[ProjectInfo] = Field(default=None, description="Project-level information")


class ExternalToolResult(CamelModel):
    """Results from an external tool to incorporate into thinking."""
    tool_type: str = Field(description="The type of tool that was used")
    query: str = Field(description="The query that was used with the tool")
    result: str = Field(description="The result returned by the tool")


class SequentialThinkingRequest(CamelModel):
    """Arguments of one sequential thinking step."""
    current_thinking: str = Field(
        description=(
            "The evolving thought process. MUST be different for each thought. "
            "Use the previously generated thought as input for the next call."
        ),
    )
    thought_number: int = Field(ge=1, description="Current thought number")
    total_thoughts: int = Field(ge=1, description="Total thoughts needed")
    next_thought_needed: bool = Field(description="Whether another thought is needed")
    is_revision: Optional[bool] = Field(default=None, description="Whether this thought revises a previous one")
    revises_thought: Optional[int] = Field(default=None, ge=1, description="Which thought is being revised")
    branch_from_thought: Optional[int] = Field(default=None, ge=1, description="Which thought is the branching point")
    branch_id: Optional[str] = Field(default=None, description="Identifier for the current branch")
    needs_more_thoughts: Optional[bool] = Field(
        default=None,
        description="If reaching the end but realizing more thoughts are needed (informational)",
    )
    reasoning_mode: Optional[ReasoningMode] = Field(
        default=None,
        description="The style of reasoning to apply (analytical, creative, critical, reflective)",
    )
    external_tool_result: Optional[ExternalToolResult] = None
    user_context: Optional[Union[str, CodeContext]] = Field(
        default=None,
        description=(
            "Additional context provided by the user, such as code snippets, "
            "relevant documents, or background information"
        ),
    )


class CombinedSequentialThinkingRequest(SequentialThinkingRequest):
    """Sequential thinking step routed to one backend or all of them."""
    model_type: str = Field(
        default="all",
        description="Which backend to use for generating thoughts, or 'all'",
    )

    def for_backend(self) -> SequentialThinkingRequest:
        """Return the request without the backend selector."""
        return SequentialThinkingRequest(**self.model_dump(exclude={"model_type"}))


class ThinkerRequest(CamelModel):
    """Arguments of a single-shot reasoning request."""
    origin_prompt: str = Field(
        min_length=1,
        description=(
            "The user's original prompt or question that requires deep analysis. "
            "For best results, pass the complete prompt context without modification."
        ),
    )
    mode: ThinkerMode = Field(
        default="reasoning_partner",
        description=(
            "The type of thinking desired. Use 'reasoning_partner' for detailed "
            "step-by-step thought processes."
        ),
    )
    # wire name stays snake_case
    output_count: int = Field(
        default=3,
        ge=1,
        alias="output_count",
        description="Number of distinct perspectives or options to generate",
    )
    constraints: Optional[str] = Field(
        default=None,
        description="Specific requirements or focus areas to guide the thinking process",
    )


class SuggestedToolUse(CamelModel):
    """A tool the generated thought appears to ask for."""
    tool_type: str
    query: str
    message: str


class ThoughtResponse(CamelModel):
    """JSON payload returned for a successfully generated thought."""
    thought: str
    thought_number: int
    total_thoughts: int
    next_thought_needed: bool
    suggested_tool_use: Optional[SuggestedToolUse] = None
    hint: str


class TextContent(BaseModel):
    """A text content block."""
    type: Literal["text"] = "text"
    text: str


class ToolResponse(CamelModel):
    """Content-block response of a tool call."""
    content: List[TextContent]
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolResponse":
        return cls(content=[TextContent(text=text)], is_error=is_error)


class ToolInfo(CamelModel):
    """A tool advertised to callers."""
    name: str
    description: str
    input_schema: dict


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str = "1.0.0"
    service: str
    backends: List[str]
    timestamp: int = Field(default_factory=lambda: int(time.time()))
