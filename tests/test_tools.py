import json

import pytest

from seqthink.core.tools import COMBINED_TOOL, build_registry
from tests.fakes import FakeBackend


@pytest.fixture
def registry(templates, thinker_templates, thinking_config, pacing_factory, clock):
    backends = [
        FakeBackend("gemini", "Gemini", default="Gemini says hi", clock=clock),
        FakeBackend("deepseek", "DeepSeek", default="DeepSeek says hi", clock=clock),
    ]
    return build_registry(
        backends,
        templates,
        thinking_config,
        pacing_factory=pacing_factory,
        thinker_templates=thinker_templates,
    )


def arguments(**overrides):
    args = {
        "currentThinking": "Design a rate limiter",
        "thoughtNumber": 1,
        "totalThoughts": 3,
        "nextThoughtNeeded": True,
    }
    args.update(overrides)
    return args


def test_lists_tools_per_backend_plus_combined(registry):
    tools = {tool.name: tool for tool in registry.list_tools()}

    assert set(tools) == {
        "gemini-sequential-thinking",
        "gemini-thinker",
        "deepseek-sequential-thinking",
        "deepseek-thinker",
        COMBINED_TOOL,
    }
    schema = tools["gemini-sequential-thinking"].input_schema
    assert set(schema["required"]) == {
        "currentThinking",
        "thoughtNumber",
        "totalThoughts",
        "nextThoughtNeeded",
    }
    assert "modelType" not in schema["properties"]
    assert "modelType" in tools[COMBINED_TOOL].input_schema["properties"]
    assert "Gemini" in tools["gemini-sequential-thinking"].description


@pytest.mark.asyncio
async def test_call_single_backend_tool(registry):
    result = await registry.call_tool("gemini-sequential-thinking", arguments())

    assert result.is_error is False
    assert json.loads(result.content[0].text)["thought"] == "Gemini says hi"


@pytest.mark.asyncio
async def test_unknown_tool(registry):
    result = await registry.call_tool("reflection", arguments())
    assert result.is_error is True
    assert result.content[0].text == "Unknown tool: reflection"


@pytest.mark.asyncio
async def test_missing_required_argument(registry):
    args = arguments()
    del args["thoughtNumber"]

    result = await registry.call_tool("gemini-sequential-thinking", args)

    assert result.is_error is True
    assert result.content[0].text.startswith("Invalid arguments: ")
    assert "thoughtNumber" in result.content[0].text


@pytest.mark.asyncio
async def test_out_of_range_and_bad_enum_arguments(registry):
    result = await registry.call_tool(
        "gemini-sequential-thinking",
        arguments(thoughtNumber=0, reasoningMode="sarcastic"),
    )
    text = result.content[0].text
    assert result.is_error is True
    assert "thoughtNumber" in text
    assert "reasoningMode" in text


@pytest.mark.asyncio
async def test_external_tool_result_requires_all_fields(registry):
    result = await registry.call_tool(
        "gemini-sequential-thinking",
        arguments(externalToolResult={"toolType": "file_search", "query": "x"}),
    )
    assert result.is_error is True
    assert "externalToolResult.result" in result.content[0].text


@pytest.mark.asyncio
async def test_no_arguments(registry):
    result = await registry.call_tool("gemini-sequential-thinking", None)
    assert result.is_error is True
    assert result.content[0].text.startswith("Invalid arguments: ")


@pytest.mark.asyncio
async def test_combined_tool_defaults_to_all(registry):
    result = await registry.call_tool(COMBINED_TOOL, arguments())

    assert result.is_error is False
    assert len(result.content) == 2
    assert "Gemini says hi" in result.content[0].text
    assert "DeepSeek says hi" in result.content[1].text


@pytest.mark.asyncio
async def test_combined_sessions_are_independent_of_single_tools(registry):
    await registry.call_tool("gemini-sequential-thinking", arguments())

    # same currentThinking is accepted because the combined tool has its own session
    result = await registry.call_tool(COMBINED_TOOL, arguments(modelType="gemini"))

    assert result.is_error is False


@pytest.mark.asyncio
async def test_reset_session(registry):
    await registry.call_tool("gemini-sequential-thinking", arguments())
    repeated = await registry.call_tool("gemini-sequential-thinking", arguments(thoughtNumber=2))
    assert repeated.is_error is True

    assert registry.reset("gemini-sequential-thinking") is True
    fresh = await registry.call_tool("gemini-sequential-thinking", arguments())
    assert fresh.is_error is False

    assert registry.reset("missing") is False


@pytest.mark.asyncio
async def test_handler_exception_becomes_error_response(registry, monkeypatch):
    async def explode(request):
        raise RuntimeError("boom")

    monkeypatch.setattr(registry._tools["deepseek-sequential-thinking"], "handler", explode)

    result = await registry.call_tool("deepseek-sequential-thinking", arguments())

    assert result.is_error is True
    assert result.content[0].text == "Error processing request: boom"


def test_duplicate_registration_rejected(registry):
    tool = registry._tools[COMBINED_TOOL]
    with pytest.raises(ValueError):
        registry.register(tool)


def test_combined_schema_lists_model_types(registry):
    tools = {tool.name: tool for tool in registry.list_tools()}
    model_type = tools[COMBINED_TOOL].input_schema["properties"]["modelType"]
    assert model_type["enum"] == ["gemini", "deepseek", "all"]
    assert model_type["default"] == "all"


def test_thinker_schema_uses_wire_names(registry):
    tools = {tool.name: tool for tool in registry.list_tools()}
    schema = tools["deepseek-thinker"].input_schema
    assert schema["required"] == ["originPrompt"]
    assert set(schema["properties"]) == {"originPrompt", "mode", "output_count", "constraints"}
    assert "DeepSeek" in tools["deepseek-thinker"].description


@pytest.mark.asyncio
async def test_call_thinker_tool(registry):
    result = await registry.call_tool(
        "gemini-thinker",
        {"originPrompt": "Should we shard the database?", "mode": "analyze_pros_cons", "output_count": 2},
    )
    assert result.is_error is False
    assert result.content[0].text == "Gemini says hi"


@pytest.mark.asyncio
async def test_thinker_rejects_unknown_mode(registry):
    result = await registry.call_tool("gemini-thinker", {"originPrompt": "x", "mode": "daydream"})
    assert result.is_error is True
    assert result.content[0].text.startswith("Invalid arguments: mode: ")


@pytest.mark.asyncio
async def test_thinker_requires_prompt(registry):
    result = await registry.call_tool("gemini-thinker", {"originPrompt": ""})
    assert result.is_error is True
    assert "originPrompt" in result.content[0].text


def test_thinker_tools_have_no_session(registry):
    assert registry.reset("gemini-thinker") is False
