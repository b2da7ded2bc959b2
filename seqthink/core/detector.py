"""Heuristic detection of tool requests in generated thoughts.

Rules are independent and evaluated in a fixed order; the first one that
matches wins. Detection is a surface scan: results are only ever surfaced to
the caller as suggestions.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

from seqthink.models.internal import ToolRequest

_NEED = r"(?:need|should|must|require)s?\s+(?:to\s+)?"
_OBJECT = r"""["']?([^"'\n.!?]+)["']?"""


@dataclass(frozen=True)
class PatternRule:
    """Tag text with ``tool_type`` when ``pattern`` matches."""
    tool_type: str
    pattern: Pattern[str]

    def match(self, text: str) -> Optional[ToolRequest]:
        found = self.pattern.search(text)
        if not found:
            return None
        query = found.group(1).strip()
        if not query:
            return None
        return ToolRequest(tool_type=self.tool_type, query=query)


@dataclass(frozen=True)
class TriggerPhraseRule:
    """Fallback rule keyed on explicit tool-usage phrases.

    When one of ``triggers`` appears anywhere in the text, the first line
    mentioning a lookup verb is classified and its query is taken from the
    text after the line's last colon.
    """
    triggers: Sequence[str]
    line_markers: Sequence[str]
    default_query: str = "relevant code"

    def match(self, text: str) -> Optional[ToolRequest]:
        if not any(trigger in text for trigger in self.triggers):
            return None

        for line in text.split("\n"):
            lowered = line.lower()
            if not any(marker in lowered for marker in self.line_markers):
                continue
            tool_type = "file_search" if "search" in lowered else "code_retrieval"
            query = ""
            if ":" in line:
                query = line.rsplit(":", 1)[1].strip()
            return ToolRequest(tool_type=tool_type, query=query or self.default_query)

        return None


def _rule(tool_type: str, pattern: str) -> PatternRule:
    return PatternRule(tool_type, re.compile(pattern, re.IGNORECASE))


DEFAULT_RULES: List = [
    _rule(
        "code_retrieval",
        _NEED
        + r"(?:see|check|review|examine|analyze|retrieve|get|find|look\s+at)\s+"
        + r"(?:the\s+)?code(?:\s+for)?(?:\s+in)?:?\s+"
        + _OBJECT,
    ),
    _rule(
        "documentation",
        _NEED
        + r"(?:see|check|review|read|consult|examine|reference)\s+"
        + r"(?:the\s+)?documentation(?:\s+for|\s+about)?:?\s+"
        + _OBJECT,
    ),
    _rule(
        "file_content",
        _NEED
        + r"(?:see|check|review|examine|read|open)\s+(?:the\s+)?file(?:\s+at)?(?:\s+path)?:?\s+"
        + r"""["']?([^"'\s]+\.[A-Za-z0-9]+)["']?""",
    ),
    _rule(
        "symbol_definition",
        _NEED
        + r"(?:find|locate|see|check)\s+(?:the\s+)?(?:definition|implementation|declaration)\s+of\s+"
        + r"""[`"']?([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)[`"']?""",
    ),
    _rule(
        "file_search",
        _NEED
        + r"(?:search|find|locate|list)\s+(?:for\s+)?(?:all\s+)?files?(?:\s+that)?(?:\s+contain)?:?\s+"
        + _OBJECT,
    ),
    TriggerPhraseRule(
        triggers=(
            "I should use the file search tool",
            "we need to examine the code",
            "using the code retrieval tool",
            "need to look up the API",
        ),
        line_markers=("search for", "look for", "find files", "retrieve code"),
    ),
]


def detect_tool_request(text: str, rules: Optional[Sequence] = None) -> Optional[ToolRequest]:
    """Return the first tool request any rule finds in ``text``, or None."""
    if not text:
        return None
    for rule in rules if rules is not None else DEFAULT_RULES:
        request = rule.match(text)
        if request is not None:
            return request
    return None
