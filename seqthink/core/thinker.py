"""Single-shot reasoning over one backend."""
from typing import Any, Dict

from seqthink.core.prompts import Prompt
from seqthink.models.api import ThinkerRequest, ToolResponse
from seqthink.models.internal import GenerationResult
from seqthink.utils.logging import get_logger

logger = get_logger(__name__)


def reasoning_error_text(error: str) -> str:
    return f"Error generating reasoning: {error}"


class ThinkerServer:
    """Answer one reasoning request with a single generation call.

    Unlike the sequential server there is no session: every call stands
    alone, so no pacing or history applies.
    """

    def __init__(self, backend, templates: Dict[str, Any]):
        self.backend = backend
        self.templates = templates or {}

    @property
    def name(self) -> str:
        return self.backend.name

    def build_prompt(self, request: ThinkerRequest) -> Prompt:
        template = self.templates.get("modes", {}).get(request.mode)
        if template is None:
            template = self.templates.get("default", "")

        user = template.format(
            origin_prompt=request.origin_prompt,
            mode=request.mode,
            output_count=request.output_count,
        )
        if request.constraints:
            user += self.templates.get("constraints", "").format(constraints=request.constraints)

        return Prompt(
            system=self.templates.get("system", ""),
            user=user,
            reasoning_mode=request.mode,
        )

    async def process_request(self, request: ThinkerRequest) -> ToolResponse:
        """Generate and return the reasoning text."""
        prompt = self.build_prompt(request)
        logger.info(
            "thinker_start",
            backend=self.name,
            mode=request.mode,
            output_count=request.output_count,
        )

        try:
            result = await self.backend.generate(prompt.system, prompt.user)
        except Exception as e:
            logger.exception("backend_exception", backend=self.name, error=str(e))
            result = GenerationResult.failure(str(e) or type(e).__name__)

        if not result.ok:
            logger.error("thinker_failed", backend=self.name, error=result.error)
            return ToolResponse.from_text(reasoning_error_text(result.error), is_error=True)

        logger.info("thinker_complete", backend=self.name, content_length=len(result.text))
        return ToolResponse.from_text(result.text)
