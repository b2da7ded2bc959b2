"""FastAPI main application."""
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import aiohttp
from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from seqthink import __version__
from seqthink.config import AppConfig, Settings, app_config, prompts, settings
from seqthink.core import ModelBackend, ModelClient, build_registry
from seqthink.models import HealthResponse, ToolInfo, ToolResponse
from seqthink.utils import setup_logging, get_logger

# Setup logging
setup_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)


def create_app(
    app_settings: Settings = settings,
    config: AppConfig = app_config,
    templates: Optional[Dict[str, Any]] = None,
    backends: Optional[List] = None,
    pacing_factory=None,
    thinker_templates: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    """Create the application.

    ``backends`` replaces the configured HTTP backends, which is how tests
    run the app without network access.
    """
    templates = templates if templates is not None else prompts.get("sequential", {})
    if thinker_templates is None:
        thinker_templates = prompts.get("thinker", {})

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle."""
        logger.info(
            "app_startup",
            host=app_settings.host,
            port=app_settings.port,
            service=config.service.name,
        )

        http_session = None
        if backends is None:
            connector = aiohttp.TCPConnector(
                limit=app_settings.http_max_connections,
                limit_per_host=app_settings.http_max_connections
            )
            timeout = aiohttp.ClientTimeout(total=app_settings.http_timeout)
            http_session = aiohttp.ClientSession(connector=connector, timeout=timeout)
            client = ModelClient(
                http_session,
                timeout=app_settings.http_timeout,
                retry_attempts=app_settings.http_retry_attempts,
            )
            active = [
                ModelBackend(backend, client, app_settings.api_key_for(backend))
                for backend in config.backends.values()
            ]
        else:
            active = backends

        app.state.backends = [b.name for b in active]
        app.state.registry = build_registry(
            active,
            templates,
            config.thinking,
            pacing_factory=pacing_factory,
            thinker_templates=thinker_templates,
        )

        yield

        if http_session is not None:
            await http_session.close()
        logger.info("app_shutdown")

    app = FastAPI(
        title="Sequential Thinking API",
        description=config.service.description,
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Global exception handler."""
        logger.exception("unhandled_error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": "Internal server error",
                    "type": type(exc).__name__,
                    "code": "internal_error",
                }
            },
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            service=config.service.name,
            backends=request.app.state.backends,
        )

    @app.get("/v1/tools")
    async def list_tools(request: Request) -> Dict[str, List[Dict[str, Any]]]:
        """List available tools with their input schemas."""
        tools: List[ToolInfo] = request.app.state.registry.list_tools()
        return {"tools": [tool.model_dump(by_alias=True) for tool in tools]}

    @app.post("/v1/tools/{name}")
    async def call_tool(
        name: str,
        request: Request,
        arguments: Optional[Dict[str, Any]] = Body(default=None),
    ) -> Dict[str, Any]:
        """Call a tool. Tool-level failures are reported in the body."""
        result: ToolResponse = await request.app.state.registry.call_tool(name, arguments)
        return result.model_dump(by_alias=True)

    @app.delete("/v1/tools/{name}/session")
    async def reset_session(name: str, request: Request) -> Dict[str, str]:
        """Forget the session history behind a tool."""
        if not request.app.state.registry.reset(name):
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
        return {"status": "reset", "tool": name}

    return app


app = create_app()


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "seqthink.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run()
