"""Configuration management using Pydantic settings."""
from typing import Dict, Any, Literal
from pathlib import Path
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent

ReasoningMode = Literal["analytical", "creative", "critical", "reflective"]


class BackendConfig(BaseModel):
    """Configuration for a single model backend."""
    name: str
    label: str = ""
    provider: Literal["openrouter", "google"] = "openrouter"
    model: str
    api_url: str
    temperature: float = 1.0
    max_tokens: int = 64000

    @property
    def display_name(self) -> str:
        return self.label or self.name.capitalize()


class ThinkingConfig(BaseModel):
    """Configuration for the sequential thinking engine."""
    min_interval_ms: int = Field(default=2000, ge=0)
    previous_thoughts: int = Field(default=2, ge=0)
    default_reasoning_mode: ReasoningMode = "analytical"


class ServiceConfig(BaseModel):
    """Configuration for service metadata."""
    name: str = "sequential-thinking"
    description: str = "Multi-model sequential thinking"


class AppConfig(BaseModel):
    """Main application configuration from YAML."""
    backends: Dict[str, BackendConfig]
    thinking: ThinkingConfig = ThinkingConfig()
    service: ServiceConfig = ServiceConfig()


class Settings(BaseSettings):
    """Environment-based settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"
    log_format: Literal["console", "json"] = "console"

    # HTTP Client
    http_timeout: int = 300
    http_max_connections: int = 100
    http_retry_attempts: int = 2

    # API Keys
    openrouter_api_key: str = ""
    gemini_api_key: str = ""

    # Config file paths
    config_file: str = "config.yaml"
    prompt_dir: str = "prompts"

    def api_key_for(self, backend: BackendConfig) -> str:
        """Return the API key for a backend's provider."""
        if backend.provider == "google":
            return self.gemini_api_key
        return self.openrouter_api_key


def _resolve(path: str) -> Path:
    """Resolve a path against the working directory, then the project root."""
    candidate = Path(path)
    if candidate.is_absolute() or candidate.exists():
        return candidate
    return PROJECT_ROOT / candidate


def load_yaml_config(config_path: str = "config.yaml") -> AppConfig:
    """Load configuration from YAML file."""
    config_file = _resolve(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    # Backend names come from the mapping keys
    for name, backend in (config_data.get("backends") or {}).items():
        backend.setdefault("name", name)

    return AppConfig(**config_data)


def load_prompts(prompt_dir: str = "prompts") -> Dict[str, Any]:
    """Load prompt templates from YAML files."""
    prompts = {}
    prompt_path = _resolve(prompt_dir)

    if not prompt_path.exists():
        return prompts

    for yaml_file in sorted(prompt_path.glob("*.yaml")):
        with open(yaml_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            prompts[yaml_file.stem] = data

    return prompts


# Global configuration instances
settings = Settings()
app_config = load_yaml_config(settings.config_file)
prompts = load_prompts(settings.prompt_dir)
