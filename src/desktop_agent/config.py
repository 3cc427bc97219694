"""Configuration management - Pydantic model with YAML loading and CLI overrides."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

DEFAULT_CONFIG_DIR = Path.home() / ".desktop-agent"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

OLLAMA_DEFAULT_API_BASE = "http://localhost:11434"
DEFAULT_MODEL = "ollama_chat/deepseek-r1:1.5b"
DEFAULT_VISION_MODEL = "ollama_chat/gemma3:4b-it-q4_K_M"


def is_ollama_model(model: str) -> bool:
    """Return True if the model string uses the Ollama provider prefix."""
    return model.startswith(("ollama/", "ollama_chat/"))


class ConfigError(Exception):
    """Raised when configuration is invalid."""


class AgentConfig(BaseModel):
    """Agent configuration with validation."""

    model_config = ConfigDict(extra="forbid")

    model: str = DEFAULT_MODEL
    api_base: str | None = None
    api_key: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _apply_ollama_defaults(cls, values: dict) -> dict:
        """Auto-set api_base for Ollama models when not explicitly provided."""
        if isinstance(values, dict) and "api_base" not in values:
            if is_ollama_model(values.get("model", DEFAULT_MODEL)):
                values = dict(values)
                values["api_base"] = OLLAMA_DEFAULT_API_BASE
        return values

    # Model sampling parameters
    temperature: float = 0.7
    think_temperature: float = 0.3
    max_output_tokens: int = 1024
    top_p: float = 1.0
    vision_model: str = DEFAULT_VISION_MODEL

    # Dispatch loop
    max_tool_rounds: int = 8
    history_window: int = 3

    # Desktop automation
    locate_timeout: float = 5.0
    ocr_timeout: float = 10.0
    draw_pacing: float = 0.05
    output_dir: Path = Path(".")
    strict_substeps: bool = False

    @field_validator("api_base")
    @classmethod
    def validate_api_base(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError("Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("max_tool_rounds", "max_output_tokens")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Must be at least 1")
        return v

    @field_validator("locate_timeout", "ocr_timeout", "draw_pacing")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Must not be negative")
        return v

    def __repr__(self) -> str:
        api_key_display = "***" if self.api_key else "None"
        return (
            f"AgentConfig(model={self.model!r}, "
            f"api_base={self.api_base!r}, "
            f"api_key={api_key_display!r}, "
            f"temperature={self.temperature!r}, "
            f"max_output_tokens={self.max_output_tokens!r}, "
            f"strict_substeps={self.strict_substeps!r})"
        )

    def __str__(self) -> str:
        return self.__repr__()


def _format_validation_error(e: ValidationError) -> str:
    errors = []
    for err in e.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        errors.append(f"  - {field}: {err['msg']}")
    return "\n".join(errors)


def load_config(config_path: Path | None = None) -> AgentConfig:
    """Load and validate config from YAML file.

    A missing file is not an error: the defaults target a local Ollama
    server running deepseek-r1:1.5b.

    Args:
        config_path: Path to config file. Defaults to ~/.desktop-agent/config.yaml.

    Returns:
        Validated AgentConfig instance.

    Raises:
        ConfigError: If the file is empty or contains invalid config.
    """
    path = config_path or DEFAULT_CONFIG_FILE

    if not path.exists():
        return AgentConfig()

    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)

    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid configuration in {path}\n\n"
            f"  Config file is empty or not a valid YAML mapping.\n\n"
            f"For a local Ollama model (api_base defaults to {OLLAMA_DEFAULT_API_BASE}):\n"
            f"  model: {DEFAULT_MODEL}\n\n"
            f"For a LiteLLM proxy / OpenAI-compatible API:\n"
            f"  model: litellm/gpt-4o\n"
            f"  api_base: http://localhost:4000"
        )

    try:
        return AgentConfig(**data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}\n\n{_format_validation_error(e)}"
        ) from None


def apply_cli_overrides(
    config: AgentConfig,
    model: str | None = None,
    api_base: str | None = None,
    temperature: float | None = None,
    strict_substeps: bool | None = None,
) -> AgentConfig:
    """Apply CLI flag overrides to config. Returns a new AgentConfig instance.

    Override precedence: Defaults → YAML → CLI flags.
    """
    overrides = {}
    if model is not None:
        overrides["model"] = model
        if api_base is None and is_ollama_model(model) != is_ollama_model(config.model):
            # A server configured for the other provider family does not carry over
            overrides["api_base"] = OLLAMA_DEFAULT_API_BASE if is_ollama_model(model) else None
    if api_base is not None:
        overrides["api_base"] = api_base
    if temperature is not None:
        overrides["temperature"] = temperature
    if strict_substeps is not None:
        overrides["strict_substeps"] = strict_substeps

    if not overrides:
        return config

    try:
        return AgentConfig.model_validate(config.model_dump() | overrides)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid CLI override:\n\n{_format_validation_error(e)}"
        ) from None
