"""Configuration loader: reads config.yaml, validates with Pydantic.

Phases reference model presets (hardcoded in agents/registry.py), toolsets
reference registered tools, and requests pick a toolset and a voice by id.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.environ.get("SCREENWRITER_CONFIG", "config.yaml")


class PhaseConfig(BaseModel):
    """Model preset per agent phase. Naming one preset twice gives
    single-model operation."""

    plan: str = "opus-thinking"
    execute: str = "sonnet-thinking"


class ToolsetConfig(BaseModel):
    """A named tool manifest offered to the model."""

    id: str
    description: str | None = None
    tools: list[str]

    @field_validator("tools")
    @classmethod
    def must_have_tools(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("A toolset must list at least one tool")
        return v


class VoiceConfig(BaseModel):
    """A creative voice. Its guidance is added to the system prompt as is."""

    id: str
    name: str
    description: str | None = None
    guidance: str


class EngineConfig(BaseModel):
    """Top-level engine configuration."""

    phases: PhaseConfig = PhaseConfig()
    max_iterations: int = Field(default=20, ge=1, le=100)
    channel_size: int = Field(default=64, ge=1)

    toolsets: list[ToolsetConfig]
    default_toolset: str
    voices: list[VoiceConfig] = []
    default_voice: str | None = None

    # Auth & CORS
    api_key: str | None = None
    allowed_origins: list[str] = ["*"]

    @model_validator(mode="after")
    def validate_references(self) -> EngineConfig:
        from screenwriter.agents.registry import MODEL_PRESETS
        from screenwriter.tools import list_tools

        # Validate phase → preset references
        for phase, preset in self.phases.model_dump().items():
            if preset not in MODEL_PRESETS:
                raise ValueError(
                    f"Phase '{phase}' references unknown model preset '{preset}'. "
                    f"Available: {sorted(MODEL_PRESETS.keys())}"
                )

        # Validate toolset → tool references
        registered = set(list_tools())
        for toolset in self.toolsets:
            unknown = [t for t in toolset.tools if t not in registered]
            if unknown:
                raise ValueError(
                    f"Toolset '{toolset.id}' references unknown tool(s) {unknown}. "
                    f"Available: {sorted(registered)}"
                )

        toolset_ids = {t.id for t in self.toolsets}
        if self.default_toolset not in toolset_ids:
            raise ValueError(
                f"default_toolset '{self.default_toolset}' is not defined. "
                f"Available: {sorted(toolset_ids)}"
            )

        voice_ids = {v.id for v in self.voices}
        if self.default_voice is not None and self.default_voice not in voice_ids:
            raise ValueError(
                f"default_voice '{self.default_voice}' is not defined. "
                f"Available: {sorted(voice_ids)}"
            )

        return self

    def get_toolset(self, toolset_id: str | None = None) -> ToolsetConfig:
        """Return a toolset by ID (default when None). Raises ValueError if not found."""
        wanted = toolset_id or self.default_toolset
        for toolset in self.toolsets:
            if toolset.id == wanted:
                return toolset
        raise ValueError(
            f"Toolset '{wanted}' not found. "
            f"Available: {[t.id for t in self.toolsets]}"
        )

    def get_voice(self, voice_id: str | None = None) -> VoiceConfig | None:
        """Return a voice by ID (default when None). Raises ValueError if not found."""
        wanted = voice_id or self.default_voice
        if wanted is None:
            return None
        for voice in self.voices:
            if voice.id == wanted:
                return voice
        raise ValueError(
            f"Voice '{wanted}' not found. "
            f"Available: {[v.id for v in self.voices]}"
        )


# ---------------------------------------------------------------------------
# Module-level config cache
# ---------------------------------------------------------------------------

_config: EngineConfig | None = None
_config_path: str = DEFAULT_CONFIG_PATH


def load_config(path: str = DEFAULT_CONFIG_PATH) -> EngineConfig:
    """Read config.yaml from disk, validate, and cache."""
    global _config, _config_path
    _config_path = path

    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file.resolve()}")

    raw = yaml.safe_load(config_file.read_text())
    _config = EngineConfig(**raw)

    logger.info(
        f"Loaded config: "
        f"plan={_config.phases.plan}, execute={_config.phases.execute}, "
        f"toolsets={len(_config.toolsets)}, voices={len(_config.voices)}"
    )
    return _config


def get_config() -> EngineConfig:
    """Return cached config. Raises if not yet loaded."""
    if _config is None:
        raise RuntimeError("Config not loaded: call load_config() first")
    return _config


def reload_config() -> EngineConfig:
    """Re-read config from disk. Called by /reload endpoint."""
    logger.info(f"Reloading config from {_config_path}")
    return load_config(_config_path)
