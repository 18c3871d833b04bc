"""Model preset registry: hardcoded model configurations.

The only place where model ids, output budgets and thinking budgets are
defined. The ``phases`` section of config.yaml references these presets by
name; single-model operation is simply both phases naming the same preset.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelPreset:
    name: str
    model: str
    label: str                          # human-readable, surfaced in metadata events
    max_tokens: int                     # visible output budget (text + tool use)
    thinking_budget: int | None = None  # extended thinking when set

    @property
    def thinking(self) -> bool:
        return self.thinking_budget is not None


MODEL_PRESETS: dict[str, ModelPreset] = {
    # Deepest reasoning: multi-step planning.
    "opus-thinking": ModelPreset(
        name="opus-thinking",
        model="claude-opus-4-5-20251101",
        label="Opus 4.5 (thinking)",
        max_tokens=24_000,
        thinking_budget=16_000,
    ),
    "opus": ModelPreset(
        name="opus",
        model="claude-opus-4-5-20251101",
        label="Opus 4.5",
        max_tokens=8192,
    ),
    # Primary writing model: executing plan steps with tools.
    "sonnet-thinking": ModelPreset(
        name="sonnet-thinking",
        model="claude-sonnet-4-5-20250929",
        label="Sonnet 4.5 (thinking)",
        max_tokens=16_384,
        thinking_budget=10_000,
    ),
    "sonnet": ModelPreset(
        name="sonnet",
        model="claude-sonnet-4-5-20250929",
        label="Sonnet 4.5",
        max_tokens=4096,
    ),
    "haiku": ModelPreset(
        name="haiku",
        model="claude-3-5-haiku-20241022",
        label="Haiku 3.5",
        max_tokens=2048,
    ),
}


def resolve_preset(name: str) -> ModelPreset:
    """Look up a model preset by name. Raises ValueError if not found."""
    if name not in MODEL_PRESETS:
        raise ValueError(
            f"Unknown model preset '{name}'. "
            f"Available presets: {list(MODEL_PRESETS.keys())}"
        )
    return MODEL_PRESETS[name]
