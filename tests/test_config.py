import pytest
import yaml
from pydantic import ValidationError

from screenwriter import config as config_module
from screenwriter.agents import cache as graph_cache
from screenwriter.agents.registry import MODEL_PRESETS, resolve_preset
from screenwriter.config import DEFAULT_CONFIG_PATH, EngineConfig, load_config
from screenwriter.prompts import build_system_prompt

MINIMAL = {
    "default_toolset": "notes",
    "toolsets": [{"id": "notes", "tools": ["get_outline", "read_scene"]}],
}


@pytest.fixture(autouse=True)
def restore_loaded_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", config_module._config)
    monkeypatch.setattr(config_module, "_config_path", config_module._config_path)


def write_config(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_shipped_config_is_valid():
    config = load_config(DEFAULT_CONFIG_PATH)
    assert config.max_iterations == 20
    assert config.get_toolset().id == "full"
    assert config.get_toolset("read_only").tools == [
        "read_screenplay", "read_scene", "search_screenplay", "get_outline", "get_characters",
    ]
    assert config.get_voice().id == "classic"


def test_defaults(tmp_path):
    config = load_config(write_config(tmp_path, MINIMAL))
    assert (config.phases.plan, config.phases.execute) == ("opus-thinking", "sonnet-thinking")
    assert config.channel_size == 64
    assert config.allowed_origins == ["*"]
    assert config.get_voice() is None


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


@pytest.mark.parametrize(
    "override, message",
    [
        ({"phases": {"plan": "gpt-9"}}, "unknown model preset"),
        ({"toolsets": [{"id": "notes", "tools": ["teleport"]}]}, "unknown tool"),
        ({"toolsets": [{"id": "notes", "tools": []}]}, "at least one tool"),
        ({"default_toolset": "full"}, "default_toolset"),
        ({"default_voice": "noir"}, "default_voice"),
        ({"max_iterations": 0}, "max_iterations"),
        ({"max_iterations": 101}, "max_iterations"),
    ],
)
def test_invalid_references_are_rejected(override, message):
    with pytest.raises(ValidationError, match=message):
        EngineConfig(**{**MINIMAL, **override})


def test_unknown_toolset_or_voice_lookup_raises():
    config = EngineConfig(**MINIMAL)
    with pytest.raises(ValueError, match="Toolset 'full' not found"):
        config.get_toolset("full")
    with pytest.raises(ValueError, match="Voice 'noir' not found"):
        config.get_voice("noir")


def test_presets():
    assert resolve_preset("opus-thinking").thinking
    assert not resolve_preset("haiku").thinking
    assert all(name == preset.name for name, preset in MODEL_PRESETS.items())
    with pytest.raises(ValueError):
        resolve_preset("gpt-9")


def test_system_prompt_includes_voice_and_document():
    config = EngineConfig(
        **MINIMAL,
        voices=[{"id": "noir", "name": "Hardboiled Noir", "guidance": "Short sentences."}],
    )
    prompt = build_system_prompt("INT. ROOM - DAY", config.get_voice("noir"))
    assert "## Voice: Hardboiled Noir\nShort sentences." in prompt
    assert "<screenplay>\nINT. ROOM - DAY\n</screenplay>" in prompt
    assert "currently empty" in build_system_prompt("  ")


def test_graph_cache_reuses_until_config_changes():
    graph_cache.invalidate()
    config = EngineConfig(**MINIMAL, phases={"plan": "sonnet", "execute": "sonnet"})
    toolset = config.get_toolset()

    first = graph_cache.get_or_build(config, toolset)
    assert graph_cache.get_or_build(config, toolset) is first

    changed = config.model_copy(update={"max_iterations": 5})
    assert graph_cache.get_or_build(changed, toolset) is not first

    graph_cache.invalidate()
