"""Test settings loading (YAML + environment) and model resolution."""

import pytest
from langchain_openai import ChatOpenAI

from codeAgent.config import Settings, load_settings
from codeAgent.config.loader import deep_merge, load_yaml_file
from codeAgent.runtime.model_resolver import (
    build_chat_model,
    override_model_config,
    resolve_model_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CODEAGENT_MODEL", "CODEAGENT_API_KEY", "CODEAGENT_COLLABORATION", "CODEAGENT_FEATURES__TODO"):
        monkeypatch.delenv(name, raising=False)


def test_deep_merge():
    base = {"model": "a", "features": {"todo": "on", "git": "auto"}, "permissions": {"auto_approve": ["glob"]}}
    override = {"features": {"git": "off"}, "permissions": {"auto_approve": ["bash"]}, "api_key": None}

    merged = deep_merge(base, override)

    assert merged == {
        "model": "a",
        "features": {"todo": "on", "git": "off"},
        "permissions": {"auto_approve": ["bash"]},
    }
    assert base["features"]["git"] == "auto"


def test_load_yaml_file_edge_cases(tmp_path):
    assert load_yaml_file(tmp_path / "missing.yaml") == {}

    (tmp_path / "list.yaml").write_text("- a\n")
    assert load_yaml_file(tmp_path / "list.yaml") == {}

    (tmp_path / "empty.yaml").write_text("")
    assert load_yaml_file(tmp_path / "empty.yaml") == {}


def test_yaml_files_merge_in_priority_order(tmp_path):
    global_file = tmp_path / "global.yaml"
    project_file = tmp_path / "project.yaml"
    global_file.write_text(
        "model: global-model\napi_key: sk-global\nfeatures:\n  todo: off\n  git: off\n"
        "mcp_servers:\n  - name: files\n    command: npx\n    args: [server-files]\n"
    )
    project_file.write_text("model: project-model\nfeatures:\n  git: on\ncollaboration: controlled\n")

    settings = load_settings([global_file, project_file])

    assert settings.model == "project-model"
    assert settings.api_key == "sk-global"
    assert settings.features.todo == "off"
    assert settings.features.git == "on"
    assert settings.collaboration == "controlled"
    assert settings.mcp_servers[0].args == ["server-files"]


def test_environment_beats_yaml(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("model: yaml-model\nfeatures:\n  git: off\n")
    monkeypatch.setenv("CODEAGENT_MODEL", "env-model")
    monkeypatch.setenv("CODEAGENT_FEATURES__TODO", "off")

    settings = load_settings([config_file])

    assert settings.model == "env-model"
    assert settings.features.todo == "off"
    assert settings.features.git == "off"


def test_explicit_overrides_beat_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("collaboration: autonomous\n")

    settings = load_settings([config_file], collaboration="controlled")
    assert settings.collaboration == "controlled"


def test_default_permissions():
    settings = Settings()
    assert "read-file" in settings.permissions.auto_approve
    assert "bash" in settings.permissions.require_approval


# ========== model resolution ==========

def test_role_overrides_fall_back_to_top_level():
    settings = Settings(
        model="deepseek-chat",
        api_key="sk-main",
        dual_agent={"coder": {"model": "deepseek-coder", "temperature": 0.1}},
    )

    default = resolve_model_config(settings)
    orchestrator = resolve_model_config(settings, "orchestrator")
    coder = resolve_model_config(settings, "coder")

    assert orchestrator == default
    assert coder["model"] == "deepseek-coder"
    assert coder["temperature"] == 0.1
    assert coder["api_key"] == "sk-main"
    assert coder["base_url"] == default["base_url"]


def test_override_model_config_ignores_empty_values():
    config = resolve_model_config(Settings(model="a", api_key="sk"))

    updated = override_model_config(config, model="b", api_key=None, base_url="")

    assert updated["model"] == "b"
    assert updated["api_key"] == "sk"
    assert updated["base_url"] == config["base_url"]


def test_build_chat_model():
    config = resolve_model_config(Settings(model="gpt-4o-mini", api_key="sk-test", base_url="http://localhost:9/v1"))

    chat_model = build_chat_model(config)

    assert isinstance(chat_model, ChatOpenAI)
    assert chat_model.model_name == "gpt-4o-mini"
    assert chat_model.stream_usage is True


def test_build_chat_model_requires_api_key():
    with pytest.raises(RuntimeError):
        build_chat_model(resolve_model_config(Settings(api_key=None)))
