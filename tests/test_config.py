"""Tests for dungeon_dj.config."""

from pathlib import Path

import pytest

from dungeon_dj.config import load_settings


def test_environment_overrides_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OPENAI_MODEL", "local-model")
    monkeypatch.setenv("LLM_TIMEOUT", "30")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "games"))
    settings = load_settings(tmp_path / ".env")
    assert settings.openai_model == "local-model"
    assert settings.llm_timeout == 30.0
    assert settings.data_dir == tmp_path / "games"


def test_dotenv_file_is_loaded(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # registered first so teardown removes the value loaded from .env
    monkeypatch.setenv("NARRATOR_VOICE_NAME", "unset")
    monkeypatch.delenv("NARRATOR_VOICE_NAME")
    env = tmp_path / ".env"
    env.write_text("NARRATOR_VOICE_NAME=The Crypt Keeper\n")
    settings = load_settings(env)
    assert settings.narrator_voice_name == "The Crypt Keeper"


def test_unset_values_keep_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("ELEVENLABS_OUTPUT_FORMAT", raising=False)
    settings = load_settings(tmp_path / ".env")
    assert settings.elevenlabs_output_format == "mp3_44100_128"
