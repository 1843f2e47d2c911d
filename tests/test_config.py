"""Tests for formbuilder.config settings loading."""

import os
from unittest.mock import patch

import pytest
import yaml

from formbuilder.config import (
    FormSettings,
    get_settings,
    interpolate_env_vars,
    load_form_config,
)


class TestInterpolateEnvVars:
    def test_replaces_variables(self):
        with patch.dict(os.environ, {"FORM_LABEL": "Send"}):
            assert interpolate_env_vars("$FORM_LABEL now") == "Send now"

    def test_recurses_into_dicts_and_lists(self):
        with patch.dict(os.environ, {"A": "1"}):
            assert interpolate_env_vars({"x": ["$A", {"y": "$A"}]}) == {"x": ["1", {"y": "1"}]}

    def test_missing_variable_raises(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("FORMBUILDER_MISSING", None)
            with pytest.raises(ValueError, match="FORMBUILDER_MISSING"):
                interpolate_env_vars("$FORMBUILDER_MISSING")

    def test_non_strings_untouched(self):
        assert interpolate_env_vars(5) == 5


class TestLoadFormConfig:
    def test_reads_forms_section(self, tmp_path):
        config_file = tmp_path / "app.yaml"
        config_file.write_text(yaml.safe_dump({"db": {"url": "x"}, "forms": {"submit_label": "Go"}}))
        assert load_form_config(config_file) == {"submit_label": "Go"}

    def test_missing_section_is_empty(self, tmp_path):
        config_file = tmp_path / "app.yaml"
        config_file.write_text(yaml.safe_dump({"debug": True}))
        assert load_form_config(config_file) == {}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_form_config(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("content", ["- a\n- b\n", "just a string\n", ""])
    def test_non_mapping_top_level_is_empty(self, tmp_path, content):
        config_file = tmp_path / "app.yaml"
        config_file.write_text(content)
        assert load_form_config(config_file) == {}


class TestGetSettings:
    def test_defaults_without_app_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = get_settings()
        assert settings.csrf_field_name == "_csrf"
        assert settings.method_field_name == "_method"
        assert settings.unchecked_value == "0"
        assert settings.submit_label == "Submit"
        assert settings.year_window_before == 100
        assert settings.year_window_after == 10
        assert "password" in settings.dont_flash

    def test_yaml_overrides(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "app.yaml").write_text(
            yaml.safe_dump({"forms": {"submit_label": "$SUBMIT_TEXT", "year_window_after": 2}})
        )
        with patch.dict(os.environ, {"SUBMIT_TEXT": "Send"}):
            settings = get_settings()
        assert settings.submit_label == "Send"
        assert settings.year_window_after == 2

    def test_env_prefix(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("FORMBUILDER_METHOD_FIELD_NAME", "_verb")
        assert FormSettings().method_field_name == "_verb"

    def test_cached(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_settings() is get_settings()

    def test_dotenv_vars_available_for_yaml_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("SUBMIT_TEXT=Send\n")
        (tmp_path / "app.yaml").write_text(yaml.safe_dump({"forms": {"submit_label": "$SUBMIT_TEXT"}}))

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("SUBMIT_TEXT", None)
            settings = get_settings()

        assert settings.submit_label == "Send"

    def test_real_env_wins_over_dotenv(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("SUBMIT_TEXT=FromFile\n")
        (tmp_path / "app.yaml").write_text(yaml.safe_dump({"forms": {"submit_label": "$SUBMIT_TEXT"}}))

        with patch.dict(os.environ, {"SUBMIT_TEXT": "FromEnv"}):
            settings = get_settings()

        assert settings.submit_label == "FromEnv"
