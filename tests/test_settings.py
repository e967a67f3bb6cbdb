from __future__ import annotations

import pytest

from retention_app.settings import DEFAULT_INPUTS, Settings, default_settings_path, load_settings


class TestSettings:
    def test_bundled_config_loads(self) -> None:
        settings = load_settings(default_settings_path())
        assert settings.defaults == DEFAULT_INPUTS
        assert settings.status_clear_seconds == 2.0
        assert settings.timeout_seconds is None
        assert settings.solution_cost_rate == pytest.approx(0.02)

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        settings = load_settings(tmp_path / "nope.yaml")
        assert settings == Settings()

    def test_overrides(self, tmp_path) -> None:
        cfg = tmp_path / "settings.yaml"
        cfg.write_text(
            "defaults:\n  aov: 55\nsave:\n  timeout_seconds: 10\nexport:\n  filename_prefix: calc\nlogging:\n  level: debug\n",
            encoding="utf-8",
        )
        settings = load_settings(cfg)
        assert settings.defaults["aov"] == 55
        assert settings.defaults["ltv"] == DEFAULT_INPUTS["ltv"]
        assert settings.timeout_seconds == 10.0
        assert settings.filename_prefix == "calc"
        assert settings.log_level == "DEBUG"

    def test_unknown_default_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings.from_config({"defaults": {"margin": 0.4}})
