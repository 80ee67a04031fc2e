"""Tests for main.py DetectionSystem and monitor.config loading."""

import json
from unittest.mock import MagicMock, patch

import pytest

from main import DetectionSystem
from monitor.config import DEFAULTS, load_config
from reporting.safety_report import NO_API_KEY_MESSAGE


class TestLoadConfig:
    """Test monitor.config.load_config."""

    def test_no_config_path_returns_defaults(self):
        config = load_config(None)
        assert config == DEFAULTS

    def test_valid_config_file(self, tmp_path):
        cfg = {
            "camera_index": 2,
            "reset_on_resume": True,
            "report_model": "gemini-2.0-flash",
            "report_timeout": 5.0,
            "api_key": "abc",
        }
        cfg_file = tmp_path / "config.json"
        cfg_file.write_text(json.dumps(cfg), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config == cfg

    def test_missing_config_file_uses_defaults(self, caplog):
        config = load_config("/nonexistent/path.json")
        assert config == DEFAULTS
        assert "配置文件不存在" in caplog.text

    def test_invalid_json_uses_defaults(self, tmp_path, caplog):
        cfg_file = tmp_path / "bad.json"
        cfg_file.write_text("not valid json {{{", encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config == DEFAULTS
        assert "配置文件格式错误" in caplog.text

    def test_non_object_json_uses_defaults(self, tmp_path):
        cfg_file = tmp_path / "list.json"
        cfg_file.write_text("[1, 2, 3]", encoding="utf-8")
        assert load_config(str(cfg_file)) == DEFAULTS

    def test_partial_config_fills_defaults(self, tmp_path):
        cfg_file = tmp_path / "partial.json"
        cfg_file.write_text(json.dumps({"reset_on_resume": True}), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config["reset_on_resume"] is True
        assert config["camera_index"] == DEFAULTS["camera_index"]
        assert config["report_model"] == DEFAULTS["report_model"]

    def test_null_values_in_config_use_defaults(self, tmp_path):
        cfg_file = tmp_path / "nulls.json"
        cfg_file.write_text(json.dumps({"camera_index": None, "report_timeout": 3}), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert config["camera_index"] == DEFAULTS["camera_index"]
        assert config["report_timeout"] == 3

    def test_extra_fields_ignored(self, tmp_path):
        cfg_file = tmp_path / "extra.json"
        cfg_file.write_text(json.dumps({"ear_threshold": 0.1, "unknown_field": 999}), encoding="utf-8")

        config = load_config(str(cfg_file))
        assert "ear_threshold" not in config
        assert "unknown_field" not in config


@pytest.fixture
def system():
    with patch("main.LandmarkProvider") as provider_cls:
        provider_cls.return_value = MagicMock()
        yield DetectionSystem()


class TestDetectionSystemInit:
    """Test DetectionSystem initialization."""

    def test_default_init(self, system):
        assert system.monitor.reset_on_resume is False
        assert not system.monitor.active

    def test_init_with_config(self, tmp_path):
        cfg_file = tmp_path / "test_config.json"
        cfg_file.write_text(json.dumps({"reset_on_resume": True, "report_timeout": 2.5}), encoding="utf-8")

        with patch("main.LandmarkProvider"):
            system = DetectionSystem(config_path=str(cfg_file))
        assert system.monitor.reset_on_resume is True
        assert system.reporter.timeout == 2.5


class TestDetectionSystemControls:
    def test_toggle_pause(self, system):
        system.toggle_pause()
        assert system.monitor.active
        system.toggle_pause()
        assert not system.monitor.active

    def test_generate_report_without_key(self, system, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)
        system.reporter.api_key = None
        assert system.generate_report() == NO_API_KEY_MESSAGE

    def test_run_exits_when_camera_unavailable(self, system):
        cap = MagicMock()
        cap.isOpened.return_value = False
        with patch("main.cv2.VideoCapture", return_value=cap):
            with pytest.raises(SystemExit) as exc:
                system.run()
        assert exc.value.code == 1


class TestDetectionSystemStop:
    """Test DetectionSystem.stop method."""

    def test_stop_without_camera(self, system):
        """stop() should not raise even if camera was never opened."""
        with patch("main.cv2.destroyAllWindows"):
            system.stop()
        system.landmark_provider.close.assert_called_once()
