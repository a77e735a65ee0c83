"""Unit tests for the application entry point."""

import logging
import pytest
from unittest.mock import patch

from loudmeter import main as main_module
from loudmeter.main import Server


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "loudmeter.yaml"
    path.write_text(
        "levels:\n"
        "  window_seconds: 10\n"
        "logging:\n"
        "  file_path: logs/test.log\n"
        "  console_output: false\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestServer:

    def test_logging_goes_to_config_relative_file(self, config_path, tmp_path):
        Server(config_path, "DEBUG")

        assert (tmp_path / "logs" / "test.log").exists()
        assert logging.getLogger().level == logging.DEBUG

    def test_init_wires_components(self, config_path):
        server = Server(config_path)
        server.init(duration=3)

        assert server.settings.window_seconds == 10.0
        assert server.settings.max_duration_seconds == 3.0
        assert server.audio_capture.audio_event_callback == server.audio_publisher.publish_audio_event
        assert server.metering_service.audio_topic == server.audio_publisher.topic

        server.metering_service.shutdown()
        server.display.stop()

    def test_run_fails_fast_when_microphone_unavailable(self, config_path):
        server = Server(config_path)
        server.init()

        def fail_capture():
            server.audio_capture.last_error = "Permission denied"

        with patch.object(server.audio_capture, 'start_recording', side_effect=fail_capture), \
                patch.object(server.display, 'start'):
            with pytest.raises(RuntimeError, match="Microphone unavailable"):
                server.run()

        assert server.metering_service.is_active is False


@pytest.mark.unit
def test_main_exits_on_error(tmp_path, capsys):
    with patch("sys.argv", ["loudmeter", "--config", str(tmp_path / "missing.yaml")]):
        with pytest.raises(SystemExit) as exc_info:
            main_module.main()

    assert exc_info.value.code == 1
    assert "Configuration file not found" in capsys.readouterr().out
