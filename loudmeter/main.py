"""Main application entry point for Loudmeter."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from loudmeter import __version__
from loudmeter.audio.audio_pub import AudioPublisher
from loudmeter.audio.capture import AudioCapture
from loudmeter.services.metering_service import MeteringService
from loudmeter.ui.level_display import LevelDisplay

from .config import LoudmeterConfig, LevelSettings

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        self.config = LoudmeterConfig(config_path)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.should_exit = False

    def init(self, duration: Optional[float] = None):
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)

        self.settings = LevelSettings.from_config(self.config)
        if duration:
            self.settings.max_duration_seconds = float(duration)

        self.audio_publisher = AudioPublisher("audio.frame")
        self.audio_capture = AudioCapture(
            callback=self.audio_publisher.publish_audio_event,
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels
        )
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels "
                    f"({self.audio_capture.chunk_interval_seconds * 1000:.0f}ms per level reading)")
        self.metering_service = MeteringService(self.settings, audio_topic="audio.frame")
        self.display = LevelDisplay(
            max_display=self.settings.normalizer.get('max_display', 100.0),
            quiet_max=self.settings.quiet_max,
            normal_max=self.settings.normal_max,
        )

    def run(self):
        try:
            self.display.start()
            self.metering_service.start_session()
            self.audio_capture.start_recording()
            # Auto-stop happens inside the metering service
            while not self.should_exit and self.metering_service.is_active:
                if self.audio_capture.last_error:
                    raise RuntimeError(f"Microphone unavailable: {self.audio_capture.last_error}")
                time.sleep(0.1)
        finally:
            self.cleanup()

    def cleanup(self):
        if self.audio_capture.is_recording:
            self.audio_capture.stop_recording()
        self.metering_service.shutdown()
        self.display.stop()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/loudmeter.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler stays quiet so it doesn't fight the live meter
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Loudmeter starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for Loudmeter."""
    parser = argparse.ArgumentParser(
        description="Loudmeter - live microphone loudness meter",
        epilog="Press Ctrl-C to stop and print the session summary"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        help="Stop automatically after this many seconds (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Loudmeter v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init(args.duration)
        server.run()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
