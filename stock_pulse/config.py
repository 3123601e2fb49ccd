# stock_pulse/config.py - Configuration and constants for the stock_pulse package
"""
Configuration module for the live market dashboard.
Handles environment variables, transport settings, render pacing, chart sizing
and logging setup.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Any, Optional, List
import json
import pytz
from dotenv import load_dotenv

# .env lives in the project root (one level up from stock_pulse/)
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

ENV_PREFIX = 'STOCK_PULSE_'


class PulseConfig:
    """
    [CLASS SUMMARY]
    Purpose: Centralized configuration for the stock_pulse package
    Responsibilities:
        - Transport endpoint and acknowledgement timeout
        - Render pacing (frame interval, minimum flush interval)
        - Chart window sizing
        - Display time zone and list limits
        - Logging setup
    Usage:
        config = PulseConfig()
        url = config.server_url
    """

    def __init__(self, config_override: Optional[Dict[str, Any]] = None):
        """
        [FUNCTION SUMMARY]
        Purpose: Initialize configuration with environment variables and optional overrides
        Parameters:
            - config_override (dict, optional): Override default settings for testing
        Example: PulseConfig({'min_flush_interval': 0.1}) -> 10 notifications/sec max
        """
        self.config_override = config_override or {}

        self._load_transport_config()
        self._load_render_config()
        self._load_chart_config()
        self._load_display_config()
        self._setup_logging()

    def _setting(self, key: str, default: Any, cast=str) -> Any:
        """Override first, then STOCK_PULSE_<KEY> from the environment, then default"""
        if key in self.config_override:
            return self.config_override[key]
        raw = os.getenv(ENV_PREFIX + key.upper())
        if raw is None or raw == '':
            return default
        try:
            return cast(raw)
        except (TypeError, ValueError):
            logging.getLogger(__name__).warning(
                f"Ignoring invalid value for {ENV_PREFIX + key.upper()}: {raw!r}"
            )
            return default

    def _load_transport_config(self):
        """
        [FUNCTION SUMMARY]
        Purpose: Load Socket.IO server settings
        Sets: server_url, transports, ack_timeout, reconnection
        """
        self.server_url = self._setting('server_url', 'http://localhost:4000')

        transports = self._setting('transports', 'websocket')
        if isinstance(transports, str):
            transports = [t.strip() for t in transports.split(',') if t.strip()]
        self.transports: List[str] = list(transports) or ['websocket']

        # Seconds to wait for request_market_data / request_history acks
        self.ack_timeout = float(self._setting('ack_timeout', 10.0, float))

        # Reconnection policy belongs to the Socket.IO client
        self.reconnection = bool(self._setting('reconnection', True, _parse_bool))

    def _load_render_config(self):
        """
        [FUNCTION SUMMARY]
        Purpose: Configure presentation pacing
        Sets: frame_interval, min_flush_interval
        Note: 40 ms minimum interval caps notifications at ~25 per second
        """
        self.frame_interval = float(self._setting('frame_interval', 1.0 / 60.0, float))
        self.min_flush_interval = float(self._setting('min_flush_interval', 0.040, float))

    def _load_chart_config(self):
        """
        [FUNCTION SUMMARY]
        Purpose: Configure the per-symbol chart window
        Sets: max_chart_points, history_points
        """
        self.max_chart_points = max(1, int(self._setting('max_chart_points', 100, int)))
        self.history_points = max(0, int(self._setting('history_points', 50, int)))

    def _load_display_config(self):
        """
        [FUNCTION SUMMARY]
        Purpose: Configure display formatting and user preference storage
        Sets: display_timezone, list_limit, preferences_path
        """
        tz_name = self._setting('display_timezone', '')
        if tz_name:
            try:
                self.display_timezone = pytz.timezone(tz_name)
            except pytz.UnknownTimeZoneError:
                logging.getLogger(__name__).warning(f"Unknown time zone {tz_name!r}, using UTC")
                self.display_timezone = pytz.UTC
        else:
            # None means the machine's local time zone
            self.display_timezone = None

        self.list_limit = int(self._setting('list_limit', 200, int))

        self.data_dir = Path(self._setting('data_dir', str(Path(__file__).parent.parent / 'data')))
        self.preferences_path = Path(self._setting('preferences_path', str(self.data_dir / 'preferences.json')))

    def _setup_logging(self):
        """
        [FUNCTION SUMMARY]
        Purpose: Configure logging for the package
        Sets: Logging format, level, and file rotation settings
        """
        log_level = str(self._setting('log_level', 'INFO'))

        self.logger_config = {
            'level': getattr(logging, log_level.upper(), logging.INFO),
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }

        self.log_dir = self.data_dir / 'logs'
        self.log_file = self.log_dir / 'stock_pulse.log'
        self.max_log_size = 10 * 1024 * 1024  # 10 MB
        self.log_backup_count = 5
        self.enable_file_logging = bool(self._setting('enable_file_logging', False, _parse_bool))

    def get_logger(self, name: str = 'stock_pulse', console: bool = True) -> logging.Logger:
        """
        [FUNCTION SUMMARY]
        Purpose: Attach the package's handlers to a logger
        Parameters:
            - name (str): Logger name; the default covers every module in the package
            - console (bool): Also write to stderr; off while the live dashboard owns the terminal
        Returns: logging.Logger - The configured logger
        Example: config.get_logger(console=False) -> file-only package logging
        """
        logger = logging.getLogger(name)
        logger.setLevel(self.logger_config['level'])
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        handlers: List[logging.Handler] = []
        if console:
            handlers.append(logging.StreamHandler())
        if self.enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(RotatingFileHandler(
                self.log_file, maxBytes=self.max_log_size, backupCount=self.log_backup_count
            ))

        formatter = logging.Formatter(self.logger_config['format'], datefmt=self.logger_config['datefmt'])
        for handler in handlers:
            handler.setLevel(self.logger_config['level'])
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def to_dict(self) -> Dict[str, Any]:
        """
        [FUNCTION SUMMARY]
        Purpose: Export configuration as dictionary for debugging/inspection
        Returns: dict - All configuration values
        Example: print(json.dumps(config.to_dict(), indent=2))
        """
        return {
            'transport': {
                'server_url': self.server_url,
                'transports': self.transports,
                'ack_timeout': self.ack_timeout,
                'reconnection': self.reconnection
            },
            'render': {
                'frame_interval': self.frame_interval,
                'min_flush_interval': self.min_flush_interval
            },
            'chart': {
                'max_chart_points': self.max_chart_points,
                'history_points': self.history_points
            },
            'display': {
                'timezone': self.display_timezone.zone if self.display_timezone else 'local',
                'list_limit': self.list_limit,
                'preferences_path': str(self.preferences_path)
            },
            'logging': {
                'level': logging.getLevelName(self.logger_config['level']),
                'log_file': str(self.log_file) if self.enable_file_logging else None
            }
        }

    def __repr__(self) -> str:
        return f"PulseConfig({json.dumps(self.to_dict())})"


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


# Convenience function for getting config instance
_config_instance = None


def get_config(reset: bool = False, **overrides) -> PulseConfig:
    """
    [FUNCTION SUMMARY]
    Purpose: Get or create singleton configuration instance
    Parameters:
        - reset (bool): Force create new instance
        - **overrides: Configuration overrides
    Returns: PulseConfig - Configuration instance
    Example: config = get_config(min_flush_interval=0.1)
    """
    global _config_instance

    if _config_instance is None or reset or overrides:
        _config_instance = PulseConfig(overrides)

    return _config_instance
