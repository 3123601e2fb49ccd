# stock_pulse/tests/test_config.py
"""
Module: Configuration Tests
"""

import logging
from logging.handlers import RotatingFileHandler

import pytz

from stock_pulse.config import PulseConfig, get_config


class TestPulseConfig:
    """Overrides, environment and defaults"""

    def test_defaults(self, monkeypatch):
        for key in ('SERVER_URL', 'MIN_FLUSH_INTERVAL', 'MAX_CHART_POINTS', 'DISPLAY_TIMEZONE'):
            monkeypatch.delenv(f"STOCK_PULSE_{key}", raising=False)
        config = PulseConfig()
        assert config.server_url == 'http://localhost:4000'
        assert config.min_flush_interval == 0.040
        assert config.max_chart_points == 100
        assert config.history_points == 50
        assert config.transports == ['websocket']
        assert config.display_timezone is None

    def test_environment(self, monkeypatch):
        monkeypatch.setenv('STOCK_PULSE_SERVER_URL', 'http://env:1234')
        monkeypatch.setenv('STOCK_PULSE_ACK_TIMEOUT', '2.5')
        monkeypatch.setenv('STOCK_PULSE_TRANSPORTS', 'websocket, polling')
        config = PulseConfig()
        assert config.server_url == 'http://env:1234'
        assert config.ack_timeout == 2.5
        assert config.transports == ['websocket', 'polling']

    def test_invalid_environment_value_falls_back(self, monkeypatch):
        monkeypatch.setenv('STOCK_PULSE_MAX_CHART_POINTS', 'lots')
        assert PulseConfig().max_chart_points == 100

    def test_override_beats_environment(self, monkeypatch):
        monkeypatch.setenv('STOCK_PULSE_SERVER_URL', 'http://env:1234')
        assert PulseConfig({'server_url': 'http://override'}).server_url == 'http://override'

    def test_timezone(self):
        assert PulseConfig({'display_timezone': 'America/New_York'}).display_timezone.zone == 'America/New_York'
        assert PulseConfig({'display_timezone': 'Not/AZone'}).display_timezone == pytz.UTC

    def test_to_dict(self, config):
        data = config.to_dict()
        assert data['transport']['server_url'] == 'http://test:4000'
        assert data['display']['timezone'] == 'UTC'
        assert data['logging']['log_file'] is None

    def test_get_logger(self, config):
        logger = config.get_logger('stock_pulse.test')
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_file_logging(self, tmp_path):
        config = PulseConfig({'data_dir': str(tmp_path), 'enable_file_logging': True})
        logger = config.get_logger('stock_pulse.test_file')
        assert len(logger.handlers) == 2
        assert (tmp_path / 'logs').exists()
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def test_get_config_singleton(self):
        first = get_config(reset=True)
        assert get_config() is first
        assert get_config(min_flush_interval=0.1).min_flush_interval == 0.1

    def test_file_only_logger(self, tmp_path):
        config = PulseConfig({'data_dir': str(tmp_path), 'enable_file_logging': True})
        logger = config.get_logger('stock_pulse.test_file_only', console=False)
        try:
            assert [type(h) for h in logger.handlers] == [RotatingFileHandler]
            # Reconfiguring replaces handlers instead of stacking them
            config.get_logger('stock_pulse.test_file_only', console=False)
            assert len(logger.handlers) == 1
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()


class TestLauncherLogging:
    """run_stock_pulse routes package logs through PulseConfig"""

    def test_setup_logging_writes_package_logs_to_file(self, tmp_path):
        import run_stock_pulse

        config = PulseConfig({'data_dir': str(tmp_path), 'enable_file_logging': True, 'log_level': 'DEBUG'})
        package_logger = logging.getLogger('stock_pulse')
        try:
            log_file = run_stock_pulse.setup_logging(config)
            assert log_file == tmp_path / 'logs' / 'stock_pulse.log'
            assert [type(h) for h in package_logger.handlers] == [RotatingFileHandler]

            logging.getLogger('stock_pulse.data.symbol_store').debug("routed to file")
            for handler in package_logger.handlers:
                handler.flush()
            assert 'routed to file' in log_file.read_text()
        finally:
            for handler in list(package_logger.handlers):
                package_logger.removeHandler(handler)
                handler.close()
            package_logger.setLevel(logging.NOTSET)
