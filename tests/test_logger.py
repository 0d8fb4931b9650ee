"""
Tests for the logging helpers.

These tests verify:
    - Logger namespacing
    - Log level lookup
    - Optional log files
    - One-line metric and model event messages
"""

import logging

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from deep2048.utils.logger import (
    LogLevel,
    get_log_path,
    get_logger,
    log_model_event,
    log_training_metrics,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    """Put the default console-only setup back after a test reconfigures logging."""
    yield
    setup_logging(force=True)


class TestGetLogger:
    """Test logger naming."""

    def test_prefixed(self):
        assert get_logger('training').name == 'deep2048.training'

    def test_module_names_not_prefixed_twice(self):
        """Package modules already live under deep2048."""
        assert get_logger('deep2048.ai.agent').name == 'deep2048.ai.agent'


class TestLogLevel:
    """Test LogLevel.from_name."""

    @pytest.mark.parametrize("name, level", [
        ('debug', LogLevel.DEBUG), ('INFO', LogLevel.INFO), ('Warning', LogLevel.WARNING),
    ])
    def test_lookup(self, name, level):
        assert LogLevel.from_name(name) is level

    def test_unknown(self):
        with pytest.raises(ValueError):
            LogLevel.from_name('verbose')


class TestSetup:
    """Test setup_logging."""

    def test_file_output(self, tmp_path, restore_logging):
        """With file output a log file is written under log_dir."""
        setup_logging(log_dir=str(tmp_path), file_output=True, log_filename='run.log', force=True)
        get_logger('test').info("hello file")

        assert get_log_path() == tmp_path / 'run.log'
        with open(tmp_path / 'run.log', encoding='utf-8') as f:
            assert 'hello file' in f.read()

    def test_console_only_has_no_path(self, restore_logging):
        setup_logging(force=True)
        assert get_log_path() is None

    def test_level(self, restore_logging):
        setup_logging(level=LogLevel.WARNING, force=True)
        assert logging.getLogger('deep2048').level == logging.WARNING


class TestMessages:
    """Test the one-line helpers."""

    def test_training_metrics(self, caplog):
        """Optional fields are only included when given."""
        with caplog.at_level(logging.INFO, logger='deep2048'):
            log_training_metrics(5, 128.0, 0.25, total_reward=40.0, steps=90)
        assert "ep=5 | score=128.0 | eps=0.2500 | reward=40.0 | steps=90" in caplog.text
        assert "avg_score" not in caplog.text

    def test_model_event(self, caplog):
        with caplog.at_level(logging.INFO, logger='deep2048'):
            log_model_event('checkpoint', 'models/x.txt', episode=3)
        assert "CHECKPOINT | models/x.txt | episode=3" in caplog.text
