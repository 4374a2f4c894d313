"""
Unit tests for Logging Configuration

Tests logging setup, file rotation, and logger configuration.
"""
import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import Mock, patch

from querygate.core import logging as qg_logging
from querygate.core.logging import (
    AUDIT_LOGGER_NAME,
    create_rotating_file_handler,
    get_audit_logger,
    get_llm_logger,
    get_logger,
    setup_audit_logging,
    setup_logging,
)


class TestCreateRotatingFileHandler:
    """Test create_rotating_file_handler function"""

    @patch('querygate.core.logging.RotatingFileHandler')
    @patch('querygate.core.logging.Path')
    def test_create_rotating_file_handler_defaults(self, mock_path, mock_handler_cls):
        """Test creating handler with default settings"""
        mock_path.return_value.parent.mkdir = Mock()
        mock_handler = Mock()
        mock_handler_cls.return_value = mock_handler

        handler = create_rotating_file_handler("./logs/test.log")

        assert handler == mock_handler
        mock_handler.setFormatter.assert_called_once()
        mock_handler.setLevel.assert_called_once_with(logging.DEBUG)

    @patch('querygate.core.logging.RotatingFileHandler')
    @patch('querygate.core.logging.Path')
    def test_create_rotating_file_handler_custom_size(self, mock_path, mock_handler_cls):
        """Test creating handler with custom size"""
        mock_path.return_value.parent.mkdir = Mock()
        mock_handler_cls.return_value = Mock()

        create_rotating_file_handler("./logs/test.log", max_bytes=5000000, backup_count=3)

        call_kwargs = mock_handler_cls.call_args[1]
        assert call_kwargs['maxBytes'] == 5000000
        assert call_kwargs['backupCount'] == 3

    def test_creates_log_directory(self, tmp_path):
        """Test that the handler creates a missing log directory"""
        log_path = tmp_path / "nested" / "app.log"

        handler = create_rotating_file_handler(str(log_path))
        try:
            assert log_path.parent.is_dir()
        finally:
            handler.close()


class TestSetupLogging:
    @patch('querygate.core.logging.logging.basicConfig')
    def test_quiets_noisy_libraries(self, mock_basic_config):
        """Test that dependency loggers are raised to WARNING"""
        with patch.object(qg_logging.settings, "log_to_file", False):
            setup_logging("DEBUG")

        assert mock_basic_config.call_args.kwargs["level"] == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING


class TestAuditLogger:
    def test_file_handler_added_once(self, tmp_path):
        """Test the audit file handler is attached only once"""
        logger = logging.getLogger(AUDIT_LOGGER_NAME)
        original_handlers = list(logger.handlers)
        try:
            with patch.object(qg_logging.settings, "log_to_file", True):
                setup_audit_logging(str(tmp_path / "audit.log"))
                setup_audit_logging(str(tmp_path / "audit.log"))

            rotating = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
            assert len(rotating) == 1
        finally:
            for handler in logger.handlers:
                if handler not in original_handlers:
                    handler.close()
            logger.handlers = original_handlers

    def test_get_audit_logger(self):
        logger = get_audit_logger()
        assert logger.name == AUDIT_LOGGER_NAME
        assert logger.level == logging.INFO


class TestGetLoggers:
    def test_get_llm_logger(self):
        assert get_llm_logger().level == logging.INFO

    def test_get_logger(self):
        assert get_logger("querygate.test").name == "querygate.test"
