"""Tests for logging setup."""

import logging
from unittest.mock import patch

from bastionctl.logging_config import LOG_FORMAT, configure_logging


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_basic_config(self) -> None:
        """Test the level and format passed to basicConfig."""
        with patch("logging.basicConfig") as mock_basic:
            configure_logging("info")

        kwargs = mock_basic.call_args.kwargs
        assert kwargs["level"] == logging.INFO
        assert kwargs["format"] == LOG_FORMAT == (
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    def test_unknown_level_falls_back_to_warning(self) -> None:
        """Test the fallback level."""
        with patch("logging.basicConfig") as mock_basic:
            configure_logging("chatty")

        assert mock_basic.call_args.kwargs["level"] == logging.WARNING

    def test_aws_libraries_quietened(self) -> None:
        """Test that botocore is capped below DEBUG."""
        with patch("logging.basicConfig"):
            configure_logging("INFO")

        assert logging.getLogger("botocore").level == logging.WARNING
