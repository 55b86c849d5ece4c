"""
Tests for logging setup.
"""

import logging

from nca_metric.utils.logging_config import get_logger, setup_logging


def _own_handlers(logger):
    return [h for h in logger.handlers if getattr(h, "_nca_metric_handler", False)]


def test_setup_logging_does_not_stack_handlers():
    logger = setup_logging("INFO")
    setup_logging("DEBUG")
    assert len(_own_handlers(logger)) == 1
    assert logger.level == logging.DEBUG


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("NCA_LOG_LEVEL", "warning")
    assert setup_logging().level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    assert setup_logging("chatty").level == logging.INFO


def test_get_logger_is_in_package_hierarchy():
    package = logging.getLogger("nca_metric")
    assert get_logger("nca_metric.cli").parent is package
