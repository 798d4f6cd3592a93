"""
==============================================
Pytest suite for core/logger.py
==============================================

How to Execute:
---------------
All tests:          pytest tests/tests_core/test_logger.py -v
"""

import logging

import pytest

from core.logger import ColoredFormatter, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
def test_get_logger_name_and_level():
    logger = get_logger('tests.core.sample', level='warning')
    assert logger.name == 'tests.core.sample'
    assert logger.level == logging.WARNING


@pytest.mark.unit
def test_get_logger_without_level_keeps_existing():
    logger = get_logger('tests.core.untouched')
    assert logger.level == logging.NOTSET


@pytest.mark.unit
def test_colored_formatter_restores_levelname():
    formatter = ColoredFormatter('%(marker)s %(levelname)s %(message)s')
    record = logging.LogRecord('x', logging.ERROR, __file__, 1, 'failed', None, None)
    output = formatter.format(record)
    assert '\033[31mERROR\033[0m' in output
    assert output.startswith(ColoredFormatter.MARKERS['ERROR'])
    assert record.levelname == 'ERROR'


@pytest.mark.unit
def test_setup_logging_console(restore_root_logger):
    setup_logging(log_level='DEBUG', use_colors=False)
    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, ColoredFormatter)


@pytest.mark.unit
def test_setup_logging_file(restore_root_logger, tmp_path):
    setup_logging(log_level='INFO', log_file='sqlmock.log', log_dir=str(tmp_path), console_output=False)
    get_logger('tests.core.file').info("Mock database configured")
    for handler in restore_root_logger.handlers:
        handler.flush()
    content = (tmp_path / 'sqlmock.log').read_text(encoding='utf-8')
    assert "tests.core.file - INFO - Mock database configured" in content


@pytest.mark.edge_case
def test_setup_logging_replaces_handlers(restore_root_logger):
    setup_logging(log_level='INFO')
    setup_logging(log_level='INFO')
    assert len(restore_root_logger.handlers) == 1
