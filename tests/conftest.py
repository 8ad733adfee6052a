import pytest

from jigmath.jig_logging import logger


@pytest.fixture(autouse=True)
def _restore_jigmath_logger():
    """Undo handler and level changes made by setup_logging/set_log_level."""
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
