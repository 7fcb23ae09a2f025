"""diffscribe: render git change sets as annotated Markdown."""

from loguru import logger

__version__ = "0.1.0"

# Silent when used as a library; the CLI turns logging on in setup_logging.
logger.disable("diffscribe")
