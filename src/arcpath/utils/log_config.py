import logging
import sys


def setup_logging(level=logging.INFO, format_string='%(asctime)s - %(name)s - %(levelname)s - %(message)s'):
    """Configures basic logging to stdout."""
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout  # Explicitly set stream to stdout
    )


def set_level(level) -> None:
    """Change the verbosity of the package logger at runtime."""
    logger.setLevel(level)


# Setup logging when this module is imported
setup_logging()

# Logger instance for other modules to import
logger = logging.getLogger("arcpath")
