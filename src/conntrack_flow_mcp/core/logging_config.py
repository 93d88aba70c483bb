import logging
import sys

FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", stream=None):
    """Configure root logging once. Logs go to stderr so stdout stays clean for output and MCP stdio."""
    levelno = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=levelno, format=FORMAT, stream=stream or sys.stderr)
