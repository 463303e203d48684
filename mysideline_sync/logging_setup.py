"""Process-wide logging setup shared by the runner scripts."""
import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger at *level*."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # playwright and asyncio are noisy at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
