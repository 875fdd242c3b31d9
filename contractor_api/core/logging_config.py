"""
Logging setup for the contact API.

``setup_logging`` configures the root logger once with a console handler.
Every module logs through ``logging.getLogger(__name__)``; request-scoped
lines go through the adapter in ``request_context`` so they carry the
correlation id.
"""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger if nothing else has done so yet."""
    root = logging.getLogger()
    if root.handlers:
        # uvicorn or pytest already installed handlers; only adjust the level
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
