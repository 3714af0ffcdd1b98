import logging

from kidvocab.settings import get_settings

_configured = False


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger once."""
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=get_settings().LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _configured = True
