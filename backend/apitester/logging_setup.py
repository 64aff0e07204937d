import logging
import sys
from datetime import datetime


class KeyValueFormatter(logging.Formatter):
    """Renders records as key=value pairs so they stay grep-friendly."""

    def format(self, record):
        ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        entry = (
            f"timestamp={ts} level={record.levelname} "
            f'logger={record.name} message="{record.getMessage()}"'
        )
        if record.exc_info:
            entry += f' exception="{record.exc_info[0].__name__}: {record.exc_info[1]}"'
        return entry


_configured = False


def configure_logging(level: str = "INFO") -> None:
    global _configured
    root = logging.getLogger("apitester")
    root.setLevel(level)
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(KeyValueFormatter())
    root.addHandler(handler)
    _configured = True
