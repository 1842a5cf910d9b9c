import logging
import sys

from colorlog import ColoredFormatter


_log = None


def get_color_logging_object(level=logging.INFO):
    global _log
    if _log is not None:
        # stderr may have been swapped (and the old one closed) since the first
        # call, setStream() would flush the closed stream.
        _log.handlers[0].stream = sys.stderr
        _log.setLevel(level)
        return _log

    LOGFORMAT = (
        "  %(log_color)s%(levelname)-8s%(reset)s | %(log_color)s%(message)s%(reset)s"
    )

    formatter = ColoredFormatter(LOGFORMAT)
    # stdout is reserved for cargo directives.
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    log = logging.getLogger("embgen")
    log.setLevel(level)
    log.addHandler(stream)

    _log = log

    return _log
