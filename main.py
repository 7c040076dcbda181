from __future__ import annotations

import logging
import sys
import traceback

from markstamp.cli import app

_log = logging.getLogger("markstamp.main")


def _install_exception_logging() -> None:
    """Route uncaught exceptions through logging before the default hook prints them."""

    def _log_uncaught_exception(exc_type, exc_value, exc_tb) -> None:
        message = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
        _log.error("uncaught exception\n%s", message.rstrip())
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _log_uncaught_exception


def main() -> None:
    _install_exception_logging()
    _log.debug("startup argv=%s", sys.argv[1:])
    app()


if __name__ == "__main__":
    main()
