from __future__ import annotations

import logging
from typing import Any

# The module can run without the service package (tests, one-off scripts);
# records then go to stdlib logging only.
try:
    from service import logging_utils as _logging_backend
except ImportError:  # pragma: no cover
    _logging_backend = None

_activity_log = logging.getLogger("job_scrape.activity")
_error_log = logging.getLogger("job_scrape.error")


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record to the service's JSONL log.
    Falls back to stdlib logging as structured info.
    """
    if _logging_backend is not None:
        try:
            _logging_backend.write_activity_log(record)
            return
        except OSError:
            _activity_log.debug("activity log write failed", exc_info=True)
    _activity_log.info("%s", record)


def error(record: dict[str, Any]) -> None:
    """
    Write an error record to the service's JSONL log.
    Falls back to stdlib logging as structured error.
    """
    if _logging_backend is not None:
        try:
            _logging_backend.write_error_log(record)
            return
        except OSError:
            _error_log.debug("error log write failed", exc_info=True)
    _error_log.error("%s", record)
