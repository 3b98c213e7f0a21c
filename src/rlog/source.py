"""Call-site capture for log entries."""

from __future__ import annotations

import inspect
import os
import time
import uuid

from rlog.common import SourceMetadata
from rlog.diagnostics import get_logger

logger = get_logger(__name__)

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__)) + os.sep

# co_name values that do not name a real function
_ANONYMOUS_CODE = frozenset({"<module>", "<lambda>", "<listcomp>", "<dictcomp>", "<setcomp>", "<genexpr>"})

UNKNOWN_FILE = "<unknown>"


def _is_internal(filename: str) -> bool:
    return os.path.abspath(filename).startswith(_PACKAGE_DIR)


def extract_source_metadata() -> SourceMetadata:
    """Walk the stack to the first frame outside rlog.

    Never raises; an unreadable stack yields ``<unknown>`` metadata.
    """
    file_path: str | None = None
    line_number = 0
    function_name: str | None = None
    nearest_function_name: str | None = None

    frame = inspect.currentframe()
    try:
        while frame is not None:
            code = frame.f_code
            if not _is_internal(code.co_filename):
                named = code.co_name not in _ANONYMOUS_CODE
                if file_path is None:
                    file_path = code.co_filename
                    line_number = frame.f_lineno
                    function_name = code.co_name if named else None
                if named:
                    nearest_function_name = code.co_name
                    break
            frame = frame.f_back
    except Exception:
        logger.debug("rlog.source_metadata_unavailable", exc_info=True)
    finally:
        del frame

    return SourceMetadata(
        file_path=file_path or UNKNOWN_FILE,
        line_number=line_number,
        function_name=function_name,
        nearest_function_name=nearest_function_name,
    )


def generate_correlation_id() -> str:
    """Default correlation id: wall-clock seconds plus a random UUID."""
    return f"{int(time.time())}_{uuid.uuid4()}"
