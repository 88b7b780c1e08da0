# -----------------------------------------------------------------------------
# top-level error reporting and process exit codes
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import os
import sys
import traceback

from emojiexport.core.errors import CancellationError
from emojiexport.core.logger import Logger


# noinspection PyMethodMayBeStatic
class ExceptionHandler:
    EXIT_ERROR = 1
    EXIT_CANCELLED = 2

    def __init__(self, logger: Logger):
        self._logger = logger

    def handle(self, e: BaseException) -> int:
        if isinstance(e, (CancellationError, KeyboardInterrupt)):
            self._logger.warn(f'Terminated: {e!s}' if str(e) else 'Terminated')
            return self.EXIT_CANCELLED

        self._write(e)
        if os.environ.get('EXCEPTION_TRACE', None):
            self._write_with_trace(e)
        return self.EXIT_ERROR

    def _write(self, e: BaseException):
        self._logger.error(str(e) or repr(e))

    def _write_with_trace(self, e: BaseException):
        tb_splitted = traceback.format_exception(e.__class__, e, e.__traceback__)
        tb_lines = [line.rstrip('\n') for line in tb_splitted]

        self._logger.error(json.dumps(tb_splitted, ensure_ascii=False), silent=True)
        print("\n".join(tb_lines), file=sys.stderr)
