# -----------------------------------------------------------------------------
# exception hierarchy shared by the exporter components
# -----------------------------------------------------------------------------
from __future__ import annotations

import copy


class ExportError(RuntimeError):
    pass


class TransportError(ExportError):
    """Network/connection failure or an unsuccessful HTTP status."""


class DecodeError(ExportError):
    """Response body could not be parsed into the expected shape."""


class ApiError(DecodeError):
    """Response parsed fine but the API reported ``ok: false``."""

    def __init__(self, message: str, api_error: str|None = None):
        super().__init__(message)
        self.api_error = api_error


class FilesystemError(ExportError):
    pass


class CancellationError(ExportError):
    pass


class ConfigError(ExportError):
    pass


def wrap_error(e: ExportError, context: str) -> ExportError:
    # same class, message prefixed with the operation that failed
    wrapped = copy.copy(e)
    wrapped.args = (f'{context}: {e!s}',)
    return wrapped
