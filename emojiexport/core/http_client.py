# -----------------------------------------------------------------------------
# blocking http transport: one session per component, abandoned on cancel
# -----------------------------------------------------------------------------
from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, Tuple

import requests
from requests import Response

from emojiexport.core.cancel_token import CancelToken
from emojiexport.core.errors import CancellationError, TransportError
from emojiexport.core.logger import Logger


class HttpClient:
    DEFAULT_TIMEOUT: Tuple[float, float] = (10, 30)  # (connect, read)
    CHUNK_SIZE = 1024 * 64

    def __init__(self, logger: Logger,
                 session: requests.Session|None = None,
                 timeout: Tuple[float, float]|None = None):
        self._logger = logger
        self._session = session or requests.Session()
        self._timeout = timeout or self.DEFAULT_TIMEOUT

    def do(self, method: str, url: str, token: CancelToken, **kwargs) -> Response:
        token.raise_if_cancelled()
        kwargs.setdefault('timeout', self._timeout)
        kwargs['stream'] = True

        # the request runs on its own thread so a cancel can walk away from it
        # while it is still connecting or waiting for headers
        inflight = _InflightRequest(self._session, method, url, kwargs)
        token.on_cancel(inflight.abandon)
        try:
            inflight.start()
            inflight.wait()
        finally:
            token.remove_callback(inflight.abandon)

        if token.cancelled:
            inflight.abandon()
            self._logger.debug(f'Abandoned in-flight request: {method} {url}')
            raise CancellationError(token.reason)

        if inflight.error is not None:
            e = inflight.error
            if isinstance(e, (requests.RequestException, OSError)):
                raise TransportError(f'do request: {e!s}') from e
            raise e

        response = inflight.response
        if not response.ok:
            response.close()
            raise TransportError(f'unexpected status {response.status_code} for {method} {url}')
        return response

    def read_body(self, response: Response, token: CancelToken) -> bytes:
        return b''.join(self.iter_body(response, token))

    def iter_body(self, response: Response, token: CancelToken) -> Iterator[bytes]:
        # closing the response unblocks a read stuck in the socket
        token.on_cancel(response.close)
        try:
            for chunk in response.iter_content(self.CHUNK_SIZE):
                if token.cancelled:
                    raise CancellationError(token.reason)
                yield chunk
            token.raise_if_cancelled()
        except CancellationError:
            raise
        except Exception as e:
            if token.cancelled:
                raise CancellationError(token.reason) from e
            if isinstance(e, (requests.RequestException, OSError)):
                raise TransportError(f'read response body: {e!s}') from e
            raise
        finally:
            token.remove_callback(response.close)
            response.close()

    def close(self):
        self._session.close()


class _InflightRequest:
    """
    One ``session.request`` call on a daemon thread. Once abandoned, ``wait``
    returns immediately and a response arriving later is closed right away.
    """

    def __init__(self, session: requests.Session, method: str, url: str, kwargs: Dict[str, Any]):
        self._session = session
        self._method = method
        self._url = url
        self._kwargs = kwargs

        self._done = threading.Event()
        self._lock = threading.Lock()
        self._abandoned = False

        self.response: Response|None = None
        self.error: BaseException|None = None

    def start(self):
        thread = threading.Thread(target=self._send, name=f'http-{self._method.lower()}', daemon=True)
        thread.start()

    def wait(self):
        self._done.wait()

    def abandon(self):
        with self._lock:
            self._abandoned = True
            response, self.response = self.response, None
        if response is not None:
            response.close()
        self._done.set()

    def _send(self):
        response = None
        error = None
        try:
            response = self._session.request(self._method, self._url, **self._kwargs)
        except Exception as e:
            error = e

        with self._lock:
            abandoned = self._abandoned
            if not abandoned:
                self.response, self.error = response, error
        if abandoned and response is not None:
            response.close()
        self._done.set()
