# -----------------------------------------------------------------------------
# export pipeline: listing thread -> channel -> download -> catalog store
# -----------------------------------------------------------------------------
from __future__ import annotations

import threading
from enum import Enum
from queue import SimpleQueue

from emojiexport.catalog_store import CatalogStore
from emojiexport.core.cancel_token import CancelToken
from emojiexport.core.errors import CancellationError, ExportError, wrap_error
from emojiexport.core.http_client import HttpClient
from emojiexport.core.logger import Logger
from emojiexport.emoji_lister import EmojiLister
from emojiexport.emoji_record import EmojiRecord
from emojiexport.util.io import fmt_count


class RunState(Enum):
    INIT = 'init'
    COUNTING = 'counting'
    LISTING = 'listing'  # listing and downloading run side by side
    DRAINING = 'draining'
    DONE = 'done'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


class ListingFailed:
    def __init__(self, error: ExportError):
        self.error = error


class ListingFinished:
    def __init__(self, listed: int):
        self.listed = listed


class Cancelled:
    pass


class ExportPipeline:
    """
    Drives one export run. The lister works in a background thread and
    pushes tagged items onto a single channel:

        EmojiRecord      next record to download and store
        ListingFailed    the lister gave up, the run fails
        ListingFinished  no more records will come
        Cancelled        the run token was cancelled

    The consumer (the thread calling ``run``) takes at most ``total`` items,
    downloading and storing one record at a time, so catalog lines follow
    the listing order.
    """
    PRODUCER_JOIN_TIMEOUT_SEC = 5.0

    def __init__(self, lister: EmojiLister, store: CatalogStore, client: HttpClient, logger: Logger):
        self._lister = lister
        self._store = store
        self._client = client
        self._logger = logger

        self._state = RunState.INIT
        self._total = 0
        self._stored = 0
        self._skipped = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def stored(self) -> int:
        return self._stored

    @property
    def skipped(self) -> int:
        return self._skipped

    def run(self, token: CancelToken) -> int:
        if self._state is not RunState.INIT:
            raise RuntimeError(f'Pipeline already ran (state: {self._state.value})')

        try:
            self._set_state(RunState.COUNTING)
            try:
                self._total = self._lister.count(token)
            except CancellationError:
                raise
            except ExportError as e:
                raise wrap_error(e, 'check emoji count') from e

            self._set_state(RunState.LISTING)
            self._export_all(token)
            self._set_state(RunState.DONE)

        except CancellationError as e:
            self._set_state(RunState.CANCELLED)
            self._logger.warn(f'Export cancelled: {e!s}')
            raise
        except BaseException:
            self._set_state(RunState.FAILED)
            raise

        self._logger.info(f'Export done: {fmt_count(self._stored, "emoji")} stored, {self._skipped:n} skipped')
        return self._stored

    def _export_all(self, token: CancelToken):
        channel: SimpleQueue = SimpleQueue()
        run_token = CancelToken(parent=token)
        run_token.on_cancel(lambda: channel.put(Cancelled()))

        producer = threading.Thread(target=self._produce,
                                    args=(self._total, channel, run_token),
                                    name='emoji-lister', daemon=True)
        producer.start()
        try:
            for _ in range(self._total):
                item = channel.get()

                if isinstance(item, Cancelled) or run_token.cancelled:
                    raise CancellationError(run_token.reason or 'cancelled')
                if isinstance(item, ListingFailed):
                    raise wrap_error(item.error, 'list request') from item.error
                if isinstance(item, ListingFinished):
                    self._logger.warn(f'Listing finished after {item.listed:n} of {self._total:n} emojis, '
                                      f'stopping early')
                    break

                self._export_one(item, run_token)

            self._set_state(RunState.DRAINING)
        finally:
            self._release_producer(producer, run_token)

    def _produce(self, total: int, channel: SimpleQueue, token: CancelToken):
        counter = _CountingSink(channel)
        try:
            self._lister.list_all(total, counter, token)
        except CancellationError:
            return
        except ExportError as e:
            channel.put(ListingFailed(e))
            return
        except Exception as e:
            channel.put(ListingFailed(ExportError(f'unexpected listing failure: {e!r}')))
            return
        channel.put(ListingFinished(counter.count))

    def _export_one(self, emoji: EmojiRecord, token: CancelToken):
        if not emoji.url:
            self._skipped += 1
            self._logger.warn(f'Skipping "{emoji.name}": no image url (alias for "{emoji.alias_for}")')
            return

        self._logger.debug(f'Fetching: {emoji.url}')
        try:
            response = self._client.do('GET', emoji.url, token)
        except CancellationError:
            raise
        except ExportError as e:
            raise wrap_error(e, f'download emoji "{emoji.name}"') from e

        self._logger.info(f'Storing "{emoji.name}"')
        try:
            self._store.store_item(emoji, self._client.iter_body(response, token))
        except CancellationError:
            raise
        except ExportError as e:
            raise wrap_error(e, f'store emoji "{emoji.name}"') from e
        finally:
            response.close()
        self._stored += 1

    def _release_producer(self, producer: threading.Thread, run_token: CancelToken):
        run_token.cancel('export finished')
        run_token.detach()
        producer.join(self.PRODUCER_JOIN_TIMEOUT_SEC)
        if producer.is_alive():
            self._logger.warn('Listing thread did not stop in time, leaving it behind')

    def _set_state(self, state: RunState):
        self._logger.debug(f'Pipeline state: {self._state.value} -> {state.value}')
        self._state = state


class _CountingSink:
    def __init__(self, channel: SimpleQueue):
        self._channel = channel
        self.count = 0

    def put(self, item: EmojiRecord):
        self._channel.put(item)
        self.count += 1
