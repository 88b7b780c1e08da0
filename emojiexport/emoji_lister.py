# -----------------------------------------------------------------------------
# paginated metadata listing via emoji.adminList
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
from typing import Protocol

from emojiexport.config import SlackConfig
from emojiexport.core.cancel_token import CancelToken
from emojiexport.core.errors import DecodeError, ExportError, wrap_error
from emojiexport.core.http_client import HttpClient
from emojiexport.core.logger import Logger
from emojiexport.emoji_record import EmojiRecord, ListPage


class RecordSink(Protocol):
    def put(self, item: EmojiRecord): ...


class EmojiLister:
    PAGE_SIZE = 100

    def __init__(self, config: SlackConfig, logger: Logger, client: HttpClient,
                 page_size: int = PAGE_SIZE, include_partial_page: bool = False):
        if page_size < 1:
            raise ValueError(f'Page size should be positive, got {page_size}')

        self._config = config
        self._logger = logger
        self._client = client
        self._page_size = page_size
        self._include_partial_page = include_partial_page

    def count(self, token: CancelToken) -> int:
        try:
            page = self.get_page(1, 1, token)
        except ExportError as e:
            raise wrap_error(e, 'first list request') from e

        self._logger.info(f'Emoji total reported: {page.paging.total:n}')
        return page.paging.total

    def page_count(self, total: int) -> int:
        # floor division skips the trailing partial page unless asked otherwise
        if self._include_partial_page:
            return -(-total // self._page_size)
        return total // self._page_size

    def list_all(self, total: int, sink: RecordSink, token: CancelToken):
        pages = self.page_count(total)
        if pages * self._page_size < total:
            self._logger.warn(f'Listing {pages:n} full pages covers {pages * self._page_size:n} '
                              f'of {total:n} emojis, the remainder is not requested')

        for page_num in range(1, pages + 1):
            token.raise_if_cancelled()
            self._logger.info(f'Listing emoji page #{page_num:d} of {pages:d}')

            try:
                page = self.get_page(page_num, self._page_size, token)
            except ExportError as e:
                raise wrap_error(e, f'list request for page #{page_num:d}') from e

            for emoji in page.emoji:
                token.raise_if_cancelled()
                sink.put(emoji)

    def get_page(self, page: int, size: int, token: CancelToken) -> ListPage:
        form = {
            'token': self._config.token,
            'page': str(page),
            'count': str(size),
        }
        params = {}
        if self._config.route:
            params['slack_route'] = self._config.route
        headers = {}
        if self._config.cookie:
            headers['Cookie'] = self._config.cookie

        response = self._client.do('POST', self._config.api_url, token,
                                   data=form, params=params, headers=headers)
        body = self._client.read_body(response, token)

        try:
            data = json.loads(body)
        except ValueError as e:
            raise DecodeError(f'unmarshal response: {e!s}') from e

        return ListPage.from_json(data)
