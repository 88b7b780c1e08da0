# -----------------------------------------------------------------------------
# content-addressed image archive + append-only json-lines catalog
# -----------------------------------------------------------------------------
# Layout of the target directory:
#   <sha256(url)><ext>   one image per stored emoji, overwritten on re-export
#   emoji.catalog        {"fileName": ..., "emoji": {...}} per line
#
# <ext> is whatever posixpath.splitext() extracts from the url, leading dot
# included. Urls without extension give a bare digest, urls with a query
# string keep it inside the extension segment ("<digest>.png?v=1").
# -----------------------------------------------------------------------------
from __future__ import annotations

import hashlib
import json
import os
import posixpath
from typing import Iterable, TextIO

from emojiexport.core.errors import FilesystemError
from emojiexport.core.logger import Logger
from emojiexport.emoji_record import EmojiRecord
from emojiexport.util.io import fmt_sizeof


def generate_file_name(url: str) -> str:
    digest = hashlib.sha256(url.encode('utf-8')).hexdigest()
    return digest + posixpath.splitext(url)[1]


class CatalogStore:
    CATALOG_NAME = 'emoji.catalog'
    PARTIAL_SUFFIX = '.part'

    def __init__(self, directory: str, logger: Logger):
        self._logger = logger

        if not os.path.exists(directory):
            raise FilesystemError(f'checking path: no such directory: {directory}')
        if not os.path.isdir(directory):
            raise FilesystemError(f'path is not a directory: {directory}')

        self._directory = directory
        self._catalog_path = os.path.join(directory, self.CATALOG_NAME)
        try:
            self._catalog: TextIO|None = open(self._catalog_path, 'w', encoding='utf-8')
        except OSError as e:
            raise FilesystemError(f'create catalog file: {e!s}') from e

        self._entries_written = 0
        self._logger.debug(f'Opened catalog for writing: {self._catalog_path}')

    def __enter__(self) -> CatalogStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
            return
        # an error is already on its way up, do not mask it
        try:
            self.close()
        except FilesystemError as e:
            self._logger.error(f'Closing catalog failed: {e!s}')

    @property
    def entries_written(self) -> int:
        return self._entries_written

    def store_item(self, emoji: EmojiRecord, body: Iterable[bytes]) -> str:
        if self._catalog is None:
            raise FilesystemError('store is closed')

        name = generate_file_name(emoji.url)
        self._write_to_file(name, body)
        self._append_to_catalog(name, emoji)
        return name

    def close(self):
        if self._catalog is None:
            return
        catalog, self._catalog = self._catalog, None
        try:
            catalog.flush()
            catalog.close()
        except OSError as e:
            raise FilesystemError(f'close catalog: {e!s}') from e
        self._logger.debug(f'Catalog closed: {self._entries_written:n} entries')

    def _write_to_file(self, file_name: str, body: Iterable[bytes]):
        path = os.path.join(self._directory, file_name)
        partial_path = os.path.join(self._directory, '.' + file_name + self.PARTIAL_SUFFIX)

        self._logger.debug(f'Writing: {path}')
        content_size = 0
        try:
            with open(partial_path, 'wb') as fp:
                for chunk in body:
                    fp.write(chunk)
                    content_size += len(chunk)
            os.replace(partial_path, path)
        except OSError as e:
            self._discard(partial_path)
            raise FilesystemError(f'writing to file: {e!s}') from e
        except BaseException:
            self._discard(partial_path)
            raise
        self._logger.debug(f'Writing done: ({fmt_sizeof(content_size).strip()})')

    def _append_to_catalog(self, file_name: str, emoji: EmojiRecord):
        entry = {
            'fileName': file_name,
            'emoji': emoji.to_dict(),
        }
        line = json.dumps(entry, ensure_ascii=False)
        try:
            self._catalog.write(line + '\n')
            self._catalog.flush()
        except OSError as e:
            raise FilesystemError(f'appending to catalog: {e!s}') from e
        self._entries_written += 1

    def _discard(self, path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.warn(f'Could not remove partial file {path}: {e!s}')
