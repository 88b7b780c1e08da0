#!/usr/bin/env python3
# -----------------------------------------------------------------------------
# slack custom emoji exporter
# -----------------------------------------------------------------------------
# Lists every custom emoji through emoji.adminList and downloads the images
# into <dir> as <sha256(url)><ext>, recording the metadata of each stored file
# in <dir>/emoji.catalog (one json object per line).
#
# Credentials are read from .env / environment (SLACK_USER_TOKEN, SLACK_ROUTE,
# SLACK_COOKIE) or from a json config file given with --config.
#   Example: emojiexport -o ./.slack-backup/emoji/
# -----------------------------------------------------------------------------
from __future__ import annotations

import locale
import os
import signal
import sys
import threading
from argparse import ArgumentParser, Namespace, RawDescriptionHelpFormatter
from typing import List

from emojiexport.catalog_store import CatalogStore
from emojiexport.config import Config
from emojiexport.core.cancel_token import CancelToken
from emojiexport.core.errors import FilesystemError
from emojiexport.core.exception_handler import ExceptionHandler
from emojiexport.core.http_client import HttpClient
from emojiexport.core.logger import Logger
from emojiexport.emoji_lister import EmojiLister
from emojiexport.export_pipeline import ExportPipeline


# noinspection PyMethodMayBeStatic
class EmojiExporter:
    POLL_INTERVAL_SEC = 0.2
    HANDLED_SIGNALS = ('SIGINT', 'SIGTERM')

    def __init__(self, argv: List[str]|None = None):
        try:
            locale.setlocale(locale.LC_ALL, '')
        except locale.Error:
            pass

        self.args: Namespace = self._parse_args(argv)
        self.logger = Logger(self.args.log_file, verbose=self.args.verbose)
        self.token = CancelToken()
        self._error: BaseException|None = None

    def run(self) -> int:
        handler = ExceptionHandler(self.logger)
        try:
            self._invoke()
            exit_code = 0
        except Exception as e:
            exit_code = handler.handle(e)
        finally:
            self.logger.close_io()
        return exit_code

    def _parse_args(self, argv: List[str]|None) -> Namespace:
        parser = ArgumentParser(
            description='Export Slack workspace custom emojis with their metadata',
            formatter_class=RawDescriptionHelpFormatter,
            epilog='\n'.join([
                'PAGINATION',
                'By default only full pages of --page-size emojis are listed, i.e. the last '
                'partial page is not requested. Use --all-pages to request it as well.',
            ]),
        )
        parser.add_argument('-o', metavar='<dir>', dest='directory', default=None,
                            help='directory where images and emoji.catalog are saved '
                                 '(default: $EMOJI_EXPORT_DIR or .slack-backup/emoji)')
        parser.add_argument('--config', metavar='<file>', default=None,
                            help='json config file: {"directory": ..., "slack": {"token", "route", "cookie"}}')
        parser.add_argument('--mkdir', action='store_true',
                            help='create the output directory if it does not exist')
        parser.add_argument('--all-pages', action='store_true',
                            help='also request the trailing partial page of the listing')
        parser.add_argument('--page-size', metavar='<num>', type=int, default=EmojiLister.PAGE_SIZE,
                            help=f'emojis per listing request (default {EmojiLister.PAGE_SIZE})')
        parser.add_argument('--log-file', metavar='<file>', default=None,
                            help='log file path (default ./log/log.<date>.log)')
        parser.add_argument('-v', '--verbose', action='store_true', help='provide detailed output')
        return parser.parse_args(argv)

    def _invoke(self):
        config = Config.load(self.args.config, directory=self.args.directory)
        if self.args.mkdir:
            try:
                os.makedirs(config.directory, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f'create output directory: {e!s}') from e

        self.logger.info(f'Exporting emojis to {os.path.realpath(config.directory)}')
        list_client = HttpClient(self.logger, timeout=config.timeout)
        download_client = HttpClient(self.logger, timeout=config.timeout)
        try:
            with CatalogStore(config.directory, self.logger) as store:
                lister = EmojiLister(config.slack, self.logger, list_client,
                                     page_size=self.args.page_size,
                                     include_partial_page=self.args.all_pages)
                pipeline = ExportPipeline(lister, store, download_client, self.logger)
                self._run_in_background(pipeline)
        finally:
            list_client.close()
            download_client.close()

        self.logger.info(f'Exported {pipeline.stored:n} emojis to {config.directory}')

    def _run_in_background(self, pipeline: ExportPipeline):
        # signal handlers only run on the main thread, so the pipeline gets its own
        worker = threading.Thread(target=self._run_pipeline, args=(pipeline,), name='emoji-export')
        previous = self._install_signal_handlers()
        try:
            worker.start()
            while worker.is_alive():
                worker.join(self.POLL_INTERVAL_SEC)
        finally:
            self._restore_signal_handlers(previous)

        if self._error is not None:
            raise self._error

    def _run_pipeline(self, pipeline: ExportPipeline):
        try:
            pipeline.run(self.token)
        except BaseException as e:
            self._error = e

    def _install_signal_handlers(self) -> dict:
        previous = {}
        for name in self.HANDLED_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            previous[signum] = signal.signal(signum, self.on_signal)
        return previous

    def _restore_signal_handlers(self, previous: dict):
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def on_signal(self, signum, frame):
        self.logger.debug(f'Terminating ({signal.Signals(signum).name})')
        self.token.cancel(f'interrupted by signal {signal.Signals(signum).name}')


def main() -> int:
    return EmojiExporter().run()


if __name__ == '__main__':
    sys.exit(main())
