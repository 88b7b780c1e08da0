# -----------------------------------------------------------------------------
# console + file logger, constructed once per process and passed around
# -----------------------------------------------------------------------------
from __future__ import annotations

import os
import sys
import threading
import time
from datetime import datetime
from typing import TextIO

from emojiexport.util.sgr import SGRRegistry


class Logger:
    PREFIX = 'EMOJIEXPORT'

    def __init__(self, filename: str|None = None, verbose: bool = False, quiet: bool = False):
        self._fileio: TextIO|None = None
        self._verbose = verbose
        self._quiet = quiet
        self._lock = threading.Lock()

        self._open_io(filename)
        self.debug(f'Created logger instance')

    def log(self, text: str, level: str = 'info'):
        if not self._fileio or self._fileio.closed:
            return

        dt, micro = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f").rsplit('.', 1)
        with self._lock:
            print(f'{dt}.{micro:.3s} {self.PREFIX} {level.upper()}: {text}',
                  file=self._fileio, end='\n', flush=True)

    def debug(self, text: str, silent: bool|None = None):
        if silent is None:
            silent = not self._verbose
        self._echo(SGRRegistry.colorize(text, SGRRegistry.FMT_CYAN), sys.stdout, silent)
        self.log(text, 'debug')

    def info(self, text: str, silent: bool = False):
        self._echo(text, sys.stdout, silent)
        self.log(text, 'info')

    def warn(self, text: str, silent: bool = False):
        self._echo(SGRRegistry.colorize(text, SGRRegistry.FMT_YELLOW), sys.stdout, silent)
        self.log(text, 'warn')

    def error(self, text: str, silent: bool = False):
        self._echo(SGRRegistry.colorize(text, SGRRegistry.FMT_RED), sys.stderr, silent)
        self.log(text, 'error')

    @property
    def filename(self) -> str|None:
        return self._fileio.name if self._fileio else None

    def _echo(self, text: str, stream: TextIO, silent: bool):
        if silent or self._quiet:
            return
        if not stream.isatty():
            text = SGRRegistry.remove_sgr_seqs(text)
        print(text, file=stream, flush=True)

    def _get_default_filename(self) -> str:
        return time.strftime("./log/log.%Y-%m-%d.log", time.gmtime())

    def _open_io(self, filename: str|None):
        log_filename = filename or self._get_default_filename()
        try:
            log_dir = os.path.dirname(log_filename)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            self._fileio = open(log_filename, 'a', encoding='utf-8')
        except OSError as e:
            print(f'WARNING: Opening log file {log_filename} failed: {e}', file=sys.stderr)
            return
        self.debug(f'Opened log file for appending: {log_filename}')

    def close_io(self):
        if not self._fileio:
            return
        self._fileio.flush()
        self._fileio.close()
        self._fileio = None
