import json
import socket
import threading
from typing import Dict, List

import pytest

from emojiexport.config import SlackConfig
from emojiexport.core.cancel_token import CancelToken
from emojiexport.core.http_client import HttpClient
from emojiexport.core.logger import Logger

API_URL = 'https://slack.test/api/emoji.adminList'


def make_emoji(num: int, **overrides) -> Dict:
    emoji = {
        'name': f'emoji-{num}',
        'is_alias': 0,
        'alias_for': '',
        'url': f'https://emoji.slack-edge.test/T01/emoji-{num}/abc{num}.png',
        'team_id': 'T01',
        'user_id': 'U01',
        'created': 1650000000 + num,
        'is_bad': False,
        'user_display_name': 'someone',
        'avatar_hash': 'f00',
        'can_delete': False,
        'synonyms': [],
    }
    emoji.update(overrides)
    return emoji


def make_page(emojis: List[Dict], total: int, page: int = 1, count: int = 100) -> Dict:
    return {
        'ok': True,
        'emoji': emojis,
        'paging': {'count': count, 'total': total, 'page': page, 'pages': max(1, -(-total // count))},
    }


def read_catalog(directory) -> List[Dict]:
    with open(directory / 'emoji.catalog', encoding='utf-8') as fp:
        return [json.loads(line) for line in fp]


@pytest.fixture
def logger(tmp_path):
    instance = Logger(str(tmp_path / 'log' / 'test.log'), quiet=True)
    yield instance
    instance.close_io()


@pytest.fixture
def slack_config():
    return SlackConfig(token='xoxc-test-token', api_url=API_URL)


@pytest.fixture
def client(logger):
    instance = HttpClient(logger)
    yield instance
    instance.close()


@pytest.fixture
def token():
    return CancelToken()


@pytest.fixture
def export_dir(tmp_path):
    directory = tmp_path / 'export'
    directory.mkdir()
    return directory


class StalledServer:
    """Accepts tcp connections and never answers them."""

    def __init__(self):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.bind(('127.0.0.1', 0))
        self._sock.listen(8)
        self._sock.settimeout(0.05)
        self._stop = threading.Event()
        self._connections = []
        self.accepted = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def url(self) -> str:
        return 'http://127.0.0.1:%d' % self._sock.getsockname()[1]

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            self._connections.append(conn)
            self.accepted.set()

    def close(self):
        self._stop.set()
        self._thread.join(1)
        for conn in self._connections:
            conn.close()
        self._sock.close()


@pytest.fixture
def stalled_server():
    server = StalledServer()
    yield server
    server.close()


def cancel_later(token, delay: float, reason: str = 'cancelled by test'):
    timer = threading.Timer(delay, token.cancel, args=(reason,))
    timer.daemon = True
    timer.start()
    return timer
