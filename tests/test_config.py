import json
import os

import pytest

from emojiexport.config import DEFAULT_API_URL, DEFAULT_DIRECTORY, Config
from emojiexport.core.errors import ConfigError


def write_json(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


def test_json_file_layout(tmp_path):
    path = write_json(tmp_path / 'config.json', {
        'directory': '/srv/emoji',
        'slack': {'token': 'xoxc-file', 'route': 'T01', 'cookie': 'd=1'},
        'confluence': {'token': 'ignored'},
    })
    config = Config.load(path, env={})

    assert config.directory == '/srv/emoji'
    assert config.slack.token == 'xoxc-file'
    assert config.slack.route == 'T01'
    assert config.slack.cookie == 'd=1'
    assert config.slack.api_url == DEFAULT_API_URL


def test_environment_overrides_file_and_cli_overrides_both(tmp_path):
    path = write_json(tmp_path / 'config.json', {'directory': '/from/file', 'slack': {'token': 'xoxc-file'}})
    config = Config.load(path, env={'SLACK_USER_TOKEN': 'xoxc-env', 'EMOJI_EXPORT_DIR': '/from/env'},
                         directory='/from/cli')

    assert config.slack.token == 'xoxc-env'
    assert config.directory == '/from/cli'


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    monkeypatch.setattr(os, 'environ', {})
    env_file = tmp_path / '.env'
    env_file.write_text('SLACK_USER_TOKEN=xoxc-dotenv\nSLACK_ROUTE=T99\n', encoding='utf-8')

    config = Config.load(env_file=str(env_file))
    assert config.slack.token == 'xoxc-dotenv'
    assert config.slack.route == 'T99'
    assert config.directory == DEFAULT_DIRECTORY


def test_missing_token_is_rejected():
    with pytest.raises(ConfigError, match='SLACK_USER_TOKEN'):
        Config.load(env={})


def test_malformed_json_is_rejected(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text('{not json', encoding='utf-8')
    with pytest.raises(ConfigError, match='unmarshal config'):
        Config.load(str(path), env={})


def test_missing_file_is_rejected(tmp_path):
    with pytest.raises(ConfigError, match='open config file'):
        Config.load(str(tmp_path / 'absent.json'), env={})


def test_invalid_api_url_is_rejected():
    with pytest.raises(ConfigError, match='Invalid API url'):
        Config.load(env={'SLACK_USER_TOKEN': 'x', 'SLACK_API_URL': 'ftp://nope'})
