import os

import responses
from responses import matchers

from conftest import API_URL, make_emoji, make_page, read_catalog
from emojiexport.emoji_exporter import EmojiExporter


def prepare_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('SLACK_USER_TOKEN', 'xoxc-cli')
    monkeypatch.setenv('SLACK_API_URL', API_URL)
    monkeypatch.delenv('SLACK_ROUTE', raising=False)
    monkeypatch.delenv('SLACK_COOKIE', raising=False)
    monkeypatch.delenv('EMOJI_EXPORT_DIR', raising=False)


def run_cli(tmp_path, *args):
    exporter = EmojiExporter(['--log-file', str(tmp_path / 'cli.log'), *args])
    return exporter.run()


@responses.activate
def test_cli_exports_into_new_directory(tmp_path, monkeypatch):
    prepare_env(monkeypatch, tmp_path)
    emojis = [make_emoji(1), make_emoji(2), make_emoji(3)]
    responses.add(responses.POST, API_URL, json=make_page([], total=3, count=1),
                  match=[matchers.urlencoded_params_matcher({'token': 'xoxc-cli', 'page': '1', 'count': '1'})])
    for page, page_emojis in enumerate((emojis[:2], emojis[2:]), start=1):
        responses.add(responses.POST, API_URL, json=make_page(page_emojis, total=3, page=page, count=2),
                      match=[matchers.urlencoded_params_matcher({'token': 'xoxc-cli', 'page': str(page), 'count': '2'})])
    for emoji in emojis:
        responses.add(responses.GET, emoji['url'], body=b'img')

    export_dir = tmp_path / 'out'
    exit_code = run_cli(tmp_path, '-o', str(export_dir), '--mkdir', '--page-size', '2', '--all-pages')

    assert exit_code == 0
    assert [entry['emoji']['name'] for entry in read_catalog(export_dir)] == ['emoji-1', 'emoji-2', 'emoji-3']


@responses.activate
def test_cli_reports_failure_with_exit_code(tmp_path, monkeypatch, capsys):
    prepare_env(monkeypatch, tmp_path)
    responses.add(responses.POST, API_URL, json={'ok': False, 'error': 'not_allowed_token_type'})
    export_dir = tmp_path / 'out'
    export_dir.mkdir()

    assert run_cli(tmp_path, '-o', str(export_dir)) == 1
    assert 'not_allowed_token_type' in capsys.readouterr().err
    assert (export_dir / 'emoji.catalog').exists()


def test_cli_rejects_missing_directory(tmp_path, monkeypatch):
    prepare_env(monkeypatch, tmp_path)
    assert run_cli(tmp_path, '-o', str(tmp_path / 'absent')) == 1
    assert not os.path.exists(tmp_path / 'absent')


def test_cli_requires_token(tmp_path, monkeypatch):
    prepare_env(monkeypatch, tmp_path)
    monkeypatch.delenv('SLACK_USER_TOKEN')
    assert run_cli(tmp_path, '-o', str(tmp_path)) == 1
