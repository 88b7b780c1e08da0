# -----------------------------------------------------------------------------
# run configuration: json file < .env / environment < command line
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from dotenv import load_dotenv

from emojiexport.core.errors import ConfigError

DEFAULT_API_URL = 'https://slack.com/api/emoji.adminList'
DEFAULT_DIRECTORY = '.slack-backup/emoji'


@dataclass
class SlackConfig:
    token: str = ''
    route: str = ''
    cookie: str = ''  # sent as-is in the Cookie header, never parsed
    api_url: str = DEFAULT_API_URL


@dataclass
class Config:
    directory: str = ''
    slack: SlackConfig = field(default_factory=SlackConfig)
    timeout: Tuple[float, float] = (10, 30)

    ENV_MAP = {
        'EMOJI_EXPORT_DIR': ('directory', None),
        'SLACK_USER_TOKEN': ('token', 'slack'),
        'SLACK_ROUTE': ('route', 'slack'),
        'SLACK_COOKIE': ('cookie', 'slack'),
        'SLACK_API_URL': ('api_url', 'slack'),
    }

    @classmethod
    def load(cls, config_path: str|None = None, env: Mapping[str, str]|None = None,
             directory: str|None = None, env_file: str|None = None) -> Config:
        config = cls.from_json_file(config_path) if config_path else cls()

        if env is None:
            env_file = env_file or os.path.join(os.getcwd(), '.env')
            if os.path.isfile(env_file):
                load_dotenv(env_file)
            env = os.environ
        config.apply_env(env)

        if directory:
            config.directory = directory
        if not config.directory:
            config.directory = DEFAULT_DIRECTORY

        config.validate()
        return config

    @classmethod
    def from_json_file(cls, path: str) -> Config:
        try:
            with open(path, 'r', encoding='utf-8') as fp:
                data = json.load(fp)
        except OSError as e:
            raise ConfigError(f'open config file: {e!s}') from e
        except ValueError as e:
            raise ConfigError(f'unmarshal config: {e!s}') from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Config:
        if not isinstance(data, dict):
            raise ConfigError('unmarshal config: top-level value should be an object')
        slack = data.get('slack') or {}
        if not isinstance(slack, dict):
            raise ConfigError('unmarshal config: "slack" should be an object')

        return cls(
            directory=str(data.get('directory') or ''),
            slack=SlackConfig(
                token=str(slack.get('token') or ''),
                route=str(slack.get('route') or ''),
                cookie=str(slack.get('cookie') or ''),
                api_url=str(slack.get('api_url') or DEFAULT_API_URL),
            ),
        )

    def apply_env(self, env: Mapping[str, str]):
        for var_name, (attr, section) in self.ENV_MAP.items():
            value = env.get(var_name)
            if not value:
                continue
            target = getattr(self, section) if section else self
            setattr(target, attr, value)

    def validate(self):
        if not self.slack.token:
            raise ConfigError('Missing SLACK_USER_TOKEN in environment variables (or "slack.token" in config file)')
        if not self.slack.api_url.startswith(('http://', 'https://')):
            raise ConfigError(f'Invalid API url: {self.slack.api_url!r}')
