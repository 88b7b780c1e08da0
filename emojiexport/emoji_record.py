# -----------------------------------------------------------------------------
# emoji metadata as reported by the admin listing endpoint
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

from emojiexport.core.errors import ApiError, DecodeError


@dataclass
class EmojiRecord:
    name: str = ''
    is_alias: int = 0
    alias_for: str = ''
    url: str = ''
    team_id: str = ''
    user_id: str = ''
    created: int = 0
    is_bad: bool = False
    user_display_name: str = ''
    avatar_hash: str = ''
    can_delete: bool = False
    synonyms: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EmojiRecord:
        if not isinstance(data, dict):
            raise DecodeError(f'Emoji record should be an object, got: {data!r}')

        kwargs = {}
        for f in fields(cls):
            value = data.get(f.name)
            if value is not None:
                kwargs[f.name] = value
        try:
            kwargs['synonyms'] = list(kwargs.get('synonyms', []))
        except TypeError as e:
            raise DecodeError(f'Invalid synonyms for "{data.get("name")}": {e!s}') from e
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def is_regular(self) -> bool:
        return not self.is_alias


@dataclass
class Paging:
    count: int
    total: int
    page: int
    pages: int


@dataclass
class ListPage:
    ok: bool
    emoji: List[EmojiRecord]
    paging: Paging

    @classmethod
    def from_json(cls, data: Any) -> ListPage:
        if not isinstance(data, dict):
            raise DecodeError(f'Response should be an object, got: {type(data).__name__}')

        if not data.get('ok'):
            api_error = data.get('error')
            raise ApiError(f'API error encountered: {api_error or data!s}', api_error)

        try:
            raw_paging = data['paging']
            paging = Paging(**{f.name: int(raw_paging[f.name]) for f in fields(Paging)})
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f'Invalid paging object: {e!s}') from e

        raw_emoji = data.get('emoji', [])
        if not isinstance(raw_emoji, list):
            raise DecodeError(f'Emoji list should be an array, got: {type(raw_emoji).__name__}')

        return cls(ok=True, emoji=[EmojiRecord.from_dict(e) for e in raw_emoji], paging=paging)
