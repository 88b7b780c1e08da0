# -----------------------------------------------------------------------------
# i/o formatting helpers
# -----------------------------------------------------------------------------
from __future__ import annotations

SIZE_PREFIXES = ['', 'k', 'M', 'G', 'T', 'P', 'E', 'Z']


def fmt_sizeof(num: float, separator=' ', unit='b') -> str:
    # result max length: 8
    # 5 chars for number, 2 chars for unit, 1 for separator (with default options)
    num = max(0, num)
    for unit_idx, unit_prefix in enumerate(SIZE_PREFIXES):
        unit_full = f'{unit_prefix}{unit}'
        if num >= 1024.0:
            num /= 1024.0
            continue
        if unit_idx == 0:
            num_str = f'{int(num):5d}'
        elif num >= 100:
            num_str = f'{num:5.0f}'
        else:
            num_str = f'{num:5.1f}'
        return f'{num_str}{separator}{unit_full}'

    return f'{num!s}{unit}'


def fmt_count(num: int, singular: str, plural: str|None = None) -> str:
    if num == 1:
        return f'{num:n} {singular}'
    return f'{num:n} {plural or singular + "s"}'
