from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import get_settings


_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def proposals_root() -> Path:
    root = get_settings().proposals_dir()
    root.mkdir(parents=True, exist_ok=True)
    return root


def events_path() -> Path:
    return proposals_root() / 'events.jsonl'


def safe_file_stem(title: str, fallback: str = 'proposta') -> str:
    token = _UNSAFE_NAME_CHARS.sub('-', str(title or '').strip()).strip('-._')
    return token[:80] or fallback


def default_output_path(title: str) -> Path:
    return proposals_root() / f'{safe_file_stem(title)}.pdf'


def write_bytes_atomic(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(content)
    tmp.replace(path)


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
    tmp.replace(path)


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding='utf-8'))


def append_event(event: str, **extra: Any) -> None:
    now = datetime.now(timezone.utc).isoformat()
    row = {
        'ts': now,
        'event': event,
        **extra,
    }
    events_file = events_path()
    events_file.parent.mkdir(parents=True, exist_ok=True)
    with events_file.open('a', encoding='utf-8') as f:
        f.write(json.dumps(row, ensure_ascii=False) + '\n')
