"""
File-system memo storage: one Markdown file per memo under a base directory.

A memo named ``/work/meeting`` lives at ``<base_dir>/work/meeting.md``.
"""

from __future__ import annotations

import os
from pathlib import Path

from ..errors import ValidationError
from ..memo import Memo, parse_memo, serialize_memo


_MEMO_SUFFIX = ".md"


class FileMemoStorage:
    """Authoritative memo store backed by Markdown files."""

    def __init__(self, base_dir: str) -> None:
        self.base_dir = Path(base_dir).expanduser().resolve()

    def save(self, memo: Memo) -> None:
        file_path = self._name_to_path(memo.name)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(serialize_memo(memo), encoding="utf-8")

    def get(self, id: str) -> Memo | None:
        file_path = self._name_to_path(id)
        if not file_path.is_file():
            return None
        try:
            markdown = file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # Deleted between the existence check and the read.
            return None
        return parse_memo(id, markdown)

    def delete(self, id: str) -> None:
        self._name_to_path(id).unlink(missing_ok=True)

    def list_ids(self) -> list[str]:
        if not self.base_dir.is_dir():
            return []
        names: list[str] = []
        for current_root, dirnames, filenames in os.walk(self.base_dir):
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]
            for filename in filenames:
                if filename.endswith(_MEMO_SUFFIX):
                    names.append(self._path_to_name(Path(current_root) / filename))
        names.sort()
        return names

    def _name_to_path(self, name: str) -> Path:
        relative = name[1:] if name.startswith("/") else name
        if not relative:
            raise ValidationError("Memo name must not be empty.")
        file_path = (self.base_dir / f"{relative}{_MEMO_SUFFIX}").resolve()
        if self.base_dir not in file_path.parents:
            raise ValidationError(f"Memo name {name!r} escapes the memo directory.")
        return file_path

    def _path_to_name(self, file_path: Path) -> str:
        relative = file_path.relative_to(self.base_dir).as_posix()
        return "/" + relative[: -len(_MEMO_SUFFIX)]
