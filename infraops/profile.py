"""Idempotent shell profile edits.

Each block is wrapped in begin/end marker lines; a block is appended only
when its begin marker is absent, so repeated setup runs leave the file
unchanged.
"""
from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _begin(name: str) -> str:
    return f"# >>> infraops {name} >>>"


def _end(name: str) -> str:
    return f"# <<< infraops {name} <<<"


class ProfileWriter:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> str:
        return self.path.read_text() if self.path.exists() else ""

    def has_block(self, name: str) -> bool:
        return _begin(name) in self._read()

    def ensure_block(self, name: str, content: str) -> bool:
        """Append ``content`` as block ``name`` unless present. Returns True if written."""
        existing = self._read()
        if _begin(name) in existing:
            logger.debug(f"profile block '{name}' already present in {self.path}")
            return False
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        block = f"{prefix}\n{_begin(name)}\n{content.strip()}\n{_end(name)}\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a") as f:
            f.write(block)
        logger.info(f"Added '{name}' block to {self.path}")
        return True
