"""Locate the platform checkout and its repo-local config."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


INFRAOPS_DIRNAME = ".infraops"
GIT_DIRNAME = ".git"
CONFIG_FILENAME = "config.yaml"


def _is_checkout_root(directory: Path) -> bool:
    return (directory / INFRAOPS_DIRNAME).is_dir() and (directory / GIT_DIRNAME).is_dir()


def find_repo_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest ancestor of ``start_path`` that is a platform checkout.

    A checkout root holds both ``.infraops/`` and ``.git/``; an ``.infraops``
    folder on its own is ignored and the search continues upwards.
    """
    here = (start_path or Path.cwd()).resolve()
    return next((d for d in (here, *here.parents) if _is_checkout_root(d)), None)


def get_repo_config_path(start_path: Optional[Path] = None) -> Optional[Path]:
    root = find_repo_root(start_path)
    return root / INFRAOPS_DIRNAME / CONFIG_FILENAME if root else None
