"""Shared helpers for the I/O utilities."""

import os
from pathlib import Path


def _ensure_dir(directory: str | Path) -> None:
    """Create ``directory`` (and parents) if it does not exist."""
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)
