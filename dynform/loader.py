from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from dynform.errors import SchemaError

log = logging.getLogger(__name__)


def read_layout_source(path: Union[str, Path]) -> Optional[str]:
    """Read the raw layout document; None when the file is missing or unreadable."""
    p = Path(path)
    if not p.exists():
        log.warning("loader.read: layout not found path=%s", p)
        return None
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("loader.read: failed to read path=%s err=%r", p, exc)
        return None


def load_layout_text(path: Union[str, Path]) -> str:
    text = read_layout_source(path)
    if not text:
        raise SchemaError("Could not read layout JSON file.")
    return text
