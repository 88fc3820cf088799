"""Response envelopes and JSON output helpers."""
from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional, TextIO

from . import config
from .errors import LocatorError, UpstreamTimeoutError

if TYPE_CHECKING:
    from .brand import BrandProfile
    from .discovery import DiscoveryResult


def render_result_payload(result: "DiscoveryResult", profile: "BrandProfile") -> Dict[str, Any]:
    payload = result.as_dict()
    payload["meta"] = {"rewritten_query": result.rewritten_query, "mode": result.mode}
    payload["assumption"] = (
        f"Results are limited to {profile.brand} {profile.category}s by default."
    )
    payload["attribution"] = config.ATTRIBUTION_TEXT.get(result.mode, "")
    return payload


def render_error_payload(exc: BaseException, profile: Optional["BrandProfile"] = None) -> Dict[str, Any]:
    category = profile.category if profile is not None else config.CATEGORY_NAME
    if isinstance(exc, UpstreamTimeoutError):
        message = "Upstream request timed out. Try a more specific location or retry."
    else:
        message = str(exc) or exc.__class__.__name__
    kind = exc.kind if isinstance(exc, LocatorError) else "internal"
    return {
        "error": f"Failed to locate {category}s",
        "kind": kind,
        "message": message,
    }


def dumps_payload(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


@contextmanager
def atomic_writer(path: str, encoding: str = "utf-8") -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_json_object(path: str, payload: Dict[str, Any]) -> None:
    with atomic_writer(path) as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
