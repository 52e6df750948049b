"""Shared plumbing for the external data sources (NASA NeoWs, USGS)."""
from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Dict, Generic, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .errors import UpstreamUnavailable

log = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """Data from a source, flagged when it was substituted by fallback data."""
    data: T
    fallback: bool = False
    warning: Optional[str] = None


def mask_key(s: Optional[str]) -> Optional[str]:
    if not s:
        return s
    return s[:3] + "***" + s[-3:] if len(s) > 6 else "***"


def get_json(client: httpx.Client, url: str, params: Dict[str, Any], source: str,
             allow_404: bool = False) -> Any:
    """GET url and decode JSON. Any transport/status/decoding failure becomes UpstreamUnavailable."""
    printable = dict(params)
    for k in ("api_key", "key"):
        if k in printable:
            printable[k] = mask_key(printable[k])
    log.info("[request] source=%s GET %s params=%s", source, url, printable)
    try:
        r = client.get(url, params=params)
        log.info("[http] source=%s status=%s", source, r.status_code)
        if allow_404 and r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()
    except httpx.HTTPError as e:
        raise UpstreamUnavailable(source, str(e) or type(e).__name__) from e
    except ValueError as e:
        raise UpstreamUnavailable(source, f"non-JSON response: {e}") from e


def parse_payload(model: Type[M], data: Any, source: str) -> M:
    """Validate a decoded upstream payload; a wrong shape counts as the source being unavailable."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise UpstreamUnavailable(source, f"malformed payload: {e.error_count()} validation error(s)") from e
