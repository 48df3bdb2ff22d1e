"""Remote person-name extraction, consumed as a soft dependency.

The service speaks JSON over HTTP:

    POST /api/extract   {"text": "..."}
        -> {"names": [...], "confidence": 0.93, "review_id": 12, "is_duplicate": false}
    GET  /api/health
        -> {"status": "ok"}

NameServiceClient raises NameServiceError on any failure.  NameExtractor
is the boundary that collapses those failures to an empty result and
counts them, so callers always get a list back.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from .errors import NameServiceError
from .patterns import byte_offset
from .types import Match

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10.0
READ_TIMEOUT = 30.0
HEALTH_TIMEOUT = 5.0
DEFAULT_THRESHOLD = 0.8


@dataclass(frozen=True, slots=True)
class NameResponse:
    names: list[str]
    confidence: float
    review_id: int | None = None
    is_duplicate: bool | None = None

    @classmethod
    def from_json(cls, data: Any) -> "NameResponse":
        if not isinstance(data, dict):
            raise NameServiceError(f"expected a JSON object, got {type(data).__name__}")
        names = data.get("names")
        confidence = data.get("confidence")
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise NameServiceError("response field 'names' must be a list of strings")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise NameServiceError("response field 'confidence' must be a number")
        return cls(
            names=names,
            confidence=float(confidence),
            review_id=data.get("review_id"),
            is_duplicate=data.get("is_duplicate"),
        )


class NameServiceClient:
    """Thin HTTP client for the name-extraction service."""

    def __init__(
        self,
        api_host: str,
        *,
        connect_timeout: float = CONNECT_TIMEOUT,
        read_timeout: float = READ_TIMEOUT,
    ) -> None:
        self.base_url = api_host if "://" in api_host else f"http://{api_host}"
        self.base_url = self.base_url.rstrip("/")
        self.timeout = (connect_timeout, read_timeout)
        self._session = requests.Session()
        adapter = HTTPAdapter(pool_connections=5, pool_maxsize=5)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def extract_names(self, text: str) -> NameResponse:
        url = f"{self.base_url}/api/extract"
        try:
            resp = self._session.post(url, json={"text": text}, timeout=self.timeout)
        except requests.RequestException as e:
            raise NameServiceError(f"request to {url} failed: {e}") from e
        if not resp.ok:
            raise NameServiceError(f"{url} returned status {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise NameServiceError(f"{url} returned a non-JSON body") from e
        return NameResponse.from_json(data)

    def check_connection(self) -> str:
        """Probe /api/health; return the reported status."""
        url = f"{self.base_url}/api/health"
        try:
            resp = self._session.get(url, timeout=HEALTH_TIMEOUT)
        except requests.RequestException as e:
            raise NameServiceError(f"cannot reach {url}: {e}") from e
        if not resp.ok:
            raise NameServiceError(f"{url} returned status {resp.status_code}")
        try:
            data = resp.json()
        except ValueError:
            return "ok"
        status = data.get("status") if isinstance(data, dict) else None
        return str(status) if status else "ok"

    def close(self) -> None:
        self._session.close()


class FailureCounter:
    """Thread-safe counter of soft failures."""

    __slots__ = ("_lock", "_value")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> None:
        with self._lock:
            self._value += 1

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class NameExtractor:
    """Turns service answers into located Match objects; never raises."""

    def __init__(
        self,
        client: NameServiceClient,
        *,
        enabled: bool = True,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.client = client
        self.enabled = enabled
        self.threshold = threshold
        self._failures = FailureCounter()

    @classmethod
    def for_host(cls, api_host: str, *, enabled: bool = True,
                 threshold: float = DEFAULT_THRESHOLD) -> "NameExtractor":
        return cls(NameServiceClient(api_host), enabled=enabled, threshold=threshold)

    @property
    def failed_count(self) -> int:
        return self._failures.value

    def reset_failed_count(self) -> None:
        self._failures.reset()

    def extract(self, text: str) -> list[Match]:
        if not self.enabled or not text.strip():
            return []
        try:
            response = self.client.extract_names(text)
        except NameServiceError as e:
            self._failures.increment()
            logger.warning("name extraction failed: %s", e)
            return []

        logger.debug("names=%r confidence=%s", response.names, response.confidence)
        is_valid = response.confidence >= self.threshold
        return locate_names(text, response.names, is_valid)

    def close(self) -> None:
        self.client.close()


def locate_names(text: str, names: list[str], is_valid: bool) -> list[Match]:
    """Give each name a byte span, taking successive occurrences left to right."""
    matches: list[Match] = []
    cursor: dict[str, int] = {}
    for name in names:
        if not name:
            continue
        idx = text.find(name, cursor.get(name, 0))
        if idx == -1:
            logger.debug("name %r not present in text, dropped", name)
            continue
        cursor[name] = idx + len(name)
        start = byte_offset(text, idx)
        end = start + len(name.encode("utf-8"))
        matches.append(Match(name, is_valid, (start, end)))
    return sorted(matches, key=lambda m: m.start)
