"""
OpenStreetMap feature queries via the Overpass API.

Split into:
- Query regions (bounding box or circle) and the Overpass QL builder
- OverpassService: a single endpoint transport
- RetryingQueryService: endpoint rotation + exponential backoff on top of
  any number of services
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

log = logging.getLogger(__name__)

DEFAULT_ENDPOINTS = [
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass.nchc.org.tw/api/interpreter",
]


# ═══════════════════════════════════════════════════════════════════════════
# QUERY REGIONS
# ═══════════════════════════════════════════════════════════════════════════
class QueryRegion(ABC):
    """Spatial filter appended to every Overpass selector."""

    @abstractmethod
    def overpass_filter(self) -> str:
        ...


@dataclass(frozen=True)
class BoundingBox(QueryRegion):
    south: float
    west: float
    north: float
    east: float

    def overpass_filter(self) -> str:
        return f"({self.south},{self.west},{self.north},{self.east})"


@dataclass(frozen=True)
class Circle(QueryRegion):
    lat: float
    lon: float
    radius_m: int

    def overpass_filter(self) -> str:
        return f"(around:{self.radius_m},{self.lat},{self.lon})"


def build_query(region: QueryRegion, selectors: Sequence[str], timeout: int = 10) -> str:
    """
    Build an Overpass QL union query.

    Args:
        region: Spatial filter shared by all selectors
        selectors: Element selectors such as 'way["highway"]'
        timeout: Server-side timeout in seconds

    Returns:
        Query text ready to POST to an interpreter endpoint
    """
    where = region.overpass_filter()
    body = "\n".join(f"  {sel}{where};" for sel in selectors)
    return f"[out:json][timeout:{timeout}];\n(\n{body}\n);\nout body;\n"


# ═══════════════════════════════════════════════════════════════════════════
# SERVICES
# ═══════════════════════════════════════════════════════════════════════════
class UpstreamUnavailable(Exception):
    """The map-data service could not be reached within the retry budget."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class OverpassHTTPError(Exception):
    """Non-success HTTP status from an Overpass endpoint."""

    def __init__(self, endpoint: str, status: int):
        super().__init__(f"Overpass error: {status} from {endpoint}")
        self.endpoint = endpoint
        self.status = status

    @property
    def transient(self) -> bool:
        return self.status == 429 or 500 <= self.status <= 599


class FeatureQueryService(ABC):
    """Capability: return the tagged OSM elements matching selectors in a region."""

    @abstractmethod
    def query(self, region: QueryRegion, selectors: Sequence[str]) -> List[Dict]:
        ...


class OverpassService(FeatureQueryService):
    """One Overpass interpreter endpoint. No retries of its own."""

    def __init__(
        self,
        endpoint: str,
        session: Optional[requests.Session] = None,
        timeout: int = 10,
    ):
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.timeout = timeout

    def query(self, region: QueryRegion, selectors: Sequence[str]) -> List[Dict]:
        text = build_query(region, selectors, timeout=self.timeout)
        response = self.session.post(
            self.endpoint,
            data=text.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
            timeout=self.timeout + 5,
        )
        if not response.ok:
            raise OverpassHTTPError(self.endpoint, response.status_code)
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Overpass payload from {self.endpoint}: {type(data).__name__}")
        return data.get("elements") or []


def _is_transient(exc: BaseException) -> bool:
    """429/5xx, network failures and garbled bodies are worth another try."""
    if isinstance(exc, OverpassHTTPError):
        return exc.transient
    return isinstance(exc, (requests.RequestException, ValueError))


class RetryingQueryService(FeatureQueryService):
    """
    Retrying decorator over one or more FeatureQueryServices.

    Attempt n goes to services[(n - 1) % len(services)], so consecutive
    retries rotate across endpoints. Waits backoff_seconds * 2**(n - 1)
    between attempts. Non-transient failures stop immediately.

    Raises:
        UpstreamUnavailable: when the budget is exhausted or a request fails
            in a non-retryable way
    """

    def __init__(
        self,
        services: Sequence[FeatureQueryService],
        max_attempts: int = 4,
        backoff_seconds: float = 0.4,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not services:
            raise ValueError("RetryingQueryService needs at least one service")
        self.services = list(services)
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def query(self, region: QueryRegion, selectors: Sequence[str]) -> List[Dict]:
        attempts = 0
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, exp_base=2, min=0),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(log, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    service = self.services[(attempts - 1) % len(self.services)]
                    return service.query(region, selectors)
        except (OverpassHTTPError, requests.RequestException, ValueError) as e:
            raise UpstreamUnavailable(str(e), attempts=attempts) from e
        raise UpstreamUnavailable("Overpass error: exhausted retries", attempts=attempts)


def build_overpass_service(
    endpoints: Optional[Sequence[str]] = None,
    timeout: int = 10,
    max_attempts: int = 4,
    backoff_seconds: float = 0.4,
) -> RetryingQueryService:
    """Wire the default production query service: shared session, all endpoints."""
    session = requests.Session()
    services = [
        OverpassService(url, session=session, timeout=timeout)
        for url in (endpoints or DEFAULT_ENDPOINTS)
    ]
    return RetryingQueryService(services, max_attempts=max_attempts, backoff_seconds=backoff_seconds)
