"""Mirror-node REST client with retry and rate limiting."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .codec import CodecError, decode_hex_string

UNAVAILABLE = "Unable to fetch"


class MirrorError(Exception):
    """Raised when the mirror node returns an error or malformed payload."""


@dataclass
class CollectionInfo:
    contract_id: str
    created: Optional[str]
    contract: Optional[Dict[str, Any]]
    name: str = UNAVAILABLE
    symbol: str = UNAVAILABLE


class MirrorClient:
    def __init__(
        self,
        base_url: str,
        logger,
        retry_attempts: int = 3,
        retry_wait_seconds: int = 1,
        timeout_seconds: int = 10,
        rate_limit_per_sec: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("A mirror node URL must be configured")
        self.base_url = base_url.rstrip("/")
        self.logger = logger
        self.timeout = timeout_seconds
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait_seconds = max(0, retry_wait_seconds)
        self.rate_limit_per_sec = rate_limit_per_sec
        self.session = session or requests.Session()
        self._rate_lock = threading.Lock()
        self._last_call_ts = 0.0

    @classmethod
    def from_settings(cls, settings, logger, session: Optional[requests.Session] = None) -> "MirrorClient":
        mirror = settings.mirror
        return cls(
            mirror.url,
            logger,
            retry_attempts=mirror.retry_attempts,
            retry_wait_seconds=mirror.retry_wait_seconds,
            timeout_seconds=mirror.timeout_seconds,
            rate_limit_per_sec=mirror.rate_limit_per_sec,
            session=session,
        )

    def _respect_rate_limit(self) -> None:
        if not self.rate_limit_per_sec:
            return
        min_interval = 1.0 / self.rate_limit_per_sec
        with self._rate_lock:
            now = time.time()
            elapsed = now - self._last_call_ts
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_call_ts = time.time()

    def _perform_request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        self._respect_rate_limit()
        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code >= 400:
            messages = _status_messages(response)
            if messages:
                raise MirrorError(f"{response.status_code} from {url}: {messages}")
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise MirrorError(f"Invalid JSON from {url}") from exc
        if not isinstance(payload, dict):
            raise MirrorError(f"Unexpected payload from {url}: {payload!r}")
        return payload

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        attempts = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_fixed(self.retry_wait_seconds),
            retry=retry_if_exception_type((requests.RequestException, MirrorError)),
            reraise=True,
        )

        for attempt in attempts:
            with attempt:
                try:
                    return self._perform_request(path, params)
                except Exception as exc:  # noqa: BLE001
                    self.logger.error("Mirror node error on %s: %s", path, exc)
                    raise

    def contract_create_transactions(self, account_id: str, max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        params: Optional[Dict[str, Any]] = {
            "account.id": account_id,
            "transactiontype": "CONTRACTCREATEINSTANCE",
            "order": "desc",
            "result": "SUCCESS",
        }
        path = "/api/v1/transactions"
        transactions: List[Dict[str, Any]] = []
        pages = 0
        while path:
            data = self.get(path, params)
            transactions.extend(data.get("transactions") or [])
            pages += 1
            if max_pages is not None and pages >= max_pages:
                break
            path = (data.get("links") or {}).get("next")
            params = None  # the next link carries its own query string
        return transactions

    def contract(self, contract_id: str) -> Dict[str, Any]:
        return self.get(f"/api/v1/contracts/{contract_id}")

    def contract_state(self, contract_id: str) -> List[Dict[str, Any]]:
        return self.get(f"/api/v1/contracts/{contract_id}/state").get("state") or []

    def collection_info(self, contract_id: str, consensus_timestamp: Optional[str] = None) -> CollectionInfo:
        info = CollectionInfo(contract_id, format_timestamp(consensus_timestamp), None)
        try:
            info.contract = self.contract(contract_id)
        except (requests.RequestException, MirrorError) as exc:
            self.logger.warning("Contract %s unavailable: %s", contract_id, exc)
            return info

        try:
            states = self.contract_state(contract_id)
        except (requests.RequestException, MirrorError) as exc:
            self.logger.warning("Error fetching contract state for %s: %s", contract_id, exc)
            return info

        info.name = _slot_text(states, "0", self.logger)
        info.symbol = _slot_text(states, "1", self.logger)
        return info


def _status_messages(response) -> Optional[List[Any]]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return (body.get("_status") or {}).get("messages")
    return None


def _slot_text(states: List[Dict[str, Any]], suffix: str, logger) -> str:
    slot = next((s for s in states if str(s.get("slot", "")).endswith(suffix)), None)
    if not slot:
        return UNAVAILABLE
    try:
        return decode_hex_string(slot.get("value", ""))
    except CodecError as exc:
        logger.warning("Undecodable storage slot %s: %s", slot.get("slot"), exc)
        return UNAVAILABLE


def format_timestamp(timestamp: Optional[str]) -> Optional[str]:
    """Render a ``seconds.nanos`` consensus timestamp as UTC."""
    if not timestamp:
        return None
    try:
        seconds = float(timestamp)
    except (TypeError, ValueError):
        return str(timestamp)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_admin_key(key) -> str:
    if not key:
        return "None"
    if isinstance(key, dict):
        if key.get("_type"):
            return key["_type"]
        return ", ".join(f"{k}={v}" for k, v in sorted(key.items()))
    return str(key)


__all__ = ["CollectionInfo", "MirrorClient", "MirrorError", "format_admin_key", "format_timestamp"]
