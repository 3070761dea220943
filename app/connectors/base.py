"""
app/connectors/base.py

Base connector abstraction and shared HTTP mechanics.

Outbound calls are single-attempt with an explicit timeout; any failure is
raised as ``ExternalServiceError`` carrying the upstream message.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import requests

from app.config import ExternalHTTPSettings
from app.domain.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class BaseConnector:
    """
    Shared request plumbing for external HTTP collaborators.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute an HTTP request and return parsed JSON.
        """

        response = self._request(method=method, url=url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(self.source, "response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            return response
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            message = self._upstream_message(exc.response) or str(exc)
            logger.error(
                "Connector request failed source=%s status=%s url=%s error=%s",
                self.source,
                status_code,
                url,
                message,
            )
            raise ExternalServiceError(self.source, message, status_code=status_code) from exc
        except requests.Timeout as exc:
            logger.error("Connector request timed out source=%s url=%s", self.source, url)
            raise ExternalServiceError(
                self.source,
                f"request timed out after {self._timeout_seconds:.0f}s.",
            ) from exc
        except requests.RequestException as exc:
            logger.error("Connector request failed source=%s url=%s error=%s", self.source, url, exc)
            raise ExternalServiceError(self.source, str(exc)) from exc

    @staticmethod
    def _upstream_message(response: requests.Response | None) -> str | None:
        if response is None:
            return None
        try:
            payload = response.json()
        except ValueError:
            text = response.text.strip()
            return text[:500] if text else None
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("error")
            if message:
                return str(message)
        return None

    @staticmethod
    def parse_iso_datetime(value: str) -> datetime:
        """
        Parse an ISO datetime string into a timezone-aware datetime.
        """

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
