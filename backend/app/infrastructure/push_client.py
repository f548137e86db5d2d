"""Notification Senders — NotificationSender implementations (Expo push, log-only).

Invariants:
    - send() never raises: every failure is returned as DeliveryResult.rejected(reason)
    - Rate limits (429) and transient errors (5xx, connection, timeout): retried with
      exponential backoff and jitter, then rejected
    - Client errors (4xx except 429) and per-ticket errors (DeviceNotRegistered, ...):
      rejected immediately, no retry
    - Accepted only when the push service returns a ticket with status "ok"

Design Decisions:
    - httpx.AsyncClient injected: tests use httpx.MockTransport, no network
    - Internal failures raised as DeliveryRejectedError and mapped once in send()
    - ±25% jitter on backoff: spreads retries from several devices
"""

import asyncio
import logging
import random

import httpx

from app.core.domain_types import DeliveryResult, NotificationRequest
from app.core.errors import DeliveryRejectedError

logger = logging.getLogger(__name__)

ANDROID_CHANNEL_ID = "event-reminders"


class ExpoPushSender:
    """Delivers reminders to one device through the Expo push HTTP API."""

    def __init__(
        self,
        push_url: str,
        push_token: str | None = None,
        access_token: str | None = None,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 5_000,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.push_url = push_url
        self.push_token = push_token
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._headers = headers

    async def send(self, request: NotificationRequest) -> DeliveryResult:
        if not self.push_token:
            return DeliveryResult.rejected("no push token registered")
        try:
            await self._deliver(request)
        except DeliveryRejectedError as e:
            logger.warning(
                "Push rejected: %s", e.reason,
                extra={"event_id": request.event_id, "error_code": e.code},
            )
            return DeliveryResult.rejected(e.reason)
        return DeliveryResult.accepted()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _deliver(self, request: NotificationRequest) -> None:
        payload = self._build_message(request)
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.post(
                    self.push_url, json=payload, headers=self._headers,
                )
            except (httpx.TimeoutException, httpx.TransportError) as e:
                await self._handle_transient(f"{type(e).__name__}: {e}", attempt)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt)
                continue
            if response.status_code >= 500:
                await self._handle_transient(
                    f"push service returned {response.status_code}", attempt,
                )
                continue
            if response.status_code >= 400:
                raise DeliveryRejectedError(
                    f"push service returned {response.status_code}",
                )
            self._check_ticket(response)
            logger.info(
                "Push accepted",
                extra={"event_id": request.event_id, "attempt": attempt + 1},
            )
            return

    def _build_message(self, request: NotificationRequest) -> dict:
        return {
            "to": self.push_token,
            "title": request.title,
            "body": request.body,
            "data": request.data,
            "sound": "default",
            "priority": "high",
            "channelId": ANDROID_CHANNEL_ID,
        }

    def _check_ticket(self, response: httpx.Response) -> None:
        """Raise unless the push ticket reports status ok."""
        try:
            body = response.json()
        except ValueError:
            raise DeliveryRejectedError("push service returned non-JSON body")
        ticket = body.get("data") if isinstance(body, dict) else None
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else None
        if not isinstance(ticket, dict):
            raise DeliveryRejectedError("push service returned no ticket")
        if ticket.get("status") != "ok":
            details = ticket.get("details")
            if not isinstance(details, dict):
                details = {}
            reason = details.get("error") or ticket.get("message") or "unknown"
            raise DeliveryRejectedError(str(reason))

    async def _handle_rate_limit(self, response: httpx.Response, attempt: int) -> None:
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise DeliveryRejectedError(
                "rate limit exceeded after retries", retry_after_ms=retry_after_ms,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(f"Push rate limited, retry after {delay}ms (attempt {attempt + 1})")
        await asyncio.sleep(delay / 1000)

    async def _handle_transient(self, reason: str, attempt: int) -> None:
        if attempt >= self.max_retries:
            raise DeliveryRejectedError(
                f"transient failure after {self.max_retries} retries: {reason}",
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient push error, retry after {delay}ms: {reason}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        delay = min(self.base_delay_ms * (2 ** attempt), self.max_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))

    @staticmethod
    def _extract_retry_after(response: httpx.Response) -> int | None:
        value = response.headers.get("retry-after")
        if value is None:
            return None
        try:
            return int(float(value) * 1000)
        except ValueError:
            return None


class LoggingSender:
    """Development sender: logs the notification and accepts it."""

    async def send(self, request: NotificationRequest) -> DeliveryResult:
        logger.info(
            "Notification %s: %s", request.title, request.body,
            extra={"event_id": request.event_id},
        )
        return DeliveryResult.accepted()
