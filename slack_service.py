import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

slack_logger = logging.getLogger("slack")

SLACK_API_BASE_URL = "https://slack.com/api"


class SlackTransportError(RuntimeError):
    """The Slack Web API could not be reached or answered with garbage."""


@dataclass(frozen=True)
class SlackResult:
    ok: bool
    error: Optional[str] = None
    ts: Optional[str] = None
    scheduled_message_id: Optional[str] = None


class SlackClient:
    def __init__(
        self,
        *,
        name: str,
        bot_token: Optional[str],
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.name = name
        self.bot_token = bot_token
        self.timeout = timeout
        self.session = session or requests.Session()

        if not self.bot_token:
            slack_logger.error(
                "slack_bot_token_missing",
                extra={"bot": self.name},
            )

    # -------------------------------
    # Internal HTTP helper
    # -------------------------------
    def _send(self, endpoint: str, payload: dict) -> Dict[str, Any]:
        if not self.bot_token:
            slack_logger.error("slack_token_unavailable", extra={"bot": self.name})
            return {"ok": False, "error": "not_authed"}

        url = f"{SLACK_API_BASE_URL}/{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.bot_token}",
            "Content-Type": "application/json; charset=utf-8",
        }

        slack_logger.debug(
            "slack_request",
            extra={"bot": self.name, "endpoint": endpoint, "channel": payload.get("channel")},
        )

        try:
            response = self.session.post(url, headers=headers, data=json.dumps(payload), timeout=self.timeout)
        except requests.RequestException as exc:
            raise SlackTransportError(f"{endpoint} request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise SlackTransportError(
                f"{endpoint} returned a non-JSON response (status {response.status_code})"
            ) from exc

        if not isinstance(data, dict):
            raise SlackTransportError(f"{endpoint} returned {type(data).__name__} instead of a JSON object")

        if not data.get("ok"):
            slack_logger.warning(
                "slack_api_error",
                extra={"bot": self.name, "endpoint": endpoint, "error": data.get("error")},
            )
        return data

    def post_message(
        self,
        channel: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
        text: str = "",
    ) -> SlackResult:
        """chat.postMessage; ``text`` is the notification fallback for ``blocks``."""
        payload: Dict[str, Any] = {
            "channel": channel,
            "text": text,
        }
        if blocks:
            payload["blocks"] = blocks

        data = self._send("chat.postMessage", payload)
        return SlackResult(ok=bool(data.get("ok")), error=data.get("error"), ts=data.get("ts"))

    def schedule_message(self, channel: str, text: str, post_at: int) -> SlackResult:
        """chat.scheduleMessage; ``channel`` may be a user id to deliver a DM."""
        payload = {
            "channel": channel,
            "text": text,
            "post_at": int(post_at),
        }

        data = self._send("chat.scheduleMessage", payload)
        return SlackResult(
            ok=bool(data.get("ok")),
            error=data.get("error"),
            scheduled_message_id=data.get("scheduled_message_id"),
        )
