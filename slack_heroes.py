"""FastAPI router for the /hero and /heroes-of-the-month slash commands."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict
from urllib.parse import parse_qs

from anyio import to_thread
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from hero_config import SLACK_HEROES_BOT_TOKEN, SLACK_HEROES_SIGNING_SECRET
from hero_models import DeliveryStatus
from nomination_store import NominationStore, NominationStoreError
from recognition_service import EmptyNominationError, RecognitionService
from slack_security import verify_slack_request
from slack_service import SlackClient

logger = logging.getLogger(__name__)
router = APIRouter()

NOMINATION_COMMANDS = {"/hero", "/kudos"}
REVEAL_COMMANDS = {"/heroes-of-the-month", "/heroes"}

NOMINATION_SAVED_TEXT = "Thanks! Your vote for {heroes} has been recorded. {emoji}"
NOMINATION_FAILED_TEXT = "I couldn't record that vote right now. Please try again shortly."
REVEAL_NOT_YET_TEXT = "The heroes of the month leaderboard can be revealed after {available_from}."
REVEAL_POSTED_TEXT = "Heroes of the month leaderboard posted."
REVEAL_FAILED_TEXT = "I couldn't post the leaderboard to this channel. Is the bot invited here?"


@lru_cache(maxsize=1)
def get_recognition_service() -> RecognitionService:
    slack_client = SlackClient(name="heroes", bot_token=SLACK_HEROES_BOT_TOKEN)
    return RecognitionService(store=NominationStore(), slack_client=slack_client)


@router.post("/slack/heroes")
async def slack_heroes_command(request: Request) -> JSONResponse:
    """Slash command entry-point for nominating and revealing heroes."""
    body = await request.body()
    verify_slack_request(request, body, SLACK_HEROES_SIGNING_SECRET)

    form = _parse_slack_form(body)
    command = form.get("command")
    text = form.get("text", "")
    channel_id = form.get("channel_id")
    user_id = form.get("user_id")

    if not command or not channel_id or not user_id:
        raise HTTPException(status_code=400, detail="Missing Slack command fields")

    logger.info(
        "heroes_command_received",
        extra={"command": command, "channel_id": channel_id, "user_id": user_id},
    )

    response = await _route_slash_command(command, text, channel_id)
    return JSONResponse(response)


def _parse_slack_form(body: bytes) -> Dict[str, str]:
    try:
        decoded = body.decode("utf-8")
    except UnicodeDecodeError as exc:  # pragma: no cover - invalid payloads
        raise HTTPException(status_code=400, detail="Invalid Slack payload encoding") from exc

    parsed = parse_qs(decoded, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def _ephemeral(text: str) -> Dict[str, str]:
    return {"response_type": "ephemeral", "text": text}


async def _route_slash_command(command: str, text: str, channel_id: str) -> Dict[str, str]:
    normalized_command = command.strip().lower()

    if normalized_command in NOMINATION_COMMANDS:
        return await _execute_nomination(text, channel_id)

    if normalized_command in REVEAL_COMMANDS:
        return await _execute_reveal(channel_id)

    logger.warning("heroes_command_unknown", extra={"command": command})
    raise HTTPException(status_code=400, detail="Unknown Slack command")


async def _execute_nomination(text: str, channel_id: str) -> Dict[str, str]:
    service = get_recognition_service()
    try:
        outcomes = await to_thread.run_sync(service.handle_nomination, text, channel_id)
    except EmptyNominationError as exc:
        return _ephemeral(str(exc))
    except NominationStoreError:
        logger.exception("heroes_nomination_failed", extra={"channel_id": channel_id})
        return _ephemeral(NOMINATION_FAILED_TEXT)

    heroes = ", ".join(f"<@{outcome.target}>" for outcome in outcomes)
    return _ephemeral(NOMINATION_SAVED_TEXT.format(heroes=heroes, emoji=":tada:"))


async def _execute_reveal(channel_id: str) -> Dict[str, str]:
    service = get_recognition_service()
    if not service.is_reveal_allowed():
        available_from = service.available_from()
        logger.info(
            "heroes_reveal_too_early",
            extra={"channel_id": channel_id, "available_from": available_from.isoformat()},
        )
        return _ephemeral(REVEAL_NOT_YET_TEXT.format(available_from=available_from.isoformat()))

    try:
        outcome = await to_thread.run_sync(service.handle_reveal_request, channel_id)
    except NominationStoreError:
        logger.exception("heroes_reveal_failed", extra={"channel_id": channel_id})
        return _ephemeral(REVEAL_FAILED_TEXT)

    if outcome.status != DeliveryStatus.DELIVERED:
        return _ephemeral(REVEAL_FAILED_TEXT)
    return _ephemeral(REVEAL_POSTED_TEXT)
