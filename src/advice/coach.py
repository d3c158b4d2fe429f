"""Short coaching tips from a hosted model (Amazon Bedrock, Converse API).

The tip is decoration: any failure returns a fixed fallback string so callers
never have to handle errors from here.
"""

from __future__ import annotations

from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from common.logging_utils import get_logger
from common.models import Rank
from common.settings import AdviceConfig


logger = get_logger(__name__)

FALLBACK_EMPTY = "Reset your mindset. Resting is part of getting stronger."
FALLBACK_ERROR = "Stay calm and review the last game. The coach is offline right now."


class AdviceProvider(Protocol):
    def get_advice(self, rank: Rank, was_recent_loss: bool) -> str: ...


def build_prompt(rank: Rank, was_recent_loss: bool) -> str:
    if was_recent_loss:
        return (
            f"I just lost a ranked game at {rank.value.title()} rank and I'm tilted. "
            "My account is now locked for 3 days. In under 50 words, give me a firm "
            "but encouraging message on why resting matters and how to avoid tilt."
        )
    return (
        f"I'm a {rank.value.title()} rank player. In under 30 words, give me one "
        "macro-level tactical tip to improve my game awareness."
    )


def _reply_text(response: dict[str, Any]) -> str:
    content = response.get("output", {}).get("message", {}).get("content", []) or []
    parts = [block.get("text", "") for block in content if isinstance(block, dict)]
    return "".join(parts).strip()


class BedrockCoach:
    def __init__(self, cfg: AdviceConfig | None = None, *, client: Any | None = None) -> None:
        self.cfg = cfg or AdviceConfig()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            session = (
                boto3.Session(profile_name=self.cfg.profile) if self.cfg.profile else boto3.Session()
            )
            self._client = session.client("bedrock-runtime", region_name=self.cfg.region)
        return self._client

    def get_advice(self, rank: Rank, was_recent_loss: bool) -> str:
        try:
            response = self.client.converse(
                modelId=self.cfg.model_id,
                messages=[
                    {"role": "user", "content": [{"text": build_prompt(rank, was_recent_loss)}]}
                ],
                inferenceConfig={"maxTokens": int(self.cfg.max_tokens)},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("advice request failed: %s", exc)
            return FALLBACK_ERROR

        text = _reply_text(response)
        return text or FALLBACK_EMPTY
