from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from advice.coach import FALLBACK_EMPTY, FALLBACK_ERROR, BedrockCoach, build_prompt
from common.models import Rank
from common.settings import AdviceConfig


def _client() -> Any:
    return boto3.client(
        "bedrock-runtime",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def _converse_reply(text: str) -> dict[str, Any]:
    return {
        "output": {"message": {"role": "assistant", "content": [{"text": text}]}},
        "stopReason": "end_turn",
        "usage": {"inputTokens": 10, "outputTokens": 5, "totalTokens": 15},
        "metrics": {"latencyMs": 12},
    }


def test_returns_model_text() -> None:
    client = _client()
    cfg = AdviceConfig(region="us-east-1", model_id="test-model", profile=None, max_tokens=64)
    stubber = Stubber(client)
    stubber.add_response(
        "converse",
        _converse_reply("  Take a break.  "),
        expected_params={
            "modelId": "test-model",
            "messages": [{"role": "user", "content": [{"text": build_prompt(Rank.GOLD, True)}]}],
            "inferenceConfig": {"maxTokens": 64},
        },
    )
    with stubber:
        assert BedrockCoach(cfg, client=client).get_advice(Rank.GOLD, True) == "Take a break."
    stubber.assert_no_pending_responses()


def test_service_error_falls_back() -> None:
    client = _client()
    stubber = Stubber(client)
    stubber.add_client_error("converse", service_error_code="ThrottlingException", http_status_code=429)
    with stubber:
        assert BedrockCoach(client=client).get_advice(Rank.KING, False) == FALLBACK_ERROR


class _UnreachableClient:
    def converse(self, **kwargs: Any) -> dict[str, Any]:
        raise EndpointConnectionError(endpoint_url="https://bedrock-runtime.invalid")


class _EmptyClient:
    def converse(self, **kwargs: Any) -> dict[str, Any]:
        return {"output": {"message": {"role": "assistant", "content": []}}}


def test_network_error_and_empty_reply_fall_back() -> None:
    assert BedrockCoach(client=_UnreachableClient()).get_advice(Rank.GOLD, True) == FALLBACK_ERROR
    assert BedrockCoach(client=_EmptyClient()).get_advice(Rank.GOLD, False) == FALLBACK_EMPTY


def test_prompt_depends_on_recent_loss() -> None:
    tilt = build_prompt(Rank.DIAMOND, True)
    tip = build_prompt(Rank.DIAMOND, False)
    assert "locked for 3 days" in tilt
    assert "Diamond" in tilt
    assert "tactical tip" in tip
