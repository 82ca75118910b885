import json
from io import BytesIO

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError

from backend.errors import InternalError, UpstreamError, UpstreamTimeoutError
from backend.services.bedrock_utils import BedrockSummarizer, _build_body
from conftest import SAMPLE_SUMMARY


class FakeBedrockClient:
    def __init__(self, text: str):
        self.text = text
        self.calls = []

    def invoke_model(self, **kwargs):
        self.calls.append(kwargs)
        body = {"content": [{"type": "text", "text": self.text}]}
        return {"body": BytesIO(json.dumps(body).encode("utf-8"))}


class ErrorClient:
    def __init__(self, exc: Exception):
        self.exc = exc

    def invoke_model(self, **kwargs):
        raise self.exc


@pytest.mark.asyncio
async def test_summarize_uses_bedrock_messages_response(settings):
    client = FakeBedrockClient(json.dumps(SAMPLE_SUMMARY))
    summarizer = BedrockSummarizer(settings, client=client)

    summary = await summarizer.summarize("[1 at 00:00:12]: Let's begin.")

    assert summary.title == SAMPLE_SUMMARY["title"]
    call = client.calls[0]
    assert call["modelId"] == settings.bedrock_model_id
    body = json.loads(call["body"])
    assert body["anthropic_version"] == "bedrock-2023-05-31"
    assert "Let's begin." in body["messages"][0]["content"][0]["text"]


def test_text_models_get_prompt_body():
    body = _build_body("amazon.titan-text-express-v1", "prompt", max_tokens=10, temperature=0.1)
    assert body == {"prompt": "prompt", "maxTokens": 10, "temperature": 0.1}


@pytest.mark.asyncio
async def test_client_error_becomes_upstream_error(settings):
    error = ClientError(
        {
            "Error": {"Code": "ThrottlingException", "Message": "slow down"},
            "ResponseMetadata": {"HTTPStatusCode": 429},
        },
        "InvokeModel",
    )
    summarizer = BedrockSummarizer(settings, client=ErrorClient(error))

    with pytest.raises(UpstreamError) as excinfo:
        await summarizer.summarize("text")
    assert excinfo.value.status_code == 429
    assert "ThrottlingException" in excinfo.value.message


@pytest.mark.asyncio
async def test_read_timeout_becomes_timeout_error(settings):
    summarizer = BedrockSummarizer(settings, client=ErrorClient(ReadTimeoutError(endpoint_url="https://bedrock")))

    with pytest.raises(UpstreamTimeoutError):
        await summarizer.summarize("text")


@pytest.mark.asyncio
async def test_non_json_reply_is_internal_error(settings):
    summarizer = BedrockSummarizer(settings, client=FakeBedrockClient("I could not summarize that."))

    with pytest.raises(InternalError):
        await summarizer.summarize("text")
