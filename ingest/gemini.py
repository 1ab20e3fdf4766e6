from __future__ import annotations

import base64

import httpx
import structlog

from ingest.errors import AdapterError, expect_dict, expect_list
from ingest.fetch import fetch_ok
from normalize.verification import VERIFICATION_PROMPT, parse_verification_text


logger = structlog.get_logger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

IMAGE_DOWNLOAD_TIMEOUT = httpx.Timeout(30.0)
GENERATE_TIMEOUT = httpx.Timeout(connect=5.0, read=60.0, write=10.0, pool=5.0)

LOCATION_PROMPT = """Extract the location name from the following text. Return only the location name in a clear format (e.g., "City, State" or "City, Country"). If no specific location is mentioned, return "Unknown".

Text: "{text}"

Location:"""

_MALFORMED = "gemini_malformed_payload"


def _candidate_text(payload: object) -> str:
    body = expect_dict(payload, _MALFORMED)
    candidates = expect_list(body.get("candidates"), _MALFORMED)
    if not candidates:
        raise AdapterError("gemini_no_candidates")
    candidate = expect_dict(candidates[0], _MALFORMED)
    content = expect_dict(candidate.get("content") or {}, _MALFORMED)
    parts = expect_list(content.get("parts"), _MALFORMED)
    text = "".join(str(expect_dict(p, _MALFORMED).get("text") or "") for p in parts)
    if not text.strip():
        raise AdapterError("gemini_empty_response")
    return text


class GeminiClient:
    """Minimal client for the hosted model's ``generateContent`` REST call."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        text_model: str,
        vision_model: str,
        user_agent: str,
        base_url: str = GEMINI_BASE_URL,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._text_model = text_model
        self._vision_model = vision_model
        self._user_agent = user_agent
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _generate(self, model: str, parts: list[dict]) -> str:
        if not self._api_key:
            raise AdapterError("gemini not configured")
        response = await self._client.post(
            f"{self._base_url}/models/{model}:generateContent",
            params={"key": self._api_key},
            json={"contents": [{"parts": parts}]},
            timeout=GENERATE_TIMEOUT,
        )
        if response.status_code != 200:
            raise AdapterError(f"gemini_http_{response.status_code}")
        return _candidate_text(response.json())

    async def generate_text(self, prompt: str) -> str:
        return await self._generate(self._text_model, [{"text": prompt}])

    async def generate_with_image(
        self, prompt: str, image_bytes: bytes, mime_type: str
    ) -> str:
        parts = [
            {"text": prompt},
            {
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(image_bytes).decode("ascii"),
                }
            },
        ]
        return await self._generate(self._vision_model, parts)

    async def extract_location(self, text: str) -> str | None:
        answer = (await self.generate_text(LOCATION_PROMPT.format(text=text))).strip()
        answer = answer.strip('"').strip()
        if not answer or answer.casefold() == "unknown":
            return None
        logger.info("location extracted", location=answer)
        return answer

    async def verify_image(self, image_url: str) -> dict:
        if not self._api_key:
            raise AdapterError("gemini not configured")
        body, headers = await fetch_ok(
            self._client,
            url=image_url,
            user_agent=self._user_agent,
            accept="image/*",
            timeout=IMAGE_DOWNLOAD_TIMEOUT,
        )
        mime_type = (headers.get("content-type") or "image/jpeg").split(";")[0].strip()
        analysis = await self.generate_with_image(VERIFICATION_PROMPT, body, mime_type)
        result = parse_verification_text(analysis, image_url)
        logger.info("image verified", image_url=image_url, status=result["status"])
        return result
