"""
Gemini client wrapper.

Sends photo analysis, retouching and mentor requests through the retry
policy and returns parsed results with their token usage.
"""

import base64
import json
import logging
from typing import Any, Iterable, List, Optional, Tuple, Union

from google import genai
from google.genai import types

from ..config.loader import (
    DEFAULT_ANALYSIS_MODEL,
    DEFAULT_IMAGE_MODEL,
    RetryConfig,
    resolve_api_key,
)
from ..core.retry import execute_with_retry
from ..core.token_counter import UsageMetadata
from .models import MentorMessage, PhotoAnalysis, ThinkingProcess
from .prompts import (
    ANALYSIS_SCHEMA,
    MENTOR_SCHEMA,
    build_analysis_prompt,
    build_mentor_prompt,
    build_retouch_prompt,
)

logger = logging.getLogger(__name__)

ImageData = Union[bytes, str]


def clean_base64(data: str) -> str:
    """Strip a ``data:<mime>;base64,`` prefix from an encoded image."""
    if "base64," in data:
        return data.split("base64,", 1)[1]
    return data


def decode_image(image: ImageData) -> bytes:
    """Accept raw bytes or a (data URL) base64 string."""
    if isinstance(image, bytes):
        return image
    return base64.b64decode(clean_base64(image))


class GeminiCoachClient:
    """Gemini client wrapper used by the coaching session.

    Every remote call runs through ``execute_with_retry``; transient
    server faults are retried, credential problems fail fast.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        analysis_model: str = DEFAULT_ANALYSIS_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        retry: Optional[RetryConfig] = None,
        client: Optional[Any] = None
    ):
        """Initialize the client.

        Args:
            api_key: API key (defaults to GEMINI_API_KEY / GOOGLE_API_KEY)
            analysis_model: Model used for analysis and mentor chat
            image_model: Model used for corrected image generation
            retry: Backoff parameters (defaults to RetryConfig())
            client: Pre-built genai client, mainly for tests

        Raises:
            CoachConfigurationError: If no API key is available
        """
        self.analysis_model = analysis_model
        self.image_model = image_model
        self.retry = retry or RetryConfig()
        self.client = client if client is not None else genai.Client(api_key=resolve_api_key(api_key))

    async def _generate(self, model: str, contents: List[Any], config: types.GenerateContentConfig) -> Any:
        async def attempt():
            return await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config
            )

        logger.debug("Calling %s", model)
        return await execute_with_retry(
            attempt,
            max_retries=self.retry.max_retries,
            initial_delay_ms=self.retry.initial_delay_ms
        )

    @staticmethod
    def _json_payload(response: Any, what: str) -> dict:
        text = getattr(response, "text", None)
        if not text:
            raise RuntimeError(f"No response content from {what}")
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {what}, got {type(payload).__name__}")
        return payload

    async def analyze_image(self, image: ImageData, mime_type: str) -> Tuple[PhotoAnalysis, UsageMetadata]:
        """Request a structured critique of a photo.

        Returns:
            Parsed analysis and the usage reported for the request

        Raises:
            FatalRequestError / TransientRequestError: If the request fails
            RuntimeError: If the response has no content
            ValueError: If the payload is not a valid analysis
        """
        response = await self._generate(
            self.analysis_model,
            [
                types.Part.from_bytes(data=decode_image(image), mime_type=mime_type),
                build_analysis_prompt(),
            ],
            types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=ANALYSIS_SCHEMA
            )
        )
        analysis = PhotoAnalysis.from_dict(self._json_payload(response, "analysis"))
        return analysis, UsageMetadata.from_response(response)

    async def generate_corrected_image(
        self,
        image: ImageData,
        mime_type: str,
        improvements: Iterable[str]
    ) -> bytes:
        """Generate a retouched version of the photo addressing the improvements."""
        response = await self._generate(
            self.image_model,
            [
                types.Part.from_bytes(data=decode_image(image), mime_type=mime_type),
                build_retouch_prompt(improvements),
            ],
            types.GenerateContentConfig(
                image_config=types.ImageConfig(image_size="1K")
            )
        )
        return extract_image(response)

    async def ask_mentor(
        self,
        image: ImageData,
        mime_type: str,
        question: str,
        analysis: PhotoAnalysis,
        history: Optional[List[MentorMessage]] = None
    ) -> Tuple[str, ThinkingProcess, UsageMetadata]:
        """Ask a follow-up question about an analysed photo."""
        response = await self._generate(
            self.analysis_model,
            [
                build_mentor_prompt(question, analysis, history),
                types.Part.from_bytes(data=decode_image(image), mime_type=mime_type),
            ],
            types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=MENTOR_SCHEMA
            )
        )
        payload = self._json_payload(response, "mentor")
        if "answer" not in payload:
            raise ValueError("Missing required 'answer' in mentor response")
        thinking = ThinkingProcess.from_dict(payload.get("thinking") or {
            "observations": [], "reasoning_steps": [], "priority_fixes": []
        })
        return str(payload["answer"]), thinking, UsageMetadata.from_response(response)


def extract_image(response: Any) -> bytes:
    """Return the first inline image in a response.

    Raises:
        RuntimeError: If the response carries no image
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is not None and getattr(inline_data, "data", None):
                return inline_data.data
    raise RuntimeError("No image generated by the model")
