"""Client for the external generative-language API.

Talks to Gemini through its OpenAI-compatible endpoint with the openai SDK.
Stateless apart from the reused SDK client; never retries.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from app.config import Settings
from app.core.errors import UpstreamError, UpstreamErrorKind
from app.models.chat import ChatKind

logger = logging.getLogger(__name__)

IMAGE_PROMPT_TEMPLATE = (
    'Describe in vivid detail the image I want: "{prompt}". '
    "Include specifics like colors, composition, lighting, style, and atmosphere."
)

PLACEHOLDER_IMAGE_URL = "https://picsum.photos/512/512?random={seed}"


@dataclass
class GenerationResult:
    response_text: str
    model_name: str
    image_url: Optional[str] = None
    tokens: int = 0


class GenerationClient:
    """Builds generation requests, sends them and classifies failures."""

    # Fixed sampling options for text answers; callers cannot override them
    text_options: Dict[str, Any] = {
        "temperature": 0.7,
        "top_p": 0.95,
        "max_tokens": 1024,
    }
    # Not part of the OpenAI schema, forwarded as-is in the request body
    text_extra_body: Dict[str, Any] = {"top_k": 40}

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        """
        Args:
            api_key: Generation API key
            base_url: OpenAI-compatible endpoint URL
            model: Model identifier sent with every request
            timeout: Per-request timeout in seconds
            client: Pre-built SDK client (tests pass a fake here)
        """
        self.model = model
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            base_url=settings.GENERATION_API_URL,
            model=settings.GENERATION_MODEL,
            timeout=settings.GENERATION_TIMEOUT,
        )

    def generate(self, kind: ChatKind, prompt: str) -> GenerationResult:
        """
        Generate a response for a prompt.

        Args:
            kind: TEXT sends the prompt verbatim, IMAGE wraps it in the
                image-description template and attaches a placeholder image URL
            prompt: Validated prompt text

        Returns:
            GenerationResult with the first choice's text

        Raises:
            UpstreamError: CLIENT_ERROR for upstream 4xx, SERVER_ERROR for 5xx,
                timeouts and connection failures, MALFORMED_RESPONSE when the
                answer text is missing
        """
        request = self._build_request(kind, prompt)

        try:
            response = self._client.chat.completions.create(model=self.model, **request)
        except APITimeoutError as e:
            logger.error(f"Generation API timeout: model={self.model}")
            raise UpstreamError(
                UpstreamErrorKind.SERVER_ERROR, detail="Generation API request timed out"
            ) from e
        except APIConnectionError as e:
            logger.error(f"Generation API connection error: {str(e)}")
            raise UpstreamError(UpstreamErrorKind.SERVER_ERROR, detail=str(e)) from e
        except APIStatusError as e:
            logger.error(
                f"Generation API error: status={e.status_code}, message={e.message}"
            )
            error_kind = (
                UpstreamErrorKind.SERVER_ERROR
                if e.status_code >= 500
                else UpstreamErrorKind.CLIENT_ERROR
            )
            raise UpstreamError(
                error_kind, detail=e.message, upstream_status=e.status_code
            ) from e

        text = self._extract_text(response)

        image_url = None
        if kind == ChatKind.IMAGE:
            image_url = PLACEHOLDER_IMAGE_URL.format(seed=int(time.time() * 1000))

        usage = getattr(response, "usage", None)
        return GenerationResult(
            response_text=text,
            model_name=getattr(response, "model", None) or self.model,
            image_url=image_url,
            tokens=getattr(usage, "total_tokens", 0) or 0,
        )

    def _build_request(self, kind: ChatKind, prompt: str) -> Dict[str, Any]:
        if kind == ChatKind.IMAGE:
            return {
                "messages": [
                    {"role": "user", "content": IMAGE_PROMPT_TEMPLATE.format(prompt=prompt)}
                ],
            }

        return {
            "messages": [{"role": "user", "content": prompt}],
            **self.text_options,
            "extra_body": dict(self.text_extra_body),
        }

    def _extract_text(self, response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            logger.error("Generation API returned no choices")
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED_RESPONSE,
                detail="Invalid response format from generation API",
            )

        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
        if not text or not text.strip():
            logger.error("Generation API returned an empty answer")
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED_RESPONSE,
                detail="Empty response from generation API",
            )
        return text
