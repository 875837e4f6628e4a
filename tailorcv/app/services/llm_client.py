"""
Language-model client - thin wrapper over AsyncOpenAI.

All retrying happens here (the SDK's own retries are disabled): up to
settings.openai_max_retries attempts with exponential backoff, and only for
rate limits, 5xx responses and connection failures. Provider errors are
translated to TailorCVError subclasses; raw provider text is logged, never returned.
"""
import asyncio
import json
from typing import Any, Awaitable, Callable

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from tailorcv.app.core.config import settings
from tailorcv.app.core.exceptions import (
    ConfigurationError,
    EmptyExtraction,
    InvalidInput,
    InvalidModelOutput,
    ModelError,
    RateLimited,
    ServiceUnavailable,
    TailorCVError,
    Unauthorized,
)
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.core.monitoring import best_effort_async, capture_error, time_execution
from tailorcv.app.services import prompts

logger = get_logger("services.llm")

UsageRecorder = Callable[[], Any]


async def _backoff(delay: float) -> None:
    await asyncio.sleep(delay)


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, APIStatusError):
        return exc.status_code >= 500 or exc.status_code == 429
    return isinstance(exc, APIConnectionError)


def translate_provider_error(exc: Exception) -> TailorCVError:
    """Map an SDK exception to the error the API answers with."""
    if isinstance(exc, TailorCVError):
        return exc
    if isinstance(exc, APIStatusError):
        if exc.status_code == 429:
            return RateLimited()
        if exc.status_code == 401:
            return Unauthorized()
        if exc.status_code >= 500:
            return ServiceUnavailable()
        return ModelError()
    if isinstance(exc, APIConnectionError):
        return ServiceUnavailable()
    return ModelError()


class LanguageModelClient:
    def __init__(
        self,
        user_id: str | None = None,
        usage_recorder: UsageRecorder | None = None,
        client: Any = None,
    ):
        if client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                max_retries=0,
                timeout=settings.openai_request_timeout,
            )
        self._client = client
        self.user_id = user_id
        self.usage_recorder = usage_recorder
        self.model = settings.openai_model
        self.max_retries = max(1, settings.openai_max_retries)
        self.retry_delay = settings.openai_retry_delay

    async def _with_retry(self, operation: Callable[[], Awaitable[str]]) -> str:
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return await operation()
            except Exception as e:
                if not _is_retryable(e):
                    raise
                last_error = e
            if attempt == self.max_retries:
                break
            delay = self.retry_delay * 2 ** (attempt - 1)
            logger.info("Retry attempt %s after %.2fs error=%s", attempt, delay, type(last_error).__name__)
            await _backoff(delay)
        raise last_error

    async def _complete(
        self,
        messages: list[dict],
        temperature: float,
        max_tokens: int | None = None,
        response_format: dict | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if response_format is not None:
            kwargs["response_format"] = response_format
        response = await self._client.chat.completions.create(**kwargs)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def _track_ai_generation(self) -> None:
        if self.usage_recorder is None:
            return
        await best_effort_async("track ai generation", self.usage_recorder)

    async def _run(self, name: str, operation: Callable[[], Awaitable[str]], metadata: dict) -> str:
        try:
            return await self._with_retry(operation)
        except TailorCVError:
            raise
        except Exception as e:
            capture_error(f"OpenAI API error in {name}", e, {**metadata, "user_id": self.user_id})
            raise translate_provider_error(e) from e

    async def chat(self, messages: list[dict], temperature: float = 0.7, json_mode: bool = False) -> str:
        async with time_execution("openai.chat"):
            fmt = {"type": "json_object"} if json_mode else None
            result = await self._run(
                "chat",
                lambda: self._complete(messages, temperature, response_format=fmt),
                {"messages": messages},
            )
            await self._track_ai_generation()
            return result

    async def analyze_image(
        self,
        base64_image: str,
        job_description: str = "",
        additional_info: str | None = None,
        temperature: float = 0.5,
    ) -> str:
        """Transcribe a resume image (data URL) verbatim with the vision model."""
        async with time_execution("openai.analyze_image"):
            if not base64_image:
                raise EmptyExtraction("The image data appears to be invalid. Please try a different image format or file.")
            messages = [
                {"role": "system", "content": prompts.IMAGE_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompts.IMAGE_USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": base64_image, "detail": "high"}},
                    ],
                },
            ]

            async def operation() -> str:
                text = await self._complete(messages, temperature, max_tokens=4000)
                if not text.strip():
                    raise EmptyExtraction(
                        "Unable to extract text from the image. Please try a clearer image or a different file format."
                    )
                return text

            return await self._run("analyze_image", operation, {"image": base64_image})

    async def generate_resume_from_vision_analysis(
        self,
        cv_text: str,
        job_description: str,
        additional_info: str | None = None,
        temperature: float = 0.5,
    ) -> str:
        """Tailor the CV to the job description; returns the model's JSON text (validated as JSON)."""
        async with time_execution("openai.generate_resume_from_vision_analysis"):
            if not (cv_text or "").strip():
                raise InvalidInput("CV content is empty or invalid")
            if not (job_description or "").strip():
                raise InvalidInput("Job description is empty or invalid")
            messages = [
                {"role": "system", "content": prompts.RESUME_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.build_resume_prompt(cv_text, job_description, additional_info)},
            ]

            async def operation() -> str:
                content = await self._complete(messages, temperature, response_format={"type": "json_object"})
                try:
                    json.loads(content)
                except ValueError as e:
                    logger.warning("Model returned invalid JSON length=%d", len(content))
                    raise InvalidModelOutput() from e
                return content

            result = await self._run(
                "generate_resume_from_vision_analysis",
                operation,
                {"cv_text": cv_text, "job_description_length": len(job_description)},
            )
            await self._track_ai_generation()
            return result

    async def generate_cover_letter(
        self,
        resume_data: dict,
        job_description: str,
        additional_info: str | None = None,
        temperature: float = 0.7,
    ) -> str:
        async with time_execution("openai.generate_cover_letter"):
            if not resume_data:
                raise InvalidInput("Resume data is empty or invalid")
            if not (job_description or "").strip():
                raise InvalidInput("Job description is empty or invalid")
            messages = [
                {"role": "system", "content": prompts.COVER_LETTER_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": prompts.build_cover_letter_prompt(resume_data, job_description, additional_info),
                },
            ]
            result = await self._run(
                "generate_cover_letter",
                lambda: self._complete(messages, temperature, max_tokens=1500),
                {"resume_data": resume_data},
            )
            await self._track_ai_generation()
            return result

    async def generate_hr_message(
        self,
        resume_data: dict,
        job_description: str,
        recruiter_name: str,
        additional_info: str | None = None,
        temperature: float = 0.7,
    ) -> str:
        async with time_execution("openai.generate_hr_message"):
            if not resume_data:
                raise InvalidInput("Resume data is empty or invalid")
            if not (job_description or "").strip():
                raise InvalidInput("Job description is empty or invalid")
            if not (recruiter_name or "").strip():
                raise InvalidInput("Recruiter name is empty or invalid")
            messages = [
                {"role": "system", "content": prompts.HR_MESSAGE_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": prompts.build_hr_message_prompt(
                        resume_data, job_description, recruiter_name.strip(), additional_info
                    ),
                },
            ]
            result = await self._run(
                "generate_hr_message",
                lambda: self._complete(messages, temperature, max_tokens=1000),
                {"resume_data": resume_data, "recruiter_name": recruiter_name},
            )
            await self._track_ai_generation()
            return result
