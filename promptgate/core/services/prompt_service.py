"""Core service sequencing one prompt through the resilience pipeline.

Hides the complexity of a single completion request: per-call validation,
throttling, rate-limit admission, retries with backoff, output validation
and cost accounting. Failures never escape as exceptions; they come back as
a `PromptResponse` with a classified status.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from promptgate.domain.events.api_events import (
    ApiCallDeferred,
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    RequestThrottled,
)
from promptgate.domain.events.dispatcher import EventDispatcher
from promptgate.domain.exceptions import ChunkCallbackError, RateLimitCeilingError
from promptgate.domain.interfaces.ai_model import CompletionProvider
from promptgate.domain.models.common import PromptCost, TokenCount, TokenUsage
from promptgate.domain.models.config import ClientConfig
from promptgate.domain.models.prompt import PromptInput, PromptResponse, PromptStatus
from promptgate.infrastructure.ai.openai.gpt_client import OpenAICompletionProvider
from promptgate.infrastructure.ai.openai.model_registry import ModelRegistry
from promptgate.infrastructure.builders.message_builder import MessageBuilder
from promptgate.infrastructure.builders.request_builder import RequestBuilder
from promptgate.infrastructure.config.settings import build_client_config
from promptgate.infrastructure.config.validator import ConfigValidator
from promptgate.infrastructure.optimization.token_estimator import TokenEstimator
from promptgate.infrastructure.parsers.output_parser import OutputParser
from promptgate.infrastructure.parsers.schema_parser import SchemaParser
from promptgate.infrastructure.resilience.api_retry import ApiRetryService
from promptgate.infrastructure.resilience.error_classifier import get_error_message, to_prompt_status
from promptgate.infrastructure.resilience.rate_limiter import RateLimitWindow, Reservation
from promptgate.infrastructure.resilience.throttle import ThrottleGate

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]
Attempt = Callable[[int, Reservation], Awaitable[PromptResponse]]

class PromptClient:
    """Orchestrates prompt requests against a completion provider.

    One client owns one throttle gate and one rate limit window; share the
    client, not its parts, between tasks that should be limited together.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        provider: Optional[CompletionProvider] = None,
        events: Optional[EventDispatcher] = None,
        registry: Optional[ModelRegistry] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Validates the configuration and wires the pipeline.

        Args:
            config: Client configuration. Defaults are used for unset fields.
            provider: Upstream backend. Defaults to the OpenAI provider.
            events: Dispatcher for API call events.
            registry: Model registry used for capabilities and pricing.
            clock: Monotonic time source for throttling and rate limiting.
            sleep: Coroutine used for every wait in the pipeline.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        config = config or ClientConfig()
        self.validator = ConfigValidator(registry)
        self.registry = self.validator.registry

        api_key = self.validator.validate_api_key(config.api_key)
        self.default_model = self.validator.validate_model(config.default_model)
        self.default_temperature = self.validator.validate_temperature(config.default_temperature)
        self.max_tokens = self.validator.validate_max_tokens(config.max_tokens, self.default_model)
        self.system_message = self.validator.validate_system_message(config.system_message)
        timeout = self.validator.validate_timeout(config.timeout)
        rate_limits = self.validator.validate_rate_limits(config.rate_limit)
        throttle_settings = self.validator.validate_throttle_settings(
            config.request_delay, config.use_jitter, config.jitter_factor
        )
        retry_policy = self.validator.validate_retry_settings(
            config.enable_retry, config.max_retry_attempts, config.base_retry_delay, config.max_retry_delay
        )

        self.provider = provider or OpenAICompletionProvider(
            api_key=api_key,
            base_url=config.base_url,
            organization=config.organization,
            timeout=timeout,
        )
        self.events = events or EventDispatcher()
        self._clock = clock

        self.token_estimator = TokenEstimator(config.tokenizer)
        self.message_builder = MessageBuilder(self.registry)
        self.request_builder = RequestBuilder(SchemaParser(), self.registry)
        self.output_parser = OutputParser()

        self.rate_limiter = RateLimitWindow(
            max_requests=rate_limits.requests_per_minute,
            max_tokens=rate_limits.tokens_per_minute,
            window=rate_limits.window,
            poll_interval=rate_limits.poll_interval,
            clock=clock,
            sleep=sleep,
        )
        self.throttle_gate = ThrottleGate(
            min_interval=throttle_settings.request_delay,
            use_jitter=throttle_settings.use_jitter,
            jitter_factor=throttle_settings.jitter_factor,
            clock=clock,
            sleep=sleep,
        )
        self.retry_service = ApiRetryService(retry_policy, self.events, sleep=sleep)

        logger.info(f"PromptClient initialized with provider '{self.provider.name}' and default model {self.default_model}")

    @classmethod
    def from_settings(cls, **kwargs: Any) -> "PromptClient":
        """Builds a client from the YAML / .env / environment settings."""
        return cls(build_client_config(), **kwargs)

    # --- Public API ---

    async def prompt(self, prompt_input: PromptInput) -> PromptResponse:
        """Runs a non-streaming completion through the full pipeline."""
        model = self.validator.validate_prompt_input(prompt_input, self.default_model)
        params = self._build_params(prompt_input, model, stream=False)

        async def attempt(attempt_number: int, reservation: Reservation) -> PromptResponse:
            logger.debug(f"Making {self.provider.name} request with model: {model} (attempt {attempt_number})")
            completion = await self.provider.create_completion(params)

            usage = self._extract_usage(completion)
            self.rate_limiter.commit(reservation, usage["total_tokens"] if usage else None)

            choice = completion.choices[0] if completion.choices else None
            message = choice.message if choice else None
            raw_content = (message.content if message else None) or ""
            content, structured = self.output_parser.parse_and_validate(raw_content, prompt_input.output_schema)

            cost = None
            if usage:
                cost = self.calculate_cost(model, usage["prompt_tokens"], usage["completion_tokens"])

            return PromptResponse(
                status=PromptStatus.SUCCESS,
                input=prompt_input,
                content=content,
                structured_output=structured,
                tool_calls=getattr(message, "tool_calls", None),
                usage=usage,
                cost=cost,
                model=getattr(completion, "model", None) or model,
                finish_reason=choice.finish_reason if choice else None,
                raw=completion,
            )

        return await self._execute(prompt_input, model, attempt, stream=False)

    async def prompt_stream(self, prompt_input: PromptInput, on_chunk: ChunkCallback) -> PromptResponse:
        """Runs a streaming completion; `on_chunk` receives each non-empty delta.

        The callback may be a plain function or a coroutine function. Usage
        and cost are not reported for streamed responses.
        """
        model = self.validator.validate_prompt_input(prompt_input, self.default_model)
        params = self._build_params(prompt_input, model, stream=True)

        async def attempt(attempt_number: int, reservation: Reservation) -> PromptResponse:
            logger.debug(f"Making {self.provider.name} streaming request with model: {model} (attempt {attempt_number})")
            parts = []
            finish_reason = None
            model_used = ""

            chunks = self.provider.stream_completion(params)
            try:
                async for chunk in chunks:
                    choices = getattr(chunk, "choices", None) or []
                    choice = choices[0] if choices else None
                    delta = getattr(getattr(choice, "delta", None), "content", None)
                    if delta:
                        parts.append(delta)
                        await self._deliver_chunk(on_chunk, delta)
                    if choice is not None and choice.finish_reason:
                        finish_reason = choice.finish_reason
                    if getattr(chunk, "model", None):
                        model_used = chunk.model
            finally:
                # Abandoned streams must release their connection now.
                aclose = getattr(chunks, "aclose", None)
                if aclose is not None:
                    await aclose()

            # No usage is reported for streams; the estimate stands.
            self.rate_limiter.commit(reservation)
            content, structured = self.output_parser.parse_and_validate("".join(parts), prompt_input.output_schema)

            return PromptResponse(
                status=PromptStatus.SUCCESS,
                input=prompt_input,
                content=content,
                structured_output=structured,
                model=model_used,
                finish_reason=finish_reason,
            )

        return await self._execute(prompt_input, model, attempt, stream=True)

    def estimate_tokens(self, prompt_input: PromptInput) -> TokenCount:
        """Estimated request size used for rate-limit admission."""
        return self.token_estimator.estimate_request_tokens(
            prompt_input.input,
            system_message=prompt_input.system_message or self.system_message,
            history=prompt_input.messages,
            max_tokens=prompt_input.max_tokens,
            default_max_tokens=self.max_tokens,
        )

    def calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> PromptCost:
        return self.registry.calculate_cost(model, input_tokens, output_tokens)

    # --- Pipeline ---

    @staticmethod
    async def _deliver_chunk(on_chunk: ChunkCallback, delta: str) -> None:
        try:
            result = on_chunk(delta)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise ChunkCallbackError(e) from e

    def _build_params(self, prompt_input: PromptInput, model: str, stream: bool) -> Dict[str, Any]:
        messages = self.message_builder.build_messages(prompt_input, model, self.system_message)
        return self.request_builder.build_request_params(
            prompt_input, model, messages, self.default_temperature, self.max_tokens, stream=stream
        )

    async def _admit(self, prompt_input: PromptInput) -> Reservation:
        """Estimate, throttle, then wait for and record a rate-limit reservation."""
        estimated_tokens = self.estimate_tokens(prompt_input)
        # A request that can never be admitted must not consume a throttle slot.
        self.rate_limiter.check_ceiling(estimated_tokens)

        slept = await self.throttle_gate.throttle()
        if slept > 0:
            self.events.dispatch(RequestThrottled(delay_seconds=slept))

        wait_time = self.rate_limiter.get_wait_time(estimated_tokens)
        if wait_time > 0:
            self.events.dispatch(ApiCallDeferred(
                provider=self.provider.name,
                estimated_tokens=estimated_tokens,
                wait_time_seconds=wait_time,
            ))
        return await self.rate_limiter.acquire(estimated_tokens)

    async def _execute(self, prompt_input: PromptInput, model: str, attempt: Attempt, stream: bool) -> PromptResponse:
        start_time = self._clock()
        try:
            reservation = await self._admit(prompt_input)
        except RateLimitCeilingError as e:
            response = self._build_error_response(e, prompt_input, model, attempts=0)
            response.latency_ms = (self._clock() - start_time) * 1000
            return response

        attempts_made = 0

        async def run_attempt(attempt_number: int) -> PromptResponse:
            nonlocal attempts_made
            attempts_made = attempt_number
            self.events.dispatch(ApiCallInitiated(
                provider=self.provider.name,
                model=model,
                attempt_number=attempt_number,
                stream=stream,
            ))
            return await attempt(attempt_number, reservation)

        response = await self.retry_service.execute_with_retry(
            run_attempt,
            lambda error, attempts: self._build_error_response(error, prompt_input, model, attempts),
        )
        response.latency_ms = (self._clock() - start_time) * 1000

        if response.ok:
            response.attempts = attempts_made
            self.events.dispatch(ApiCallSucceeded(
                provider=self.provider.name,
                model=response.model or model,
                latency_ms=response.latency_ms,
                attempts=attempts_made,
                response_summary=response.usage,
            ))
        return response

    @staticmethod
    def _extract_usage(completion: Any) -> Optional[TokenUsage]:
        usage = getattr(completion, "usage", None)
        if usage is None:
            return None
        return TokenUsage(
            prompt_tokens=usage.prompt_tokens or 0,
            completion_tokens=usage.completion_tokens or 0,
            total_tokens=usage.total_tokens or 0,
        )

    def _build_error_response(
        self,
        error: BaseException,
        prompt_input: PromptInput,
        model: str,
        attempts: int,
    ) -> PromptResponse:
        status = to_prompt_status(error)
        message = get_error_message(error)
        logger.error(f"Prompt failed with status {status.value}: {message}")

        self.events.dispatch(ApiCallFailed(
            provider=self.provider.name,
            model=model,
            error_type=type(error).__name__,
            error_message=message,
            status=status.value,
        ))
        return PromptResponse(
            status=status,
            input=prompt_input,
            content="",
            model="",
            error=message,
            attempts=attempts,
        )
