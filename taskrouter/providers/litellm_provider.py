"""Universal LiteLLM adapter implementing the TierProvider interface.

Routes completion requests to any LLM provider via LiteLLM's unified API.
Handles system prompt rendering, history mapping, token tracking, cost
calculation and retry with exponential backoff on transient errors.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from typing import Any

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from taskrouter.prompts import render_prompt
from taskrouter.providers.base import TierProvider
from taskrouter.schemas.config import ModelConfig
from taskrouter.schemas.messages import ProviderResult, TokenUsage
from taskrouter.schemas.routing import Tier
from taskrouter.schemas.task import Task, TaskContext, extract_text

logger = logging.getLogger(__name__)

_BASE_BACKOFF = 1.0  # seconds

# Fenced JSON block some models wrap structured output in
_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)

# Numbered or bulleted step lines in free-text reasoning
_STEP_LINE_RE = re.compile(r"^\s*(?:\d+[.)]|[-*+]|step\s+\d+:?)\s+", re.IGNORECASE)


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error.

    Maps error types and status codes to concise descriptions instead
    of dumping full JSON error payloads.
    """
    error_str = str(error).lower()
    if "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    return str(error)[:80]


class LiteLLMProvider(TierProvider):
    """Tier provider powered by LiteLLM.

    Routes calls to any provider (Google, Anthropic, DeepSeek, ...) through
    litellm.acompletion(). This is the only place models are called; no
    direct SDK imports anywhere else.
    """

    # Prompt template used for the system message
    system_template = "system"

    def __init__(self, tier: Tier, config: ModelConfig, *, timeout: int = 120) -> None:
        super().__init__(tier, config)
        self._api_key = os.environ.get(config.api_key_env, "")
        self._timeout = timeout

    async def invoke(self, task: Task | str, context: TaskContext) -> ProviderResult:
        """Send the task via LiteLLM and return a ProviderResult.

        Args:
            task: Plain text or a structured Task.
            context: Call context supplying history, role, guidelines and
                     sampling overrides.

        Returns:
            ProviderResult with content, token usage and model identity.

        Raises:
            TimeoutError: If every attempt times out.
            RuntimeError: On auth/bad-request errors, exhausted retries or an
                          empty response.
        """
        messages = self._build_messages(task, context)
        kwargs = self._build_completion_kwargs(messages, context)

        response = await self._call_with_retry(kwargs)

        content = self._extract_content(response)
        if not content.strip():
            raise RuntimeError(f"Empty response from {self._config.model}")

        return self._build_result(content, response)

    # ── Request building ──────────────────────────────────────

    def _build_messages(
        self, task: Task | str, context: TaskContext,
    ) -> list[dict[str, str]]:
        """Build the OpenAI-format message list: system, history, then the task."""
        system = render_prompt(
            self.system_template,
            role=context.role,
            guidelines=context.guidelines,
        )
        messages = [{"role": "system", "content": system}]
        for msg in context.conversation:
            if msg.content:
                messages.append({"role": msg.role.value, "content": msg.content})
        messages.append({"role": "user", "content": extract_text(task)})
        return messages

    def _build_completion_kwargs(
        self,
        messages: list[dict[str, str]],
        context: TaskContext,
    ) -> dict[str, Any]:
        """Build the kwargs dict for litellm.acompletion."""
        temperature = context.temperature
        if temperature is None:
            temperature = self._config.temperature

        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": messages,
            "timeout": float(self._timeout),
            "temperature": temperature,
            "max_tokens": context.max_tokens or self._config.max_tokens,
        }

        if self._api_key:
            kwargs["api_key"] = self._api_key

        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base

        # Caller-supplied extras ride along as request metadata
        if context.passthrough:
            kwargs["metadata"] = context.passthrough

        return kwargs

    # ── Transport ─────────────────────────────────────────────

    async def _call_with_retry(self, kwargs: dict[str, Any]) -> litellm.ModelResponse:
        """Call litellm.acompletion with exponential backoff retry.

        Retries on transient errors (rate limits, server errors, timeouts).
        Non-retryable errors (auth, invalid request) are raised immediately.

        Raises:
            TimeoutError: If all retries time out.
            RuntimeError: If all retries fail with non-timeout errors.
        """
        max_retries = self._config.max_retries
        last_error: Exception | None = None

        for attempt in range(max_retries):
            try:
                return await litellm.acompletion(**kwargs)
            except TimeoutError:
                last_error = TimeoutError(
                    f"Model call timed out after {kwargs.get('timeout')}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            except litellm.AuthenticationError:
                raise RuntimeError(
                    f"Authentication failed for {self._config.model}. "
                    f"Check that {self._config.api_key_env} is set correctly."
                ) from None
            except litellm.BadRequestError as e:
                raise RuntimeError(
                    f"Bad request to {self._config.model}: {e}"
                ) from e
            except (
                litellm.RateLimitError,
                litellm.ServiceUnavailableError,
                litellm.InternalServerError,
                litellm.APIConnectionError,
                litellm.Timeout,
            ) as e:
                last_error = e

            if attempt < max_retries - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1,
                    max_retries,
                    self._config.display_name,
                    _short_error_reason(last_error),
                    backoff,
                )
                await asyncio.sleep(backoff)

        if isinstance(last_error, TimeoutError):
            raise last_error
        raise RuntimeError(
            f"Model call to {self._config.model} failed after {max_retries} "
            f"attempts: {last_error}"
        ) from last_error

    # ── Response handling ─────────────────────────────────────

    def _extract_content(self, response: litellm.ModelResponse) -> str:
        """Extract text content from a LiteLLM response."""
        if not response.choices:
            return ""
        message = response.choices[0].message
        return (message.content or "") if message else ""

    def _build_token_usage(self, response: litellm.ModelResponse) -> TokenUsage:
        """Build TokenUsage from the LiteLLM response usage data."""
        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", 0) or 0
        completion_tokens = getattr(usage, "completion_tokens", 0) or 0
        cost = self.calculate_cost(prompt_tokens, completion_tokens)

        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost=cost,
        )

    def _build_result(self, content: str, response: litellm.ModelResponse) -> ProviderResult:
        return ProviderResult(
            content=content,
            model=self._config.model,
            tier=self._tier.value,
            token_usage=self._build_token_usage(response),
        )


class ReasoningProvider(LiteLLMProvider):
    """Provider for the reasoning tier.

    Asks the model for a JSON object carrying ordered reasoning steps and a
    final answer. The returned ProviderResult always has a non-null
    ``reasoning``: the parsed steps when the model complied, otherwise
    steps split out of the free text.
    """

    system_template = "reasoning"

    def _build_completion_kwargs(
        self,
        messages: list[dict[str, str]],
        context: TaskContext,
    ) -> dict[str, Any]:
        kwargs = super()._build_completion_kwargs(messages, context)
        if self._config.supports_structured:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    def _build_result(self, content: str, response: litellm.ModelResponse) -> ProviderResult:
        answer, steps = parse_reasoning_response(content)
        return ProviderResult(
            content=answer,
            model=self._config.model,
            tier=self._tier.value,
            reasoning=steps,
            token_usage=self._build_token_usage(response),
            display_format="reasoning",
        )


def parse_reasoning_response(content: str) -> tuple[str, list[str]]:
    """Split a reasoning-tier response into (answer, steps).

    Accepts ``{"reasoning"|"steps": [...] | "...", "answer"|"content": "..."}``,
    bare or inside a fenced JSON block. Anything else is treated as free
    text: step-like lines become the steps (every non-blank line when none
    look like steps) and the whole text is the answer.

    Returns:
        Tuple of the answer text and a non-empty list of steps.
    """
    data = _load_json_object(content)
    if data is not None:
        raw_steps = data.get("reasoning", data.get("steps"))
        answer = data.get("answer", data.get("content"))
        if isinstance(raw_steps, str):
            raw_steps = [line for line in raw_steps.splitlines() if line.strip()]
        if isinstance(raw_steps, list) and raw_steps and isinstance(answer, str):
            return answer, [str(step).strip() for step in raw_steps]
        logger.debug("Reasoning JSON missing steps or answer, using raw text")

    lines = [line.strip() for line in content.splitlines() if line.strip()]
    steps = [_STEP_LINE_RE.sub("", line) for line in lines if _STEP_LINE_RE.match(line)]
    return content.strip(), steps or lines or [content.strip()]


def _load_json_object(content: str) -> dict[str, Any] | None:
    candidates = [content]
    match = _JSON_BLOCK_RE.search(content)
    if match:
        candidates.append(match.group(1))
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None
