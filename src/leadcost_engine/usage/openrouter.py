"""
OpenRouter client with cost tracking.

Wraps chat completions, looks up the billed cost of each generation and
hands the result to the CostEngine so every metered call lands in the
usage ledger.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

import httpx

from leadcost_engine.common.config import LeadCostSettings
from leadcost_engine.common.exceptions import UpstreamError
from leadcost_engine.costs.currency import to_decimal
from leadcost_engine.usage.models import UsagePurpose
from leadcost_engine.usage.pricing import estimate_cost_usd

if TYPE_CHECKING:
    from leadcost_engine.engine import CostEngine

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """Async OpenRouter client; retries 429/5xx/timeouts with exponential backoff."""

    def __init__(
        self,
        settings: LeadCostSettings,
        engine: Optional["CostEngine"] = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not settings.openrouter_api_key:
            raise ValueError("LEADCOST_OPENROUTER_API_KEY is required for the OpenRouter client")
        self.settings = settings
        self.engine = engine
        self.max_retries = settings.openrouter_max_retries
        self.backoff_base = settings.openrouter_backoff_base
        self._sleep = sleep
        self._http = httpx.AsyncClient(
            base_url=settings.openrouter_base_url.rstrip("/"),
            timeout=settings.openrouter_timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {settings.openrouter_api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": settings.app_url,
                "X-Title": "Lead Gen OS",
            },
        )

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Central HTTP method with bounded retry.

        Retries on:
        - httpx.TimeoutException and transport errors
        - 5xx status codes
        - 429 (rate limit)

        Other 4xx responses fail immediately.
        """
        last_error = ""
        last_status: int | None = None
        for attempt in range(self.max_retries):
            try:
                resp = await self._http.request(method, path, **kwargs)
                last_status = resp.status_code
                if resp.status_code >= 500 or resp.status_code == 429:
                    last_error = f"HTTP {resp.status_code}"
                elif resp.status_code >= 400:
                    raise UpstreamError(
                        f"OpenRouter {method.upper()} {path} rejected: HTTP {resp.status_code}",
                        status_code=resp.status_code,
                    )
                else:
                    try:
                        return resp.json()
                    except json.JSONDecodeError:
                        raise UpstreamError(
                            f"OpenRouter {method.upper()} {path} returned invalid JSON",
                            status_code=resp.status_code,
                        ) from None
            except httpx.TimeoutException:
                last_error = "timeout"
            except httpx.TransportError as e:
                last_error = str(e) or type(e).__name__

            if attempt < self.max_retries - 1:
                delay = self.backoff_base * (2 ** attempt)
                logger.info(
                    "Retrying OpenRouter request after %.2fs (attempt %d/%d): %s",
                    delay, attempt + 1, self.max_retries, last_error,
                )
                await self._sleep(delay)

        raise UpstreamError(
            f"All {self.max_retries} OpenRouter attempts failed: {last_error}",
            status_code=last_status,
        )

    async def get_generation_cost(self, generation_id: str) -> Optional[dict[str, Any]]:
        """Billed cost and native token counts for a generation, or None."""
        try:
            data = await self._request("get", "/generation", params={"id": generation_id})
        except UpstreamError as e:
            logger.warning("Generation cost lookup failed for %s: %s", generation_id, e.message)
            return None
        return data.get("data")

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        purpose: UsagePurpose | str = UsagePurpose.OTHER,
        campaign_id: str | None = None,
        email_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a chat completion and record what it cost."""
        model = model or self.settings.openrouter_default_model
        request_id = str(uuid.uuid4())
        body = {
            "model": model,
            "messages": messages,
            "stream": False,
            "metadata": {
                **(metadata or {}),
                "request_id": request_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }
        response = await self._request("post", "/chat/completions", json=body)

        generation_id = response.get("id")
        if not generation_id:
            raise UpstreamError("OpenRouter response carried no generation id")

        if self.engine is not None:
            await self._track(response, model, purpose, campaign_id, email_id, metadata)
        return response

    async def _track(
        self,
        response: dict[str, Any],
        model: str,
        purpose: UsagePurpose | str,
        campaign_id: str | None,
        email_id: str | None,
        metadata: dict[str, Any] | None,
    ) -> None:
        generation_id = response["id"]
        usage = response.get("usage") or {}
        info = await self.get_generation_cost(generation_id) or {}

        prompt_tokens = usage.get("prompt_tokens") or info.get("native_tokens_prompt") or 0
        completion_tokens = usage.get("completion_tokens") or info.get("native_tokens_completion") or 0

        if info.get("total_cost") is not None:
            cost: Decimal = to_decimal(info["total_cost"])
        else:
            cost = estimate_cost_usd(model, prompt_tokens, completion_tokens)

        await self.engine.record_usage(
            generation_id=generation_id,
            model=response.get("model") or model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=cost,
            campaign_id=campaign_id,
            email_id=email_id,
            purpose=purpose,
            metadata=metadata,
        )
