"""xAI research oracle client - web/X search backed probability estimate for a market question."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

ORACLE_API_URL = "https://api.x.ai/v1/responses"
ORACLE_MODEL = "grok-4-1-fast"

PROMPT_TEMPLATE = (
    "Search X (Twitter) for recent posts, news, and discussion about the following "
    "prediction market question. Focus on finding concrete evidence: official announcements, "
    "credible reporting, expert opinions, and sentiment from informed accounts.\n\n"
    "Based ONLY on what you find on X, estimate the probability (0-100) that this "
    "resolves YES. If you find little or no relevant information on X, say so and "
    "give a low-confidence estimate near 50.\n\n"
    "If this market is subjective, personal, not objectively resolvable, "
    "or depends on information you cannot access (e.g. private metrics, personal decisions, "
    "inside knowledge), set action to \"skip\".\n\n"
    'Question: "{question}"{description_section}'
)

PREDICTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "action": {
            "type": "string",
            "enum": ["predict", "skip"],
            "description": "Whether to predict or skip this market",
        },
        "probability": {
            "type": "number",
            "description": "Predicted probability 0-100 that the market resolves YES. Required when action is predict.",
        },
        "reasoning": {
            "type": "string",
            "description": "One sentence summary of key evidence or why the market was skipped",
        },
    },
    "required": ["action", "reasoning"],
    "additionalProperties": False,
}


class OracleError(Exception):
    """Oracle transport failure, non-2xx response, or in-payload error message."""


def build_prompt(question: str, description: str | None = None) -> str:
    """Research prompt; the resolution criteria are appended only when present."""
    section = ""
    if description:
        section = f'\n\nResolution criteria / description:\n"{description}"'
    return PROMPT_TEMPLATE.format(question=question, description_section=section)


def extract_text(payload: dict[str, Any]) -> str:
    """Concatenate output_text blocks of message items in a Responses API payload."""
    parts: list[str] = []
    for item in payload.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for block in item.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "output_text" and block.get("text"):
                parts.append(block["text"])
    return "".join(parts)


class OracleClient:
    """Research oracle. `research` returns the raw text answer; parsing lives in edgewatch.oracle."""

    def __init__(
        self,
        api_key: str,
        api_url: str = ORACLE_API_URL,
        model: str = ORACLE_MODEL,
        timeout: float = 120.0,
        http: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._http = http or httpx.AsyncClient()

    def build_request(self, question: str, description: str | None = None) -> dict[str, Any]:
        return {
            "model": self.model,
            "input": [{"role": "user", "content": build_prompt(question, description)}],
            "tools": [{"type": "x_search"}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "market_prediction",
                    "schema": PREDICTION_SCHEMA,
                }
            },
        }

    async def research(self, question: str, description: str | None = None) -> str:
        """Ask the oracle about one market question. Raises OracleError on any failure."""
        try:
            resp = await self._http.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=self.build_request(question, description),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise OracleError(f"xAI request failed: {e!r}") from e
        if not resp.is_success:
            raise OracleError(f"xAI API error {resp.status_code}: {resp.text}")
        try:
            payload = resp.json()
        except ValueError as e:
            raise OracleError(f"xAI returned invalid JSON: {e}") from e
        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise OracleError(f"xAI error: {message}")
        text = extract_text(payload if isinstance(payload, dict) else {})
        log.debug("oracle_response", chars=len(text))
        return text

    async def aclose(self) -> None:
        await self._http.aclose()
