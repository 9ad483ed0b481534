"""
Optional LLM classifier backed by a local Ollama server.

Every call is bounded by a hard timeout. Connection errors are retried
within the same time budget; anything else makes the classifier
unavailable for that call and the chain falls back to rules.
"""

import time
from typing import Optional, Sequence, Tuple

import httpx
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from ..config import Settings, get_settings
from ..exceptions import ClassificationUnavailable
from ..models import Family, Transaction
from .base import CategorizationResult
from .rules import categories_for

logger = structlog.get_logger()

LLM_CONFIDENCE = 0.75

PROMPT_TEMPLATE = """Classify this bank transaction into exactly one category.

Transaction: {text}
Categories: {categories}

Answer with the category name only."""


class OllamaClassifier:
    """Client for the Ollama /api/generate endpoint."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.classifier_url.rstrip("/")
        self.model = self.settings.classifier_model
        self.timeout = self.settings.classifier_timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout)
        return self._client

    def close(self):
        if self._client and not self._client.is_closed:
            self._client.close()

    def _generate(self, prompt: str) -> str:
        client = self._get_client()
        deadline = time.monotonic() + self.timeout
        retryer = Retrying(
            retry=retry_if_exception_type(httpx.ConnectError),
            stop=stop_after_attempt(2) | stop_after_delay(self.timeout),
            wait=wait_fixed(0.1),
            reraise=True,
        )

        try:
            for attempt in retryer:
                with attempt:
                    # Each attempt only gets what is left of the overall timeout
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise ClassificationUnavailable("Classifier timeout")
                    response = client.post(
                        "/api/generate",
                        json={"model": self.model, "prompt": prompt, "stream": False},
                        timeout=remaining,
                    )
        except httpx.TimeoutException:
            raise ClassificationUnavailable("Classifier timeout")
        except httpx.RequestError as e:
            raise ClassificationUnavailable(f"Classifier request error: {str(e)}")

        if response.status_code >= 400:
            raise ClassificationUnavailable(
                f"Classifier error: {response.status_code}",
                details=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ClassificationUnavailable("Classifier returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise ClassificationUnavailable(
                "Classifier returned an unexpected payload",
                details={"type": type(payload).__name__},
            )
        return str(payload.get("response", ""))

    def classify(self, text: str, categories: Sequence[str]) -> str:
        """Return one of categories or raise ClassificationUnavailable."""
        answer = self._generate(
            PROMPT_TEMPLATE.format(text=text, categories=", ".join(categories))
        )
        normalized = answer.strip().lower().strip(".\"' ")

        for category in categories:
            if normalized == category.lower():
                return category
        for category in categories:
            if category.lower() in normalized:
                return category

        raise ClassificationUnavailable(
            "Classifier answer outside category set",
            details={"answer": answer[:200]},
        )

    def try_classify(self, text: str, categories: Sequence[str]) -> Tuple[Optional[str], bool]:
        try:
            return self.classify(text, categories), True
        except ClassificationUnavailable as e:
            logger.warning("Classifier unavailable", error=e.message)
            return None, False


class LLMCategorizer:
    """Strategy adapter around a text classifier."""

    name = "llm"

    def __init__(self, classifier: OllamaClassifier):
        self.classifier = classifier

    def categorize(self, transaction: Transaction, family: Family) -> Optional[CategorizationResult]:
        category, ok = self.classifier.try_classify(
            transaction.description, categories_for(family)
        )
        if not ok:
            return None
        return CategorizationResult(category, LLM_CONFIDENCE, self.name)
