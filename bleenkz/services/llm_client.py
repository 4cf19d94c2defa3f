import logging

import requests

from bleenkz import config

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """The model server is unconfigured, unreachable, or answered without text."""


class OllamaClient:
    def __init__(self, base_url=None, model=None, timeout=None):
        self.base_url = config.OLLAMA_URL if base_url is None else base_url
        self.model = model or config.OLLAMA_MODEL
        self.timeout = config.OLLAMA_TIMEOUT if timeout is None else timeout

    @property
    def configured(self):
        return bool(self.base_url)

    @property
    def endpoint(self):
        return str(self.base_url).rstrip("/") + "/api/generate"

    def generate(self, prompt, model=None, options=None):
        """
        Non-streaming generation through Ollama's /api/generate.
        Returns the stripped ``response`` text or raises LLMUnavailableError.
        """
        if not prompt:
            raise ValueError("Missing prompt")
        if not self.configured:
            raise LLMUnavailableError("OLLAMA_URL not configured")

        body = {
            "model": model or self.model,
            "prompt": prompt,
            "stream": False,
            "options": options or {"temperature": config.OLLAMA_TEMPERATURE},
        }
        try:
            resp = requests.post(self.endpoint, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise LLMUnavailableError(f"Ollama request failed: {e}") from e

        if not resp.ok:
            raise LLMUnavailableError(f"Ollama error {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMUnavailableError("Ollama returned invalid JSON") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not text:
            raise LLMUnavailableError("No response field from Ollama")
        return str(text).strip()


client = OllamaClient()
