from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import requests


logger = logging.getLogger(__name__)

# Body returned by the gateway in front of Ollama when the upstream times out.
RETRYABLE_BODY = "error code: 524"


class BackendError(RuntimeError):
    pass


@dataclass
class LLMStatus:
    available: bool
    model: str
    reason: str = ""


class OllamaClient:
    def __init__(self, model: str, base_url: str = "http://127.0.0.1:11434", timeout: int = 300) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._resolved_model = model

    def status(self) -> LLMStatus:
        """Check the server and pick the installed model `generate` will use."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            response.raise_for_status()
            installed = response.json().get("models", [])
        except (requests.RequestException, ValueError, AttributeError) as exc:
            logger.warning("Ollama at %s is unreachable: %s", self.base_url, exc)
            return LLMStatus(available=False, model=self.model, reason=str(exc))

        chosen = self._choose_model([str(item.get("name")) for item in installed if item.get("name")])
        if not chosen:
            return LLMStatus(available=False, model=self.model, reason="No local models installed in Ollama")

        self._resolved_model = chosen
        reason = "" if chosen == self.model else f"Requested model '{self.model}' not found; using '{chosen}'"
        return LLMStatus(available=True, model=chosen, reason=reason)

    def generate(self, prompt: str) -> str:
        return self._generate(prompt, retry=True)

    def pull_model(self) -> None:
        payload = {"name": self.model, "stream": False}
        try:
            response = requests.post(
                f"{self.base_url}/api/pull",
                data=json.dumps(payload),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise BackendError(f"Model pull failed: {exc}") from exc

        logger.info("Pull %s: %s", self.model, data)
        if data.get("status") != "success":
            raise BackendError("Request did not return success status")

    def _generate(self, prompt: str, retry: bool) -> str:
        payload = {
            "model": self._resolved_model,
            "prompt": prompt,
            "raw": True,
            "stream": False,
        }
        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                data=json.dumps(payload),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendError(f"Ollama request failed: {exc}") from exc

        body = response.text
        try:
            data = json.loads(body)
        except ValueError as exc:
            logger.warning("Could not decode generate response: %r", body[:500])
            if retry and body.strip() == RETRYABLE_BODY:
                logger.warning("Gateway timeout from backend; re-submitting prompt once")
                return self._generate(prompt, retry=False)
            raise BackendError(f"Invalid response from Ollama (HTTP {response.status_code})") from exc

        if not isinstance(data, dict):
            raise BackendError("Unexpected response shape from Ollama")
        if not response.ok:
            raise BackendError(f"API Error code: {response.status_code}: {data.get('error', '')}")
        return str(data.get("response") or "")

    def _choose_model(self, names: list[str]) -> str:
        if not names:
            return ""

        if self.model in names:
            return self.model

        requested_base = self.model.split(":", 1)[0]
        for name in names:
            if name.split(":", 1)[0] == requested_base:
                return name

        return names[0]
