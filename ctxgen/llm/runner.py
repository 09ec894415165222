"""Adapters around chat-completion runtimes (OpenAI-compatible HTTP / Ollama CLI)."""

from __future__ import annotations

import json
import os
import socket
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import ProviderError

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()


@dataclass
class LLMRequest:
    """Represents a single inference request."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    executable: Optional[str]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]
    json_mode: bool = False


class LLMRunner:
    """Executes prompts against the configured model runtime."""

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "http://localhost:11434/v1"
    ENV_MODEL_KEYS = ("CTXGEN_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("CTXGEN_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("CTXGEN_LLM_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        executable: str = "ollama",
        temperature: Optional[float] = 0.0,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 60.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.executable = executable
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        if runner is not None:
            self._runner = runner
        else:
            self._runner = self._http_runner if self.base_url else self._cli_runner

    @property
    def provider(self) -> str:
        if self._runner is self._http_runner:
            return "http"
        if self._runner is self._cli_runner:
            return "ollama"
        return "custom"

    def run(self, prompt: str, *, system: str | None = None, json_mode: bool = False) -> str:
        """Send the prompt to the configured model and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            executable=self.executable,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            json_mode=json_mode,
        )
        return self._runner(request)

    @staticmethod
    def _cli_runner(request: LLMRequest) -> str:
        args = [request.executable or "ollama", "run", request.model]
        if request.json_mode:
            args.extend(["--format", "json"])
        prompt = f"{request.system}\n\n{request.prompt}" if request.system else request.prompt
        args.append(prompt)
        try:
            completed = subprocess.run(
                args,
                check=True,
                capture_output=True,
                text=True,
                timeout=request.request_timeout,
            )
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise ProviderError(
                f"Unable to locate '{request.executable}'. Install Ollama or configure an HTTP base_url.",
                ProviderError.API_ERROR,
                "ollama",
            ) from exc
        except subprocess.TimeoutExpired as exc:  # pragma: no cover - depends on environment
            raise ProviderError(
                f"LLM runner timed out after {request.request_timeout}s",
                ProviderError.TIMEOUT_ERROR,
                "ollama",
            ) from exc
        except subprocess.CalledProcessError as exc:  # pragma: no cover - depends on environment
            raise ProviderError(
                f"LLM runner failed with exit code {exc.returncode}: {exc.stderr.strip()}",
                ProviderError.API_ERROR,
                "ollama",
                {"returncode": exc.returncode},
            ) from exc
        output = completed.stdout.strip()
        if not output:
            raise ProviderError("LLM runner returned an empty response", ProviderError.EMPTY_RESPONSE, "ollama")
        return output

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise ProviderError("HTTP runner requires a base_url to be configured.", ProviderError.API_ERROR, "http")
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 60.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or str(exc.reason)
            raise ProviderError(
                f"LLM HTTP runner failed with status {exc.code}: {message}",
                ProviderError.API_ERROR,
                "http",
                {"status": exc.code},
            ) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise ProviderError(
                f"LLM HTTP runner timed out after {timeout}s", ProviderError.TIMEOUT_ERROR, "http"
            ) from exc
        except URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise ProviderError(
                    f"LLM HTTP runner timed out after {timeout}s", ProviderError.TIMEOUT_ERROR, "http"
                ) from exc
            raise ProviderError(f"LLM HTTP runner failed: {exc.reason}", ProviderError.API_ERROR, "http") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise ProviderError("LLM HTTP runner returned invalid JSON", ProviderError.API_ERROR, "http") from exc

        content = LLMRunner._extract_content(response_payload)
        if not content:
            raise ProviderError("LLM HTTP runner returned an empty response", ProviderError.EMPTY_RESPONSE, "http")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: dict[str, object]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return str(base_url).rstrip("/")
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        return (env_value or self.DEFAULT_BASE_URL).rstrip("/")

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


__all__ = ["LLMRequest", "LLMRunner"]
