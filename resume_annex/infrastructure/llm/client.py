"""
Vertex AI REST client for LLM interactions.
"""
import json
import logging
from typing import Optional, Dict, Any, List, Sequence, Mapping

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import (
    ConfigurationError, VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS
)

logger = logging.getLogger("llm_client")

_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

# Dialogue roles -> Vertex content roles
_ROLE_MAP = {"user": "user", "assistant": "model"}


class ServiceUnavailable(Exception):
    """The generation service failed; no local state was changed, so retrying is safe."""


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: Optional[str],
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: float = LLM_TIMEOUT,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS,
                 session: Optional[requests.Session] = None):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self._token = None
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens
        self._http = session or requests.Session()

    @property
    def model_resource(self) -> str:
        return f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        try:
            if self.credentials_json:
                creds = service_account.Credentials.from_service_account_file(
                    self.credentials_json,
                    scopes=_SCOPES,
                )
            else:
                creds, _ = google.auth.default(scopes=_SCOPES)
        except (google.auth.exceptions.DefaultCredentialsError, OSError, ValueError) as e:
            raise ConfigurationError(f"Generation-service credentials unavailable: {e}") from e

        auth_req = google.auth.transport.requests.Request()
        try:
            creds.refresh(auth_req)
        except google.auth.exceptions.RefreshError as e:
            raise ConfigurationError(f"Generation-service credentials rejected: {e}") from e
        except google.auth.exceptions.TransportError as e:
            raise ServiceUnavailable(f"Could not reach the token endpoint: {e}") from e
        self._token = creds.token

    def _ensure_token(self):
        """Ensure we have a valid token, refreshing if needed."""
        if not self.project:
            raise ConfigurationError("GOOGLE_CLOUD_PROJECT is not set; AI endpoints are disabled")
        if not self._token:
            self._refresh_token()

    @staticmethod
    def build_request_body(messages: Sequence[Mapping[str, str]],
                           temperature: float,
                           max_output_tokens: int) -> Dict[str, Any]:
        """
        Convert an ordered list of {role, content} messages into a generateContent body.

        System messages become systemInstruction parts (in order); user and assistant
        turns become contents in chronological order.
        """
        system_parts: List[Dict[str, str]] = []
        contents: List[Dict[str, Any]] = []

        for message in messages:
            role = message.get("role")
            text = message.get("content") or ""
            if role == "system":
                system_parts.append({"text": text})
            elif role in _ROLE_MAP:
                contents.append({"role": _ROLE_MAP[role], "parts": [{"text": text}]})
            else:
                raise ValueError(f"Unsupported message role: {role!r}")

        if not contents:
            # generateContent requires at least one content entry
            contents.append({"role": "user", "parts": [{"text": "Begin."}]})

        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }
        if system_parts:
            body["systemInstruction"] = {"parts": system_parts}
        return body

    def generate(self,
                 messages: Sequence[Mapping[str, str]],
                 temperature: float = 0.0,
                 max_output_tokens: Optional[int] = None) -> str:
        """
        Generate a reply for an ordered conversation.

        Args:
            messages: Ordered {role, content} dicts; role is system, user or assistant
            temperature: Sampling temperature
            max_output_tokens: Output cap, defaults to the client's setting

        Returns:
            Reply text, stripped

        Raises:
            ConfigurationError: If no project or usable credentials are configured
            ServiceUnavailable: On timeout, network failure, error status or empty reply
        """
        self._ensure_token()
        url = f"{self.base_url}/{self.model_resource}:generateContent"
        body = self.build_request_body(
            messages, temperature, max_output_tokens or self.max_output_tokens
        )

        resp = self._post(url, body)
        if resp.status_code == 401:
            # Cached token expired; refresh once and retry
            logger.info("Vertex token rejected, refreshing")
            self._refresh_token()
            resp = self._post(url, body)

        if resp.status_code >= 400:
            logger.error("Vertex REST error %s: %s", resp.status_code, resp.text[:500])
            raise ServiceUnavailable(f"Vertex REST error {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ServiceUnavailable("Vertex returned a non-JSON response") from e

        text = self._parse_response_text(payload)
        if text is None or not text.strip():
            logger.warning("Vertex returned no text: %s", json.dumps(payload)[:500])
            raise ServiceUnavailable("Vertex returned an empty reply")
        return text.strip()

    def generate_content(self, prompt_text: str, temperature: float = 0.0, **kwargs) -> str:
        """Generate content for a single user prompt."""
        return self.generate([{"role": "user", "content": prompt_text}], temperature=temperature, **kwargs)

    def _post(self, url: str, body: Dict[str, Any]) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }
        try:
            return self._http.post(url, headers=headers, json=body, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error("Vertex request timed out after %ss", self.timeout)
            raise ServiceUnavailable("Generation request timed out") from e
        except requests.RequestException as e:
            logger.error("Vertex request failed: %s", e)
            raise ServiceUnavailable("Generation request failed") from e

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> Optional[str]:
        """
        Parse response JSON to extract text content.
        Tries Vertex schema first, then falls back to alternatives.
        """
        # Vertex schema: candidates[0].content.parts[*].text
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [
                p["text"] for p in parts
                if isinstance(p, dict) and isinstance(p.get("text"), str)
            ]
            if texts:
                return "".join(texts)
            # Some responses put text directly in content
            if isinstance(content.get("text"), str):
                return content["text"]

        # Direct text fallback
        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        return None
