"""
Language-model chat client

Sends a single user message to the Anthropic Messages API over requests and
returns the text of the first content block. One request per call, no
retries.
"""

from typing import Any, Dict, Optional

import requests

from ..config.settings import ChatConfig
from ..utils.exceptions import ChatAPIError, ConfigError
from ..utils.logger import get_logger


class ChatClient:
    """
    Minimal Messages API client

    Attributes:
        config: Chat section of the settings (key, model, endpoint)
        timeout: Request timeout in seconds
    """

    def __init__(self, config: ChatConfig, timeout: int = 30, session: Optional[requests.Session] = None):
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = get_logger(__name__)

    def _headers(self) -> Dict[str, str]:
        return {
            'x-api-key': self.config.api_key,
            'anthropic-version': self.config.api_version,
            'Content-Type': 'application/json',
        }

    def send_message(self, message: str) -> str:
        """
        Send one user message and return the model's reply text

        Args:
            message: Complete prompt text

        Returns:
            Text of the first content block

        Raises:
            ConfigError: If no API key is configured
            ChatAPIError: On transport errors, non-200 responses or an
                unexpected response shape
        """
        if not self.config.api_key:
            raise ConfigError("ANTHROPIC_API_KEY is not configured")

        payload = {
            'model': self.config.model,
            'max_tokens': self.config.max_tokens,
            'messages': [{'role': 'user', 'content': message}],
        }

        try:
            response = self.session.post(
                self.config.api_url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ChatAPIError(f"Chat request failed: {e}") from e

        if response.status_code != 200:
            raise ChatAPIError(
                f"Chat API error: {response.status_code} - {response.text}",
                http_status=response.status_code
            )

        try:
            data: Dict[str, Any] = response.json()
            text = data['content'][0]['text']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ChatAPIError(f"Unexpected chat response: {e}") from e

        self.logger.debug(f"Chat reply received ({len(text)} characters)")
        return text
