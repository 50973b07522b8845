"""
Email summaries generated by a local Ollama runtime
"""
import logging
import os
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "Summarize the following email in a few short bullet points. "
    "Keep names, dates, amounts and requested actions.\n\n{CONTENT}"
)


class SummaryError(Exception):
    """Raised when the LLM runtime cannot produce a summary"""


class OllamaSummarizer:
    """Calls the Ollama generate endpoint to summarize email bodies"""

    def __init__(self, base_url: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[float] = None, prompt: str = DEFAULT_PROMPT,
                 client: Optional[httpx.Client] = None):
        self.base_url = (base_url or os.getenv('OLLAMA_URL', 'http://localhost:11434')).rstrip('/')
        self.model = model or os.getenv('OLLAMA_MODEL', 'llama3.2:3b')
        self.prompt = prompt
        timeout = timeout if timeout is not None else float(os.getenv('OLLAMA_TIMEOUT', '120'))
        self._client = client or httpx.Client(timeout=timeout)

    def summarize(self, body: str) -> str:
        """Generate a summary of an email body"""
        payload = {
            'model': self.model,
            'prompt': self.prompt.replace('{CONTENT}', body or ''),
            'stream': False,
        }
        try:
            response = self._client.post(f"{self.base_url}/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.ConnectError as e:
            raise SummaryError(
                f"Ollama service is not running. Please start Ollama and ensure the {self.model} model is available."
            ) from e
        except httpx.HTTPStatusError as e:
            raise SummaryError(f"HTTP {e.response.status_code}: {e.response.reason_phrase}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise SummaryError(f"Ollama request failed: {e}") from e

        summary = data.get('response') if isinstance(data, dict) else None
        if not summary:
            raise SummaryError('Invalid response from Ollama')
        logger.debug(f"Generated summary with {self.model} ({len(summary)} chars)")
        return summary

    def close(self) -> None:
        self._client.close()
