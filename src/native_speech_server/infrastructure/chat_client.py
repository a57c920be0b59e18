"""Chat reply generation through an OpenAI-compatible completions endpoint."""

import asyncio

import aiohttp
from loguru import logger

from native_speech_server.config import ServerConfig
from native_speech_server.domain.errors import UpstreamGenerationError


class ChatCompletionClient:
    """Generates spoken replies with a chat-completions HTTP API.

    Implements the TextGeneratorPort protocol.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        model: str,
        system_prompt: str,
        timeout: float = 30.0,
    ):
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._system_prompt = system_prompt
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ServerConfig) -> "ChatCompletionClient":
        return cls(
            api_url=config.chat_api_url,
            api_key=config.chat_api_key,
            model=config.chat_model,
            system_prompt=config.chat_system_prompt,
            timeout=config.chat_timeout,
        )

    async def generate(self, message: str) -> str:
        """Return the model's reply to ``message``.

        Raises:
            UpstreamGenerationError: If the client is not configured, the
                request fails, or the response has no reply text.

        """
        if not self._api_key:
            raise UpstreamGenerationError("Chat generation is not configured (set CHAT_API_KEY)")

        body = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": message},
            ],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        timeout = aiohttp.ClientTimeout(total=self._timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self._api_url, json=body, headers=headers) as resp:
                    if resp.status != 200:
                        detail = await resp.text()
                        raise UpstreamGenerationError(
                            f"Chat API returned {resp.status}: {detail[:200]}"
                        )
                    data = await resp.json()
        except aiohttp.ClientError as e:
            raise UpstreamGenerationError(f"Chat API request failed: {e}") from e
        except asyncio.TimeoutError:
            raise UpstreamGenerationError(
                f"Chat API did not respond within {self._timeout}s"
            ) from None

        try:
            reply = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamGenerationError(f"Unexpected chat API response: {data}") from None
        if not isinstance(reply, str) or not reply.strip():
            raise UpstreamGenerationError("Chat API returned an empty reply")

        logger.debug(f"Chat reply generated ({len(reply)} chars)")
        return reply.strip()
