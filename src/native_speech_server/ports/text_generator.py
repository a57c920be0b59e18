"""Port interface for the chat reply generator."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGeneratorPort(Protocol):
    """Protocol for an external text-generation collaborator."""

    async def generate(self, message: str) -> str:
        """Return a reply to ``message``.

        Raises:
            UpstreamGenerationError: If no reply could be produced.

        """
        ...
