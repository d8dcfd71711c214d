"""
Triage External Service Adapters
================================

Adapters for external services (completion service, document search)
used by the triage module.

Implements the interfaces defined in the application layer using concrete
external service implementations.
"""

from typing import List

from legal_triage.infrastructure.llm import ILLMClient
from legal_triage.infrastructure.search import HTTPDocumentSearchClient
from legal_triage.triage.application.services import ICompletionService, IDocumentSearch
from legal_triage.triage.domain import DocumentHit


class CompletionServiceAdapter(ICompletionService):
    """
    Adapter that wraps the infrastructure LLM client.

    Implements the application layer ICompletionService interface by
    prepending the system prompt to the chat messages.
    """

    def __init__(self, llm_client: ILLMClient):
        self._client = llm_client

    async def complete(
        self,
        system_prompt: str,
        messages: List[dict],
        temperature: float,
        max_tokens: int,
        operation: str = "completion"
    ) -> str:
        """Generate a completion and return its text."""
        result = await self._client.chat_completion(
            [{"role": "system", "content": system_prompt}, *messages],
            temperature=temperature,
            max_tokens=max_tokens,
            operation=operation
        )
        return result.content


class DocumentSearchAdapter(IDocumentSearch):
    """
    Adapter that wraps the HTTP document search client.

    Converts raw search hits into DocumentHit entities.
    """

    def __init__(self, client: HTTPDocumentSearchClient):
        self._client = client

    async def search(self, query: str, top_k: int) -> List[DocumentHit]:
        hits = await self._client.search(query, top_k=top_k)
        return [
            DocumentHit(
                title=hit["title"],
                category=hit["category"],
                content=hit["content"],
                score=hit["score"],
            )
            for hit in hits
        ]

    async def close(self) -> None:
        await self._client.close()


class EmptyDocumentSearch(IDocumentSearch):
    """Used when no search service is configured: finds nothing."""

    async def search(self, query: str, top_k: int) -> List[DocumentHit]:
        return []
