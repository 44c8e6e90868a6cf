"""
Document repository interface used by agent steps for retrieval context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class DocRepoResult:
    """
    One retrieved passage.

    Attributes:
        content: Passage text.
        score: Relevance score, higher is better.
        metadata: Source information (title, url, path...).
    """

    content: str
    score: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


class DocRepo(Protocol):
    """Protocol implemented by document retrieval services."""

    async def query(self, repo_id: str, text: str) -> list[DocRepoResult]:
        """Return passages of `repo_id` relevant to `text`, best first."""
        ...


class InMemoryDocRepo:
    """
    Keyword-overlap repository for tests and local demos.

    Documents are ranked by the number of query words they contain.
    """

    def __init__(self, documents: dict[str, list[str]] | None = None, *, limit: int = 5) -> None:
        self._documents: dict[str, list[str]] = {
            repo_id: list(docs) for repo_id, docs in (documents or {}).items()
        }
        self._limit = limit

    def add(self, repo_id: str, content: str) -> None:
        self._documents.setdefault(repo_id, []).append(content)

    async def query(self, repo_id: str, text: str) -> list[DocRepoResult]:
        words = {word for word in text.lower().split() if word}
        scored: list[DocRepoResult] = []
        for content in self._documents.get(repo_id, []):
            lowered = content.lower()
            score = sum(1 for word in words if word in lowered)
            if score:
                scored.append(DocRepoResult(content=content, score=float(score)))
        scored.sort(key=lambda result: result.score, reverse=True)
        return scored[: self._limit]


def format_context(results: list[DocRepoResult]) -> str:
    """Join retrieved passages into one context block."""
    return "\n\n".join(result.content for result in results if result.content)
