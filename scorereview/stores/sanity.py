"""
Async Sanity client for the score review dataset.

Talks to the Sanity HTTP API directly with httpx: GROQ queries through
``/data/query/{dataset}`` and field patches through ``/data/mutate/{dataset}``.
"""

import json
import logging
from typing import Any, Optional

import httpx

from .config import SanityConfig
from .errors import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)

EDITION_PROJECTION = """*[_type == "edition" && _id == $editionId][0]{
  _id,
  _type,
  slug,
  editor,
  publisher,
  copyright,
  url,
  piece->{
    _id,
    _type,
    slug,
    piece_title,
    composer,
    year_of_composition,
    era,
    summary
  }
}"""

EDITION_SLUG_QUERY = '*[_type == "edition" && _id == $editionId][0]{slug}'


class SanityStore:
    """
    Async-safe Sanity client for queries and patch mutations.

    Example:
        async with SanityStore() as store:
            edition = await store.get_edition("edition-123")
            await store.patch("edition-123", {"status": "approved"})
    """

    def __init__(
        self,
        config: Optional[SanityConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: Project, dataset and token (defaults from environment)
            transport: Optional httpx transport, used to stub the API in tests
        """
        self.config = config or SanityConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy init)."""
        if self._client is None:
            self.config.validate()
            headers = {"Content-Type": "application/json"}
            if self.config.token:
                headers["Authorization"] = f"Bearer {self.config.token}"
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SanityStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def query(self, groq: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Run a GROQ query and return its ``result``.

        Parameters are passed as ``$name`` query arguments, JSON-encoded.

        Raises:
            StoreError: On transport errors or non-2xx responses
        """
        client = await self._get_client()
        query_params = {"query": groq}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)

        try:
            response = await client.get(
                f"/data/query/{self.config.dataset}", params=query_params
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"Sanity query failed with HTTP {e.response.status_code}",
                "sanity",
                {"status": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Sanity query failed: {e}", "sanity") from e

        return response.json().get("result")

    async def patch(self, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Set fields on a document and return the updated document.

        Raises:
            RecordNotFoundError: If the mutation returned no document
            StoreError: On transport errors or non-2xx responses
        """
        client = await self._get_client()
        mutations = {"mutations": [{"patch": {"id": doc_id, "set": fields}}]}

        try:
            response = await client.post(
                f"/data/mutate/{self.config.dataset}",
                params={"returnDocuments": "true"},
                json=mutations,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"Sanity patch failed with HTTP {e.response.status_code}",
                "sanity",
                {"status": e.response.status_code, "id": doc_id, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Sanity patch failed: {e}", "sanity", {"id": doc_id}) from e

        results = response.json().get("results") or []
        if not results or not results[0].get("document"):
            raise RecordNotFoundError("sanity", doc_id)

        logger.debug(f"Patched {doc_id}: {sorted(fields)}")
        return results[0]["document"]

    async def get_edition(self, edition_id: str) -> Optional[dict[str, Any]]:
        """Get an edition with its dereferenced piece, or None."""
        return await self.query(EDITION_PROJECTION, {"editionId": edition_id})

    async def get_edition_slug(self, edition_id: str) -> Optional[str]:
        """Get an edition's slug string, or None."""
        result = await self.query(EDITION_SLUG_QUERY, {"editionId": edition_id})
        if not result:
            return None
        return slug_value(result.get("slug"))


def slug_value(slug: Any) -> Optional[str]:
    """Return the string form of a Sanity slug field ({"current": ...} or str)."""
    if isinstance(slug, dict):
        return slug.get("current")
    return slug
