# backend/utils/sanity_client.py
import httpx
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config import settings
from queries.products import PRODUCTS_BY_IDS_QUERY
from schemas.product import ProductSnapshot

logger = logging.getLogger(__name__)


class CMSError(Exception):
    """Raised when the Sanity API cannot be reached or rejects a request."""


class SanityClient:
    def __init__(self, project_id=None, dataset=None, api_version=None, token=None, transport=None):
        # Initialize configuration from settings unless overridden
        self.project_id = project_id or settings.SANITY_PROJECT_ID
        self.dataset = dataset or settings.SANITY_DATASET
        self.api_version = api_version or settings.SANITY_API_VERSION
        self.token = token if token is not None else settings.SANITY_API_TOKEN
        self.api_url = f"https://{self.project_id}.api.sanity.io/v{self.api_version}"
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(self, url: str, payload: dict, params: Optional[dict] = None) -> dict:
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload, params=params, headers=self._headers())
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                # Log detailed error information before re-raising
                try:
                    resp_text = e.response.text if hasattr(e, 'response') and e.response is not None else str(e)
                except Exception:
                    resp_text = str(e)
                logger.error(f"Sanity request error ({url}): {resp_text}")
                raise CMSError(resp_text) from e

            # Proxies and maintenance pages can answer 200 with HTML
            try:
                data = response.json()
            except ValueError as e:
                logger.error(f"Sanity returned a non-JSON body ({url}): {response.text[:200]}")
                raise CMSError("Invalid response from Sanity") from e
            if not isinstance(data, dict):
                logger.error(f"Sanity returned an unexpected payload ({url}): {type(data).__name__}")
                raise CMSError("Invalid response from Sanity")
            return data

    async def fetch(self, query: str, params: Optional[Dict[str, Any]] = None) -> Any:
        # Run a GROQ query; params are bound as $name inside the query
        url = f"{self.api_url}/data/query/{self.dataset}"
        data = await self._post(url, {"query": query, "params": params or {}})
        return data.get("result")

    async def mutate(self, mutations: List[dict]) -> List[dict]:
        # Apply document mutations and return the per-mutation results with ids
        url = f"{self.api_url}/data/mutate/{self.dataset}"
        data = await self._post(url, {"mutations": mutations}, params={"returnIds": "true"})
        return data.get("results") or []

    async def fetch_products_by_ids(self, ids: List[str]) -> List[ProductSnapshot]:
        # One batched query for all ids; unknown ids are simply absent from the result
        if not ids:
            return []
        rows = await self.fetch(PRODUCTS_BY_IDS_QUERY, {"ids": list(ids)}) or []
        try:
            return [ProductSnapshot.model_validate(row) for row in rows]
        except ValidationError as e:
            logger.error(f"Malformed product data from Sanity: {e}")
            raise CMSError("Malformed product data") from e


sanity_client = SanityClient()


def get_sanity_client() -> SanityClient:
    return sanity_client
