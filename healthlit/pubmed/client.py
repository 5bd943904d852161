"""Async PubMed E-utilities client (ESearch/EFetch)."""

import logging
from typing import Any

import httpx

from ..retrying_client import RateLimitedClient, RetryPolicy
from ..settings import (
    PUBMED_API_KEY,
    PUBMED_BASE_URL,
    PUBMED_EMAIL,
    PUBMED_REQUESTS_PER_SECOND,
    PUBMED_REQUESTS_PER_SECOND_NO_KEY,
    PUBMED_TOOL,
)
from .parser import parse_id_list

logger = logging.getLogger(__name__)


class PubMedClient(RateLimitedClient):
    """E-utilities client. Every request carries db=pubmed and retmode=xml."""

    def __init__(
        self,
        api_key: str | None = None,
        email: str | None = None,
        tool: str | None = None,
        base_url: str = PUBMED_BASE_URL,
        requests_per_second: float | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or PUBMED_API_KEY
        email = email or PUBMED_EMAIL
        tool = tool or PUBMED_TOOL

        params: dict[str, Any] = {"db": "pubmed", "retmode": "xml"}
        if self.api_key:
            params["api_key"] = self.api_key
            logger.info("PubMed client initialized with API key")
        else:
            logger.warning("No PubMed API key provided - limited to 3 requests/second")
        if email:
            params["email"] = email
        if tool:
            params["tool"] = tool

        if requests_per_second is None:
            requests_per_second = (
                PUBMED_REQUESTS_PER_SECOND
                if self.api_key
                else PUBMED_REQUESTS_PER_SECOND_NO_KEY
            )

        super().__init__(
            base_url=base_url,
            name="PubMed",
            requests_per_second=requests_per_second,
            retry_policy=retry_policy,
            params=params,
            transport=transport,
        )

    async def search(
        self,
        term: str,
        retmax: int = 500,
        mindate: str = "2018",
        maxdate: str = "2023",
    ) -> list[str]:
        """Run ESearch and return matching PMIDs in relevance order."""
        params = {
            "term": term,
            "retmax": retmax,
            "sort": "relevance",
            "datetype": "pdat",
            "mindate": mindate,
            "maxdate": maxdate,
        }

        logger.info(f"Executing ESearch: {term}")
        response = await self.get("/esearch.fcgi", "PubMed search", params=params)
        pmids = parse_id_list(response.content)
        logger.info(f"ESearch returned {len(pmids)} PMIDs for '{term}'")
        return pmids

    async def fetch(self, pmids: list[str]) -> bytes:
        """Run EFetch for a batch of PMIDs and return the raw XML body."""
        params = {"id": ",".join(pmids), "rettype": "abstract"}

        logger.debug(f"Fetching {len(pmids)} PMIDs")
        response = await self.get("/efetch.fcgi", "PubMed fetch", params=params)
        return response.content
