"""Firecrawl API integration for web scraping and search."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from .base import BaseTool, ToolResult

if TYPE_CHECKING:
    from ..context import ExecutionContext
    from ..contracts import ToolBinding


FIRECRAWL_BASE_URL = "https://api.firecrawl.dev/v1"
CREDENTIAL_KEY = "firecrawl_api_key"


class FirecrawlError(Exception):
    """The Firecrawl API rejected a request or reported a failure."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _scrape_options(options: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "formats": options.get("formats", ["markdown"]),
        "includeTags": options.get("include_tags"),
        "excludeTags": options.get("exclude_tags"),
        "onlyMainContent": options.get("only_main_content", True),
    }


class FirecrawlTool(BaseTool):
    """Scrape, crawl and search the web through the Firecrawl API."""

    name = "firecrawl"
    description = "Web scraping and search tool using Firecrawl API"
    actions = ("scrape_url", "crawl_website", "search_web", "extract_data")
    required_credentials = (CREDENTIAL_KEY,)

    def __init__(
        self,
        api_key: str,
        base_url: str = FIRECRAWL_BASE_URL,
        timeout: float = 30.0,
        poll_interval: float = 10.0,
        max_poll_attempts: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self._transport = transport

    @classmethod
    def from_binding(cls, binding: "ToolBinding", credentials: Dict[str, str]) -> "FirecrawlTool":
        key_name = binding.required_credentials[0] if binding.required_credentials else CREDENTIAL_KEY
        return cls(api_key=credentials[key_name], **binding.config)

    # ------------------------------------------------------------------
    # HTTP helpers
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
            transport=self._transport,
        )

    @staticmethod
    def _check(response: httpx.Response) -> Dict[str, Any]:
        if response.is_error:
            raise FirecrawlError(f"Firecrawl API error: {response.status_code} - {response.text}")
        body = response.json()
        if body.get("success") is False:
            raise FirecrawlError(f"Firecrawl request failed: {body.get('error') or 'Unknown error'}")
        return body

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(path, json=payload)
        return self._check(response)

    async def _get(self, path: str) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.get(path)
        return self._check(response)

    # ------------------------------------------------------------------
    # Actions
    async def scrape_url(self, params: Dict[str, Any], context: "ExecutionContext") -> ToolResult:
        url = params.get("url")
        options = params.get("options") or {}
        if not url:
            return ToolResult(success=False, error="A 'url' parameter is required")
        context.log("info", f"Scraping URL: {url}", {"url": url})
        try:
            body = await self._post("/scrape", {"url": url, **_scrape_options(options)})
        except (httpx.HTTPError, FirecrawlError) as e:
            context.log("error", f"Failed to scrape URL: {url}", {"error": str(e)})
            return ToolResult(success=False, error=str(e), metadata={"source_url": url, "attempted_at": _now()})

        data = body.get("data") or {}
        page_meta = data.get("metadata") or {}
        return ToolResult(
            success=True,
            data={
                "url": url,
                "markdown": data.get("markdown"),
                "html": data.get("html"),
                "screenshot": data.get("screenshot"),
                "metadata": page_meta,
            },
            metadata={
                "source_url": url,
                "scraped_at": _now(),
                "title": page_meta.get("title"),
                "status_code": page_meta.get("statusCode"),
            },
        )

    async def crawl_website(self, params: Dict[str, Any], context: "ExecutionContext") -> ToolResult:
        url = params.get("url")
        options = params.get("options") or {}
        if not url:
            return ToolResult(success=False, error="A 'url' parameter is required")
        context.log("info", f"Starting website crawl: {url}", {"url": url})
        try:
            started = await self._post(
                "/crawl",
                {
                    "url": url,
                    "limit": options.get("limit", 10),
                    "maxDepth": options.get("max_depth", 2),
                    "scrapeOptions": _scrape_options(options),
                },
            )
            job_id = started.get("id")
            context.log("info", f"Crawl job started: {job_id}", {"job_id": job_id})

            for _ in range(self.max_poll_attempts):
                await asyncio.sleep(self.poll_interval)
                status = await self._get(f"/crawl/{job_id}")
                context.log("debug", f"Crawl status: {status.get('status')}", {"job_id": job_id})
                if status.get("status") == "completed":
                    return ToolResult(
                        success=True,
                        data={
                            "job_id": job_id,
                            "url": url,
                            "pages": status.get("data"),
                            "total": status.get("total"),
                            "completed": status.get("completed"),
                        },
                        metadata={
                            "source_url": url,
                            "crawled_at": _now(),
                            "credits_used": status.get("creditsUsed"),
                        },
                    )
                if status.get("status") == "failed":
                    raise FirecrawlError(f"Crawl job failed: {status.get('error') or 'Unknown error'}")
            raise FirecrawlError("Crawl job timed out")
        except (httpx.HTTPError, FirecrawlError) as e:
            context.log("error", f"Failed to crawl website: {url}", {"error": str(e)})
            return ToolResult(success=False, error=str(e), metadata={"source_url": url, "attempted_at": _now()})

    async def search_web(self, params: Dict[str, Any], context: "ExecutionContext") -> ToolResult:
        query = params.get("query")
        options = params.get("options") or {}
        if not query:
            return ToolResult(success=False, error="A 'query' parameter is required")
        context.log("info", f"Searching web: {query}", {"query": query})
        try:
            body = await self._post(
                "/search",
                {
                    "query": query,
                    "limit": options.get("limit", 5),
                    "scrapeOptions": _scrape_options(options),
                },
            )
        except (httpx.HTTPError, FirecrawlError) as e:
            context.log("error", f"Failed to search web: {query}", {"error": str(e)})
            return ToolResult(success=False, error=str(e), metadata={"search_query": query, "attempted_at": _now()})

        results = []
        for item in body.get("data") or []:
            meta = item.get("metadata") or {}
            results.append(
                {
                    "url": meta.get("sourceURL") or item.get("url"),
                    "title": meta.get("title") or item.get("title") or "No title",
                    "description": meta.get("description") or item.get("description") or "No description",
                    "content": item.get("markdown") or item.get("html") or "",
                }
            )
        return ToolResult(
            success=True,
            data={"query": query, "results": results},
            metadata={"search_query": query, "searched_at": _now(), "results_count": len(results)},
        )

    async def extract_data(self, params: Dict[str, Any], context: "ExecutionContext") -> ToolResult:
        url = params.get("url")
        schema = params.get("schema") or {}
        if not url:
            return ToolResult(success=False, error="A 'url' parameter is required")
        context.log("info", f"Extracting structured data from: {url}", {"url": url})
        try:
            body = await self._post(
                "/scrape",
                {"url": url, "formats": ["json"], "jsonOptions": {"schema": schema}},
            )
        except (httpx.HTTPError, FirecrawlError) as e:
            context.log("error", f"Failed to extract data from: {url}", {"error": str(e)})
            return ToolResult(success=False, error=str(e), metadata={"source_url": url, "attempted_at": _now()})

        data = body.get("data") or {}
        return ToolResult(
            success=True,
            data={"url": url, "extracted_data": data.get("json"), "metadata": data.get("metadata")},
            metadata={"source_url": url, "extracted_at": _now(), "schema": list(schema)},
        )
