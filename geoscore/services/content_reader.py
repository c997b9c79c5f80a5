# geoscore/services/content_reader.py
import asyncio
import aiohttp
import logging
import time
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel

from geoscore.config.settings import Settings, settings as default_settings
from geoscore.core.exceptions import ContentReadException
from geoscore.models.internal import ContentDocument

logger = logging.getLogger(__name__)

class ReaderOptions(BaseModel):
    with_image_captions: bool = False
    with_links_summary: bool = False
    with_images_summary: bool = False
    target_selector: Optional[str] = None
    timeout: Optional[int] = None
    use_reader_lm: bool = False
    return_format: str = "json"  # "json" or "markdown"

class SearchOptions(BaseModel):
    sites: List[str] = []
    return_format: str = "json"

class JinaContentReader:
    """Client for the Jina Reader (r.jina.ai) and Search (s.jina.ai) APIs"""

    def __init__(self, api_key: Optional[str] = None, config: Settings = default_settings):
        self.api_key = api_key if api_key is not None else config.JINA_API_KEY
        self.reader_url = config.JINA_READER_URL.rstrip("/")
        self.search_url = config.JINA_SEARCH_URL.rstrip("/")
        self.timeout = config.CONTENT_FETCH_TIMEOUT
        self.session = None

    async def _get_session(self):
        """Lazy initialization of HTTP session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    def _headers(self, return_format: str) -> Dict[str, str]:
        headers = {
            "Accept": "application/json" if return_format == "json" else "text/plain"
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _reader_headers(self, options: ReaderOptions) -> Dict[str, str]:
        headers = self._headers(options.return_format)

        if options.with_image_captions:
            headers["X-With-Generated-Alt"] = "true"
        if options.with_links_summary:
            headers["X-With-Links-Summary"] = "true"
        if options.with_images_summary:
            headers["X-With-Images-Summary"] = "true"
        if options.target_selector:
            headers["X-Target-Selector"] = options.target_selector
        if options.timeout:
            headers["X-Timeout"] = str(options.timeout)
        if options.use_reader_lm:
            headers["X-Use-Readerlm-V2"] = "true"

        return headers

    async def read(self, url: str, options: Optional[ReaderOptions] = None) -> ContentDocument:
        """Read a single URL through Jina Reader"""
        options = options or ReaderOptions()
        start_time = time.time()

        payload = await self._request(
            f"{self.reader_url}/{url}",
            headers=self._reader_headers(options),
            return_format=options.return_format,
            target=url,
            operation="Reader"
        )

        if options.return_format == "json":
            data = self._unwrap(payload, dict, target=url, operation="Reader")
            document = self._to_document(data, fallback_url=url)
        else:
            document = ContentDocument(url=url, title="", content=payload)

        logger.info(
            f"Read {url[:50]}... ({len(document.content)} chars) in {time.time() - start_time:.2f}s"
        )
        return document

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> List[ContentDocument]:
        """Search through Jina Search and return the result documents"""
        options = options or SearchOptions()
        url = f"{self.search_url}/{quote(query, safe='')}"
        if options.sites:
            url += "?" + "&".join(f"site={site}" for site in options.sites)

        payload = await self._request(
            url,
            headers=self._headers(options.return_format),
            return_format=options.return_format,
            target=query,
            operation="Search"
        )

        if options.return_format != "json":
            return [ContentDocument(url=query, title=query, content=payload)]

        results = [
            self._to_document(item, fallback_url=query)
            for item in self._unwrap(payload, list, target=query, operation="Search")
            if isinstance(item, dict)
        ]
        logger.info(f"Jina search returned {len(results)} results for: {query[:30]}...")
        return results

    async def read_batch(
        self,
        urls: List[str],
        options: Optional[ReaderOptions] = None
    ) -> List[Union[ContentDocument, Exception]]:
        """Read several URLs in parallel; a failed read is returned in its slot, not raised"""
        return list(await asyncio.gather(
            *(self.read(url, options) for url in urls),
            return_exceptions=True
        ))

    async def _request(self, url: str, headers: Dict[str, str], return_format: str, target: str, operation: str):
        session = await self._get_session()

        try:
            async with session.get(url, headers=headers) as response:
                if response.status < 200 or response.status >= 300:
                    logger.warning(f"Jina {operation} failed with status {response.status} for: {target}")
                    raise ContentReadException(
                        f"Jina {operation} failed: {response.status}",
                        status_code=response.status,
                        target=target
                    )
                if return_format == "json":
                    return await response.json(content_type=None)
                return await response.text()

        except ContentReadException:
            raise
        except asyncio.TimeoutError:
            logger.warning(f"Jina {operation} timed out after {self.timeout}s for: {target}")
            raise ContentReadException(f"Jina {operation} timed out", target=target)
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Jina {operation} error for {target}: {type(e).__name__}: {e}")
            raise ContentReadException(f"Jina {operation} error: {e}", target=target)

    def _unwrap(self, payload: Any, expected: type, target: str, operation: str):
        """Return the `data` member of a Jina JSON envelope, checking its shape"""
        data = payload.get("data") if isinstance(payload, dict) else None
        if data is None and isinstance(payload, dict) and expected is list:
            return []
        if not isinstance(data, expected):
            logger.warning(f"Jina {operation} returned an unexpected payload for: {target}")
            raise ContentReadException(f"Jina {operation} returned an unexpected payload", target=target)
        return data

    def _to_document(self, data: Dict, fallback_url: str) -> ContentDocument:
        usage = data.get("usage") or {}
        try:
            return ContentDocument(
                title=data.get("title") or "",
                url=data.get("url") or fallback_url,
                content=data.get("content") or "",
                description=data.get("description"),
                published_time=data.get("publishedTime"),
                usage_tokens=usage.get("tokens", 0) if isinstance(usage, dict) else 0
            )
        except ValueError as e:
            raise ContentReadException(f"Jina returned an unusable document: {e}", target=fallback_url)

    async def close(self):
        """Close HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None
