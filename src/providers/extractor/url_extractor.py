"""Web page extractor using httpx, trafilatura and BeautifulSoup.

Fetches HTML via httpx, extracts the main article text with trafilatura
and reads title/meta tags with BeautifulSoup.  robots.txt is honoured
when ``respect_robots`` is set; a robots.txt that cannot be fetched is
treated as allowing everything.
"""

from __future__ import annotations

import json
from urllib.parse import urlparse, urlunparse

import httpx
import structlog
import trafilatura
from bs4 import BeautifulSoup
from cachetools import TTLCache

from src.config.settings import Settings
from src.interfaces.content_extractor import ExtractedContent, IContentExtractor
from src.models.content import ContentType, ProcessingOptions
from src.providers.extractor.robots import RobotsRules, parse_robots
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

USER_AGENT = "OracleBot/1.0 (+https://github.com/oracle-rag)"
_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_BLOCKED_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1"})
_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
_ROBOTS_CACHE_TTL = 3600


class UrlExtractor(IContentExtractor):
    """Extracts readable text and page metadata from http(s) URLs."""

    content_type = ContentType.URL

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._settings = settings
        self._user_agent = user_agent
        self._headers = {"User-Agent": user_agent, "Accept": _ACCEPT}
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds),
        )
        self._robots_cache: TTLCache[str, RobotsRules] = TTLCache(
            maxsize=256, ttl=_ROBOTS_CACHE_TTL
        )

    # ------------------------------------------------------------------
    # IContentExtractor implementation
    # ------------------------------------------------------------------

    def validate(self, source: str) -> str | None:
        try:
            parsed = urlparse(source)
        except ValueError:
            return "Invalid URL format"
        if parsed.scheme not in ("http", "https"):
            return "Only HTTP and HTTPS URLs are allowed"
        host = (parsed.hostname or "").lower()
        if not host:
            return "Invalid URL format"
        if host in _BLOCKED_HOSTS:
            return "Local URLs are not allowed"
        return None

    async def extract(
        self,
        source: str,
        content: str | None,
        options: ProcessingOptions,
    ) -> ExtractedContent:
        reason = self.validate(source)
        if reason:
            raise ExtractionError(message=reason, provider_name=self.get_provider_name())

        if options.respect_robots and not await self.is_allowed_by_robots(source):
            raise ExtractionError(
                message="URL blocked by robots.txt",
                provider_name=self.get_provider_name(),
            )

        html = await self._fetch_html(source, follow_redirects=options.follow_redirects)
        return self._parse_html(source, html, include_comments=options.include_comments)

    def get_provider_name(self) -> str:
        return "url_extractor"

    # ------------------------------------------------------------------
    # robots.txt
    # ------------------------------------------------------------------

    async def is_allowed_by_robots(self, url: str) -> bool:
        """Check *url* against its host's robots.txt for this crawler."""
        parsed = urlparse(url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        rules = self._robots_cache.get(origin)
        if rules is None:
            rules = await self._fetch_robots(origin)
            self._robots_cache[origin] = rules

        path = urlunparse(("", "", parsed.path or "/", parsed.params, parsed.query, ""))
        allowed = rules.is_allowed(path)
        if not allowed:
            logger.info("robots_disallowed", url=url)
        return allowed

    async def _fetch_robots(self, origin: str) -> RobotsRules:
        robots_url = f"{origin}/robots.txt"
        try:
            response = await self._client.get(
                robots_url,
                headers=self._headers,
                timeout=self._settings.robots_timeout_seconds,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            logger.info("robots_fetch_failed", url=robots_url, error=str(exc))
            return RobotsRules()
        if response.status_code >= 400:
            return RobotsRules()
        return parse_robots(response.text, self._user_agent)

    # ------------------------------------------------------------------
    # Fetch + parse
    # ------------------------------------------------------------------

    async def _fetch_html(self, url: str, follow_redirects: bool) -> str:
        try:
            response = await self._client.get(
                url, headers=self._headers, follow_redirects=follow_redirects
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError(
                message="Request timeout",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(
                message=(
                    f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}"
                ),
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content_type = response.headers.get("content-type", "").lower()
        if not any(ct in content_type for ct in _HTML_CONTENT_TYPES):
            raise ExtractionError(
                message=f"Unsupported content type: {content_type or 'unknown'}",
                provider_name=self.get_provider_name(),
            )

        declared = response.headers.get("content-length")
        too_large = len(response.content) > self._settings.max_content_length
        if declared and declared.isdigit():
            too_large = too_large or int(declared) > self._settings.max_content_length
        if too_large:
            raise ExtractionError(
                message="Content too large",
                provider_name=self.get_provider_name(),
            )
        return response.text

    def _parse_html(self, url: str, html: str, include_comments: bool) -> ExtractedContent:
        soup = BeautifulSoup(html, "html.parser")

        text = trafilatura.extract(
            html,
            include_comments=include_comments,
            include_tables=True,
        )
        if not text:
            # Pages trafilatura cannot segment still have body text.
            for tag in soup(["script", "style", "nav", "header", "footer", "aside"]):
                tag.decompose()
            body = soup.body or soup
            text = "\n".join(
                line.strip() for line in body.get_text("\n").splitlines() if line.strip()
            )
        if not text:
            raise ExtractionError(
                message="No readable content found",
                provider_name=self.get_provider_name(),
            )

        title = ""
        author: str | None = None
        published_date: str | None = None
        raw_meta = trafilatura.extract(
            html,
            output_format="json",
            with_metadata=True,
        )
        if raw_meta:
            try:
                meta_dict = json.loads(raw_meta)
                title = meta_dict.get("title") or ""
                author = meta_dict.get("author") or None
                published_date = meta_dict.get("date") or None
            except json.JSONDecodeError:
                logger.debug("metadata_parse_failed", url=url)

        if not title:
            title_tag = soup.find("title")
            title = title_tag.get_text(strip=True) if title_tag else ""
        if not title:
            h1 = soup.find("h1")
            title = h1.get_text(strip=True) if h1 else urlparse(url).netloc

        metadata = {
            "url": url,
            "domain": urlparse(url).netloc,
            "description": _meta_content(soup, "description"),
            "keywords": [
                k.strip() for k in _meta_content(soup, "keywords").split(",") if k.strip()
            ],
            "language": (soup.html.get("lang") if soup.html else None) or "en",
            "word_count": len(text.split()),
        }

        logger.info("url_extracted", url=url, title=title, text_length=len(text))
        return ExtractedContent(
            text=text,
            title=title,
            author=author,
            published_date=published_date,
            metadata=metadata,
        )


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name}) or soup.find(
        "meta", attrs={"property": f"og:{name}"}
    )
    if tag is None:
        return ""
    return str(tag.get("content") or "").strip()
