"""Unit tests for content extractors and robots.txt handling."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from src.models.content import ContentType, ProcessingOptions
from src.providers.extractor import (
    ExtractorRegistry,
    FileExtractor,
    TextExtractor,
    UrlExtractor,
    VideoExtractor,
)
from src.providers.extractor.robots import parse_robots
from src.providers.extractor.video_extractor import (
    detect_chapters,
    extract_video_id,
    parse_iso_duration,
    parse_timedtext,
)
from src.utils.errors import ExtractionError, InputValidationError

_OPTIONS = ProcessingOptions()

_ARTICLE_HTML = (
    "<html lang='en'><head><title>Offer Design</title>"
    "<meta name='description' content='How to design offers'>"
    "<meta name='keywords' content='offers, pricing'></head>"
    "<body><nav>Home | Blog</nav><article>"
    "<h1>Offer Design</h1>"
    "<p>Make your offer so good people feel stupid saying no. Stack bonuses, add a "
    "guarantee and price on value rather than cost. Most businesses underprice their "
    "services and compete on price instead of value.</p>"
    "<p>Start by listing every problem your customer faces before and after the purchase, "
    "then turn each problem into a solution you deliver.</p>"
    "</article></body></html>"
)


def _transport(routes: dict[str, httpx.Response]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get(request.url.path, httpx.Response(404))

    return httpx.MockTransport(handler)


def _html(text: str = _ARTICLE_HTML, **headers: str) -> httpx.Response:
    return httpx.Response(
        200, text=text, headers={"content-type": "text/html; charset=utf-8", **headers}
    )


# ---------------------------------------------------------------------------
# robots.txt
# ---------------------------------------------------------------------------


class TestRobots:
    def test_wildcard_group(self) -> None:
        rules = parse_robots("User-agent: *\nDisallow: /private\n", "OracleBot/1.0")

        assert not rules.is_allowed("/private/page")
        assert rules.is_allowed("/public")

    def test_specific_agent_beats_wildcard(self) -> None:
        text = "User-agent: *\nDisallow: /\n\nUser-agent: OracleBot\nDisallow: /admin\n"
        rules = parse_robots(text, "OracleBot/1.0 (+https://github.com/oracle-rag)")

        assert rules.is_allowed("/blog")
        assert not rules.is_allowed("/admin")

    def test_longest_match_and_allow_tie(self) -> None:
        text = "User-agent: *\nDisallow: /docs\nAllow: /docs/public\nDisallow: /x\nAllow: /x\n"
        rules = parse_robots(text, "OracleBot")

        assert not rules.is_allowed("/docs/secret")
        assert rules.is_allowed("/docs/public/page")
        assert rules.is_allowed("/x")

    def test_wildcards_and_anchor(self) -> None:
        rules = parse_robots("User-agent: *\nDisallow: /*.pdf$\n", "OracleBot")

        assert not rules.is_allowed("/files/report.pdf")
        assert rules.is_allowed("/files/report.pdf?download=1")

    def test_empty_disallow_allows_everything(self) -> None:
        rules = parse_robots("User-agent: *\nDisallow:\nCrawl-delay: 2\n", "OracleBot")

        assert rules.is_allowed("/anything")
        assert rules.crawl_delay == 2.0


# ---------------------------------------------------------------------------
# UrlExtractor
# ---------------------------------------------------------------------------


class TestUrlExtractor:
    @pytest.mark.parametrize(
        ("url", "reason"),
        [
            ("ftp://example.com/file", "Only HTTP and HTTPS URLs are allowed"),
            ("http://localhost:8000/", "Local URLs are not allowed"),
            ("http://127.0.0.1/", "Local URLs are not allowed"),
            ("https://", "Invalid URL format"),
        ],
    )
    def test_validate_rejects(self, settings, url: str, reason: str) -> None:
        assert UrlExtractor(settings=settings).validate(url) == reason

    def test_validate_accepts_https(self, settings) -> None:
        assert UrlExtractor(settings=settings).validate("https://example.com/post") is None

    @pytest.mark.asyncio
    async def test_extracts_text_and_metadata(self, settings) -> None:
        transport = _transport({"/post": _html()})
        async with httpx.AsyncClient(transport=transport) as client:
            extractor = UrlExtractor(settings=settings, http_client=client)
            result = await extractor.extract("https://example.com/post", None, _OPTIONS)

        assert "stupid saying no" in result.text
        assert result.title == "Offer Design"
        assert result.metadata["domain"] == "example.com"
        assert result.metadata["description"] == "How to design offers"
        assert result.metadata["keywords"] == ["offers", "pricing"]
        assert result.metadata["language"] == "en"

    @pytest.mark.asyncio
    async def test_robots_block(self, settings) -> None:
        transport = _transport(
            {
                "/robots.txt": httpx.Response(200, text="User-agent: *\nDisallow: /post\n"),
                "/post": _html(),
            }
        )
        async with httpx.AsyncClient(transport=transport) as client:
            extractor = UrlExtractor(settings=settings, http_client=client)
            with pytest.raises(ExtractionError, match="robots.txt"):
                await extractor.extract("https://example.com/post", None, _OPTIONS)

            ignoring = ProcessingOptions(respect_robots=False)
            result = await extractor.extract("https://example.com/post", None, ignoring)
            assert result.text

    @pytest.mark.asyncio
    async def test_sends_configured_user_agent(self, settings) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("user-agent", ""))
            if request.url.path == "/robots.txt":
                return httpx.Response(404)
            return _html()

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            extractor = UrlExtractor(settings=settings, http_client=client, user_agent="TestBot/2.0")
            await extractor.extract("https://example.com/post", None, _OPTIONS)

        assert seen == ["TestBot/2.0", "TestBot/2.0"]

    @pytest.mark.asyncio
    async def test_http_error_status(self, settings) -> None:
        async with httpx.AsyncClient(transport=_transport({})) as client:
            extractor = UrlExtractor(settings=settings, http_client=client)
            with pytest.raises(ExtractionError, match="HTTP 404"):
                await extractor.extract("https://example.com/missing", None, _OPTIONS)

    @pytest.mark.asyncio
    async def test_non_html_rejected(self, settings) -> None:
        pdf = httpx.Response(200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"})
        async with httpx.AsyncClient(transport=_transport({"/file": pdf})) as client:
            extractor = UrlExtractor(settings=settings, http_client=client)
            with pytest.raises(ExtractionError, match="Unsupported content type"):
                await extractor.extract("https://example.com/file", None, _OPTIONS)

    @pytest.mark.asyncio
    async def test_oversized_page_rejected(self, settings) -> None:
        small = settings.model_copy(update={"max_content_length": 100})
        async with httpx.AsyncClient(transport=_transport({"/post": _html()})) as client:
            extractor = UrlExtractor(settings=small, http_client=client)
            with pytest.raises(ExtractionError, match="too large"):
                await extractor.extract("https://example.com/post", None, _OPTIONS)

    @pytest.mark.asyncio
    async def test_timeout(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/robots.txt":
                return httpx.Response(404)
            raise httpx.ReadTimeout("slow", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            extractor = UrlExtractor(settings=settings, http_client=client)
            with pytest.raises(ExtractionError, match="Request timeout"):
                await extractor.extract("https://example.com/post", None, _OPTIONS)


# ---------------------------------------------------------------------------
# FileExtractor / TextExtractor
# ---------------------------------------------------------------------------


class TestFileExtractor:
    @pytest.mark.asyncio
    async def test_reads_markdown(self, tmp_path: Path) -> None:
        path = tmp_path / "offers.md"
        path.write_text("# Offers\n\nCharge more and guarantee results.", encoding="utf-8")

        result = await FileExtractor().extract(str(path), None, _OPTIONS)

        assert result.title == "offers"
        assert "guarantee results" in result.text
        assert result.metadata["file_type"] == "md"
        assert result.metadata["file_size"] > 0

    @pytest.mark.asyncio
    async def test_supplied_content_wins(self) -> None:
        result = await FileExtractor().extract("notes.txt", "uploaded body", _OPTIONS)

        assert result.text == "uploaded body"
        assert result.title == "notes"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ExtractionError, match="File not found"):
            await FileExtractor().extract(str(tmp_path / "nope.txt"), None, _OPTIONS)

    @pytest.mark.parametrize("name", ["deck.pptx", "archive", ""])
    def test_validate_rejects(self, name: str) -> None:
        assert FileExtractor().validate(name) is not None

    @pytest.mark.asyncio
    async def test_blank_file(self, tmp_path: Path) -> None:
        path = tmp_path / "blank.txt"
        path.write_text("   \n", encoding="utf-8")

        with pytest.raises(ExtractionError, match="No text"):
            await FileExtractor().extract(str(path), None, _OPTIONS)


class TestTextExtractor:
    @pytest.mark.asyncio
    async def test_title_from_first_words(self) -> None:
        text = "one two three four five six seven eight nine ten"
        result = await TextExtractor().extract("", text, _OPTIONS)

        assert result.title == "one two three four five six seven eight..."
        assert result.text == text

    @pytest.mark.asyncio
    async def test_requires_content(self) -> None:
        with pytest.raises(ExtractionError):
            await TextExtractor().extract("", "   ", _OPTIONS)


# ---------------------------------------------------------------------------
# VideoExtractor
# ---------------------------------------------------------------------------


class TestVideoHelpers:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=abc123XYZ",
            "https://youtu.be/abc123XYZ",
            "https://www.youtube.com/embed/abc123XYZ",
            "https://www.youtube.com/watch?feature=share&v=abc123XYZ",
        ],
    )
    def test_extract_video_id(self, url: str) -> None:
        assert extract_video_id(url) == "abc123XYZ"

    def test_extract_video_id_rejects_other_hosts(self) -> None:
        assert extract_video_id("https://vimeo.com/12345") is None

    @pytest.mark.parametrize(
        ("value", "seconds"),
        [("PT1H2M3S", 3723), ("PT15M", 900), ("PT45S", 45), ("garbage", 0)],
    )
    def test_parse_iso_duration(self, value: str, seconds: int) -> None:
        assert parse_iso_duration(value) == seconds

    def test_detect_chapters(self) -> None:
        description = "Intro text\n0:00 Welcome\n5:30 Pricing\n1:02:03 Q&A"
        chapters = detect_chapters(description)

        assert [c["title"] for c in chapters] == ["Welcome", "Pricing", "Q&A"]
        assert [c["start_seconds"] for c in chapters] == [0, 330, 3723]

    def test_parse_timedtext(self) -> None:
        xml = (
            '<transcript><text start="0" dur="2">Raise your</text>'
            '<text start="2" dur="2">prices &amp;amp; add value</text></transcript>'
        )
        assert parse_timedtext(xml) == "Raise your prices & add value"


class TestVideoExtractor:
    @pytest.mark.asyncio
    async def test_extracts_with_oembed_and_supplied_transcript(self, settings) -> None:
        oembed = httpx.Response(
            200, json={"title": "Pricing Masterclass", "author_name": "Biz Channel"}
        )
        async with httpx.AsyncClient(transport=_transport({"/oembed": oembed})) as client:
            extractor = VideoExtractor(settings=settings, http_client=client)
            result = await extractor.extract(
                "https://youtu.be/abc123XYZ",
                "In this video we talk about business growth and revenue strategy.",
                _OPTIONS,
            )

        assert result.title == "Pricing Masterclass"
        assert result.author == "Biz Channel"
        assert result.metadata["video_id"] == "abc123XYZ"
        assert result.metadata["transcript_word_count"] == 11
        assert 0.0 < result.metadata["relevance_hint"] <= 1.0

    @pytest.mark.asyncio
    async def test_missing_transcript(self, settings) -> None:
        oembed = httpx.Response(200, json={"title": "Silent video"})
        routes = {"/oembed": oembed, "/api/timedtext": httpx.Response(200, text="")}
        async with httpx.AsyncClient(transport=_transport(routes)) as client:
            extractor = VideoExtractor(settings=settings, http_client=client)
            with pytest.raises(ExtractionError, match="Transcript unavailable"):
                await extractor.extract("https://youtu.be/abc123XYZ", None, _OPTIONS)

    def test_validate(self, settings) -> None:
        extractor = VideoExtractor(settings=settings)
        assert extractor.validate("https://youtu.be/abc") is None
        assert extractor.validate("https://example.com/video") == "Invalid YouTube URL format"


# ---------------------------------------------------------------------------
# ExtractorRegistry
# ---------------------------------------------------------------------------


class TestExtractorRegistry:
    def test_lookup_by_type(self) -> None:
        text = TextExtractor()
        registry = ExtractorRegistry([text, FileExtractor()])

        assert registry.get(ContentType.TEXT) is text

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(InputValidationError):
            ExtractorRegistry([TextExtractor()]).get(ContentType.VIDEO)
