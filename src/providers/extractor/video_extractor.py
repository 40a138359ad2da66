"""YouTube video extractor.

Resolves the video id from the URL, reads metadata from the YouTube Data
API v3 (when ``YOUTUBE_API_KEY`` is set) or the public oEmbed endpoint,
and builds the document text from the transcript.  A transcript supplied
by the caller is used as-is; otherwise the caption track is fetched from
the timedtext endpoint and its XML segments are parsed with BeautifulSoup.

Quality and relevance heuristics computed here are stored as metadata
hints only; the DocumentScorer keeps the authoritative item scores.
"""

from __future__ import annotations

import html
import re
from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import VideoTables
from src.config.settings import Settings
from src.interfaces.content_extractor import ExtractedContent, IContentExtractor
from src.models.content import ContentType, ProcessingOptions
from src.utils.errors import ExtractionError
from src.utils.scoring import count_phrases

logger = structlog.get_logger(logger_name=__name__)

_VIDEO_ID_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#]+)"),
    re.compile(r"youtube\.com/watch\?.*v=([^&\n?#]+)"),
]
_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_CHAPTER_RE = re.compile(r"^((?:\d{1,2}:)?\d{1,2}:\d{2})\s+(.+)$", re.MULTILINE)

_DATA_API_URL = "https://www.googleapis.com/youtube/v3/videos"
_COMMENTS_API_URL = "https://www.googleapis.com/youtube/v3/commentThreads"
_OEMBED_URL = "https://www.youtube.com/oembed"
_TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"
_MAX_COMMENTS = 20


def extract_video_id(url: str) -> str | None:
    """Return the YouTube video id in *url*, or ``None``."""
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def parse_iso_duration(value: str) -> int:
    """Convert an ISO-8601 ``PT#H#M#S`` duration to seconds (0 if unparseable)."""
    match = _DURATION_RE.fullmatch(value or "")
    if not match:
        return 0
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def _timestamp_seconds(stamp: str) -> int:
    total = 0
    for part in stamp.split(":"):
        total = total * 60 + int(part)
    return total


def detect_chapters(description: str) -> list[dict[str, Any]]:
    """Find ``MM:SS Title`` / ``H:MM:SS Title`` lines in a video description."""
    return [
        {"timestamp": stamp, "start_seconds": _timestamp_seconds(stamp), "title": title.strip()}
        for stamp, title in _CHAPTER_RE.findall(description or "")
    ]


def video_quality_hint(duration: int, views: int, transcript_words: int) -> float:
    """Heuristic 0-1 quality of a video from its length, views and transcript size."""
    score = 50
    if 600 <= duration <= 3600:
        score += 20
    elif duration >= 300:
        score += 10
    if views > 1000:
        score += 10
    if views > 10000:
        score += 10
    if transcript_words > 500:
        score += 10
    if transcript_words > 1500:
        score += 10
    return min(score, 100) / 100


class VideoExtractor(IContentExtractor):
    """Extracts transcripts and metadata from YouTube videos."""

    content_type = ContentType.VIDEO

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        tables: VideoTables | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = settings.youtube_api_key
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds),
            follow_redirects=True,
        )
        self._tables = tables or default_scoring_tables().video

    # ------------------------------------------------------------------
    # IContentExtractor implementation
    # ------------------------------------------------------------------

    def validate(self, source: str) -> str | None:
        if extract_video_id(source or "") is None:
            return "Invalid YouTube URL format"
        return None

    async def extract(
        self,
        source: str,
        content: str | None,
        options: ProcessingOptions,
    ) -> ExtractedContent:
        video_id = extract_video_id(source or "")
        if video_id is None:
            raise ExtractionError(
                message="Invalid YouTube URL format",
                provider_name=self.get_provider_name(),
            )

        metadata = await self._fetch_metadata(video_id)
        description = metadata.get("description", "")

        if content:
            transcript = content
        elif options.include_transcript:
            transcript = await self._fetch_transcript(video_id)
        else:
            transcript = description
        if not transcript or not transcript.strip():
            raise ExtractionError(
                message=f"Transcript unavailable for video {video_id}",
                provider_name=self.get_provider_name(),
            )

        if options.chapter_detection:
            metadata["chapters"] = detect_chapters(description)
        if options.include_comments and self._api_key:
            metadata["comments"] = await self._fetch_comments(video_id)

        transcript_words = len(transcript.split())
        searchable = f"{metadata.get('title', '')} {description} {transcript}"
        metadata["quality_hint"] = video_quality_hint(
            metadata.get("duration", 0), metadata.get("view_count", 0), transcript_words
        )
        metadata["relevance_hint"] = (
            min(
                count_phrases(searchable, self._tables.relevance_keywords)
                * self._tables.relevance_points_per_keyword,
                100,
            )
            / 100
        )
        metadata["transcript_word_count"] = transcript_words

        logger.info(
            "video_extracted",
            video_id=video_id,
            title=metadata.get("title"),
            transcript_words=transcript_words,
        )
        return ExtractedContent(
            text=transcript,
            title=metadata.get("title") or f"YouTube video {video_id}",
            author=metadata.get("channel") or None,
            published_date=metadata.get("published_at") or None,
            metadata=metadata,
        )

    def get_provider_name(self) -> str:
        return "video_extractor"

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def _get_json(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError(
                message="Request timeout",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(
                message=f"YouTube API error: {exc.response.status_code}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(
                message=f"YouTube request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return response.json()

    async def _fetch_metadata(self, video_id: str) -> dict[str, Any]:
        if not self._api_key:
            data = await self._get_json(
                _OEMBED_URL,
                {"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"},
            )
            return {
                "video_id": video_id,
                "title": data.get("title", ""),
                "channel": data.get("author_name", ""),
                "thumbnail_url": data.get("thumbnail_url", ""),
            }

        data = await self._get_json(
            _DATA_API_URL,
            {"part": "snippet,contentDetails,statistics", "id": video_id, "key": self._api_key},
        )
        items = data.get("items") or []
        if not items:
            raise ExtractionError(
                message="Video not found or not accessible",
                provider_name=self.get_provider_name(),
            )
        video = items[0]
        snippet = video.get("snippet", {})
        stats = video.get("statistics", {})
        return {
            "video_id": video_id,
            "title": snippet.get("title", ""),
            "description": snippet.get("description", ""),
            "channel": snippet.get("channelTitle", ""),
            "channel_id": snippet.get("channelId", ""),
            "published_at": snippet.get("publishedAt", ""),
            "tags": snippet.get("tags", []),
            "duration": parse_iso_duration(video.get("contentDetails", {}).get("duration", "")),
            "view_count": int(stats.get("viewCount", 0) or 0),
            "like_count": int(stats.get("likeCount", 0) or 0),
            "comment_count": int(stats.get("commentCount", 0) or 0),
        }

    async def _fetch_comments(self, video_id: str) -> list[str]:
        """Top-level comment texts.  Failures are logged and yield ``[]``."""
        try:
            data = await self._get_json(
                _COMMENTS_API_URL,
                {
                    "part": "snippet",
                    "videoId": video_id,
                    "maxResults": str(_MAX_COMMENTS),
                    "order": "relevance",
                    "key": self._api_key,
                },
            )
        except ExtractionError as exc:
            logger.warning("video_comments_unavailable", video_id=video_id, error=str(exc))
            return []
        comments: list[str] = []
        for item in data.get("items", []):
            top = item.get("snippet", {}).get("topLevelComment", {}).get("snippet", {})
            text = top.get("textDisplay") or top.get("textOriginal")
            if text:
                comments.append(text)
        return comments

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    async def _fetch_transcript(self, video_id: str) -> str:
        try:
            response = await self._client.get(
                _TIMEDTEXT_URL, params={"v": video_id, "lang": "en"}
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError(
                message="Request timeout",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(
                message=f"Transcript unavailable for video {video_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return parse_timedtext(response.text)


def parse_timedtext(xml: str) -> str:
    """Join the ``<text>`` segments of a timedtext caption track."""
    if not xml.strip():
        return ""
    soup = BeautifulSoup(xml, "html.parser")
    segments = [
        html.unescape(node.get_text(" ", strip=True)) for node in soup.find_all("text")
    ]
    return " ".join(s for s in segments if s)
