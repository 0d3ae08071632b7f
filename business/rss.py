import io
import logging
import xml.etree.ElementTree as ET
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Protocol

import feedparser
import requests
from feedparser.exceptions import ThingsNobodyCaresAboutButMe

logger = logging.getLogger(__name__)

# feedparser reports RSS 0.90 and 1.0 for RDF documents, which have no <rss> root
RDF_VERSIONS = ("rss090", "rss10")


class FeedFetchError(Exception): ...


class FeedParseError(Exception): ...


@dataclass
class ChannelInfo:
    title: str
    description: str


class FeedFetcher(Protocol):
    @abstractmethod
    def fetch(self, feed_url: str) -> bytes: ...


class RssParser(Protocol):
    @abstractmethod
    def parse(self, content: bytes) -> ChannelInfo: ...


@dataclass
class RequestsFeedFetcher(FeedFetcher):
    timeout: float = 10.0
    user_agent: str = "pods/0.1"

    def fetch(self, feed_url: str) -> bytes:
        logger.info(f"fetching feed {feed_url}")
        try:
            response = requests.get(
                feed_url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
        except requests.RequestException as error:
            logger.warning(f"could not fetch {feed_url}: {error}")
            raise FeedFetchError(str(error)) from error
        return response.content


class FeedParserRssParser(RssParser):
    def parse(self, content: bytes) -> ChannelInfo:
        feed = feedparser.parse(io.BytesIO(content))
        if feed.bozo and not isinstance(
            feed.bozo_exception, ThingsNobodyCaresAboutButMe
        ):
            raise FeedParseError(f"malformed xml: {feed.bozo_exception}")

        version = feed.get("version", "")
        if not version.startswith("rss") or version in RDF_VERSIONS:
            raise FeedParseError(f"not an rss channel (got {version or 'unknown'})")

        # feedparser rewrites channel text (sanitized html, itunes:subtitle
        # folded into subtitle), so the fields are read from the tree itself
        try:
            root = ET.fromstring(content)
        except ET.ParseError as error:
            raise FeedParseError(f"malformed xml: {error}") from error
        channel = root.find("channel") if root.tag == "rss" else None
        if channel is None:
            raise FeedParseError("document has no rss channel")

        title = channel.findtext("title")
        description = channel.findtext("description")
        if not title:
            raise FeedParseError("channel has no title")
        if not description:
            raise FeedParseError("channel has no description")
        return ChannelInfo(title=title, description=description)


@dataclass
class FakeFeedFetcher(FeedFetcher):
    documents: dict[str, bytes]
    requested: list[str] = field(default_factory=list)

    def fetch(self, feed_url: str) -> bytes:
        self.requested.append(feed_url)
        document = self.documents.get(feed_url)
        if document is None:
            raise FeedFetchError("No document for this url")

        return document
