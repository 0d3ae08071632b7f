from typing import Callable, Optional

import pytest

from business.feed_resolver import FeedResolver
from business.podcast_service import PodcastService
from business.rss import FakeFeedFetcher, FeedParserRssParser
from persistence.datastore import InMemoryDatastore


class RssDocumentFactory:
    @classmethod
    def build(
        cls,
        title: Optional[str] = "Example Cast",
        description: Optional[str] = "A show.",
    ) -> bytes:
        channel = ""
        if title is not None:
            channel += f"<title>{title}</title>"
        if description is not None:
            channel += f"<description>{description}</description>"
        channel += "<link>https://example.com/</link>"
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            f'<rss version="2.0"><channel>{channel}</channel></rss>'
        ).encode("utf-8")


@pytest.fixture
def service_factory() -> Callable[..., PodcastService]:
    def factory(
        feed_documents: Optional[dict[str, bytes]] = None,
    ) -> PodcastService:
        if feed_documents is None:
            feed_documents = {}
        datastore = InMemoryDatastore()
        return PodcastService(
            datastore=datastore,
            feed_resolver=FeedResolver(
                datastore=datastore,
                fetcher=FakeFeedFetcher(documents=feed_documents),
                parser=FeedParserRssParser(),
            ),
        )

    return factory


@pytest.fixture
def service(service_factory: Callable[..., PodcastService]) -> PodcastService:
    return service_factory()


@pytest.fixture
def rss_document() -> Callable[..., bytes]:
    return RssDocumentFactory.build
