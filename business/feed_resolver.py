import logging
from dataclasses import dataclass

from business.entities import PodcastChannel
from business.rss import FeedFetcher, FeedParseError, RssParser
from persistence.datastore import Datastore, UnknownPodcast

logger = logging.getLogger(__name__)


@dataclass
class FeedResolver:
    """Turns a feed url into its stored podcast, importing it on first sight.

    The lookup and the creation are two separate datastore calls. Callers must
    hold a lock covering both, otherwise two concurrent resolutions of the same
    unknown url would both fetch and the second create would raise
    PodcastAlreadyExists.
    """

    datastore: Datastore
    fetcher: FeedFetcher
    parser: RssParser

    def resolve(self, feed_url: str) -> PodcastChannel:
        try:
            return self.datastore.get_podcast(feed_url)
        except UnknownPodcast:
            logger.info(f"unknown feed {feed_url}, importing it")

        content = self.fetcher.fetch(feed_url)
        try:
            channel = self.parser.parse(content)
        except FeedParseError as error:
            logger.warning(f"could not read feed {feed_url}: {error}")
            raise
        return self.datastore.create_podcast(
            feed_url=feed_url, title=channel.title, description=channel.description
        )
