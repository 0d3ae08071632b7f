import logging
from abc import abstractmethod
from dataclasses import replace
from typing import Protocol
from uuid import UUID, uuid4

from business.entities import PodcastChannel, User

logger = logging.getLogger(__name__)


class NotFound(Exception): ...


class UnknownUser(NotFound): ...


class UnknownPodcast(NotFound): ...


class PodcastAlreadyExists(Exception): ...


class StorageError(Exception): ...


class Datastore(Protocol):
    """Storage contract for users and podcasts.

    Podcasts are keyed by their feed url, users by a generated uuid. Records
    returned by an implementation must be detached from its internal state.

    A persistent backend (sqlite, a remote database...) implements these five
    methods and wraps its own driver failures in StorageError so callers keep
    handling a single error kind.
    """

    @abstractmethod
    def create_user(self, name: str) -> User: ...

    @abstractmethod
    def get_user(self, user_id: UUID) -> User: ...

    @abstractmethod
    def get_podcast(self, feed_url: str) -> PodcastChannel: ...

    @abstractmethod
    def create_podcast(
        self, feed_url: str, title: str, description: str
    ) -> PodcastChannel: ...

    @abstractmethod
    def subscribe(self, user_id: UUID, feed_url: str) -> list[str]: ...


def _copy_user(user: User) -> User:
    return replace(user, subscribed=list(user.subscribed))


class InMemoryDatastore(Datastore):
    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}
        self.podcasts: dict[str, PodcastChannel] = {}

    def create_user(self, name: str) -> User:
        user_id = uuid4()
        while user_id in self.users:
            user_id = uuid4()
        user = User(id=user_id, name=name)
        self.users[user_id] = user
        logger.info(f"created user {user_id}")
        return _copy_user(user)

    def get_user(self, user_id: UUID) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise UnknownUser
        return _copy_user(user)

    def get_podcast(self, feed_url: str) -> PodcastChannel:
        podcast = self.podcasts.get(feed_url)
        if podcast is None:
            raise UnknownPodcast
        return replace(podcast)

    def create_podcast(
        self, feed_url: str, title: str, description: str
    ) -> PodcastChannel:
        if feed_url in self.podcasts:
            raise PodcastAlreadyExists
        podcast = PodcastChannel(
            id=uuid4(), name=title, description=description, rss=feed_url
        )
        self.podcasts[feed_url] = podcast
        logger.info(f"created podcast {podcast.id} for {feed_url}")
        return replace(podcast)

    def subscribe(self, user_id: UUID, feed_url: str) -> list[str]:
        podcast = self.get_podcast(feed_url)
        user = self.users.get(user_id)
        if user is None:
            raise UnknownUser
        if podcast.rss not in user.subscribed:
            user.subscribed.append(podcast.rss)
            logger.info(f"subscribed user {user_id} to {podcast.rss}")
        return list(user.subscribed)
