import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Optional
from uuid import UUID

from business.entities import SessionStatus, User
from business.feed_resolver import FeedResolver
from persistence.datastore import Datastore, UnknownUser

logger = logging.getLogger(__name__)


class NotLoggedIn(Exception): ...


@dataclass
class PodcastService:
    """Shared state of the application: the datastore and the single session.

    Every public method runs under one lock, feed fetches included, so all
    mutations are applied one at a time in the order the lock was acquired.
    """

    datastore: Datastore
    feed_resolver: FeedResolver
    current_user: Optional[UUID] = None
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def create_user(self, name: str) -> User:
        with self.lock:
            return self.datastore.create_user(name)

    def get_user(self, user_id: UUID) -> User:
        with self.lock:
            return self.datastore.get_user(user_id)

    def login(self, user_id: UUID) -> SessionStatus:
        with self.lock:
            try:
                user = self.datastore.get_user(user_id)
            except UnknownUser:
                self.current_user = None
                raise
            self.current_user = user.id
            logger.info(f"user {user.id} logged in")
            return self._status()

    def status(self) -> SessionStatus:
        with self.lock:
            return self._status()

    def subscribe(self, feed_url: str) -> list[str]:
        with self.lock:
            if self.current_user is None:
                raise NotLoggedIn
            podcast = self.feed_resolver.resolve(feed_url)
            return self.datastore.subscribe(
                user_id=self.current_user, feed_url=podcast.rss
            )

    def _status(self) -> SessionStatus:
        return SessionStatus(
            user=self.current_user, logged_in=self.current_user is not None
        )
