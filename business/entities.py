from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID


@dataclass
class User:
    id: UUID
    name: str
    subscribed: list[str] = field(default_factory=list)


@dataclass
class PodcastChannel:
    id: UUID
    name: str
    description: str
    rss: str


@dataclass
class SessionStatus:
    user: Optional[UUID]
    logged_in: bool
