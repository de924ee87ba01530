"""Queue data models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional


class ProcessingOutcome(Enum):
    """Result of one processing attempt for a queued submission."""

    RETRY_LATER = "retry_later"
    REMOVE_FROM_QUEUE = "remove_from_queue"


@dataclass
class QueueItem:
    """Represents a submission waiting in the processing queue."""

    id: str  # Reddit base36 ID
    created_utc: float  # Unix epoch seconds
    url: str  # Linked media URL
    view_count: int = 0  # Refreshed every tick
    num_comments: int = 0
    permalink: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict, repr=False)  # Last listing data seen

    @property
    def fullname(self) -> str:
        """Reddit "thing" name used to refresh, read comments and reply."""
        return f"t3_{self.id}"

    def update_from_listing(self, data: Dict[str, Any]) -> None:
        """Apply fresh listing data in place."""
        # Reddit reports null view counts for most posts
        self.view_count = data.get("view_count") or 0
        self.num_comments = data.get("num_comments") or 0
        self.payload = data

    @classmethod
    def create(cls, data: Dict[str, Any]):
        """Factory method to create a QueueItem from a Reddit listing entry."""
        item = cls(
            id=data["id"],
            created_utc=float(data["created_utc"]),
            url=data.get("url") or "",
            permalink=data.get("permalink"),
        )
        item.update_from_listing(data)
        return item
