"""
Chronological ordering of episodes.

Undated episodes sort before every dated one and compare equal to each
other; the sort is stable.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from ..models import Episode


EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def chronological_key(episode: Episode) -> Tuple[bool, datetime]:
    """Sort key placing undated episodes first, then oldest to newest."""
    if episode.published_at is None:
        return (False, EARLIEST)
    return (True, episode.published_at)


def order_chronologically(episodes: Iterable[Episode]) -> List[Episode]:
    """Return a new list of episodes ordered oldest first."""
    return sorted(episodes, key=chronological_key)
