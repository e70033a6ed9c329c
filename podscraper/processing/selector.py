"""
Episode Filter & Selector
=========================

Applies the cutoff policy and builds the two output views:

- all episodes, cutoff-filtered only when the policy asks for it;
- the newest episode of each source.

The cutoff boundary is computed once per call and reused for every
comparison in that call.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import reduce
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..models import Episode
from ..utils.logging import get_logger_for_component
from .ordering import EARLIEST, chronological_key


class FilterPolicy(BaseModel):
    """Cutoff policy for one run."""
    apply_cutoff: bool = Field(default=True, description="Require recent episodes in the newest view")
    cutoff_days: int = Field(default=30, ge=0, description="Age limit in days")
    apply_to_all_view: bool = Field(default=False, description="Also filter the all-episodes view")

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, filtering) -> "FilterPolicy":
        """Build a policy from the ``filtering`` settings section."""
        return cls(
            apply_cutoff=filtering.apply_cutoff,
            cutoff_days=filtering.cutoff_days,
            apply_to_all_view=filtering.apply_to_all_view,
        )

    @property
    def filters_all_view(self) -> bool:
        return self.apply_cutoff and self.apply_to_all_view


@dataclass(frozen=True)
class EpisodeViews:
    """The two views produced from one run's episodes."""

    all_episodes: Tuple[Episode, ...]
    newest_episodes: Tuple[Episode, ...]


def compute_cutoff(now: datetime, days: int) -> datetime:
    """Boundary ``now - days`` in UTC. Naive ``now`` is taken as UTC.

    Windows reaching past the first representable date clamp to it, so every
    dated episode is current.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        return now.astimezone(timezone.utc) - timedelta(days=days)
    except OverflowError:
        return EARLIEST


def is_current(episode: Episode, cutoff: datetime) -> bool:
    """Whether an episode is dated on or after the cutoff. Undated never is."""
    return episode.published_at is not None and episode.published_at >= cutoff


def filter_by_cutoff(episodes: Iterable[Episode], cutoff: datetime) -> List[Episode]:
    """Keep the episodes that are current relative to ``cutoff``."""
    return [episode for episode in episodes if is_current(episode, cutoff)]


def keep_newer(existing: Episode, candidate: Episode) -> Episode:
    """Combining rule: the candidate replaces the existing pick only if strictly newer."""
    if chronological_key(candidate) > chronological_key(existing):
        return candidate
    return existing


def select_newest_per_source(
    episodes: Iterable[Episode], cutoff: Optional[datetime] = None
) -> List[Episode]:
    """Pick at most one episode per source: the most recently published.

    Args:
        episodes: Candidate episodes in extraction order
        cutoff: When given, only episodes current relative to it are eligible

    Returns:
        One episode per source that has an eligible one, in order of each
        source's first appearance
    """
    if cutoff is not None:
        episodes = filter_by_cutoff(episodes, cutoff)

    by_source: Dict[str, List[Episode]] = {}
    for episode in episodes:
        by_source.setdefault(episode.source_name, []).append(episode)

    return [reduce(keep_newer, candidates) for candidates in by_source.values()]


class EpisodeSelector:
    """Builds the all-episodes and newest-per-source views under a policy."""

    def __init__(self, policy: FilterPolicy):
        self.policy = policy
        self.logger = get_logger_for_component("selector")

    def build_views(
        self,
        episodes: Iterable[Episode],
        now: Optional[datetime] = None,
        newest_candidates: Optional[Iterable[Episode]] = None,
    ) -> EpisodeViews:
        """Produce both views with a single cutoff boundary.

        Args:
            episodes: Episodes for the all-episodes view
            now: Reference time (defaults to the current UTC time)
            newest_candidates: Episodes to pick the newest from, when they
                differ from ``episodes``

        Returns:
            EpisodeViews with both views
        """
        episodes = list(episodes)
        candidates = episodes if newest_candidates is None else list(newest_candidates)

        cutoff = None
        if self.policy.apply_cutoff:
            cutoff = compute_cutoff(now or datetime.now(timezone.utc), self.policy.cutoff_days)
            self.logger.debug(f"Cutoff boundary: {cutoff.isoformat()}")

        if self.policy.filters_all_view:
            all_view = filter_by_cutoff(episodes, cutoff)
        else:
            all_view = episodes

        newest = select_newest_per_source(candidates, cutoff)

        self.logger.info(
            f"Selected {len(all_view)}/{len(episodes)} episodes for the full view "
            f"and {len(newest)} newest episodes"
        )

        return EpisodeViews(all_episodes=tuple(all_view), newest_episodes=tuple(newest))
