"""
Concurrent data refresh for the metrics layer.

The bet history, bookies and goal are fetched concurrently, each on its
own session, then joined before the snapshot is computed. A generation
counter makes the latest refresh win: when a newer refresh started while
a fetch was in flight, the older result is discarded.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Optional

from .records import FilterContext
from .snapshot import AnalyticsOptions, MetricsSnapshot, build_snapshot

logger = logging.getLogger(__name__)

Fetcher = Callable[[Any], Awaitable[Any]]


class MetricsRefresher:
    """
    Fetch-and-compute loop with last-write-wins publishing.

    Args:
        session_factory: Callable returning an async context manager
            yielding a session (e.g. ``async_sessionmaker``)
        fetch_bets: ``await fetch_bets(session)`` -> bet rows
        fetch_bookies: ``await fetch_bookies(session)`` -> bookie rows
        fetch_goal: ``await fetch_goal(session)`` -> goal row or None
        options: Calculator knobs

    Usage::

        refresher = MetricsRefresher(async_session_factory,
            repository.list_all_bets, repository.list_bookies, repository.get_goal)
        snapshot = await refresher.refresh(FilterContext(bookmaker="Bet365"))
    """

    def __init__(
        self,
        session_factory: Callable[[], Any],
        fetch_bets: Fetcher,
        fetch_bookies: Fetcher,
        fetch_goal: Fetcher,
        options: Optional[AnalyticsOptions] = None
    ):
        self.session_factory = session_factory
        self.fetch_bets = fetch_bets
        self.fetch_bookies = fetch_bookies
        self.fetch_goal = fetch_goal
        self.options = options or AnalyticsOptions()

        self._generation = 0
        self.latest: Optional[MetricsSnapshot] = None

    @property
    def generation(self) -> int:
        return self._generation

    async def _fetch(self, fetcher: Fetcher) -> Any:
        async with self.session_factory() as session:
            return await fetcher(session)

    async def refresh(
        self,
        filters: Optional[FilterContext] = None,
        reference_date: Optional[date] = None
    ) -> Optional[MetricsSnapshot]:
        """
        Fetch, compute and publish a snapshot.

        Returns:
            The new snapshot, or None when a newer refresh superseded
            this one. Fetch errors propagate.
        """
        self._generation += 1
        generation = self._generation

        bets, bookies, goal = await asyncio.gather(
            self._fetch(self.fetch_bets),
            self._fetch(self.fetch_bookies),
            self._fetch(self.fetch_goal),
        )

        if generation != self._generation:
            logger.info(f"Discarding stale refresh {generation} (latest is {self._generation})")
            return None

        snapshot = build_snapshot(
            bets,
            filters=filters,
            goal=goal,
            bookies=bookies,
            reference_date=reference_date,
            options=self.options,
        )
        self.latest = snapshot
        return snapshot
