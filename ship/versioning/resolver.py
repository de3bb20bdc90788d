"""Resolve the current version of an app from several sources.

Policy:
- every source is queried, concurrently, one worker per source
- the resolved version is the maximum over every successful answer of
  every source (not a per-source maximum)
- a failed source only narrows the candidate set
- with no successful answer the result is 0.0.0, flagged as not
  authoritative
- a caller-supplied floor is never undercut: result = max(floor, resolved)

Taking the maximum across stores folds distinct platform tracks into one
number: every platform ships the same version.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ship.core.result import Err, Ok
from ship.versioning.errors import SourceFailure
from ship.versioning.semver import SemanticVersion, baseline
from ship.versioning.sources import SourceContext, VersionQueryResult, VersionSource

__all__ = ["ResolvedVersion", "VersionResolver"]


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """Outcome of one resolution.

    Attributes:
        version: The resolved version (baseline when nothing answered).
        authoritative: False when no source produced a version.
        contributors: (source id, version) for every success, in source order.
        failures: Every source that failed, with its reason.
        floor: The caller-requested minimum, if any.
        floor_applied: True when the floor is above every reported version.
    """

    version: SemanticVersion
    authoritative: bool
    contributors: tuple[tuple[str, SemanticVersion], ...] = ()
    failures: tuple[SourceFailure, ...] = ()
    floor: SemanticVersion | None = None
    floor_applied: bool = False

    @property
    def candidates(self) -> frozenset[SemanticVersion]:
        return frozenset(version for _, version in self.contributors)

    @property
    def by_source(self) -> dict[str, SemanticVersion]:
        return dict(self.contributors)

    @property
    def failed_sources(self) -> tuple[str, ...]:
        return tuple(f.source_id for f in self.failures)


class _Collector:
    """Lock-guarded fan-in of source answers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.versions: set[SemanticVersion] = set()
        self.contributors: dict[str, SemanticVersion] = {}
        self.failures: dict[str, SourceFailure] = {}

    def add(self, source_id: str, result: VersionQueryResult) -> None:
        with self._lock:
            match result:
                case Ok(version):
                    self.versions.add(version)
                    self.contributors[source_id] = version
                case Err(failure):
                    self.failures[source_id] = failure


class VersionResolver:
    """Queries version sources and picks the authoritative current version."""

    def __init__(self, *, max_workers: int | None = None) -> None:
        self._max_workers = max_workers

    def resolve(
        self,
        sources: Sequence[VersionSource],
        context: SourceContext,
        *,
        floor: SemanticVersion | None = None,
    ) -> ResolvedVersion:
        collector = _Collector()

        if sources:
            workers = self._max_workers or len(sources)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ship-source") as pool:
                futures = [
                    pool.submit(self._query, source, context, collector) for source in sources
                ]
            for future in futures:
                future.result()

        authoritative = bool(collector.versions)
        resolved = max(collector.versions) if authoritative else baseline()

        floor_applied = floor is not None and floor > resolved
        if floor is not None and floor_applied:
            resolved = floor

        # Report in declaration order, not completion order
        order = {s.source_id: i for i, s in enumerate(sources)}

        def position(source_id: str) -> int:
            return order.get(source_id, len(order))

        contributors = tuple(
            sorted(collector.contributors.items(), key=lambda item: position(item[0]))
        )
        failures = tuple(sorted(collector.failures.values(), key=lambda f: position(f.source_id)))

        return ResolvedVersion(
            version=resolved,
            authoritative=authoritative,
            contributors=contributors,
            failures=failures,
            floor=floor,
            floor_applied=floor_applied,
        )

    @staticmethod
    def _query(source: VersionSource, context: SourceContext, collector: _Collector) -> None:
        try:
            result = source.fetch(context)
        except Exception as e:  # noqa: BLE001
            result = Err(SourceFailure(source.source_id, f"unexpected error: {e}"))
        collector.add(source.source_id, result)
