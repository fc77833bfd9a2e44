"""
Patient ID resolver.

Clinical records have been filed under three identifier schemes over time:
- the identity provider's user id (auth id)
- the patient chart document id used by staff screens
- a legacy patient id linked from the user profile

``PatientIdResolver.resolve`` returns every identifier the caller's records may
be stored under. Chart store lookups are best effort: each one is bounded by a
timeout and a failure only drops the ids that lookup would have contributed.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Iterable, Iterator, List, Optional, Set, Tuple, TypeVar

from ...application.ports.repositories.chart_repo import ChartField, ChartRepository
from ...domain.entities.profile import Profile
from ..exceptions import ChartLookupError

logger = logging.getLogger("homecare")

T = TypeVar("T")

DEFAULT_LOOKUP_LIMIT = 5
DEFAULT_LOOKUP_TIMEOUT = 5.0


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one chart store lookup: the ids it found, or why it failed."""

    source: str
    ids: Tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source: str, ids: Iterable[Optional[str]]) -> "LookupResult":
        return cls(source=source, ids=tuple(i for i in ids if i))

    @classmethod
    def failure(cls, source: str, reason: str) -> "LookupResult":
        return cls(source=source, error=reason)


@dataclass(frozen=True)
class ResolvedPatientIds:
    """Deduplicated, trimmed, insertion-ordered patient identifiers."""

    values: Tuple[str, ...]

    @classmethod
    def from_candidates(cls, candidates: Iterable[Optional[str]]) -> "ResolvedPatientIds":
        seen: Set[str] = set()
        ordered: List[str] = []
        for candidate in candidates:
            value = _clean(candidate)
            if value and value not in seen:
                seen.add(value)
                ordered.append(value)
        return cls(tuple(ordered))

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, item: object) -> bool:
        return item in self.values

    def as_set(self) -> Set[str]:
        return set(self.values)

    def to_list(self) -> List[str]:
        return list(self.values)


class PatientIdResolver:
    """Resolves the set of patient ids a request may refer to."""

    def __init__(
        self,
        charts: ChartRepository,
        lookup_limit: int = DEFAULT_LOOKUP_LIMIT,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
        debug: bool = False,
    ) -> None:
        self._charts = charts
        self._lookup_limit = lookup_limit
        self._lookup_timeout = lookup_timeout
        self._debug = debug

    async def resolve(
        self, requested_id: str, caller_auth_id: Optional[str], profile: Profile
    ) -> ResolvedPatientIds:
        """
        Resolve all patient ids to query for a request.

        Args:
            requested_id: The patient id from the request path
            caller_auth_id: The authenticated caller's auth id
            profile: The caller's profile

        Returns:
            Resolved ids; contains the trimmed requested id whenever it is non-blank
        """
        requested = _clean(requested_id)
        caller = _clean(caller_auth_id)
        is_patient = profile.is_patient
        is_self = bool(caller) and caller == requested
        limit = self._lookup_limit

        candidates: List[Optional[str]] = [requested]

        # Patients are always identified by their auth id, even when staff
        # filed records under a chart id.
        if is_patient and caller:
            candidates.append(caller)

        if profile.linked_patient_id:
            candidates.append(profile.linked_patient_id)

        planned: List[Awaitable[LookupResult]] = []

        # Phone is not unique, so every matching chart is included.
        if is_patient and profile.phone:
            planned.append(self._search("phone", ChartField.PHONE, profile.phone, limit))

        if is_patient and is_self:
            planned.append(self._search("self_owner_id", ChartField.OWNER_ID, requested, limit))
            planned.append(self._search("self_auth_user_id", ChartField.AUTH_USER_ID, requested, limit))
            planned.append(self._chart_with_owner("self_chart", requested))

        if is_patient and not is_self and requested:
            planned.append(self._chart_owner("requested_chart", requested))
            if caller:
                planned.append(self._search("caller_owner_id", ChartField.OWNER_ID, caller, limit))
                planned.append(self._search("caller_auth_user_id", ChartField.AUTH_USER_ID, caller, limit))

        results: List[LookupResult] = list(await asyncio.gather(*planned))

        if not is_patient and requested:
            results.extend(await self._staff_lookups(requested))

        resolved = ResolvedPatientIds.from_candidates(self._fold(candidates, results))

        if self._debug:
            logger.info(
                f"[PATIENT_ID_RESOLVER] Input: requested_id={requested!r} caller_auth_id={caller!r} "
                f"is_patient={is_patient} is_self_access={is_self}"
            )
            logger.info(f"[PATIENT_ID_RESOLVER] Resolved IDs: {resolved.to_list()}")

        return resolved

    def _fold(self, candidates: List[Optional[str]], results: Iterable[LookupResult]) -> List[Optional[str]]:
        """Accumulate successful lookups onto the candidates, logging failures."""
        for result in results:
            if result.ok:
                candidates.extend(result.ids)
            else:
                logger.warning(f"[PATIENT_ID_RESOLVER] {result.source} lookup failed: {result.error}")
        return candidates

    async def _call(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self._lookup_timeout)
        except asyncio.TimeoutError as e:
            raise ChartLookupError(f"timed out after {self._lookup_timeout}s") from e
        except ChartLookupError:
            raise
        except Exception as e:
            raise ChartLookupError(str(e) or type(e).__name__) from e

    async def _search(self, source: str, field: ChartField, value: str, limit: int) -> LookupResult:
        try:
            charts = await self._call(self._charts.find_by_field(field, value, limit))
        except ChartLookupError as e:
            return LookupResult.failure(source, e.message)
        return LookupResult.success(source, (chart.chart_id for chart in charts))

    async def _chart_with_owner(self, source: str, chart_id: str) -> LookupResult:
        """Chart id plus its linked auth id, so chart->auth and auth->chart are both covered."""
        try:
            chart = await self._call(self._charts.get_by_id(chart_id))
        except ChartLookupError as e:
            return LookupResult.failure(source, e.message)
        if chart is None:
            return LookupResult.success(source, ())
        ids = [chart.chart_id]
        if chart.auth_user_id and chart.auth_user_id != chart_id:
            ids.append(chart.auth_user_id)
        return LookupResult.success(source, ids)

    async def _chart_owner(self, source: str, chart_id: str) -> LookupResult:
        try:
            chart = await self._call(self._charts.get_by_id(chart_id))
        except ChartLookupError as e:
            return LookupResult.failure(source, e.message)
        if chart is None or not chart.auth_user_id:
            return LookupResult.success(source, ())
        return LookupResult.success(source, (chart.auth_user_id,))

    async def _staff_lookups(self, requested: str) -> List[LookupResult]:
        """Staff may pass either a chart id or an auth id."""
        try:
            chart = await self._call(self._charts.get_by_id(requested))
        except ChartLookupError as e:
            # Without a definite "not found" the auth id fallbacks are skipped.
            return [LookupResult.failure("staff_chart", e.message)]

        if chart is not None:
            return [LookupResult.success("staff_chart", (chart.auth_user_id,))]

        return list(
            await asyncio.gather(
                self._search("staff_owner_id", ChartField.OWNER_ID, requested, 1),
                self._search("staff_auth_user_id", ChartField.AUTH_USER_ID, requested, 1),
            )
        )
