"""
In-memory candidate filtering.

Narrows an already-fetched candidate collection by optional criteria. All
active criteria are combined with AND; criteria left as None (or empty strings)
do not filter anything. The functions here only read attributes, so they work
on ORM instances and on plain objects alike.
"""

from dataclasses import asdict, dataclass, fields
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from .errors import ValidationError

# Fixed 365-day year, not calendar aware, so totals are stable across leap years
SECONDS_PER_YEAR = 365 * 24 * 60 * 60

# Query parameter name -> CandidateFilters field
PARAM_NAMES = {
    "name": "name",
    "email": "email",
    "company": "company",
    "role": "role",
    "industry": "industry",
    "minExperience": "min_experience",
    "maxExperience": "max_experience",
    "degree": "degree",
    "degreeTitle": "degree_title",
    "available": "available",
}


@dataclass(frozen=True)
class CandidateFilters:
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    industry: Optional[str] = None
    min_experience: Optional[float] = None
    max_experience: Optional[float] = None
    degree: Optional[str] = None
    degree_title: Optional[str] = None
    available: Optional[bool] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "CandidateFilters":
        """
        Build filters from query parameters (camelCase names).

        `available` is True only for the string "true". Experience bounds must
        be numeric; anything else raises ValidationError.
        """
        values = {}
        errors: List[str] = []
        for param, field_name in PARAM_NAMES.items():
            raw = params.get(param)
            if raw is None:
                continue
            if field_name == "available":
                values[field_name] = raw if isinstance(raw, bool) else str(raw).lower() == "true"
            elif field_name in ("min_experience", "max_experience"):
                if isinstance(raw, str) and raw.strip() == "":
                    continue
                try:
                    values[field_name] = float(raw)
                except (TypeError, ValueError):
                    errors.append(f"Query parameter '{param}' must be a number")
            else:
                values[field_name] = str(raw)
        if errors:
            raise ValidationError("Invalid search parameters", errors)
        return cls(**values)

    def to_params(self) -> dict:
        """Inverse of from_params; inactive criteria are left out."""
        params = {}
        for param, field_name in PARAM_NAMES.items():
            value = getattr(self, field_name)
            if not _is_active(value):
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            params[param] = value
        return params

    def pushdown(self) -> dict:
        """Criteria the storage layer can evaluate directly."""
        return {
            key: value
            for key, value in (("name", self.name), ("email", self.email), ("available", self.available))
            if _is_active(value)
        }

    def active(self) -> dict:
        return {key: value for key, value in asdict(self).items() if _is_active(value)}

    def is_empty(self) -> bool:
        return not self.active()

    def replace(self, **changes) -> "CandidateFilters":
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown filter fields: {', '.join(sorted(unknown))}")
        merged = {**asdict(self), **changes}
        return CandidateFilters(**merged)


def _is_active(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and value.strip() == "":
        return False
    return True


def _contains(haystack: Optional[str], needle: str) -> bool:
    if haystack is None:
        return False
    return needle.lower() in haystack.lower()


def _any_contains(entries: Iterable[Any], attr: str, needle: str) -> bool:
    return any(_contains(getattr(entry, attr, None), needle) for entry in entries or [])


def _as_naive_utc(value) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def total_experience_years(experiences: Iterable[Any], now: Optional[datetime] = None) -> float:
    """
    Sum of (end_date or now) - start_date over all experience entries, in years.

    Args:
        experiences: Objects with start_date and optional end_date
        now: Reference time for ongoing entries (default: current UTC time)

    Returns:
        Total years using a fixed 365-day year
    """
    reference = _as_naive_utc(now) if now is not None else utcnow()
    total = 0.0
    for exp in experiences or []:
        start = _as_naive_utc(exp.start_date)
        end = _as_naive_utc(exp.end_date) if exp.end_date else reference
        total += (end - start).total_seconds() / SECONDS_PER_YEAR
    return total


def matches(candidate: Any, filters: CandidateFilters, now: Optional[datetime] = None) -> bool:
    """Return True if the candidate satisfies every active criterion."""
    if _is_active(filters.name):
        if not (_contains(candidate.first_name, filters.name) or _contains(candidate.last_name, filters.name)):
            return False

    if _is_active(filters.email) and not _contains(candidate.email, filters.email):
        return False

    if filters.available is not None and bool(candidate.available) != filters.available:
        return False

    experience = list(candidate.experience or [])
    education = list(candidate.education or [])

    if _is_active(filters.company) and not _any_contains(experience, "company", filters.company):
        return False
    if _is_active(filters.role) and not _any_contains(experience, "role", filters.role):
        return False
    if _is_active(filters.industry) and not _any_contains(experience, "industry", filters.industry):
        return False

    if _is_active(filters.degree) and not _any_contains(education, "degree", filters.degree):
        return False
    if _is_active(filters.degree_title) and not _any_contains(education, "title", filters.degree_title):
        return False

    if filters.min_experience is not None or filters.max_experience is not None:
        # No experience entries never satisfies an experience bound, even min=0
        if not experience:
            return False
        years = total_experience_years(experience, now)
        if filters.min_experience is not None and years < filters.min_experience:
            return False
        if filters.max_experience is not None and years > filters.max_experience:
            return False

    return True


def filter_candidates(
    candidates: Iterable[Any],
    filters: Optional[CandidateFilters] = None,
    now: Optional[datetime] = None,
) -> list:
    """
    Return the candidates matching all active filters, preserving input order.

    `now` is resolved once so every candidate is measured against the same instant.
    """
    candidates = list(candidates)
    if filters is None or filters.is_empty():
        return candidates
    reference = now if now is not None else utcnow()
    return [c for c in candidates if matches(c, filters, reference)]


def paginate(items: List[Any], page: int, page_size: int) -> List[Any]:
    """Slice a 1-based page out of items. Pages past the end are empty."""
    if page < 1:
        raise ValidationError("Query parameter 'page' must be >= 1")
    start = (page - 1) * page_size
    return items[start:start + page_size]
