"""
Client-side view models for searching and editing candidates.

Nothing here renders anything; these objects hold the state a UI (or the CLI)
needs and talk to the API through CandidateClient.

- SearchState: the current search criteria, shared by the search form and the list.
- CandidateListView: pages of results, fetched one page at a time ("infinite scroll").
- CandidateForm: a candidate draft with add/remove of education and experience rows.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .client import CandidateClient
from .errors import ValidationError
from .filters import CandidateFilters
from .schema import EMAIL_RE

PAGE_SIZE = 10
MAX_EXPERIENCE_BOUND = 100


class SearchState:
    """Search criteria shared between the search form and the list view."""

    def __init__(self, filters: Optional[CandidateFilters] = None):
        self._filters = filters or CandidateFilters()
        self._listeners: List[Callable[[CandidateFilters], None]] = []

    @property
    def filters(self) -> CandidateFilters:
        return self._filters

    def subscribe(self, listener: Callable[[CandidateFilters], None]) -> Callable[[], None]:
        """Register a callback for filter changes. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **criteria) -> CandidateFilters:
        """
        Replace the current criteria with the given ones.

        Empty values are dropped. Raises ValidationError on a malformed email,
        experience bounds outside 0..100, or min greater than max.
        """
        cleaned = {
            key: value for key, value in criteria.items()
            if value is not None and not (isinstance(value, str) and value.strip() == "")
        }
        errors = validate_search(cleaned)
        if errors:
            raise ValidationError("Invalid search criteria", errors)
        try:
            self._filters = CandidateFilters(**cleaned)
        except TypeError as e:
            raise ValidationError("Invalid search criteria", [str(e)])
        for listener in list(self._listeners):
            listener(self._filters)
        return self._filters

    def clear(self) -> CandidateFilters:
        return self.update()


def validate_search(criteria: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    email = criteria.get("email")
    if email is not None and not EMAIL_RE.match(str(email)):
        errors.append("Invalid email format")

    bounds = {}
    for key in ("min_experience", "max_experience"):
        if key not in criteria:
            continue
        try:
            value = float(criteria[key])
        except (TypeError, ValueError):
            errors.append(f"{key} must be a number")
            continue
        if value < 0 or value > MAX_EXPERIENCE_BOUND:
            errors.append(f"{key} must be between 0 and {MAX_EXPERIENCE_BOUND}")
        bounds[key] = value
        criteria[key] = value

    if "min_experience" in bounds and "max_experience" in bounds:
        if bounds["min_experience"] > bounds["max_experience"]:
            errors.append("Min experience must be less than max experience")
    return errors


@dataclass
class CandidateSummary:
    id: str
    name: str
    email: str
    available: bool
    headline: Optional[str] = None
    industry: Optional[str] = None
    education: Optional[str] = None
    institution: Optional[str] = None
    resume_url: Optional[str] = None

    @property
    def availability(self) -> str:
        return "Available" if self.available else "Not Available"


def summarize(candidate: Dict[str, Any]) -> CandidateSummary:
    """Condense an API candidate into the fields shown in a list row."""
    experience = candidate.get("experience") or []
    education = candidate.get("education") or []

    summary = CandidateSummary(
        id=candidate["id"],
        name=f"{candidate.get('firstName', '')} {candidate.get('lastName', '')}".strip(),
        email=candidate.get("email", ""),
        available=bool(candidate.get("available")),
        resume_url=candidate.get("resumeUrl"),
    )
    if experience:
        latest = experience[0]
        summary.headline = f"{latest['role']} at {latest['company']}"
        summary.industry = latest.get("industry")
    if education:
        # Ties keep the later entry
        highest = education[0]
        for entry in education[1:]:
            if (highest.get("years") or 0) <= (entry.get("years") or 0):
                highest = entry
        summary.education = f"{highest['degree']} in {highest['title']}"
        summary.institution = highest.get("institution")
    return summary


class CandidateListView:
    """
    Paged candidate list driven by a SearchState.

    A further page is available while the last page came back full. Changing
    the search criteria discards loaded pages.
    """

    def __init__(self, client: CandidateClient, search_state: SearchState, page_size: int = PAGE_SIZE):
        self.client = client
        self.search_state = search_state
        self.page_size = page_size
        self.pages: List[List[Dict[str, Any]]] = []
        self._unsubscribe = search_state.subscribe(lambda _filters: self.reset())

    def reset(self) -> None:
        self.pages = []

    def close(self) -> None:
        self._unsubscribe()

    @property
    def has_next_page(self) -> bool:
        if not self.pages:
            return True
        return len(self.pages[-1]) >= self.page_size

    def fetch_next_page(self) -> List[Dict[str, Any]]:
        """Fetch and keep the next page. Returns [] when there is nothing more."""
        if not self.has_next_page:
            return []
        page = self.client.list_candidates(self.search_state.filters, page=len(self.pages) + 1)
        self.pages.append(page)
        return page

    def load_all(self, max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        while self.has_next_page and (max_pages is None or len(self.pages) < max_pages):
            self.fetch_next_page()
        return self.candidates

    @property
    def candidates(self) -> List[Dict[str, Any]]:
        return [c for page in self.pages for c in page]

    @property
    def is_empty(self) -> bool:
        return bool(self.pages) and not any(self.pages)

    def summaries(self) -> List[CandidateSummary]:
        return [summarize(c) for c in self.candidates]


EXPERIENCE_REQUIRED = ("role", "company", "industry", "startDate")
EDUCATION_REQUIRED = ("institution", "title", "degree")
CANDIDATE_REQUIRED = ("firstName", "lastName", "email", "address")


@dataclass
class DraftEntry:
    """Education or experience row being edited. `key` is local, not a database id."""

    values: Dict[str, Any]
    key: str = field(default_factory=lambda: uuid.uuid4().hex)


def _iso(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class CandidateForm:
    """
    Draft of a new or existing candidate.

    Education and experience rows are edited as an ordered list keyed by
    local keys and submitted all together.
    """

    def __init__(self, client: CandidateClient, candidate_id: Optional[str] = None):
        self.client = client
        self.candidate_id = candidate_id
        self.fields: Dict[str, Any] = {
            "firstName": "",
            "lastName": "",
            "email": "",
            "address": "",
            "available": True,
        }
        self.experience: List[DraftEntry] = []
        self.education: List[DraftEntry] = []

    @property
    def is_new(self) -> bool:
        return self.candidate_id is None

    def load(self) -> "CandidateForm":
        """Fill the draft from the stored candidate."""
        if self.is_new:
            return self
        candidate = self.client.get_candidate(self.candidate_id)
        for key in self.fields:
            if key in candidate:
                self.fields[key] = candidate[key]
        self.experience = [
            DraftEntry({k: exp.get(k) for k in ("role", "company", "industry", "startDate", "endDate")})
            for exp in candidate.get("experience") or []
        ]
        self.education = [
            DraftEntry({k: edu.get(k) for k in ("institution", "title", "degree", "years")})
            for edu in candidate.get("education") or []
        ]
        return self

    def set(self, **values) -> None:
        for key, value in values.items():
            if key not in self.fields:
                raise KeyError(f"Unknown candidate field: {key}")
            self.fields[key] = value

    def add_experience(self, **values) -> str:
        entry = DraftEntry({
            "role": values.get("role", ""),
            "company": values.get("company", ""),
            "industry": values.get("industry", ""),
            "startDate": values.get("startDate", ""),
            "endDate": values.get("endDate"),
        })
        self.experience.append(entry)
        return entry.key

    def remove_experience(self, key: str) -> None:
        self.experience = [e for e in self.experience if e.key != key]

    def add_education(self, **values) -> str:
        entry = DraftEntry({
            "institution": values.get("institution", ""),
            "title": values.get("title", ""),
            "degree": values.get("degree", ""),
            "years": values.get("years"),
        })
        self.education.append(entry)
        return entry.key

    def remove_education(self, key: str) -> None:
        self.education = [e for e in self.education if e.key != key]

    def validate(self) -> List[str]:
        errors = []
        for name in CANDIDATE_REQUIRED:
            value = self.fields.get(name)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{name} is required")
        email = self.fields.get("email")
        if isinstance(email, str) and email.strip() and not EMAIL_RE.match(email.strip()):
            errors.append("Invalid email")
        for i, entry in enumerate(self.experience):
            for name in EXPERIENCE_REQUIRED:
                if not entry.values.get(name):
                    errors.append(f"experience[{i}].{name} is required")
        for i, entry in enumerate(self.education):
            for name in EDUCATION_REQUIRED:
                if not entry.values.get(name):
                    errors.append(f"education[{i}].{name} is required")
        return errors

    def to_payload(self) -> Dict[str, Any]:
        experience = []
        for entry in self.experience:
            values = dict(entry.values)
            values["startDate"] = _iso(values.get("startDate"))
            values["endDate"] = _iso(values.get("endDate"))
            experience.append(values)
        return {
            **self.fields,
            "experience": experience,
            "education": [dict(entry.values) for entry in self.education],
        }

    def submit(self, resume_path: Optional[Path] = None) -> Dict[str, Any]:
        """
        Create or update the candidate.

        A resume can only be attached when creating; it is sent as multipart.
        """
        errors = self.validate()
        if errors:
            raise ValidationError("Candidate form is invalid", errors)
        payload = self.to_payload()
        if self.is_new:
            saved = self.client.create_candidate(payload, resume_path=resume_path)
            self.candidate_id = saved["id"]
        else:
            saved = self.client.update_candidate(self.candidate_id, payload)
        return saved

    def delete(self) -> None:
        if self.is_new:
            raise ValidationError("Cannot delete a candidate that was never saved")
        self.client.delete_candidate(self.candidate_id)
        self.candidate_id = None
