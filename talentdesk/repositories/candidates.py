"""
Candidates Repository.

Responsibilities:
- CRUD operations for candidates and their owned education/experience rows.
- Transaction-safe writes: each create/replace/delete commits once or rolls back.
- Push name/email/available predicates down to SQL.

Non-Responsibilities:
- No request parsing.
- No nested-collection matching (see talentdesk.filters).

Invariant:
Education and experience rows never outlive their candidate.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..database import Candidate, Education, Experience
from ..errors import NotFoundError
from ..filters import CandidateFilters, filter_candidates
from ..logger import get_logger

logger = get_logger()

EDUCATION_FIELDS = ("institution", "title", "degree", "years")
EXPERIENCE_FIELDS = ("role", "company", "industry", "start_date", "end_date")


def _as_dict(entry: Any) -> Dict[str, Any]:
    if isinstance(entry, dict):
        return entry
    return entry.model_dump()


def _build_education(entries: Optional[Iterable[Any]]) -> List[Education]:
    rows = []
    for entry in entries or []:
        data = _as_dict(entry)
        rows.append(Education(**{k: data.get(k) for k in EDUCATION_FIELDS}))
    return rows


def _build_experience(entries: Optional[Iterable[Any]]) -> List[Experience]:
    rows = []
    for entry in entries or []:
        data = _as_dict(entry)
        rows.append(Experience(**{k: data.get(k) for k in EXPERIENCE_FIELDS}))
    return rows


class CandidateRepository:
    """Record store for candidates, bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return self.session.query(Candidate).options(
            selectinload(Candidate.education),
            selectinload(Candidate.experience),
        )

    def find_many(self, filters: Optional[CandidateFilters] = None) -> List[Candidate]:
        """
        Fetch candidates matching filters.

        name, email and available are evaluated by the database; the criteria
        on nested collections and experience years run in memory afterwards.
        """
        filters = filters or CandidateFilters()
        query = self._query()
        pushed = filters.pushdown()

        if "name" in pushed:
            query = query.filter(or_(
                Candidate.first_name.icontains(pushed["name"], autoescape=True),
                Candidate.last_name.icontains(pushed["name"], autoescape=True),
            ))
        if "email" in pushed:
            query = query.filter(Candidate.email.icontains(pushed["email"], autoescape=True))
        if "available" in pushed:
            query = query.filter(Candidate.available == pushed["available"])

        candidates = query.order_by(Candidate.created_at, Candidate.id).all()
        result = filter_candidates(candidates, filters)
        logger.debug(
            "Candidate search",
            filters=filters.active(),
            fetched=len(candidates),
            matched=len(result),
        )
        return result

    def find_by_id(self, candidate_id: str) -> Optional[Candidate]:
        return self._query().filter(Candidate.id == candidate_id).first()

    def get(self, candidate_id: str) -> Candidate:
        """Like find_by_id, but raises NotFoundError when absent."""
        candidate = self.find_by_id(candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate not found")
        return candidate

    def create(
        self,
        candidate_data: Dict[str, Any],
        education: Optional[Iterable[Any]] = None,
        experience: Optional[Iterable[Any]] = None,
    ) -> Candidate:
        """Insert a candidate with its nested rows as one transaction."""
        candidate = Candidate(**candidate_data)
        candidate.education = _build_education(education)
        candidate.experience = _build_experience(experience)
        try:
            self.session.add(candidate)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.record_operation("create")
        logger.info("Candidate created", candidate_id=candidate.id)
        return self.get(candidate.id)

    def replace(
        self,
        candidate_id: str,
        candidate_data: Dict[str, Any],
        education: Optional[Iterable[Any]] = None,
        experience: Optional[Iterable[Any]] = None,
    ) -> Candidate:
        """
        Replace a candidate's nested collections wholesale and apply scalar fields.

        Existing education/experience rows are deleted before the new ones are
        inserted, all inside a single transaction. Missing lists mean empty.

        Raises:
            NotFoundError: If no candidate has this id
        """
        candidate = self.get(candidate_id)
        try:
            candidate.education = []
            candidate.experience = []
            self.session.flush()

            for key, value in candidate_data.items():
                setattr(candidate, key, value)
            candidate.updated_at = datetime.now()
            candidate.education = _build_education(education)
            candidate.experience = _build_experience(experience)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.record_operation("replace")
        logger.info("Candidate replaced", candidate_id=candidate_id)
        self.session.expire_all()
        return self.get(candidate_id)

    def delete(self, candidate_id: str) -> None:
        """
        Delete a candidate and, by cascade, its education and experience.

        Raises:
            NotFoundError: If no candidate has this id
        """
        candidate = self.get(candidate_id)
        try:
            self.session.delete(candidate)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.record_operation("delete")
        logger.info("Candidate deleted", candidate_id=candidate_id)

    def count(self) -> int:
        return self.session.query(Candidate).count()
