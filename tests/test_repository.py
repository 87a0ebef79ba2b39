"""
Tests for the candidate repository.
"""

import pytest
from datetime import datetime

from talentdesk.database import Candidate, Education, Experience
from talentdesk.errors import NotFoundError
from talentdesk.filters import CandidateFilters
from talentdesk.repositories.candidates import CandidateRepository
from talentdesk.schema import parse_candidate


@pytest.fixture
def repo(db_session):
    return CandidateRepository(db_session)


def _create(repo, payload):
    parsed = parse_candidate(payload)
    return repo.create(parsed.scalar_fields(), parsed.education, parsed.experience)


class TestCreate:
    def test_create_with_nested(self, repo, valid_candidate):
        candidate = _create(repo, valid_candidate)

        assert candidate.id
        assert candidate.first_name == "Jane"
        assert len(candidate.education) == 1
        assert candidate.experience[0].company == "Acme Corp"
        assert candidate.experience[0].start_date == datetime(2018, 1, 1)

    def test_create_without_nested_stores_empty_lists(self, repo, minimal_candidate):
        candidate = _create(repo, minimal_candidate)

        fetched = repo.find_by_id(candidate.id)
        assert fetched.education == []
        assert fetched.experience == []

    def test_failed_create_rolls_back(self, repo, db_session):
        with pytest.raises(Exception):
            repo.create({"first_name": "No", "last_name": "Email", "address": "x", "email": None})

        assert db_session.query(Candidate).count() == 0


class TestFind:
    def test_find_by_id_missing(self, repo):
        assert repo.find_by_id("nope") is None

    def test_get_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            repo.get("nope")

    def test_find_many_pushdown_and_memory_filters(self, repo, valid_candidate, minimal_candidate):
        _create(repo, valid_candidate)
        _create(repo, minimal_candidate)

        assert len(repo.find_many()) == 2
        assert [c.first_name for c in repo.find_many(CandidateFilters(name="JANE"))] == ["Jane"]
        assert [c.first_name for c in repo.find_many(CandidateFilters(email="smith"))] == ["John"]
        assert [c.first_name for c in repo.find_many(CandidateFilters(company="acme"))] == ["Jane"]
        assert repo.find_many(CandidateFilters(name="jane", company="globex")) == []

    def test_find_many_non_ascii_case_insensitive(self, repo, minimal_candidate):
        _create(repo, {**minimal_candidate, "firstName": "Élodie", "lastName": "Ørsted", "email": "ÉLODIE@exämple.com"})

        assert [c.first_name for c in repo.find_many(CandidateFilters(name="élodie"))] == ["Élodie"]
        assert [c.first_name for c in repo.find_many(CandidateFilters(name="ØRST"))] == ["Élodie"]
        assert [c.first_name for c in repo.find_many(CandidateFilters(email="élodie@EXÄMPLE"))] == ["Élodie"]

    def test_find_many_available(self, repo, valid_candidate, minimal_candidate):
        _create(repo, valid_candidate)
        _create(repo, {**minimal_candidate, "available": False})

        assert [c.first_name for c in repo.find_many(CandidateFilters(available=False))] == ["John"]
        assert [c.first_name for c in repo.find_many(CandidateFilters(available=True))] == ["Jane"]

    def test_name_with_wildcard_characters_is_literal(self, repo, valid_candidate):
        _create(repo, valid_candidate)

        assert repo.find_many(CandidateFilters(name="%")) == []
        assert repo.find_many(CandidateFilters(name="_")) == []


class TestReplace:
    def test_replace_swaps_nested_collections(self, repo, valid_candidate, db_session):
        payload = dict(valid_candidate)
        payload["experience"] = valid_candidate["experience"] * 2
        candidate = _create(repo, payload)
        assert len(candidate.experience) == 2

        update = parse_candidate({
            "experience": [{
                "role": "CTO", "company": "Initech", "industry": "Finance", "startDate": "2021-03-01",
            }],
        }, partial=True)
        updated = repo.replace(candidate.id, update.scalar_fields(), update.education, update.experience)

        assert [e.role for e in updated.experience] == ["CTO"]
        assert updated.experience[0].end_date is None
        assert updated.education == []
        assert db_session.query(Experience).count() == 1
        assert db_session.query(Education).count() == 0
        assert updated.first_name == "Jane"

    def test_replace_updates_given_scalars(self, repo, valid_candidate):
        candidate = _create(repo, valid_candidate)

        update = parse_candidate({"lastName": "Smith", "available": False}, partial=True)
        updated = repo.replace(candidate.id, update.scalar_fields(), update.education, update.experience)

        assert updated.last_name == "Smith"
        assert updated.available is False
        assert updated.email == valid_candidate["email"]

    def test_replace_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            repo.replace("nope", {}, [], [])


class TestDelete:
    def test_delete_cascades(self, repo, valid_candidate, db_session):
        candidate = _create(repo, valid_candidate)

        repo.delete(candidate.id)

        assert repo.count() == 0
        assert db_session.query(Education).count() == 0
        assert db_session.query(Experience).count() == 0

    def test_delete_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            repo.delete("nope")
