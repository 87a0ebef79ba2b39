"""
Tests for the search state, list view and candidate form.
"""

import pytest

from talentdesk.errors import ValidationError
from talentdesk.views import (
    CandidateForm,
    CandidateListView,
    SearchState,
    summarize,
)


def _seed(candidate_client, base, count):
    for i in range(count):
        candidate_client.create_candidate({**base, "email": f"person{i}@example.com", "firstName": f"P{i}"})


class TestSearchState:
    def test_update_drops_empty_values(self):
        state = SearchState()
        filters = state.update(name="jane", email="", company=None)

        assert filters.name == "jane"
        assert filters.email is None
        assert filters.active() == {"name": "jane"}

    def test_listeners_notified(self):
        state = SearchState()
        seen = []
        unsubscribe = state.subscribe(seen.append)

        state.update(role="dev")
        unsubscribe()
        state.update(role="ops")

        assert [f.role for f in seen] == ["dev"]

    @pytest.mark.parametrize("criteria", [
        {"email": "not-an-email"},
        {"min_experience": -1},
        {"max_experience": 101},
        {"min_experience": 5, "max_experience": 2},
        {"min_experience": "many"},
        {"shoe_size": 44},
    ])
    def test_invalid_criteria(self, criteria):
        state = SearchState()
        with pytest.raises(ValidationError):
            state.update(**criteria)
        assert state.filters.is_empty()


class TestSummarize:
    def test_latest_and_highest(self):
        summary = summarize({
            "id": "1",
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane@example.com",
            "available": False,
            "experience": [
                {"role": "Lead", "company": "Acme", "industry": "Software"},
                {"role": "Junior", "company": "Initech", "industry": "Finance"},
            ],
            "education": [
                {"degree": "BSc", "title": "CS", "institution": "State U", "years": 4},
                {"degree": "MSc", "title": "AI", "institution": "Tech U", "years": 2},
                {"degree": "Cert", "title": "Cloud", "institution": "Online", "years": None},
            ],
        })

        assert summary.name == "Jane Doe"
        assert summary.availability == "Not Available"
        assert summary.headline == "Lead at Acme"
        assert summary.industry == "Software"
        assert summary.education == "BSc in CS"
        assert summary.institution == "State U"

    def test_no_nested(self):
        summary = summarize({"id": "1", "firstName": "A", "lastName": "B", "email": "a@b.co", "available": True})
        assert summary.headline is None
        assert summary.education is None


class TestCandidateListView:
    def test_infinite_scroll(self, candidate_client, minimal_candidate):
        _seed(candidate_client, minimal_candidate, 12)
        view = CandidateListView(candidate_client, SearchState())

        assert view.has_next_page
        assert len(view.fetch_next_page()) == 10
        assert view.has_next_page
        assert len(view.fetch_next_page()) == 2
        assert not view.has_next_page
        assert view.fetch_next_page() == []
        assert len(view.candidates) == 12
        assert len({c["id"] for c in view.candidates}) == 12

    def test_search_change_resets_pages(self, candidate_client, minimal_candidate, valid_candidate):
        _seed(candidate_client, minimal_candidate, 3)
        candidate_client.create_candidate(valid_candidate)
        state = SearchState()
        view = CandidateListView(candidate_client, state)
        view.load_all()
        assert len(view.candidates) == 4

        state.update(company="acme")

        assert view.pages == []
        view.load_all()
        assert [s.name for s in view.summaries()] == ["Jane Doe"]

    def test_empty_result(self, candidate_client):
        view = CandidateListView(candidate_client, SearchState())
        assert not view.is_empty
        view.fetch_next_page()
        assert view.is_empty


class TestCandidateForm:
    def test_create_with_dynamic_rows(self, candidate_client):
        form = CandidateForm(candidate_client)
        form.set(firstName="Jane", lastName="Doe", email="jane@example.com", address="1 Road")
        keep = form.add_experience(role="Dev", company="Acme", industry="Software", startDate="2019-01-01")
        drop = form.add_experience(role="Temp", company="Gone", industry="Retail", startDate="2018-01-01")
        form.add_education(institution="State U", title="CS", degree="BSc", years=4)
        form.remove_experience(drop)

        saved = form.submit()

        assert form.candidate_id == saved["id"]
        assert [e["role"] for e in saved["experience"]] == ["Dev"]
        assert saved["education"][0]["degree"] == "BSc"
        assert keep != drop

    def test_local_keys_are_unique_and_not_ids(self, candidate_client):
        form = CandidateForm(candidate_client)
        keys = {form.add_education(institution=f"U{i}", title="T", degree="D") for i in range(5)}
        assert len(keys) == 5

    def test_validation(self, candidate_client):
        form = CandidateForm(candidate_client)
        form.set(email="bad")
        form.add_experience(role="Dev")

        errors = form.validate()

        assert "firstName is required" in errors
        assert "Invalid email" in errors
        assert "experience[0].company is required" in errors
        with pytest.raises(ValidationError):
            form.submit()

    def test_edit_existing_replaces_rows(self, candidate_client, valid_candidate):
        created = candidate_client.create_candidate(valid_candidate)

        form = CandidateForm(candidate_client, candidate_id=created["id"]).load()
        assert form.fields["firstName"] == "Jane"
        assert len(form.experience) == 1
        form.remove_experience(form.experience[0].key)
        form.set(available=False)
        saved = form.submit()

        assert saved["experience"] == []
        assert saved["available"] is False
        assert len(saved["education"]) == 1

    def test_delete(self, candidate_client, valid_candidate):
        created = candidate_client.create_candidate(valid_candidate)
        form = CandidateForm(candidate_client, candidate_id=created["id"])

        form.delete()

        assert form.is_new
        assert candidate_client.list_candidates() == []

    def test_delete_unsaved(self, candidate_client):
        with pytest.raises(ValidationError):
            CandidateForm(candidate_client).delete()

    def test_unknown_field(self, candidate_client):
        with pytest.raises(KeyError):
            CandidateForm(candidate_client).set(nickname="JD")
