"""
Tests for resume storage.
"""

import pytest

from talentdesk.errors import PayloadTooLargeError, ValidationError
from talentdesk.uploads import discard_resume, safe_filename, store_resume


class TestSafeFilename:
    def test_strips_unsafe_characters(self):
        name = safe_filename("../../etc/My Résumé (final).pdf")
        assert "/" not in name
        assert name.endswith("_My_R_sum___final_.pdf")

    def test_unique(self):
        assert safe_filename("cv.pdf") != safe_filename("cv.pdf")


class TestStoreResume:
    def test_stores_file(self, tmp_path):
        url = store_resume("cv.docx", b"content", tmp_path / "uploads", max_bytes=100)

        assert url.startswith("/uploads/")
        stored = tmp_path / "uploads" / url.rsplit("/", 1)[1]
        assert stored.read_bytes() == b"content"

    def test_empty_upload_ignored(self, tmp_path):
        assert store_resume("cv.pdf", b"", tmp_path, max_bytes=100) is None

    def test_limit_is_inclusive(self, tmp_path):
        assert store_resume("cv.pdf", b"x" * 10, tmp_path, max_bytes=10)
        with pytest.raises(PayloadTooLargeError) as exc:
            store_resume("cv.pdf", b"x" * 11, tmp_path, max_bytes=10)
        assert exc.value.status_code == 413

    def test_rejects_other_types(self, tmp_path):
        with pytest.raises(ValidationError):
            store_resume("run.sh", b"#!/bin/sh", tmp_path, max_bytes=100)


class TestDiscardResume:
    def test_removes_stored_file(self, tmp_path):
        url = store_resume("cv.pdf", b"%PDF", tmp_path, 100)

        discard_resume(url, tmp_path)

        assert list(tmp_path.iterdir()) == []

    def test_missing_file_is_ignored(self, tmp_path):
        discard_resume("/uploads/gone.pdf", tmp_path)
