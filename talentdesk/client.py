"""HTTP client for the TalentDesk candidate API."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .filters import CandidateFilters
from .logger import get_logger
from .retry import RetryableStatus, RetryError, exponential_backoff, should_retry_http_status

logger = get_logger()

CANDIDATES_PATH = "/api/candidates"

RESUME_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class ApiError(Exception):
    """Non-success response (or unreachable server) from the candidate API."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[str]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


def _error_from_response(response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or response.text or f"HTTP {response.status_code}"
    return ApiError(response.status_code, message, body.get("errors"))


class CandidateClient:
    """
    Thin wrapper over the REST API.

    `session` may be any object with a requests-style `request()` method,
    e.g. a requests.Session or a FastAPI TestClient.
    """

    def __init__(self, base_url: str, session=None, timeout: float = 10.0, max_retries: int = 2):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _send(self, method: str, path: str, **kwargs):
        try:
            return self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise ApiError(0, f"Could not reach {self.base_url}: {e}")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None):
        """GET with retries on connection failures and retryable statuses."""

        @exponential_backoff(
            max_retries=self.max_retries,
            exceptions=(requests.exceptions.ConnectionError, requests.exceptions.Timeout, RetryableStatus),
        )
        def fetch():
            response = self.session.request("GET", self._url(path), params=params, timeout=self.timeout)
            if should_retry_http_status(response.status_code):
                raise RetryableStatus(response)
            return response

        try:
            return fetch()
        except RetryError as e:
            cause = e.__cause__
            if isinstance(cause, RetryableStatus):
                return cause.response
            raise ApiError(0, f"Could not reach {self.base_url}: {cause}")

    @staticmethod
    def _check(response, expected=(200,)):
        if response.status_code not in expected:
            raise _error_from_response(response)
        return response

    def list_candidates(
        self,
        filters: Optional[CandidateFilters] = None,
        page: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = filters.to_params() if filters else {}
        if page is not None:
            params["page"] = page
        response = self._check(self._get(CANDIDATES_PATH, params=params))
        return response.json()

    def get_candidate(self, candidate_id: str) -> Dict[str, Any]:
        response = self._check(self._get(f"{CANDIDATES_PATH}/{candidate_id}"))
        return response.json()

    def create_candidate(self, payload: Dict[str, Any], resume_path: Optional[Path] = None) -> Dict[str, Any]:
        """
        Create a candidate. With resume_path the request is sent as
        multipart/form-data with the payload JSON-encoded in the `candidate` field.
        """
        if resume_path is None:
            response = self._send("POST", CANDIDATES_PATH, json=payload)
        else:
            resume_path = Path(resume_path)
            content_type = RESUME_CONTENT_TYPES.get(resume_path.suffix.lower(), "application/octet-stream")
            with resume_path.open("rb") as f:
                response = self._send(
                    "POST",
                    CANDIDATES_PATH,
                    data={"candidate": json.dumps(payload)},
                    files={"resume": (resume_path.name, f, content_type)},
                )
        created = self._check(response, expected=(201,)).json()
        logger.info("Candidate created via API", candidate_id=created.get("id"))
        return created

    def update_candidate(self, candidate_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._send("PUT", f"{CANDIDATES_PATH}/{candidate_id}", json=payload)
        return self._check(response).json()

    def delete_candidate(self, candidate_id: str) -> None:
        response = self._send("DELETE", f"{CANDIDATES_PATH}/{candidate_id}")
        self._check(response, expected=(204,))
