"""Thin client for the remote resume service (persistence, PDF parsing, analysis)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .config import ServiceSettings
from .errors import NotFoundError, ServiceError

LOG = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = (
    "Too many requests. This is a free service with rate limits. "
    "Please wait a moment and try again."
)


class ResumeServiceClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        auth_token: str = "",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth_token = auth_token
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: ServiceSettings, session: Optional[requests.Session] = None) -> "ResumeServiceClient":
        return cls(
            settings.base_url,
            timeout=settings.timeout,
            auth_token=settings.auth_token,
            session=session,
        )

    def _make_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[dict] = None,
        files: Optional[dict] = None,
        failure: str = "Request failed",
    ) -> Any:
        url = self._make_url(path)
        method = method.upper()
        LOG.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                headers=self._headers(json_body=files is None),
                json=json_body,
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ServiceError(f"{failure}: {exc}") from exc

        if resp.status_code == 429:
            raise ServiceError(_error_message(resp, RATE_LIMIT_MESSAGE), status=429)
        if resp.status_code == 404:
            raise NotFoundError(_error_message(resp, failure))
        if resp.status_code >= 400:
            raise ServiceError(_error_message(resp, failure), status=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise ServiceError(f"{failure}: invalid JSON response") from exc

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save_resume(self, payload: dict) -> dict:
        return self._request("POST", "skill-mint/resume/save", json_body=payload, failure="Failed to save resume")

    def get_saved_resumes(self) -> List[dict]:
        data = self._request("GET", "skill-mint/resume/saved", failure="Failed to fetch saved resumes")
        data = _unwrap(data)
        return list(data) if isinstance(data, list) else []

    def get_resume_by_id(self, resume_id: str) -> dict:
        data = self._request("GET", f"skill-mint/resume/saved/{resume_id}", failure="Failed to fetch resume")
        return _unwrap(data)

    def delete_resume(self, resume_id: str) -> dict:
        return self._request("DELETE", f"skill-mint/resume/saved/{resume_id}", failure="Failed to delete resume")

    # -------------------------------------------------------------------------
    # PDF parsing and AI analysis (black boxes)
    # -------------------------------------------------------------------------

    def upload_pdf(self, path: str) -> dict:
        p = Path(path)
        if not p.is_file():
            raise NotFoundError(f"PDF not found: {path}")
        with p.open("rb") as fh:
            files = {"pdf": (p.name, fh, "application/pdf")}
            data = self._request("POST", "api/resume/upload-dynamic", files=files, failure="Failed to process PDF")
        return _unwrap(data)

    def analyze(self, snapshot: dict, job_role: str, experience_level: str) -> dict:
        body = {"resumeData": snapshot, "jobRole": job_role, "experienceLevel": experience_level}
        return self._request("POST", "api/resume/analyze", json_body=body, failure="Analysis failed")


def _unwrap(data: Any) -> Any:
    """Strip a ``{success, data}`` envelope when present."""
    if isinstance(data, dict) and "data" in data and ("success" in data or len(data) == 1):
        if data.get("success") is False:
            raise ServiceError(str(data.get("message") or "Request was not successful"))
        return data["data"]
    return data


def _error_message(resp: requests.Response, fallback: str) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return f"{fallback} ({resp.status_code})"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"{fallback} ({resp.status_code})"
