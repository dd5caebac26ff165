"""AI resume analysis: snapshot builder and result parsing.

The scoring itself happens remotely; this module only shapes the read-only
snapshot sent to the service and parses what comes back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

from .errors import ServiceError, ValidationError
from .model import ResumeDocument

LOG = logging.getLogger(__name__)

EXPERIENCE_LEVELS: Dict[str, str] = {
    "entry": "Entry Level (0-2 years)",
    "junior": "Junior (2-4 years)",
    "mid": "Mid Level (4-7 years)",
    "senior": "Senior (7-10 years)",
    "lead": "Lead/Principal (10+ years)",
}


@dataclass(frozen=True)
class Suggestion:
    category: str
    recommendation: str
    learning_path: str = ""


@dataclass(frozen=True)
class AnalysisResult:
    score: int = 0
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    missing_skills: Tuple[str, ...] = ()
    suggestions: Tuple[Suggestion, ...] = ()
    advice: str = ""
    match_percentage: int = 0
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisResult":
        def strings(key: str) -> Tuple[str, ...]:
            return tuple(str(v) for v in (data.get(key) or []) if v is not None)

        def number(key: str) -> int:
            try:
                return int(round(float(data.get(key) or 0)))
            except (TypeError, ValueError):
                return 0

        suggestions = tuple(
            Suggestion(
                category=str(s.get("category") or ""),
                recommendation=str(s.get("recommendation") or ""),
                learning_path=str(s.get("learningPath") or ""),
            )
            for s in (data.get("suggestions") or [])
            if isinstance(s, Mapping)
        )
        return cls(
            score=number("score"),
            strengths=strings("strengths"),
            weaknesses=strings("weaknesses"),
            missing_skills=strings("missingSkills"),
            suggestions=suggestions,
            advice=str(data.get("advice") or ""),
            match_percentage=number("matchPercentage"),
            raw=dict(data),
        )


def build_snapshot(doc: ResumeDocument) -> Dict[str, Any]:
    """Analysis payload: content without ids, custom sections or layout."""
    info = doc.personal_info
    return {
        "personalInfo": {
            "name": info.name,
            "email": info.email,
            "phone": info.phone,
            "linkedin": info.linkedin or "",
            "photo": info.photo,
            "location": "",
            "portfolio": "",
        },
        "summary": doc.summary,
        "education": [
            {"degree": e.degree, "institution": e.institution, "year": e.year, "gpa": ""}
            for e in doc.education
        ],
        "experience": [
            {"title": e.title, "company": e.company, "duration": e.duration, "description": e.description}
            for e in doc.experience
        ],
        "skills": list(doc.skills),
        "projects": [
            {"name": p.name, "description": p.description, "technologies": p.technologies}
            for p in doc.projects
        ],
        "certifications": list(doc.certifications),
    }


def analyze(client, doc: ResumeDocument, job_role: str, experience_level: str) -> AnalysisResult:
    if not (job_role or "").strip() or not experience_level:
        raise ValidationError("Please fill in all fields", hint="Both a job role and an experience level are required")
    if experience_level not in EXPERIENCE_LEVELS:
        raise ValidationError(
            f"Unknown experience level: {experience_level}",
            hint=f"Use one of: {', '.join(EXPERIENCE_LEVELS)}",
        )
    response = client.analyze(build_snapshot(doc), job_role.strip(), experience_level)
    if isinstance(response, Mapping) and isinstance(response.get("data"), Mapping) and "score" not in response:
        response = response["data"]
    if not isinstance(response, Mapping):
        raise ServiceError("Analysis failed: unexpected response")
    result = AnalysisResult.from_dict(response)
    LOG.info("analysis for %r (%s): score %d", job_role, experience_level, result.score)
    return result


def summary_lines(result: AnalysisResult) -> List[str]:
    lines = [f"Score: {result.score}/100", f"Match Percentage: {result.match_percentage}%"]
    for title, items in (
        ("Missing skills", result.missing_skills),
        ("Strengths", result.strengths),
        ("Weaknesses", result.weaknesses),
    ):
        if items:
            lines.append(f"{title}:")
            lines.extend(f"  - {item}" for item in items)
    if result.suggestions:
        lines.append("Suggestions:")
        for s in result.suggestions:
            lines.append(f"  - [{s.category}] {s.recommendation}")
            if s.learning_path:
                lines.append(f"      {s.learning_path}")
    if result.advice:
        lines.append(f"Advice: {result.advice}")
    return lines
