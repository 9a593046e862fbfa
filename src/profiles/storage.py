"""Profile storage: pydantic model + JSON document at ~/.claude-reflect/profile.json."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from shared_types import TechnicalLevel

logger = structlog.get_logger()

DEFAULT_PROFILE_PATH = "~/.claude-reflect/profile.json"


def _now() -> str:
    return datetime.now().isoformat()


class TechnicalLevelInfo(BaseModel):
    overall: TechnicalLevel = TechnicalLevel.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    domains: dict[str, TechnicalLevel] = Field(default_factory=dict)


class WorkHabits(BaseModel):
    peak_hours: list[str] = Field(default_factory=list)
    avg_session_length_minutes: int = 0
    multitasking_tendency: str = "moderate"  # low/moderate/high


class LearningPreferences(BaseModel):
    style: str = "mixed"  # visual/reading/hands-on/mixed
    depth: str = "moderate"
    feedback_receptiveness: str = "medium"


class ActiveProject(BaseModel):
    path: str
    role: str = "contributor"


class ProfileCorrection(BaseModel):
    timestamp: str = Field(default_factory=_now)
    field: str
    old_value: Any = None
    new_value: Any = None
    reason: str = ""


class UserProfile(BaseModel):
    version: str = "1.0"
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)
    technical_level: TechnicalLevelInfo = Field(default_factory=TechnicalLevelInfo)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    work_habits: WorkHabits = Field(default_factory=WorkHabits)
    learning_preferences: LearningPreferences = Field(default_factory=LearningPreferences)
    active_projects: list[ActiveProject] = Field(default_factory=list)
    profile_corrections: list[ProfileCorrection] = Field(default_factory=list)

    def project_paths(self) -> list[str]:
        return [p.path for p in self.active_projects]

    def to_markdown(self) -> str:
        """Human-readable profile for `reflect profile show`."""
        level = self.technical_level
        lines = [
            "# User Profile",
            "",
            "## Technical Level",
            f"Overall: {level.overall} (Confidence: {level.confidence * 100:.0f}%)",
        ]
        if level.domains:
            lines.append("Domain details:")
            lines.extend(f"  - {domain}: {lvl}" for domain, lvl in level.domains.items())
        lines.append("")

        for title, items in (("Strengths", self.strengths), ("Areas for Improvement", self.weaknesses)):
            lines.append(f"## {title}")
            if items:
                lines.extend(f"  - {item}" for item in items)
            else:
                lines.append("  (No records yet)")
            lines.append("")

        habits = self.work_habits
        lines += [
            "## Work Habits",
            f"Peak hours: {', '.join(habits.peak_hours) or 'Unknown'}",
            f"Average session length: {habits.avg_session_length_minutes} minutes",
            f"Multitasking tendency: {habits.multitasking_tendency}",
            "",
            "## Learning Preferences",
            f"Style: {self.learning_preferences.style}",
            f"Depth: {self.learning_preferences.depth}",
            f"Feedback receptiveness: {self.learning_preferences.feedback_receptiveness}",
            "",
            "## Active Projects",
        ]
        if self.active_projects:
            lines.extend(f"  - {p.path} ({p.role})" for p in self.active_projects)
        else:
            lines.append("  (No projects)")
        lines += [
            "",
            "---",
            f"Created: {self.created_at}",
            f"Updated: {self.updated_at}",
            f"Corrections: {len(self.profile_corrections)}",
        ]
        return "\n".join(lines)


def deep_merge(base: dict, override: dict) -> dict:
    """Merge dicts recursively; lists and scalars from `override` replace."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _get_dotted(data: dict, dotted: str) -> Any:
    current: Any = data
    for key in dotted.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _set_dotted(data: dict, dotted: str, value: Any) -> None:
    keys = dotted.split(".")
    current = data
    for key in keys[:-1]:
        current = current.setdefault(key, {})
        if not isinstance(current, dict):
            raise ValueError(f"Cannot set {dotted}: {key} is not an object")
    current[keys[-1]] = value


class ProfileStorage:
    """JSON-backed profile storage. Single document, last write wins."""

    def __init__(self, path: str | Path = DEFAULT_PROFILE_PATH):
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> UserProfile:
        if not self.path.exists():
            return UserProfile()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return UserProfile.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("profile_load_failed", path=str(self.path), error=str(e))
            return UserProfile()

    def save(self, profile: UserProfile) -> Path:
        profile.updated_at = _now()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(profile.model_dump_json(indent=2), encoding="utf-8")
        return self.path

    def initialize(self) -> UserProfile:
        """Load the profile, writing a default document on first use."""
        if self.path.exists():
            return self.load()
        profile = UserProfile()
        self.save(profile)
        logger.info("profile_initialized", path=str(self.path))
        return profile

    def update(self, partial: dict) -> UserProfile:
        profile = self.load()
        merged = deep_merge(profile.model_dump(mode="json"), partial)
        updated = UserProfile.model_validate(merged)
        self.save(updated)
        return updated

    def add_project(self, path: str, role: str = "contributor") -> bool:
        profile = self.load()
        if path in profile.project_paths():
            return False
        profile.active_projects.append(ActiveProject(path=path, role=role))
        self.save(profile)
        return True

    def remove_project(self, path: str) -> bool:
        profile = self.load()
        remaining = [p for p in profile.active_projects if p.path != path]
        if len(remaining) == len(profile.active_projects):
            return False
        profile.active_projects = remaining
        self.save(profile)
        return True

    def project_paths(self) -> list[str]:
        return self.load().project_paths()

    def add_domain(self, domain: str, level: TechnicalLevel) -> UserProfile:
        profile = self.load()
        profile.technical_level.domains[domain] = TechnicalLevel(level)
        self.save(profile)
        return profile

    def add_strength(self, strength: str) -> None:
        profile = self.load()
        if strength not in profile.strengths:
            profile.strengths.append(strength)
            self.save(profile)

    def add_weakness(self, weakness: str) -> None:
        profile = self.load()
        if weakness not in profile.weaknesses:
            profile.weaknesses.append(weakness)
            self.save(profile)

    def apply_correction(self, field: str, value: Any, reason: str) -> UserProfile:
        """Set a dotted field (e.g. `technical_level.overall`) and log the correction."""
        if field.split(".")[0] not in UserProfile.model_fields:
            raise ValueError(f"Unknown profile field: {field}")
        data = self.load().model_dump(mode="json")
        old_value: Optional[Any] = _get_dotted(data, field)
        _set_dotted(data, field, value)
        data["profile_corrections"].append(
            ProfileCorrection(field=field, old_value=old_value, new_value=value, reason=reason).model_dump()
        )
        try:
            profile = UserProfile.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {field}: {e}") from e
        self.save(profile)
        return profile
