import json
from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Inputs ──

class ActivityInput(WireModel):
    project_path: str = Field(min_length=1)
    file_path: str = Field(min_length=1)
    language: str
    timestamp: int
    duration: int = Field(ge=0)
    editor: str | None = None
    commit_hash: str | None = None


class FileActivityInput(WireModel):
    project_path: str = Field(min_length=1)
    commit_hash: str = Field(min_length=1)
    branch: str
    file_path: str = Field(min_length=1)
    language: str
    total_duration: int = Field(ge=0)
    activity_count: int = Field(default=0, ge=0)
    first_activity_at: int
    last_activity_at: int | None = None
    editor: str | None = None


class CommitInput(WireModel):
    project_path: str = Field(min_length=1)
    commit_hash: str = Field(min_length=1)
    message: str
    author: str
    author_email: str
    timestamp: int
    files_changed: int = Field(default=0, ge=0)
    lines_added: int = Field(default=0, ge=0)
    lines_deleted: int = Field(default=0, ge=0)
    branch: str | None = None


class DailyStatsInput(WireModel):
    date: int | str
    project_path: str = Field(min_length=1)
    total_duration: int = Field(ge=0)
    language_breakdown: dict[str, Annotated[int, Field(ge=0)]]
    files_edited: int = Field(default=0, ge=0)
    commits_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("commitCount", "commitsCount", "commits_count"),
    )

    @field_validator("language_breakdown", mode="before")
    @classmethod
    def _decode_breakdown(cls, v):
        # Editor clients send the breakdown as a JSON-encoded string.
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v

    @field_validator("language_breakdown")
    @classmethod
    def _breakdown_matches_total(cls, v, info: ValidationInfo):
        total = info.data.get("total_duration")
        if total is not None and sum(v.values()) != total:
            raise ValueError(f"breakdown sums to {sum(v.values())}, totalDuration is {total}")
        return v


class SyncRequest(BaseModel):
    input: list[dict]


# ── Outputs ──

class SyncResponse(WireModel):
    success: bool
    message: str
    synced_count: int


class LanguageStat(WireModel):
    language: str
    duration: int
    percentage: float


class DailyActivity(WireModel):
    date: str
    duration: int


class ProjectStat(WireModel):
    id: int
    name: str
    path: str
    total_duration: int
    activity_count: int
    last_active: int


class DashboardStats(WireModel):
    total_time: int
    total_projects: int
    active_projects: int
    projects: list[ProjectStat]
    languages: list[LanguageStat]
    daily_activity: list[DailyActivity]


class ProjectOut(WireModel):
    id: int
    name: str
    path: str
    user_id: int
    created_at: str
    updated_at: str


class FileStat(WireModel):
    file_path: str
    duration: int


class ActivityOut(WireModel):
    id: int
    project_id: int
    file_path: str
    language: str
    timestamp: int
    duration: int
    editor: str | None
    commit_id: str | None
    branch: str | None
    created_at: str


class CommitOut(WireModel):
    id: int
    commit_hash: str
    message: str
    author: str
    author_email: str
    timestamp: int
    total_duration: int
    files_changed: int
    lines_added: int
    lines_deleted: int
    branch: str | None
    activity_count: int
    created_at: str


class ProjectDetails(WireModel):
    id: int
    name: str
    path: str
    total_duration: int
    activity_count: int
    top_languages: list[LanguageStat]
    top_files: list[FileStat]
    daily_activity: list[DailyActivity]
    recent_activities: list[ActivityOut]
    commits: list[CommitOut]


def validate_batch(model: type[BaseModel], items: list) -> list:
    """Validate every item of a batch before anything is written.

    The first malformed item rejects the whole batch.
    """
    parsed = []
    for index, item in enumerate(items):
        try:
            parsed.append(model.model_validate(item))
        except PydanticValidationError as e:
            errors = [
                {"loc": [str(p) for p in err["loc"]], "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ]
            fields = [".".join(err["loc"]) for err in errors]
            raise ValidationError(
                f"Invalid {model.__name__} at index {index}: {', '.join(fields)}",
                index=index,
                errors=errors,
            ) from e
    return parsed
