"""Pydantic models for score imports."""

from pydantic import BaseModel, field_validator


class ScoreImportRequest(BaseModel):
    """Parameters of a score import.

    ``path`` is the communities page the scores belong to; the scores are saved
    against its ``jcr:content`` resource. ``scoring_rule`` is the path of the
    scoring rule the scores were computed with.
    """

    path: str
    scoring_rule: str
    filename: str = "scores.json"

    @field_validator("path")
    @classmethod
    def _require_path(cls, value: str) -> str:
        if not value:
            raise ValueError("No communities-page path entered")
        return value

    @field_validator("scoring_rule")
    @classmethod
    def _require_scoring_rule(cls, value: str) -> str:
        if not value:
            raise ValueError("No scoring rule path entered")
        return value

    @field_validator("filename")
    @classmethod
    def _require_json_file(cls, value: str) -> str:
        if not value.endswith(".json"):
            raise ValueError("Invalid file")
        return value

    @property
    def resource_path(self) -> str:
        """Return the path of the component resource scores are saved against."""
        return f"{self.path.rstrip('/')}/jcr:content"
