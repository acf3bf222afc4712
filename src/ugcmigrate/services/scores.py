"""Bulk import of profile scores."""

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ugcmigrate.errors import ScoreImportError
from ugcmigrate.models.db import Score
from ugcmigrate.models.scores import ScoreImportRequest
from ugcmigrate.services.ports import ScoringService

logger = logging.getLogger(__name__)


class _ObjectPairs(list):
    """Key/value pairs of a JSON object, in document order."""


class DatabaseScoringService:
    """Stores scores in the database, one row per user, resource and rule."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_score(self, user_id: str, resource_path: str, rule_path: str) -> Score | None:
        """Get the stored score of a user."""
        result = await self.session.execute(
            select(Score).where(
                Score.user_id == user_id,
                Score.resource_path == resource_path,
                Score.rule_path == rule_path,
            )
        )
        return result.scalar_one_or_none()

    async def save_score(self, user_id: str, resource_path: str, rule_path: str, score: int) -> None:
        """Create or overwrite a user's score."""
        existing = await self.get_score(user_id, resource_path, rule_path)
        if existing is None:
            self.session.add(
                Score(
                    user_id=user_id,
                    resource_path=resource_path,
                    rule_path=rule_path,
                    score=score,
                )
            )
        else:
            existing.score = score
            existing.updated_at = datetime.now()
        await self.session.flush()


def _json_type(value: Any) -> str:
    if isinstance(value, list):
        return "START_ARRAY"
    if isinstance(value, str):
        return "VALUE_STRING"
    if isinstance(value, bool):
        return "VALUE_TRUE" if value else "VALUE_FALSE"
    if isinstance(value, (int, float)):
        return "VALUE_NUMBER"
    return "VALUE_NULL"


def _as_score(user_id: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ScoreImportError(f"Score for {user_id} is not a number: {value!r}")
    try:
        return int(value)
    except (ValueError, OverflowError) as e:
        raise ScoreImportError(f"Score for {user_id} is not a number: {value!r}") from e


def read_scores(payload: bytes | str) -> list[tuple[str, int]]:
    """
    Parse a JSON object mapping user ids to integer scores.

    Pairs are returned in document order, duplicates included.

    Raises:
        ScoreImportError: if the payload is not a JSON object of numbers
    """
    try:
        data = json.loads(payload, object_pairs_hook=_ObjectPairs)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ScoreImportError(f"Invalid score file: {e}") from e

    if not isinstance(data, _ObjectPairs):
        raise ScoreImportError(f"Expected a start object token, got {_json_type(data)}")

    return [(user_id, _as_score(user_id, value)) for user_id, value in data]


async def import_scores(
    payload: bytes | str,
    request: ScoreImportRequest,
    scoring_service: ScoringService,
) -> int:
    """
    Apply every score in a JSON payload through the scoring service.

    The first failing save aborts the import; scores saved before it are kept.

    Returns:
        Number of scores applied
    """
    scores = read_scores(payload)
    resource_path = request.resource_path

    for user_id, score in scores:
        try:
            await scoring_service.save_score(user_id, resource_path, request.scoring_rule, score)
        except SQLAlchemyError as e:
            raise ScoreImportError("Unable to communicate with the repository") from e

    logger.info("Score rule %s was used to import %d scores", request.scoring_rule, len(scores))
    return len(scores)
