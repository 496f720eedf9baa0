"""
Checklist service - combines the shared template catalog with a user's progress
"""
import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.checklist import ChecklistTemplate, UserProgress
from app.schemas.checklist import ChecklistItemResponse

logger = logging.getLogger(__name__)


def _is_done(item: Any) -> bool:
    if isinstance(item, Mapping):
        return bool(item.get("done"))
    return bool(getattr(item, "done", False))


def calculate_progress(items: Iterable[Any]) -> int:
    """
    Percentage of completed items, rounded half up to the nearest integer.

    Accepts mappings or objects exposing ``done``. An empty checklist is 0%.
    """
    items = list(items)
    if not items:
        return 0
    completed = sum(1 for item in items if _is_done(item))
    return math.floor(100 * completed / len(items) + 0.5)


class ChecklistService:
    """Read and mutate a user's view of the checklist"""

    async def get_items(self, db: AsyncSession, user_id: int) -> List[ChecklistItemResponse]:
        """All templates, each flagged with the user's completion state"""
        templates_result = await db.execute(
            select(ChecklistTemplate).order_by(ChecklistTemplate.category, ChecklistTemplate.id)
        )
        templates = templates_result.scalars().all()

        progress_result = await db.execute(
            select(UserProgress).where(UserProgress.user_id == user_id)
        )
        done_by_template = {p.template_id: p.done for p in progress_result.scalars().all()}

        return [
            ChecklistItemResponse(
                id=template.id,
                text=template.text,
                category=template.category,
                done=done_by_template.get(template.id, False),
            )
            for template in templates
        ]

    async def initialize(self, db: AsyncSession, user_id: int) -> List[ChecklistItemResponse]:
        """
        Create progress rows for every template the user does not track yet.
        Safe to call repeatedly.
        """
        templates_result = await db.execute(select(ChecklistTemplate.id))
        template_ids = set(templates_result.scalars().all())

        existing_result = await db.execute(
            select(UserProgress.template_id).where(UserProgress.user_id == user_id)
        )
        missing = template_ids - set(existing_result.scalars().all())

        for template_id in sorted(missing):
            db.add(UserProgress(user_id=user_id, template_id=template_id, done=False))
        await db.commit()

        logger.info(f"Initialized {len(missing)} checklist items for user {user_id}")
        return await self.get_items(db, user_id)

    async def toggle(self, db: AsyncSession, user_id: int, template_id: int) -> Optional[ChecklistItemResponse]:
        """Flip the done flag of one item; returns None for an unknown template"""
        template = await db.get(ChecklistTemplate, template_id)
        if not template:
            return None

        result = await db.execute(
            select(UserProgress).where(
                UserProgress.user_id == user_id,
                UserProgress.template_id == template_id,
            )
        )
        progress = result.scalar_one_or_none()

        if progress is None:
            # Untracked items count as not done, so the first toggle marks them done
            progress = UserProgress(user_id=user_id, template_id=template_id, done=True)
            db.add(progress)
        else:
            progress.done = not progress.done

        await db.commit()

        return ChecklistItemResponse(
            id=template.id,
            text=template.text,
            category=template.category,
            done=progress.done,
        )


# Global checklist service instance
checklist_service = ChecklistService()
