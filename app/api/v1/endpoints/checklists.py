"""
Checklist API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
import logging

from app.core.permissions import Capability
from app.db.session import get_db
from app.models import AdminUser, ChecklistTemplate, User
from app.schemas.checklist import (
    ChecklistItemResponse,
    ChecklistProgress,
    ChecklistResponse,
    ChecklistTemplateCreate,
    ChecklistTemplateResponse,
    ChecklistTemplateUpdate,
)
from app.services.checklist_service import calculate_progress, checklist_service
from app.api.dependencies import get_current_active_user, require_capability

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ChecklistResponse)
async def get_checklist(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the user's checklist: every template with its done flag.
    """
    items = await checklist_service.get_items(db, current_user.id)
    return ChecklistResponse(items=items, percentage=calculate_progress(items))


@router.get("/progress", response_model=ChecklistProgress)
async def get_checklist_progress(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Completion summary for the header badge.
    """
    items = await checklist_service.get_items(db, current_user.id)
    return ChecklistProgress(
        total=len(items),
        completed=sum(1 for item in items if item.done),
        percentage=calculate_progress(items),
    )


@router.post("/initialize", response_model=ChecklistResponse, status_code=status.HTTP_201_CREATED)
async def initialize_checklist(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Copy the template set into the user's checklist.
    """
    items = await checklist_service.initialize(db, current_user.id)
    return ChecklistResponse(items=items, percentage=calculate_progress(items))


@router.patch("/{template_id}", response_model=ChecklistItemResponse)
async def toggle_checklist_item(
    template_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Toggle one checklist item between done and not done.
    """
    item = await checklist_service.toggle(db, current_user.id, template_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Checklist item with id {template_id} not found"
        )
    return item


# ==================== TEMPLATES (ADMIN) ====================

@router.get("/admin/templates", response_model=List[ChecklistTemplateResponse])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_CONTENT))
):
    result = await db.execute(
        select(ChecklistTemplate).order_by(ChecklistTemplate.category, ChecklistTemplate.id)
    )
    return [ChecklistTemplateResponse.model_validate(t) for t in result.scalars().all()]


@router.post("/admin/templates", response_model=ChecklistTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: ChecklistTemplateCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_CONTENT))
):
    template = ChecklistTemplate(**template_data.model_dump())
    db.add(template)
    await db.commit()
    await db.refresh(template)

    logger.info(f"Admin {admin.email} added checklist template {template.id}")
    return ChecklistTemplateResponse.model_validate(template)


@router.put("/admin/templates/{template_id}", response_model=ChecklistTemplateResponse)
async def update_template(
    template_id: int,
    template_data: ChecklistTemplateUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_CONTENT))
):
    template = await db.get(ChecklistTemplate, template_id)
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found"
        )

    template.text = template_data.text
    template.category = template_data.category
    await db.commit()
    await db.refresh(template)

    return ChecklistTemplateResponse.model_validate(template)


@router.delete("/admin/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_CONTENT))
):
    """
    Delete a template together with every user's progress on it.
    """
    template = await db.get(ChecklistTemplate, template_id)
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found"
        )

    await db.delete(template)
    await db.commit()

    logger.info(f"Admin {admin.email} deleted checklist template {template_id}")
