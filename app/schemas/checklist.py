"""
Pydantic schemas for Checklist endpoints
"""
from pydantic import BaseModel, Field
from typing import List
from datetime import datetime


class ChecklistItemResponse(BaseModel):
    """A template as seen by one user"""
    id: int
    text: str
    category: str
    done: bool = False


class ChecklistResponse(BaseModel):
    """Full checklist with the header badge percentage"""
    items: List[ChecklistItemResponse]
    percentage: int


class ChecklistProgress(BaseModel):
    """Completion summary"""
    total: int
    completed: int
    percentage: int = Field(ge=0, le=100)


class ChecklistTemplateBase(BaseModel):
    """Base schema for checklist templates"""
    text: str = Field(min_length=1)
    category: str = Field(min_length=1)


class ChecklistTemplateCreate(ChecklistTemplateBase):
    pass


class ChecklistTemplateUpdate(ChecklistTemplateBase):
    pass


class ChecklistTemplateResponse(ChecklistTemplateBase):
    """Response schema for checklist templates"""
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
