"""Process template schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class TemplateStageCreate(BaseModel):
    stage_name: str
    stage_order: Optional[int] = None
    description: Optional[str] = None
    requires_photo: bool = False
    estimated_duration_minutes: Optional[int] = None

    @field_validator("stage_name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Stage name is required")
        return v

    @field_validator("estimated_duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v is not None and v < 0:
            raise ValueError("Duration cannot be negative")
        return v


class TemplateStageUpdate(BaseModel):
    stage_name: Optional[str] = None
    stage_order: Optional[int] = None
    description: Optional[str] = None
    requires_photo: Optional[bool] = None
    estimated_duration_minutes: Optional[int] = None


class TemplateStageResponse(BaseModel):
    id: str
    template_id: str
    stage_name: str
    stage_order: int
    description: Optional[str] = None
    requires_photo: bool
    estimated_duration_minutes: Optional[int] = None

    class Config:
        from_attributes = True


class TemplateCreate(BaseModel):
    name: str
    description: Optional[str] = None
    service_id: Optional[str] = None
    is_default: bool = False
    is_active: bool = True
    stages: list[TemplateStageCreate] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Template name is required")
        return v


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    service_id: Optional[str] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    service_id: Optional[str] = None
    is_default: bool
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    stages: list[TemplateStageResponse] = []

    class Config:
        from_attributes = True
