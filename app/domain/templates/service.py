"""Process template service - Template and stage management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ...models import ProcessTemplate, ProcessTemplateStage, Profile, Service
from .schemas import TemplateCreate, TemplateStageCreate, TemplateStageUpdate, TemplateUpdate

logger = logging.getLogger(__name__)


class TemplateService:
    """Service layer for process templates"""

    def __init__(self, db: Session):
        self.db = db

    def list_templates(self, service_id: Optional[str] = None) -> list[ProcessTemplate]:
        query = self.db.query(ProcessTemplate).options(selectinload(ProcessTemplate.stages))
        if service_id:
            query = query.filter(ProcessTemplate.service_id == service_id)
        return query.order_by(ProcessTemplate.is_default.desc(), ProcessTemplate.name).all()

    def get_template(self, template_id: str) -> ProcessTemplate:
        template = (
            self.db.query(ProcessTemplate)
            .options(selectinload(ProcessTemplate.stages))
            .filter(ProcessTemplate.id == template_id)
            .first()
        )
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")
        return template

    def _check_service(self, service_id: Optional[str]):
        if service_id and not self.db.query(Service).filter(Service.id == service_id).first():
            raise HTTPException(status_code=404, detail="Service not found")

    def _clear_default(self, keep_id: Optional[str] = None):
        """Only one template may be the default"""
        query = self.db.query(ProcessTemplate).filter(ProcessTemplate.is_default.is_(True))
        if keep_id:
            query = query.filter(ProcessTemplate.id != keep_id)
        for other in query.all():
            other.is_default = False

    def create_template(self, data: TemplateCreate, user: Profile) -> ProcessTemplate:
        self._check_service(data.service_id)

        if data.is_default:
            self._clear_default()

        template = ProcessTemplate(
            name=data.name,
            description=data.description,
            service_id=data.service_id,
            is_default=data.is_default,
            is_active=data.is_active,
            created_by=user.id,
        )
        self.db.add(template)
        self.db.flush()

        for order, stage in enumerate(data.stages, start=1):
            self.db.add(
                ProcessTemplateStage(
                    template_id=template.id,
                    stage_name=stage.stage_name,
                    stage_order=stage.stage_order or order,
                    description=stage.description,
                    requires_photo=stage.requires_photo,
                    estimated_duration_minutes=stage.estimated_duration_minutes,
                )
            )

        self.db.commit()
        logger.info(f"✅ Process template created: {template.name} ({len(data.stages)} stages)")
        return self.get_template(template.id)

    def update_template(self, template_id: str, data: TemplateUpdate) -> ProcessTemplate:
        template = self.get_template(template_id)
        updates = data.model_dump(exclude_unset=True)

        if "service_id" in updates:
            self._check_service(updates["service_id"])
        if updates.get("is_default"):
            self._clear_default(keep_id=template.id)

        for key, value in updates.items():
            setattr(template, key, value)

        self.db.commit()
        return self.get_template(template.id)

    def delete_template(self, template_id: str) -> dict:
        template = self.get_template(template_id)
        self.db.delete(template)
        self.db.commit()
        logger.info(f"🗑️ Process template deleted: {template_id}")
        return {"success": True, "message": "Template deleted"}

    # ------------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------------

    def add_stage(self, template_id: str, data: TemplateStageCreate) -> ProcessTemplate:
        template = self.get_template(template_id)
        next_order = max((s.stage_order for s in template.stages), default=0) + 1

        self.db.add(
            ProcessTemplateStage(
                template_id=template.id,
                stage_name=data.stage_name,
                stage_order=data.stage_order or next_order,
                description=data.description,
                requires_photo=data.requires_photo,
                estimated_duration_minutes=data.estimated_duration_minutes,
            )
        )
        self.db.commit()
        self.db.expire(template)
        return self.get_template(template.id)

    def _get_stage(self, template_id: str, stage_id: str) -> ProcessTemplateStage:
        stage = (
            self.db.query(ProcessTemplateStage)
            .filter(
                ProcessTemplateStage.id == stage_id,
                ProcessTemplateStage.template_id == template_id,
            )
            .first()
        )
        if not stage:
            raise HTTPException(status_code=404, detail="Stage not found")
        return stage

    def update_stage(
        self, template_id: str, stage_id: str, data: TemplateStageUpdate
    ) -> ProcessTemplate:
        stage = self._get_stage(template_id, stage_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(stage, key, value)
        self.db.commit()
        self.db.expire_all()
        return self.get_template(template_id)

    def delete_stage(self, template_id: str, stage_id: str) -> ProcessTemplate:
        stage = self._get_stage(template_id, stage_id)
        self.db.delete(stage)
        self.db.commit()
        self.db.expire_all()
        return self.get_template(template_id)
