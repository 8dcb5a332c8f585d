"""Workflow and workflow action model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.models.base import AuditMixin, Base
from leadflow.models.enums import WorkflowActionType, WorkflowTrigger


class Workflow(Base, AuditMixin):
    __tablename__ = "workflows"
    __table_args__ = (Index("idx_workflows_trigger_active", "trigger", "is_active"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    trigger: Mapped[WorkflowTrigger] = mapped_column(Enum(WorkflowTrigger), nullable=False)
    trigger_conditions: Mapped[dict | None] = mapped_column(JSON)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))

    execution_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    success_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failure_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    actions = relationship(
        "WorkflowAction",
        back_populates="workflow",
        order_by="WorkflowAction.order",
        cascade="all, delete-orphan",
    )
    executions = relationship("WorkflowExecution", back_populates="workflow", cascade="all, delete-orphan")


class WorkflowAction(Base, AuditMixin):
    __tablename__ = "workflow_actions"
    __table_args__ = (Index("idx_workflow_actions_workflow_order", "workflow_id", "position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    workflow_id: Mapped[int] = mapped_column(ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    action_type: Mapped[WorkflowActionType] = mapped_column(Enum(WorkflowActionType), nullable=False)
    action_config: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    order: Mapped[int] = mapped_column("position", Integer, default=0, nullable=False)
    conditions: Mapped[dict | None] = mapped_column(JSON)
    delay_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    workflow = relationship("Workflow", back_populates="actions")
