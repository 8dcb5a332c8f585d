"""Workflow execution and scheduled action model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.models.base import AuditMixin, Base
from leadflow.models.enums import ExecutionStatus, ScheduledActionStatus


class WorkflowExecution(Base, AuditMixin):
    __tablename__ = "workflow_executions"
    __table_args__ = (
        Index("idx_workflow_executions_status_created", "status", "created_at"),
        Index("idx_workflow_executions_lead", "lead_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    workflow_id: Mapped[int] = mapped_column(ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    lead_id: Mapped[int] = mapped_column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    triggered_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))
    status: Mapped[ExecutionStatus] = mapped_column(Enum(ExecutionStatus), default=ExecutionStatus.RUNNING, nullable=False)
    actions_executed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    actions_succeeded: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    actions_failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    execution_log: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    workflow = relationship("Workflow", back_populates="executions")


class ScheduledWorkflowAction(Base, AuditMixin):
    __tablename__ = "scheduled_workflow_actions"
    __table_args__ = (Index("idx_scheduled_actions_status_due", "status", "due_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    execution_id: Mapped[int] = mapped_column(ForeignKey("workflow_executions.id", ondelete="CASCADE"), nullable=False)
    workflow_action_id: Mapped[int] = mapped_column(ForeignKey("workflow_actions.id", ondelete="CASCADE"), nullable=False)
    lead_id: Mapped[int] = mapped_column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    actor_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ScheduledActionStatus] = mapped_column(
        Enum(ScheduledActionStatus), default=ScheduledActionStatus.PENDING, nullable=False
    )
    result: Mapped[dict | None] = mapped_column(JSON)
    error: Mapped[str | None] = mapped_column(Text)
    attempted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    action = relationship("WorkflowAction")
