"""lead lifecycle schema: leads, activity log, journey tracking, scoring and workflows

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

LEAD_STATUS = sa.Enum("NEW", "CONTACTED", "QUALIFIED", "DOCUMENTS", "FILED", "CLOSED", "LOST", name="leadstatus")
LEAD_URGENCY = sa.Enum("LOW", "NORMAL", "HIGH", "URGENT", name="leadurgency")
# Second reference to the same type; it already exists when lead_score_history is created.
LEAD_URGENCY_EXISTING = postgresql.ENUM("LOW", "NORMAL", "HIGH", "URGENT", name="leadurgency", create_type=False)
ACTIVITY_TYPE = sa.Enum(
    "CONTACT_ATTEMPTED",
    "CONTACT_MADE",
    "EMAIL_SENT",
    "EMAIL_OPENED",
    "EMAIL_CLICKED",
    "STATUS_CHANGED",
    "NOTE_ADDED",
    "TASK_CREATED",
    "TASK_COMPLETED",
    "FORM_VIEWED",
    "DOCUMENT_UPLOADED",
    "MEETING_SCHEDULED",
    "MEETING_COMPLETED",
    "CONVERTED",
    "ASSIGNED",
    name="activitytype",
)
TASK_STATUS = sa.Enum("TODO", "IN_PROGRESS", "DONE", "CANCELLED", name="taskstatus")
TASK_PRIORITY = sa.Enum("LOW", "MEDIUM", "HIGH", "URGENT", name="taskpriority")
WORKFLOW_TRIGGER = sa.Enum(
    "LEAD_CREATED",
    "LEAD_STATUS_CHANGED",
    "LEAD_ASSIGNED",
    "JOURNEY_STAGE_CHANGED",
    "EMAIL_OPENED",
    "EMAIL_CLICKED",
    "FORM_SUBMITTED",
    "LEAD_SCORED",
    "MANUAL",
    name="workflowtrigger",
)
WORKFLOW_ACTION_TYPE = sa.Enum(
    "SEND_EMAIL",
    "CREATE_TASK",
    "ASSIGN_TO_PREPARER",
    "UPDATE_STATUS",
    "SEND_NOTIFICATION",
    "UPDATE_FIELD",
    name="workflowactiontype",
)
# SQLAlchemy persists enum member names, not values.
EXECUTION_STATUS = sa.Enum("RUNNING", "COMPLETED", "FAILED", name="executionstatus")
SCHEDULED_ACTION_STATUS = sa.Enum("PENDING", "RUNNING", "COMPLETED", "FAILED", name="scheduledactionstatus")


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("role", sa.String(length=40), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("state", sa.String(length=40), nullable=True),
        sa.Column("filing_status", sa.String(length=60), nullable=True),
        sa.Column("source", sa.String(length=120), nullable=True),
        sa.Column("estimated_income", sa.Integer(), nullable=True),
        sa.Column("previous_year_agi", sa.Integer(), nullable=True),
        sa.Column("status", LEAD_STATUS, nullable=False),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("lead_score", sa.Integer(), nullable=True),
        sa.Column("lead_score_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("urgency", LEAD_URGENCY, nullable=False),
        sa.Column("email_opens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("email_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("converted_to_client", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["assigned_to"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_leads_converted_score", "leads", ["converted_to_client", "lead_score"])
    op.create_index("idx_leads_assigned_to", "leads", ["assigned_to"])

    op.create_table(
        "lead_activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("activity_type", ACTIVITY_TYPE, nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_by_name", sa.String(length=255), nullable=True),
        sa.Column("automated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_lead_activities_lead_created", "lead_activities", ["lead_id", "created_at"])
    op.create_index("idx_lead_activities_type", "lead_activities", ["activity_type"])

    op.create_table(
        "lead_tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", TASK_PRIORITY, nullable=False),
        sa.Column("status", TASK_STATUS, nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_by_name", sa.String(length=255), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assigned_to"], ["profiles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_lead_tasks_lead_status", "lead_tasks", ["lead_id", "status"])

    op.create_table(
        "lead_score_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("urgency", LEAD_URGENCY_EXISTING, nullable=True),
        sa.Column("factors", sa.JSON(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_lead_score_history_lead_created", "lead_score_history", ["lead_id", "created_at"])

    op.create_table(
        "marketing_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("creator_id", sa.Integer(), nullable=True),
        sa.Column("link_type", sa.String(length=60), nullable=False),
        sa.Column("code", sa.String(length=120), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("intake_starts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("intake_completes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("returns_filed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("returns", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conversions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("intake_conversion_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("complete_conversion_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("filed_conversion_rate", sa.Float(), nullable=False, server_default="0"),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["creator_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "link_clicks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("link_id", sa.Integer(), nullable=False),
        sa.Column("tracking_code", sa.String(length=120), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("referrer", sa.String(length=2048), nullable=True),
        sa.Column("utm_source", sa.String(length=120), nullable=True),
        sa.Column("utm_medium", sa.String(length=120), nullable=True),
        sa.Column("utm_campaign", sa.String(length=255), nullable=True),
        sa.Column("utm_content", sa.String(length=255), nullable=True),
        sa.Column("utm_term", sa.String(length=255), nullable=True),
        sa.Column("clicked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("intake_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("intake_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tax_return_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("converted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["link_id"], ["marketing_links.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_link_clicks_tracking_code_clicked", "link_clicks", ["tracking_code", "clicked_at"])
    op.create_index("idx_link_clicks_link", "link_clicks", ["link_id"])

    op.create_table(
        "workflows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger", WORKFLOW_TRIGGER, nullable=False),
        sa.Column("trigger_conditions", sa.JSON(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("execution_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failure_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_executed_at", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_workflows_trigger_active", "workflows", ["trigger", "is_active"])

    op.create_table(
        "workflow_actions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("workflow_id", sa.Integer(), nullable=False),
        sa.Column("action_type", WORKFLOW_ACTION_TYPE, nullable=False),
        sa.Column("action_config", sa.JSON(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conditions", sa.JSON(), nullable=True),
        sa.Column("delay_minutes", sa.Integer(), nullable=False, server_default="0"),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflows.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_workflow_actions_workflow_order", "workflow_actions", ["workflow_id", "position"])

    op.create_table(
        "workflow_executions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("workflow_id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("triggered_by", sa.Integer(), nullable=True),
        sa.Column("status", EXECUTION_STATUS, nullable=False),
        sa.Column("actions_executed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actions_succeeded", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actions_failed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("execution_log", sa.JSON(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflows.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["triggered_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_workflow_executions_status_created", "workflow_executions", ["status", "created_at"])
    op.create_index("idx_workflow_executions_lead", "workflow_executions", ["lead_id"])

    op.create_table(
        "scheduled_workflow_actions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("execution_id", sa.Integer(), nullable=False),
        sa.Column("workflow_action_id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", SCHEDULED_ACTION_STATUS, nullable=False),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["execution_id"], ["workflow_executions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["workflow_action_id"], ["workflow_actions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_scheduled_actions_status_due", "scheduled_workflow_actions", ["status", "due_at"])


def downgrade() -> None:
    op.drop_index("idx_scheduled_actions_status_due", table_name="scheduled_workflow_actions")
    op.drop_table("scheduled_workflow_actions")

    op.drop_index("idx_workflow_executions_lead", table_name="workflow_executions")
    op.drop_index("idx_workflow_executions_status_created", table_name="workflow_executions")
    op.drop_table("workflow_executions")

    op.drop_index("idx_workflow_actions_workflow_order", table_name="workflow_actions")
    op.drop_table("workflow_actions")

    op.drop_index("idx_workflows_trigger_active", table_name="workflows")
    op.drop_table("workflows")

    op.drop_index("idx_link_clicks_link", table_name="link_clicks")
    op.drop_index("idx_link_clicks_tracking_code_clicked", table_name="link_clicks")
    op.drop_table("link_clicks")
    op.drop_table("marketing_links")

    op.drop_index("idx_lead_score_history_lead_created", table_name="lead_score_history")
    op.drop_table("lead_score_history")

    op.drop_index("idx_lead_tasks_lead_status", table_name="lead_tasks")
    op.drop_table("lead_tasks")

    op.drop_index("idx_lead_activities_type", table_name="lead_activities")
    op.drop_index("idx_lead_activities_lead_created", table_name="lead_activities")
    op.drop_table("lead_activities")

    op.drop_index("idx_leads_assigned_to", table_name="leads")
    op.drop_index("idx_leads_converted_score", table_name="leads")
    op.drop_table("leads")
    op.drop_table("profiles")

    bind = op.get_bind()
    for enum_type in (
        SCHEDULED_ACTION_STATUS,
        EXECUTION_STATUS,
        WORKFLOW_ACTION_TYPE,
        WORKFLOW_TRIGGER,
        TASK_PRIORITY,
        TASK_STATUS,
        ACTIVITY_TYPE,
        LEAD_URGENCY,
        LEAD_STATUS,
    ):
        enum_type.drop(bind, checkfirst=True)
