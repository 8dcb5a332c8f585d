"""Pydantic schema package for lifecycle contracts."""

from leadflow.schemas.journey import UTMAttribution
from leadflow.schemas.workflows import (
    ACTION_CONFIG_MODELS,
    AssignToPreparerConfig,
    CreateTaskConfig,
    SendEmailConfig,
    SendNotificationConfig,
    UpdateFieldConfig,
    UpdateStatusConfig,
    WorkflowActionSpec,
    WorkflowCreateRequest,
    WorkflowResponse,
)

__all__ = [
    "ACTION_CONFIG_MODELS",
    "AssignToPreparerConfig",
    "CreateTaskConfig",
    "SendEmailConfig",
    "SendNotificationConfig",
    "UTMAttribution",
    "UpdateFieldConfig",
    "UpdateStatusConfig",
    "WorkflowActionSpec",
    "WorkflowCreateRequest",
    "WorkflowResponse",
]
