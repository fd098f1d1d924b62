"""Pydantic models for the email endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field, model_validator


class EmailSendRequest(BaseModel):
    to: list[EmailStr] = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=255)
    text: str | None = None
    html: str | None = None
    cc: list[EmailStr] = Field(default_factory=list)
    bcc: list[EmailStr] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_body(self) -> "EmailSendRequest":
        if not self.text and not self.html:
            raise ValueError("Either text or html content is required")
        return self


class TemplateEmailRequest(BaseModel):
    template_name: str = Field(..., min_length=1)
    to: list[EmailStr] = Field(..., min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)


class WelcomeEmailRequest(BaseModel):
    to: EmailStr
    user_name: str = Field(..., min_length=1)


class PasswordResetEmailRequest(BaseModel):
    to: EmailStr
    user_name: str = Field(..., min_length=1)
    reset_token: str = Field(..., min_length=1)
    expiry_time: str = "1 hour"


class TaskAssignmentEmailRequest(BaseModel):
    to: EmailStr
    assignee_name: str
    project_name: str
    task_title: str
    task_description: str = ""
    due_date: str
    priority: str = "medium"
    task_id: str
    assigner_name: str | None = None


class TeamInvitationEmailRequest(BaseModel):
    to: EmailStr
    invitee_name: str
    team_name: str
    role: str
    invitation_token: str = Field(..., min_length=1)
    expiry_time: str = "7 days"


class EmailTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1)
    html: str = Field(..., min_length=1)
    variables: list[str] = Field(default_factory=list)


class EmailResult(BaseModel):
    success: bool
    message: str


class EmailQueued(BaseModel):
    queued: bool = True
    queue_length: int


class EmailStatusRead(BaseModel):
    connected: bool
    transport: str
    queue_length: int
    templates: list[str]


class EmailFailureRead(BaseModel):
    occurred_at: datetime
    recipients: list[str]
    subject: str
    error: str


class EmailStatsRead(BaseModel):
    sent: int
    failed: int
    queued: int
    delivered: int
    recent_failures: list[EmailFailureRead] = Field(default_factory=list)


__all__ = [
    "EmailFailureRead",
    "EmailQueued",
    "EmailResult",
    "EmailSendRequest",
    "EmailStatsRead",
    "EmailStatusRead",
    "EmailTemplateCreate",
    "PasswordResetEmailRequest",
    "TaskAssignmentEmailRequest",
    "TeamInvitationEmailRequest",
    "TemplateEmailRequest",
    "WelcomeEmailRequest",
]
