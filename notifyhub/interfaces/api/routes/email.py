"""Endpoints that expose the email sender."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from notifyhub.domain.entities import EmailTemplate, User
from notifyhub.infrastructure.email import EmailService
from notifyhub.interfaces.api.dependencies import (
    get_current_active_user,
    get_email_service,
    require_admin,
)
from notifyhub.interfaces.api.schemas import (
    EmailFailureRead,
    EmailQueued,
    EmailResult,
    EmailSendRequest,
    EmailStatsRead,
    EmailStatusRead,
    EmailTemplateCreate,
    PasswordResetEmailRequest,
    TaskAssignmentEmailRequest,
    TeamInvitationEmailRequest,
    TemplateEmailRequest,
    WelcomeEmailRequest,
)

router = APIRouter(prefix="/email", tags=["email"])


def _result(success: bool, sent_message: str) -> EmailResult:
    if not success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send email",
        )
    return EmailResult(success=True, message=sent_message)


@router.get("/status", response_model=EmailStatusRead)
async def email_status(
    email_service: EmailService = Depends(get_email_service),
) -> EmailStatusRead:
    """Report the mail transport health without sending anything."""

    return EmailStatusRead(
        connected=await email_service.test_connection(),
        transport=email_service.transport_name,
        queue_length=email_service.queue_length(),
        templates=email_service.get_templates(),
    )


@router.get("/stats", response_model=EmailStatsRead)
def email_stats(
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(get_current_active_user),
) -> EmailStatsRead:
    stats = email_service.get_stats()
    return EmailStatsRead(
        sent=stats.sent,
        failed=stats.failed,
        queued=stats.queued,
        delivered=stats.delivered,
        recent_failures=[
            EmailFailureRead(
                occurred_at=failure.occurred_at,
                recipients=failure.recipients,
                subject=failure.subject,
                error=failure.error,
            )
            for failure in email_service.failures
        ],
    )


@router.post("/send", response_model=EmailResult)
async def send_email(
    payload: EmailSendRequest,
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(get_current_active_user),
) -> EmailResult:
    message = email_service.build_message(
        to=list(payload.to),
        subject=payload.subject,
        text=payload.text,
        html=payload.html,
        cc=list(payload.cc),
        bcc=list(payload.bcc),
    )
    return _result(await email_service.send_email(message), "Email sent successfully")


@router.post("/send-template", response_model=EmailResult)
async def send_template_email(
    payload: TemplateEmailRequest,
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(get_current_active_user),
) -> EmailResult:
    if email_service.get_template(payload.template_name) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template '{payload.template_name}' not found",
        )
    success = await email_service.send_template_email(
        payload.template_name, list(payload.to), payload.variables
    )
    return _result(success, "Template email sent successfully")


@router.post("/queue", response_model=EmailQueued, status_code=status.HTTP_202_ACCEPTED)
async def queue_email(
    payload: EmailSendRequest,
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(get_current_active_user),
) -> EmailQueued:
    """Queue an email for background delivery."""

    message = email_service.build_message(
        to=list(payload.to),
        subject=payload.subject,
        text=payload.text,
        html=payload.html,
        cc=list(payload.cc),
        bcc=list(payload.bcc),
    )
    return EmailQueued(queue_length=email_service.queue_email(message))


@router.post("/send-welcome", response_model=EmailResult)
async def send_welcome_email(
    payload: WelcomeEmailRequest,
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(get_current_active_user),
) -> EmailResult:
    success = await email_service.send_welcome_email(payload.to, payload.user_name)
    return _result(success, "Welcome email sent successfully")


@router.post("/send-password-reset", response_model=EmailResult)
async def send_password_reset_email(
    payload: PasswordResetEmailRequest,
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(get_current_active_user),
) -> EmailResult:
    success = await email_service.send_password_reset_email(
        payload.to,
        payload.user_name,
        reset_token=payload.reset_token,
        expiry_time=payload.expiry_time,
    )
    return _result(success, "Password reset email sent successfully")


@router.post("/send-task-assignment", response_model=EmailResult)
async def send_task_assignment_email(
    payload: TaskAssignmentEmailRequest,
    email_service: EmailService = Depends(get_email_service),
    current_user: User = Depends(get_current_active_user),
) -> EmailResult:
    success = await email_service.send_task_assignment_email(
        payload.to,
        assignee_name=payload.assignee_name,
        assigner_name=payload.assigner_name or current_user.name,
        project_name=payload.project_name,
        task_title=payload.task_title,
        task_description=payload.task_description,
        due_date=payload.due_date,
        priority=payload.priority,
        task_id=payload.task_id,
    )
    return _result(success, "Task assignment email sent successfully")


@router.post("/send-team-invitation", response_model=EmailResult)
async def send_team_invitation_email(
    payload: TeamInvitationEmailRequest,
    email_service: EmailService = Depends(get_email_service),
    current_user: User = Depends(get_current_active_user),
) -> EmailResult:
    success = await email_service.send_team_invitation_email(
        payload.to,
        invitee_name=payload.invitee_name,
        inviter_name=current_user.name,
        team_name=payload.team_name,
        role=payload.role,
        invitation_token=payload.invitation_token,
        expiry_time=payload.expiry_time,
    )
    return _result(success, "Team invitation email sent successfully")


@router.post("/templates", response_model=list[str], status_code=status.HTTP_201_CREATED)
def add_template(
    payload: EmailTemplateCreate,
    email_service: EmailService = Depends(get_email_service),
    _: User = Depends(require_admin),
) -> list[str]:
    """Register or replace a template and return the available template names."""

    email_service.add_template(
        EmailTemplate(
            name=payload.name,
            subject=payload.subject,
            html=payload.html,
            variables=list(payload.variables),
        )
    )
    return email_service.get_templates()
