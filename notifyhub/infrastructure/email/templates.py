"""Built-in email templates and Jinja2 rendering."""

from __future__ import annotations

from typing import Any, Mapping

from jinja2 import Environment, Undefined
from markupsafe import Markup

from notifyhub.domain.entities import EmailTemplate

PRIORITY_COLORS: dict[str, str] = {
    "low": "#28a745",
    "medium": "#ffc107",
    "high": "#fd7e14",
    "urgent": "#dc3545",
}
DEFAULT_PRIORITY_COLOR = "#6c757d"


class PlaceholderUndefined(Undefined):
    """Render a missing variable back as its ``{{name}}`` placeholder."""

    def __str__(self) -> str:
        return "{{" + (self._undefined_name or "") + "}}"


_subject_env = Environment(undefined=PlaceholderUndefined, autoescape=False)
_html_env = Environment(undefined=PlaceholderUndefined, autoescape=True)


def priority_color(priority: str) -> str:
    return PRIORITY_COLORS.get(priority.lower(), DEFAULT_PRIORITY_COLOR)


def render(text: str, variables: Mapping[str, Any], *, escape: bool = False) -> str:
    """Render ``text`` as a Jinja2 template with ``variables``.

    ``None`` values count as missing, and missing variables are left in the
    output as ``{{name}}``. With ``escape`` values are HTML-escaped unless
    they are :class:`markupsafe.Markup`.
    """

    env = _html_env if escape else _subject_env
    context = {name: value for name, value in variables.items() if value is not None}
    return env.from_string(text).render(context)


def _layout(body: str) -> str:
    return (
        '<div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">'
        f"{body}"
        "<p>Best regards,<br>The {{appName}} Team</p>"
        "</div>"
    )


def _button(url_placeholder: str, label: str, color: str) -> str:
    return (
        '<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{url_placeholder}" style="background: {color}; color: white; '
        "padding: 12px 24px; text-decoration: none; border-radius: 4px; "
        f'display: inline-block;">{label}</a>'
        "</div>"
    )


_PANEL = '<div style="background: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">'


DEFAULT_TEMPLATES: tuple[EmailTemplate, ...] = (
    EmailTemplate(
        name="welcome",
        subject="Welcome to {{appName}}!",
        html=_layout(
            '<h1 style="color: #333;">Welcome to {{appName}}!</h1>'
            "<p>Hi {{userName}},</p>"
            "<p>Thank you for joining our platform. We're excited to have you on board!</p>"
            f"{_PANEL}<h3>Getting Started:</h3><ul>"
            "<li>Complete your profile setup</li>"
            "<li>Explore the dashboard</li>"
            "<li>Create your first project</li>"
            "</ul></div>"
            + _button("{{dashboardUrl}}", "Open Dashboard", "#007bff")
        ),
        variables=["appName", "userName", "userEmail", "dashboardUrl"],
    ),
    EmailTemplate(
        name="password-reset",
        subject="Reset Your Password - {{appName}}",
        html=_layout(
            '<h1 style="color: #333;">Password Reset Request</h1>'
            "<p>Hi {{userName}},</p>"
            "<p>You requested to reset your password. Click the button below to reset it:</p>"
            + _button("{{resetLink}}", "Reset Password", "#007bff")
            + "<p><small>This link will expire in {{expiryTime}}. "
            "If you didn't request this, please ignore this email.</small></p>"
        ),
        variables=["appName", "userName", "resetLink", "expiryTime"],
    ),
    EmailTemplate(
        name="task-assigned",
        subject="New Task Assigned: {{taskTitle}}",
        html=_layout(
            '<h1 style="color: #333;">New Task Assigned</h1>'
            "<p>Hi {{assigneeName}},</p>"
            "<p>{{assignerName}} assigned you a new task in project "
            "<strong>{{projectName}}</strong>:</p>"
            f'{_PANEL}<h3 style="margin-top: 0;">{{{{taskTitle}}}}</h3>'
            "<p><strong>Description:</strong> {{taskDescription}}</p>"
            "<p><strong>Due Date:</strong> {{dueDate}}</p>"
            '<p><strong>Priority:</strong> <span style="color: {{priorityColor}};">'
            "{{priority}}</span></p></div>"
            + _button("{{taskUrl}}", "View Task", "#28a745")
        ),
        variables=[
            "assigneeName",
            "assignerName",
            "projectName",
            "taskTitle",
            "taskDescription",
            "dueDate",
            "priority",
            "priorityColor",
            "taskUrl",
            "appName",
        ],
    ),
    EmailTemplate(
        name="project-invitation",
        subject="You've been invited to join {{projectName}}",
        html=_layout(
            '<h1 style="color: #333;">Project Invitation</h1>'
            "<p>Hi {{inviteeName}},</p>"
            "<p>{{inviterName}} has invited you to join the project "
            "<strong>{{projectName}}</strong> as a {{role}}.</p>"
            f'{_PANEL}<h3 style="margin-top: 0;">{{{{projectName}}}}</h3>'
            "<p>{{projectDescription}}</p>"
            "<p><strong>Role:</strong> {{role}}</p></div>"
            + _button("{{invitationUrl}}", "Accept Invitation", "#007bff")
        ),
        variables=[
            "inviteeName",
            "inviterName",
            "projectName",
            "projectDescription",
            "role",
            "invitationUrl",
            "appName",
        ],
    ),
    EmailTemplate(
        name="team-invitation",
        subject="{{inviterName}} invited you to the {{teamName}} team on {{appName}}",
        html=_layout(
            '<h1 style="color: #333;">Team Invitation</h1>'
            "<p>Hi {{inviteeName}},</p>"
            "<p>{{inviterName}} has invited you to join <strong>{{teamName}}</strong> "
            "as a {{role}}.</p>"
            + _button("{{invitationUrl}}", "Join the Team", "#007bff")
            + "<p><small>This invitation expires in {{expiryTime}}.</small></p>"
        ),
        variables=[
            "inviteeName",
            "inviterName",
            "teamName",
            "role",
            "invitationUrl",
            "expiryTime",
            "appName",
        ],
    ),
    EmailTemplate(
        name="task-deadline-reminder",
        subject="Task Deadline Reminder: {{taskTitle}}",
        html=_layout(
            '<h1 style="color: #333;">Task Deadline Reminder</h1>'
            "<p>Hi {{userName}},</p>"
            "<p>This is a reminder that your task in project "
            "<strong>{{projectName}}</strong> is due soon:</p>"
            f'{_PANEL}<h3 style="margin-top: 0;">{{{{taskTitle}}}}</h3>'
            "<p><strong>Due Date:</strong> {{dueDate}}</p>"
            "<p><strong>Time Remaining:</strong> {{timeRemaining}}</p>"
            '<p><strong>Priority:</strong> <span style="color: {{priorityColor}};">'
            "{{priority}}</span></p></div>"
            + _button("{{taskUrl}}", "View Task", "#dc3545")
        ),
        variables=[
            "userName",
            "taskTitle",
            "projectName",
            "dueDate",
            "timeRemaining",
            "priority",
            "priorityColor",
            "taskUrl",
            "appName",
        ],
    ),
    EmailTemplate(
        name="project-status-update",
        subject="Project Update: {{projectName}}",
        html=_layout(
            '<h1 style="color: #333;">{{updateType}}</h1>'
            "<p>Hi {{userName}},</p>"
            "<p>{{updateMessage}}</p>"
            f"{_PANEL}<p><strong>Completion:</strong> {{{{completionPercentage}}}}%</p>"
            "<p><strong>Tasks:</strong> {{tasksCompleted}} of {{totalTasks}} completed</p></div>"
            + _button("{{projectUrl}}", "View Project", "#007bff")
        ),
        variables=[
            "userName",
            "projectName",
            "updateType",
            "updateMessage",
            "completionPercentage",
            "tasksCompleted",
            "totalTasks",
            "projectUrl",
            "appName",
        ],
    ),
    EmailTemplate(
        name="notification",
        subject="[{{appName}}] {{title}}",
        html=(
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            '<h2 style="color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px;">'
            "{{title}}</h2>"
            f'{_PANEL}<p style="font-size: 16px; line-height: 1.6; margin: 0;">{{{{message}}}}</p></div>'
            "{{actionButton}}"
            '<div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #dee2e6; '
            'color: #6c757d; font-size: 14px;">'
            "<p>This notification was sent at {{sentAt}}</p>"
            "<p>You can manage your notification preferences in your account settings.</p>"
            "</div></div>"
        ),
        variables=["appName", "title", "message", "actionButton", "sentAt"],
    ),
)


def action_button(url: str, label: str) -> Markup:
    """Return the call-to-action block used by notification emails."""

    return Markup(_button("{url}", "{label}", "#007bff")).format(url=url, label=label)


__all__ = [
    "DEFAULT_TEMPLATES",
    "PRIORITY_COLORS",
    "PlaceholderUndefined",
    "action_button",
    "priority_color",
    "render",
]
