"""Helpers that turn project-management events into notifications."""

from __future__ import annotations

from typing import Sequence

from notifyhub.domain.entities import (
    Notification,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
)

from .dispatcher import NotificationDispatcher


async def notify_task_assigned(
    dispatcher: NotificationDispatcher,
    *,
    assignee_id: int,
    task_id: str,
    task_title: str,
    project_id: str | None = None,
    project_name: str | None = None,
    assigner_name: str | None = None,
    priority: NotificationPriority | str = NotificationPriority.MEDIUM,
) -> list[Notification]:
    """Tell the assignee that a task now belongs to them."""

    where = f" in {project_name}" if project_name else ""
    by = f" by {assigner_name}" if assigner_name else ""
    return await dispatcher.send_notification(
        NotificationRequest(
            recipients=assignee_id,
            type=NotificationType.TASK_ASSIGNED,
            title="New task assigned",
            message=f"You have been assigned '{task_title}'{where}{by}.",
            priority=priority,
            actionable=True,
            action="View Task",
            link=f"/tasks/{task_id}",
            metadata={"task_id": task_id, "project_id": project_id},
        )
    )


async def notify_task_completed(
    dispatcher: NotificationDispatcher,
    *,
    recipients: Sequence[int],
    task_id: str,
    task_title: str,
    completed_by: str,
    project_id: str | None = None,
) -> list[Notification]:
    return await dispatcher.send_notification(
        NotificationRequest(
            recipients=list(recipients),
            type=NotificationType.TASK_COMPLETED,
            title="Task completed",
            message=f"{completed_by} completed '{task_title}'.",
            priority=NotificationPriority.LOW,
            link=f"/tasks/{task_id}",
            metadata={"task_id": task_id, "project_id": project_id},
        )
    )


async def notify_task_due(
    dispatcher: NotificationDispatcher,
    *,
    assignee_id: int,
    task_id: str,
    task_title: str,
    time_remaining: str,
) -> list[Notification]:
    overdue = time_remaining.lower() == "overdue"
    return await dispatcher.send_notification(
        NotificationRequest(
            recipients=assignee_id,
            type=NotificationType.TASK_DUE,
            title="Task overdue" if overdue else "Task due soon",
            message=(
                f"'{task_title}' is overdue."
                if overdue
                else f"'{task_title}' is due in {time_remaining}."
            ),
            priority=NotificationPriority.URGENT if overdue else NotificationPriority.HIGH,
            actionable=True,
            action="View Task",
            link=f"/tasks/{task_id}",
            metadata={"task_id": task_id},
        )
    )


async def notify_project_update(
    dispatcher: NotificationDispatcher,
    *,
    member_ids: Sequence[int],
    project_id: str,
    project_name: str,
    update_message: str,
    milestone: bool = False,
) -> list[Notification]:
    return await dispatcher.send_notification(
        NotificationRequest(
            recipients=list(member_ids),
            type=(
                NotificationType.PROJECT_MILESTONE
                if milestone
                else NotificationType.PROJECT_UPDATE
            ),
            title=f"{'Milestone reached' if milestone else 'Project update'}: {project_name}",
            message=update_message,
            link=f"/projects/{project_id}",
            metadata={"project_id": project_id},
        )
    )


async def notify_meeting_reminder(
    dispatcher: NotificationDispatcher,
    *,
    attendee_ids: Sequence[int],
    meeting_id: str,
    meeting_title: str,
    starts_in: str,
) -> list[Notification]:
    return await dispatcher.send_notification(
        NotificationRequest(
            recipients=list(attendee_ids),
            type=NotificationType.MEETING_REMINDER,
            title=f"Upcoming meeting: {meeting_title}",
            message=f"'{meeting_title}' starts in {starts_in}.",
            priority=NotificationPriority.HIGH,
            actionable=True,
            action="Join Meeting",
            link=f"/meetings/{meeting_id}",
            metadata={"meeting_id": meeting_id},
        )
    )


async def notify_system_alert(
    dispatcher: NotificationDispatcher,
    *,
    title: str,
    message: str,
    role: str | None = None,
    priority: NotificationPriority | str = NotificationPriority.HIGH,
) -> list[Notification]:
    """Broadcast an alert to everyone, or only to users holding ``role``."""

    request = NotificationRequest(
        recipients=[],
        type=NotificationType.SYSTEM_ALERT,
        title=title,
        message=message,
        priority=priority,
    )
    if role:
        return await dispatcher.broadcast_to_role(role, request)
    return await dispatcher.broadcast_to_all(request)


__all__ = [
    "notify_meeting_reminder",
    "notify_project_update",
    "notify_system_alert",
    "notify_task_assigned",
    "notify_task_completed",
    "notify_task_due",
]
