from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import fmt_hhmm
from .model import Application, ApplicationListItem, Approval

SPECIAL_BADGE = "特任"
EXCEEDED_BADGE = "8h超過"
EXCEEDED_SHORT_BADGE = "超過"


def special_note(app: Application) -> list[str]:
    """Badges shown next to the date; both flags shorten the overtime badge."""
    if app.is_special and app.work_hours_exceeded:
        return [SPECIAL_BADGE, EXCEEDED_SHORT_BADGE]
    if app.is_special:
        return [SPECIAL_BADGE]
    if app.work_hours_exceeded:
        return [EXCEEDED_BADGE]
    return []


def row_class(app: Application) -> str:
    if app.is_special and app.work_hours_exceeded:
        return "special_exceeded"
    if app.work_hours_exceeded:
        return "exceeded"
    if app.is_special:
        return "special"
    return ""


def approval_dict(a: Approval) -> dict:
    return {
        "id": a.approval_id,
        "status": a.decision.value,
        "approver": {"id": a.approver_id, "name": a.approver_name or "-"},
        "comment": a.comment or "",
        "created_at": a.created_at.strftime("%Y-%m-%d %H:%M"),
    }


def to_row(item: ApplicationListItem, approvals: Optional[Sequence[Approval]] = None) -> dict:
    app = item.application
    row = {
        "id": app.application_id,
        "user_id": app.user_id,
        "user_name": item.user_name,
        "user": {"id": app.user_id, "name": item.user_name},
        "department_name": item.department_name or "-",
        "date": app.work_date.isoformat(),
        "work_option": app.work_option.value,
        "work_option_label": app.work_option.label,
        "start_time": fmt_hhmm(app.start_time),
        "end_time": fmt_hhmm(app.end_time),
        "break_time": app.break_minutes,
        "reason": app.reason,
        "project": app.project or "",
        "is_special": app.is_special,
        "special_reason": app.special_reason or "",
        "is_overtime": app.is_overtime,
        "overtime_reason": app.overtime_reason or "",
        "overtime_end": fmt_hhmm(app.overtime_end),
        "work_hours_exceeded": app.work_hours_exceeded,
        "application_status_id": app.status.status_id,
        "application_status": {"id": app.status.status_id, "name": app.status.value},
        "status_label": app.status.label,
        "special_note": special_note(app),
        "row_class": row_class(app),
        "created_at": app.created_at.strftime("%Y-%m-%d %H:%M"),
        "updated_at": app.updated_at.strftime("%Y-%m-%d %H:%M"),
    }
    if approvals is not None:
        row["approvals"] = [approval_dict(a) for a in approvals]
    return row
