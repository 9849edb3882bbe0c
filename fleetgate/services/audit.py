from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fleetgate.models.admin_log import AdminLog


def log_admin_action(
    db: Session,
    admin_id: str,
    action: str,
    target_type: str | None = None,
    target_id: str | None = None,
    detail: dict[str, Any] | None = None,
) -> None:
    db.add(
        AdminLog(
            admin_id=admin_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            detail=detail,
        )
    )
    db.commit()


def list_admin_logs(db: Session, page: int = 1, limit: int = 20) -> tuple[list[AdminLog], int]:
    total = db.scalar(select(func.count()).select_from(AdminLog)) or 0
    rows = db.scalars(
        select(AdminLog).order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit).offset((page - 1) * limit)
    ).all()
    return list(rows), total
