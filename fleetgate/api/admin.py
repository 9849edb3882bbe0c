from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fleetgate.api.deps import get_current_admin
from fleetgate.db.session import get_db
from fleetgate.models.admin import Admin
from fleetgate.schemas.admin import AdminLogItem, AdminLogPage
from fleetgate.services.audit import list_admin_logs

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/logs", response_model=AdminLogPage)
def admin_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    rows, total = list_admin_logs(db, page=page, limit=limit)
    return AdminLogPage(
        items=[AdminLogItem.model_validate(row) for row in rows],
        total=total,
        page=page,
        limit=limit,
    )
