from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fleetgate.api.deps import get_current_admin, get_device_bearer
from fleetgate.core.config import get_settings
from fleetgate.db.session import get_db
from fleetgate.models.admin import Admin
from fleetgate.models.common import as_utc, utcnow
from fleetgate.models.error_report import ErrorReport
from fleetgate.schemas.devices import (
    DeviceRegisterRequest,
    DeviceRegisterResponse,
    ErrorReportDetail,
    ErrorReportListItem,
    ErrorReportPage,
    ErrorReportRequest,
    ReportAck,
)
from fleetgate.services import error_reports
from fleetgate.services.credentials import register_device_token
from fleetgate.services.error_reports import ReportPayload

router = APIRouter(prefix="/devices", tags=["devices"])

_REJECTION_STATUS = {
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "device_mismatch": status.HTTP_403_FORBIDDEN,
}


def _report_item(row: ErrorReport) -> dict:
    return {
        "request_id": row.request_id,
        "device_id": row.device_id,
        "platform": row.platform,
        "step": row.step,
        "error_msg": row.error_msg,
        "screenshot_omitted": row.screenshot_omitted,
        "has_screenshot": bool(row.screenshot),
        "state": row.state,
        "ai_action": row.ai_action,
        "ai_result": row.ai_result,
        "client_timestamp": row.client_timestamp,
        "created_at": row.created_at,
    }


@router.post("/register", response_model=DeviceRegisterResponse)
def register_device(payload: DeviceRegisterRequest, db: Session = Depends(get_db)):
    record = register_device_token(db, payload.device_id, payload.device_info)
    expires_in = int((as_utc(record.expires_at) - utcnow()).total_seconds())
    return DeviceRegisterResponse(token=record.token, expires_in=max(expires_in, 0))


@router.post("/report", response_model=ReportAck)
def report_error(
    payload: ErrorReportRequest,
    token: str | None = Depends(get_device_bearer),
    x_device_id: str | None = Header(default=None),
    x_request_id: str | None = Header(default=None, max_length=128),
    db: Session = Depends(get_db),
):
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing device token")
    if not x_request_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing X-Request-Id")

    result = error_reports.admit(
        db,
        token=token,
        request_id=x_request_id,
        claimed_device_id=x_device_id,
        payload=ReportPayload(**payload.model_dump()),
    )

    if result.outcome == "accepted":
        return ReportAck(success=True)
    if result.outcome == "duplicate":
        if get_settings().duplicate_report_status == status.HTTP_409_CONFLICT:
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content={"success": False, "message": "duplicate_request"},
            )
        return ReportAck(success=True)
    if result.outcome == "rate_limited":
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="rate_limited")

    code = _REJECTION_STATUS.get(result.reason, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail=result.reason)


@router.get("/reports", response_model=ErrorReportPage)
def list_error_reports(
    device_id: str | None = Query(default=None, max_length=100),
    platform: str | None = Query(default=None, max_length=32),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    rows, total = error_reports.list_reports(db, device_id=device_id, platform=platform, page=page, limit=limit)
    return ErrorReportPage(
        items=[ErrorReportListItem(**_report_item(row)) for row in rows],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/reports/{request_id}", response_model=ErrorReportDetail)
def error_report_detail(
    request_id: str,
    db: Session = Depends(get_db),
    _: Admin = Depends(get_current_admin),
):
    row = db.get(ErrorReport, request_id)
    if not row or row.status != "accepted":
        raise HTTPException(status_code=404, detail="Report not found")
    return ErrorReportDetail(**_report_item(row), screenshot=row.screenshot, extra=row.extra)
