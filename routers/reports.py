from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from services import reports as report_service
from services.money import to_major
from services.months import current_month
from typing import Optional

router = APIRouter(prefix="/reports", tags=["Reports"])

MONEY_FIELDS = ("expected_amount", "collected_amount", "remaining_debt", "teacher_portion", "center_portion")


def money_out(row):
    return {k: (to_major(v) if k in MONEY_FIELDS else v) for k, v in row.items()}


@router.get("/monthly")
def monthly_report(month: Optional[str] = None, db: Session = Depends(get_db)):
    """Per-group and center-wide collection summary for a month"""
    report = report_service.monthly(db, month or current_month())
    return {
        "month": report["month"],
        "groups": [money_out(g) for g in report["groups"]],
        "totals": money_out(report["totals"]),
    }
