from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import http_error
from textile_pos.app.core.database import get_db
from textile_pos.app.schemas.reports import (
    ProfitReportRow,
    PurchaseReportRow,
    SalesReportRow,
    SummaryResponse,
)
from textile_pos.app.services import reports

router = APIRouter()


@router.get("/sales", response_model=list[SalesReportRow])
def sales_report(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return reports.sales_report(db, start_date, end_date)
    except ValueError as e:
        raise http_error(e)


@router.get("/profit", response_model=list[ProfitReportRow])
def profit_report(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return reports.profit_report(db, start_date, end_date)
    except ValueError as e:
        raise http_error(e)


@router.get("/purchases", response_model=list[PurchaseReportRow])
def purchase_report(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return reports.purchase_report(db, start_date, end_date)
    except ValueError as e:
        raise http_error(e)


@router.get("/summary", response_model=SummaryResponse)
def summary(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return reports.summary_report(db, start_date, end_date)
    except ValueError as e:
        raise http_error(e)
