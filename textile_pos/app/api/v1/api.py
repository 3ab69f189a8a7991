from fastapi import APIRouter

from textile_pos.app.api.v1.endpoints import (
    billing,
    bills,
    labels,
    products,
    purchases,
    reports,
    returns,
    settings,
    suppliers,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
api_router.include_router(bills.router, prefix="/bills", tags=["bills"])
api_router.include_router(purchases.router, prefix="/purchases", tags=["purchases"])
api_router.include_router(returns.router, prefix="/returns", tags=["returns"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(labels.router, prefix="/labels", tags=["labels"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
