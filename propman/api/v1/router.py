from fastapi import APIRouter

from propman.api.v1.endpoints import bills, scripts

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(scripts.router, prefix="/scripts", tags=["Billing Scripts"])
api_router.include_router(bills.router, prefix="/bills", tags=["Bills"])
