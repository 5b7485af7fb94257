from __future__ import annotations

from fastapi import APIRouter, Depends

from sales_api.api.v1.endpoints import sales
from sales_api.core.security import require_basic_auth


api_router = APIRouter(dependencies=[Depends(require_basic_auth)])

api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
