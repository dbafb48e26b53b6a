"""
This module contains the FastAPI routers for sales endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from starlette import status

from api.auth.dependencies import require_seller
from api.auth.schemas import AuthenticatedUser
from api.common.errors import InternalError, SalesError, error_response
from api.common.logger import get_logger
from api.sales.schemas import SaleCreate, SaleCreateResponse, SalesListResponse
from api.sales.services import build_sales_report, list_sales, record_sale

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=SalesListResponse)
async def get_sales(
    startDate: Optional[str] = Query(None, description="Start date (YYYY-MM-DD), inclusive"),
    endDate: Optional[str] = Query(None, description="End date (YYYY-MM-DD), inclusive through the end of the day"),
    customerName: Optional[str] = Query(None, description="Case-insensitive customer name substring"),
    paymentMethod: Optional[str] = Query(None, description="Exact payment method"),
    user: AuthenticatedUser = Depends(require_seller)
):
    """
    List the caller's sales with optional filters and a summary of
    total revenue, number of sales and units sold.
    """
    try:
        result = await list_sales(
            user.id,
            start_date=startDate,
            end_date=endDate,
            customer_name=customerName,
            payment_method=paymentMethod
        )
        return JSONResponse(content=result.model_dump(mode="json"))
    except SalesError as e:
        return error_response(e)
    except Exception as e:
        logger.exception("Error al obtener ventas")
        return error_response(InternalError("Error interno al obtener ventas", details=str(e)))


@router.get("/report")
async def get_sales_report(
    startDate: Optional[str] = Query(None, description="Start date (YYYY-MM-DD), inclusive"),
    endDate: Optional[str] = Query(None, description="End date (YYYY-MM-DD), inclusive through the end of the day"),
    user: AuthenticatedUser = Depends(require_seller)
):
    """
    Download the caller's sales in the date range as a PDF report.
    """
    try:
        report = await build_sales_report(user.id, start_date=startDate, end_date=endDate)
    except SalesError as e:
        return error_response(e)
    except Exception as e:
        logger.exception("Error generando PDF")
        return error_response(InternalError("Error generando el reporte", details=str(e)))

    return Response(
        content=report.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={report.filename}"}
    )


@router.post("", response_model=SaleCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(
    sale: SaleCreate,
    user: AuthenticatedUser = Depends(require_seller)
):
    """
    Record a sale, either from catalog products or as a proxy sale for the
    caller or one of their team members.
    """
    try:
        result = await record_sale(user.id, sale)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=result.model_dump(mode="json"))
    except SalesError as e:
        return error_response(e)
    except Exception as e:
        logger.exception("Error al registrar la venta")
        return error_response(InternalError("Error al registrar la venta", details=str(e)))
