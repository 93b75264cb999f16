import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promocodes.core.config import settings
from promocodes.routers import admin, checkout, discount_codes
from promocodes.services.results import StorageError

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Discount Codes", "description": "Validate and preview discount codes."},
    {"name": "Accounts", "description": "Account eligibility for discount codes."},
    {"name": "Checkout", "description": "Checkout completion events from the payment gateway."},
    {"name": "Admin", "description": "Discount code statistics, reports and maintenance."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Promotion code redemption API. Validate codes, preview discounts, "
        "record redemptions from completed checkouts and report on usage."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage temporarily unavailable, please retry"},
    )


app.include_router(
    discount_codes.router, prefix="/v1/discount_codes", tags=["Discount Codes"]
)
app.include_router(
    discount_codes.accounts_router, prefix="/v1/accounts", tags=["Accounts"]
)
app.include_router(checkout.router, prefix="/v1/checkout", tags=["Checkout"])
app.include_router(admin.router, prefix="/admin/discount_codes", tags=["Admin"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
