from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import settings
from storefront.routers import coupons, orders, segments

OPENAPI_TAGS = [
    {"name": "Coupons", "description": "Create, validate and list discount coupons."},
    {"name": "Segments", "description": "Manage spend-based customer segments."},
    {"name": "Orders", "description": "Price checkouts and settle orders."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Storefront loyalty API. "
        "Resolves customer segments from lifetime spend and validates coupons "
        "against expiry, usage limits and segment restrictions."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(coupons.router, prefix="/v1/coupons", tags=["Coupons"])
app.include_router(segments.router, prefix="/v1/segments", tags=["Segments"])
app.include_router(orders.router, prefix="/v1/orders", tags=["Orders"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
