from fastapi import APIRouter

from app.shopdesk.core.config import settings
from app.shopdesk.routers.alerts import router as alerts_router
from app.shopdesk.routers.analytics import router as analytics_router
from app.shopdesk.routers.auth import router as auth_router
from app.shopdesk.routers.commission import router as commission_router
from app.shopdesk.routers.customers import router as customers_router
from app.shopdesk.routers.employees import router as employees_router
from app.shopdesk.routers.expenses import router as expenses_router
from app.shopdesk.routers.health import router as health_router
from app.shopdesk.routers.inventory import router as inventory_router
from app.shopdesk.routers.metrics import router as metrics_router
from app.shopdesk.routers.plans import router as plans_router
from app.shopdesk.routers.pos_sales import router as pos_sales_router
from app.shopdesk.routers.purchases import router as purchases_router
from app.shopdesk.routers.receipts import router as receipts_router
from app.shopdesk.routers.referrals import router as referrals_router
from app.shopdesk.routers.super_admin import router as super_admin_router
from app.shopdesk.routers.tenant_config import router as tenant_config_router
from app.shopdesk.routers.tenants import router as tenants_router
from app.shopdesk.routers.whatsapp import router as whatsapp_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router, prefix="/api/auth", tags=["auth"])
api_router.include_router(pos_sales_router, tags=["pos-sales"])
api_router.include_router(receipts_router, tags=["receipts"])
api_router.include_router(inventory_router, tags=["inventory"])
api_router.include_router(alerts_router, tags=["alerts"])
api_router.include_router(customers_router, tags=["customers"])
api_router.include_router(employees_router, tags=["employees"])
api_router.include_router(commission_router, tags=["commission"])
api_router.include_router(purchases_router, tags=["purchases"])
api_router.include_router(expenses_router, tags=["expenses"])
api_router.include_router(analytics_router, tags=["analytics"])
api_router.include_router(tenant_config_router, tags=["settings"])
api_router.include_router(whatsapp_router, tags=["whatsapp"])
api_router.include_router(referrals_router, tags=["referrals"])
api_router.include_router(plans_router, tags=["plans"])
api_router.include_router(tenants_router, tags=["tenants"])
api_router.include_router(super_admin_router, tags=["super-admin"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
