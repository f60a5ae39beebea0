"""V1 API router aggregation."""

from fastapi import APIRouter

from crm.api.v1.auth import router as auth_router
from crm.api.v1.counterparties import router as counterparties_router
from crm.api.v1.deals import router as deals_router
from crm.api.v1.documents import router as documents_router
from crm.api.v1.integrations import router as integrations_router
from crm.api.v1.pipelines import router as pipelines_router
from crm.api.v1.products import router as products_router
from crm.api.v1.settings import router as settings_router
from crm.api.v1.templates import router as templates_router
from crm.api.v1.users import router as users_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(users_router)
v1_router.include_router(pipelines_router)
v1_router.include_router(counterparties_router)
v1_router.include_router(products_router)
v1_router.include_router(deals_router)
v1_router.include_router(templates_router)
v1_router.include_router(documents_router)
v1_router.include_router(settings_router)
v1_router.include_router(integrations_router)
