"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import api_key_protection
from src.integrations.contracts.interfaces import CoffeeShop
from src.integrations.errors import IntegrationError
from src.sync.menu_synchronizer import MenuSyncState
from src.sync.service import SyncService, build_sync_service
from src.utils.sync_config_loader import load_sync_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _shop_payload(shop: CoffeeShop) -> Dict[str, Any]:
    return {
        "id": shop.id,
        "name": shop.name,
        "address": shop.address,
        "latitude": shop.latitude,
        "longitude": shop.longitude,
        "phone": shop.phone,
        "website": shop.website,
        "description": shop.description,
        "imageName": shop.image_name,
        "stampName": shop.stamp_name,
        "merchantId": shop.merchant_id,
        "posType": shop.pos_type.value,
    }


def _menu_payload(shop: CoffeeShop, state: MenuSyncState) -> Dict[str, Any]:
    return {
        "shop_id": shop.id,
        "categories": [asdict(c) for c in state.categories],
        "is_loading": state.is_loading,
        "error_message": state.error_message,
        "updated_at": state.updated_at,
    }


def create_app(service: Optional[SyncService] = None) -> FastAPI:
    if service is None:
        service = build_sync_service(load_sync_config())

    app = FastAPI(
        title="SipLocal Menu Sync API",
        description="Coffee shop menus from Square and Clover, cached locally",
        version="1.0.0",
        dependencies=[Depends(api_key_protection)],  # protect everything by default
    )
    app.state.sync_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IntegrationError)
    async def integration_error_handler(request: Request, exc: IntegrationError):
        payload = service.error_handler.handle_exception(exc, context={"path": request.url.path})
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=payload)

    def get_shop_or_404(shop_id: str) -> CoffeeShop:
        shop = service.get_shop(shop_id)
        if shop is None:
            raise HTTPException(status_code=404, detail="Coffee shop not found")
        return shop

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "shops": len(service.shops),
            "cached_credentials": len(service.broker.cache),
            "timestamp": datetime.now().isoformat(),
        }

    api_router = APIRouter()

    @api_router.get("/shops", tags=["Shops"])
    async def list_shops():
        return {"shops": [_shop_payload(shop) for shop in service.list_shops()]}

    @api_router.get("/shops/{shop_id}/menu", tags=["Menu"])
    async def get_menu(shop_id: str):
        shop = get_shop_or_404(shop_id)
        state = await service.synchronizer.prime_menu(shop)
        return _menu_payload(shop, state)

    @api_router.post("/shops/{shop_id}/menu/refresh", tags=["Menu"])
    async def refresh_menu(shop_id: str):
        shop = get_shop_or_404(shop_id)
        state = await service.synchronizer.refresh_menu_data(shop)
        return _menu_payload(shop, state)

    @api_router.get("/shops/{shop_id}/hours", tags=["Shops"])
    async def get_business_hours(shop_id: str):
        shop = get_shop_or_404(shop_id)
        hours = await service.registry.for_shop(shop).fetch_business_hours(shop)
        if hours is None:
            return {"shop_id": shop.id, "weekly_hours": {}, "is_open_now": False}
        return {
            "shop_id": shop.id,
            "weekly_hours": asdict(hours)["weekly_hours"],
            "is_open_now": hours.is_currently_open,
        }

    @api_router.post("/orders/reconcile", tags=["Orders"])
    async def reconcile_orders():
        report = await service.reconciler.reconcile()
        return report.as_dict()

    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("shutdown")
    async def wait_for_refreshes():
        await service.synchronizer.wait_for_background_refreshes()

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
