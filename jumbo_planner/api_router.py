from fastapi import APIRouter
from .api import pending_orders, inventory, cutting, plans

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(pending_orders.router, prefix="/api", tags=["Pending Orders"])
api_router.include_router(inventory.router, prefix="/api", tags=["Stock Rolls"])
api_router.include_router(cutting.router, prefix="/api", tags=["Cutting Algorithm"])
api_router.include_router(plans.router, prefix="/api", tags=["Plans"])
