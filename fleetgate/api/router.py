from fastapi import APIRouter

from fleetgate.api import admin, auth, codes, customers, devices, membership, system

api_router = APIRouter()
api_router.include_router(system.router)
api_router.include_router(auth.router)
api_router.include_router(membership.router)
api_router.include_router(devices.router)
api_router.include_router(codes.router)
api_router.include_router(customers.router)
api_router.include_router(admin.router)
