# src/iot_dispatch/api/dependencies.py
from typing import Annotated

from fastapi import Depends, Request

from ..core.router import DeviceRouter

async def get_device_router(request: Request) -> DeviceRouter:
    return request.app.state.components.router

# Type definitions for dependencies
DeviceRouterDependency = Annotated[DeviceRouter, Depends(get_device_router)]
