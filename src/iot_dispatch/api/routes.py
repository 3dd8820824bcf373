# src/iot_dispatch/api/routes.py
import json
from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from ..models.device import DeviceRequest, DispatchResult
from ..utils.logging import get_logger
from .dependencies import DeviceRouterDependency

logger = get_logger(__name__)

device_router = APIRouter()


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body, or None when the body is empty or not JSON"""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning(f"Ignoring non-JSON body on {request.url.path}: {e}")
        return None


def render(result: DispatchResult) -> Response:
    background = BackgroundTask(result.background) if result.background else None
    if result.status_code == 204:
        return Response(status_code=204, background=background)
    if isinstance(result.content, (dict, list)):
        return JSONResponse(result.content, status_code=result.status_code, background=background)
    return Response(
        content=result.content,
        status_code=result.status_code,
        media_type=result.media_type,
        background=background
    )


@device_router.post("/devices/{device}")
@device_router.post("/devices/{device}/{op}")
@device_router.post("/devices/{device}/{op}/{zone}")
async def device_notification(request: Request, device: str, router: DeviceRouterDependency) -> Response:
    device_request = DeviceRequest(
        device=device,
        operation=request.path_params.get('op'),
        zone=request.path_params.get('zone'),
        body=await read_json_body(request)
    )
    result = await router.dispatch(device_request)
    return render(result)


@device_router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}
