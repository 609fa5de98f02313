"""
MMW — Wire Material API Routes
===============================
CRUD-style management of wire material batches.

Usage:
    GET    /api/wire-materials                   — Paged, filtered listing
    GET    /api/wire-materials/{batch_number}    — Detail
    PUT    /api/wire-materials/{batch_number}    — Partial update
    DELETE /api/wire-materials/{batch_number}    — Delete
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from mmw.api.deps import get_wire_material_service
from mmw.models.common import BaseResponse
from mmw.models.wire_material import (
    UpdateWireMaterialRequest,
    WireMaterialPage,
    WireMaterialPageRequest,
    WireMaterialResponse,
)
from mmw.services.wire_materials import WireMaterialService

router = APIRouter(prefix="/api/wire-materials", tags=["wire-materials"])


@router.get("", response_model=BaseResponse[WireMaterialPage])
async def list_wire_materials(
    params: Annotated[WireMaterialPageRequest, Query()],
    service: WireMaterialService = Depends(get_wire_material_service),
) -> BaseResponse[WireMaterialPage]:
    return await service.list_wire_materials(params)


@router.get("/{batch_number}", response_model=BaseResponse[WireMaterialResponse])
async def get_wire_material(
    batch_number: str,
    service: WireMaterialService = Depends(get_wire_material_service),
) -> BaseResponse[WireMaterialResponse]:
    return await service.get_wire_material(batch_number)


@router.put("/{batch_number}", response_model=BaseResponse[WireMaterialResponse])
async def update_wire_material(
    batch_number: str,
    body: UpdateWireMaterialRequest,
    service: WireMaterialService = Depends(get_wire_material_service),
) -> BaseResponse[WireMaterialResponse]:
    return await service.update_wire_material(batch_number, body)


@router.delete("/{batch_number}", response_model=BaseResponse[None])
async def delete_wire_material(
    batch_number: str,
    service: WireMaterialService = Depends(get_wire_material_service),
) -> BaseResponse[None]:
    return await service.delete_wire_material(batch_number)
