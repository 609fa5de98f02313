"""
MMW — Wire Material Management
===============================
Paged listing, lookup, partial update and deletion of wire material batches.

Unknown batch numbers raise ``ResourceNotFoundError`` which the API layer maps
to HTTP 404.
"""

from __future__ import annotations

from mmw.core.exceptions import ResourceNotFoundError
from mmw.core.logging import get_logger
from mmw.db.repository import WireMaterialRepository
from mmw.models.common import BaseResponse
from mmw.models.wire_material import (
    UpdateWireMaterialRequest,
    WireMaterialPage,
    WireMaterialPageRequest,
    WireMaterialResponse,
)

logger = get_logger(__name__)


class WireMaterialService:
    def __init__(self, repository: WireMaterialRepository) -> None:
        self._repository = repository

    async def list_wire_materials(
        self, request: WireMaterialPageRequest
    ) -> BaseResponse[WireMaterialPage]:
        items, total = await self._repository.page(request)
        page = WireMaterialPage.build(
            [WireMaterialResponse.model_validate(item) for item in items],
            page=request.page,
            size=request.size,
            total=total,
        )
        return BaseResponse.success(page)

    async def get_wire_material(
        self, batch_number: str
    ) -> BaseResponse[WireMaterialResponse]:
        entity = await self._repository.get(batch_number)
        if entity is None:
            raise ResourceNotFoundError(
                f"Wire material not found: {batch_number}", resource_id=batch_number
            )
        return BaseResponse.success(WireMaterialResponse.model_validate(entity))

    async def update_wire_material(
        self, batch_number: str, request: UpdateWireMaterialRequest
    ) -> BaseResponse[WireMaterialResponse]:
        entity = await self._repository.get(batch_number)
        if entity is None:
            raise ResourceNotFoundError(
                f"Wire material not found: {batch_number}", resource_id=batch_number
            )

        changes = request.changes()
        for name, value in changes.items():
            setattr(entity, name, value)
        saved = await self._repository.save(entity)

        logger.info(
            "wire_material.updated",
            batch_number=batch_number,
            fields=sorted(changes),
        )
        return BaseResponse.success(WireMaterialResponse.model_validate(saved))

    async def delete_wire_material(self, batch_number: str) -> BaseResponse[None]:
        if not await self._repository.delete(batch_number):
            raise ResourceNotFoundError(
                f"Wire material not found: {batch_number}", resource_id=batch_number
            )
        logger.info("wire_material.deleted", batch_number=batch_number)
        return BaseResponse.success(msg="Wire material deleted")
