"""Fleet records API - mowers, components, parts, service history, tasks and part allocations."""

import logging
from typing import Any, Awaitable, Callable, List, Mapping

from fastapi import APIRouter, Depends, HTTPException

from mower_manager.models.entities import (
    AssetPartCreate,
    AssetPartResponse,
    ComponentCreate,
    ComponentResponse,
    MowerCreate,
    MowerResponse,
    PartCreate,
    PartResponse,
    ServiceRecordCreate,
    ServiceRecordResponse,
    TaskCreate,
    TaskResponse,
)
from mower_manager.repositories.storage import Storage, StorageError, get_storage
from mower_manager.services.maintenance import ensure_writable
from mower_manager.services.websocket_service import manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["fleet"])


async def create_and_announce(
    entity_type: str,
    create: Callable[[Mapping[str, Any]], Awaitable[Any]],
    data: Mapping[str, Any],
):
    """Run a storage create, map its errors to HTTP and broadcast the new record."""
    try:
        record = await create(data)
    except StorageError as e:
        status_code = 409 if e.code == "INTEGRITY_ERROR" else 400
        raise HTTPException(status_code=status_code, detail=e.message)
    logger.info(f"Created {entity_type} {record.id}")
    await manager.broadcast_entity_created(entity_type, record.id)
    return record


# ============ Mowers ============

@router.get("/mowers", response_model=List[MowerResponse])
async def list_mowers(storage: Storage = Depends(get_storage)):
    return await storage.get_all_mowers()


@router.get("/mowers/{mower_id}", response_model=MowerResponse)
async def get_mower(mower_id: int, storage: Storage = Depends(get_storage)):
    mower = await storage.get_mower(mower_id)
    if mower is None:
        raise HTTPException(status_code=404, detail=f"Mower not found: {mower_id}")
    return mower


@router.post(
    "/mowers",
    response_model=MowerResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def create_mower(request: MowerCreate, storage: Storage = Depends(get_storage)):
    return await create_and_announce("mower", storage.create_mower, request.model_dump())


# ============ Components ============

@router.get("/components", response_model=List[ComponentResponse])
async def list_components(storage: Storage = Depends(get_storage)):
    return await storage.get_all_components()


@router.get("/components/{component_id}", response_model=ComponentResponse)
async def get_component(component_id: int, storage: Storage = Depends(get_storage)):
    component = await storage.get_component(component_id)
    if component is None:
        raise HTTPException(status_code=404, detail=f"Component not found: {component_id}")
    return component


@router.post(
    "/components",
    response_model=ComponentResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def create_component(request: ComponentCreate, storage: Storage = Depends(get_storage)):
    return await create_and_announce("component", storage.create_component, request.model_dump())


# ============ Parts ============

@router.get("/parts", response_model=List[PartResponse])
async def list_parts(storage: Storage = Depends(get_storage)):
    return await storage.get_all_parts()


@router.get("/parts/{part_id}", response_model=PartResponse)
async def get_part(part_id: int, storage: Storage = Depends(get_storage)):
    part = await storage.get_part(part_id)
    if part is None:
        raise HTTPException(status_code=404, detail=f"Part not found: {part_id}")
    return part


@router.post(
    "/parts",
    response_model=PartResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def create_part(request: PartCreate, storage: Storage = Depends(get_storage)):
    return await create_and_announce("part", storage.create_part, request.model_dump())


# ============ Service Records ============

@router.get("/service-records", response_model=List[ServiceRecordResponse])
async def list_service_records(storage: Storage = Depends(get_storage)):
    return await storage.get_all_service_records()


@router.post(
    "/service-records",
    response_model=ServiceRecordResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def create_service_record(request: ServiceRecordCreate, storage: Storage = Depends(get_storage)):
    """Log a service and move the mower's service dates forward."""

    async def create(data: Mapping[str, Any]):
        return await storage.create_service_record(data, update_mower=True)

    return await create_and_announce("service-record", create, request.model_dump())


# ============ Tasks ============

@router.get("/tasks", response_model=List[TaskResponse])
async def list_tasks(storage: Storage = Depends(get_storage)):
    return await storage.get_all_tasks()


@router.post(
    "/tasks",
    response_model=TaskResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def create_task(request: TaskCreate, storage: Storage = Depends(get_storage)):
    return await create_and_announce("task", storage.create_task, request.model_dump())


# ============ Asset Parts ============

@router.get("/asset-parts", response_model=List[AssetPartResponse])
async def list_asset_parts(storage: Storage = Depends(get_storage)):
    return await storage.get_all_asset_parts()


@router.post(
    "/asset-parts",
    response_model=AssetPartResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def create_asset_part(request: AssetPartCreate, storage: Storage = Depends(get_storage)):
    return await create_and_announce("asset-part", storage.create_asset_part, request.model_dump())
