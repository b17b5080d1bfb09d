from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from routers.deps import get_api_client, require_admin
from services.api_client import MASTER_RESOURCES, TransportApiClient

router = APIRouter(prefix="/api/v1/masters", tags=["Master Records"], dependencies=[Depends(require_admin)])

# =======================
# Master records live in the transport service; these calls pass straight through.
# Resources: drivers, routes, stops, vehicles, classes, students,
# fine-settings, fee-structures, transport-org
# =======================

@router.get("")
def list_master_resources():
    return sorted(MASTER_RESOURCES)


@router.get("/{resource}")
def list_items(resource: str, client: TransportApiClient = Depends(get_api_client)):
    return client.list_resource(resource)


@router.post("/{resource}")
def create_item(resource: str, item: Dict[str, Any] = Body(...),
                client: TransportApiClient = Depends(get_api_client)):
    client.create_resource(resource, item)
    return {"message": "Created"}


@router.put("/{resource}/{item_id}")
def update_item(resource: str, item_id: str, item: Dict[str, Any] = Body(...),
                client: TransportApiClient = Depends(get_api_client)):
    client.update_resource(resource, item_id, item)
    return {"message": "Updated"}


@router.delete("/{resource}/{item_id}")
def delete_item(resource: str, item_id: str, client: TransportApiClient = Depends(get_api_client)):
    client.delete_resource(resource, item_id)
    return {"message": "Deleted"}
