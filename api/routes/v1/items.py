"""
api/routes/v1/items.py -- Item CRUD routes.

Routes:
  GET    /items             -- list all items, oldest first
  POST   /items             -- create an item owned by the caller
  GET    /items/{item_id}   -- item detail
  PUT    /items/{item_id}   -- update; owner or admin only (checked by the store)
  DELETE /items/{item_id}   -- delete; admin only (checked here, not by the store)

Store errors (invalid_input, item_not_found, forbidden) propagate to the
ItemVaultError handler in api/main.py, which renders the error envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import ItemListResponse, ItemRequest, ItemResponse
from auth.dependencies import get_current_identity, require_admin
from auth.models import Identity
from records.store import RecordStore

# Every item route requires authentication. Router-level dependency applies to
# every route registered on this router; DELETE adds the admin requirement.
router = APIRouter(dependencies=[Depends(get_current_identity)])


@router.get("/items", response_model=ItemListResponse)
def list_items(request: Request) -> ItemListResponse:
    store: RecordStore = request.app.state.store
    return ItemListResponse(items=[ItemResponse.from_domain(i) for i in store.list_items()])


@router.post("/items", response_model=ItemResponse, status_code=201)
def create_item(
    request: Request,
    body: ItemRequest,
    identity: Identity = Depends(get_current_identity),
) -> ItemResponse:
    """Create an item owned by the authenticated caller."""
    store: RecordStore = request.app.state.store
    item = store.create_item(identity.username, body.title, body.description)
    return ItemResponse.from_domain(item)


@router.get("/items/{item_id}", response_model=ItemResponse)
def get_item(request: Request, item_id: str) -> ItemResponse:
    store: RecordStore = request.app.state.store
    return ItemResponse.from_domain(store.get_item(item_id))


@router.put("/items/{item_id}", response_model=ItemResponse)
def update_item(
    request: Request,
    item_id: str,
    body: ItemRequest,
    identity: Identity = Depends(get_current_identity),
) -> ItemResponse:
    """Replace title and description. Owners edit their own items; admins edit any."""
    store: RecordStore = request.app.state.store
    item = store.update_item(item_id, identity.username, identity.is_admin, body.title, body.description)
    return ItemResponse.from_domain(item)


@router.delete("/items/{item_id}", status_code=204)
def delete_item(
    request: Request,
    item_id: str,
    identity: Identity = Depends(require_admin),
) -> Response:
    store: RecordStore = request.app.state.store
    store.delete_item(item_id)
    return Response(status_code=204)
