from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from schemas import FavouriteIn
from services import storage

router = APIRouter(prefix="/favourites", tags=["favourites"])


@router.get("/{user_id}")
def list_favourites(user_id: str) -> Dict[str, Any]:
    return {"ok": True, "favourites": storage.list_favourites(user_id)}


@router.get("/{user_id}/ids")
def favourite_ids(user_id: str) -> Dict[str, Any]:
    return {"ok": True, "ids": sorted(storage.favourite_ids(user_id))}


@router.get("/{user_id}/{event_id:path}")
def is_favourite(user_id: str, event_id: str) -> Dict[str, Any]:
    return {"ok": True, "favourite": storage.is_favourite(user_id, event_id)}


@router.post("/{user_id}", status_code=201)
def add_favourite(user_id: str, req: FavouriteIn) -> Dict[str, Any]:
    try:
        storage.add_favourite(user_id, req.event.model_dump(mode="json"))
    except storage.AlreadyFavouriteError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True}


@router.delete("/{user_id}/{event_id:path}")
def remove_favourite(user_id: str, event_id: str) -> Dict[str, Any]:
    if not storage.remove_favourite(user_id, event_id):
        raise HTTPException(status_code=404, detail="Event is not in favourites")
    return {"ok": True}
