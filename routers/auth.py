from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from schemas import LoginRequest
from services import storage

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(req: LoginRequest) -> Dict[str, Any]:
    """
    Mock login that records the user and echoes a token-like payload.
    Real accounts live in the hosted auth service.
    """
    username = req.username or req.user_id
    storage.upsert_user(req.user_id, username)
    return {
        "ok": True,
        "user_id": req.user_id,
        "username": username,
        "token": f"mock-{req.user_id}",
    }
