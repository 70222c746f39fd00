# wholesale/core/api.py
from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi.responses import JSONResponse

# UTF-8 charset on every JSON response
class UTF8JSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"

def ok(data: Any = True, meta: Optional[Dict[str, Any]] = None, status_code: int = 200):
    payload: Dict[str, Any] = {"ok": True, "data": data}
    if meta:
        payload["meta"] = meta
    return UTF8JSONResponse(content=payload, status_code=status_code)

def fail(message: str, status_code: int = 400, meta: Optional[Dict[str, Any]] = None):
    payload: Dict[str, Any] = {"ok": False, "message": message}
    if meta:
        payload["meta"] = meta
    return UTF8JSONResponse(content=payload, status_code=status_code)
