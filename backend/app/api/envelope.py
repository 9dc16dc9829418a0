from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request


def envelope(request_id: str, data: Any = None, error: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"success": error is None, "request_id": request_id, "data": data, "error": error}


def ok(request: Request, data: Any) -> Dict[str, Any]:
    return envelope(request_id=getattr(request.state, "request_id", ""), data=data)
