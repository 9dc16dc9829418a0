from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db, ping


router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    return {"status": "ok", "db": "connected" if ping(db) else "disconnected"}
