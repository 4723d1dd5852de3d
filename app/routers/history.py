from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.database import get_db
from app.core.responses import envelope
from app.core.security import get_current_user
from app.models.scan_history import ScanHistory
from app.models.user import User
from app.schemas.history import HistoryEntryResponse

router = APIRouter(prefix="/history", tags=["history"])


def _get_owned_entry(db: Session, history_id: UUID, user: User) -> ScanHistory:
    entry = db.query(ScanHistory).filter(
        ScanHistory.id == history_id,
        ScanHistory.user_id == user.id
    ).first()

    if not entry:
        raise HTTPException(status_code=404, detail="History item not found")

    return entry


@router.get("")
def list_history(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """List the current user's scans, most recent first"""
    entries = db.query(ScanHistory).filter(
        ScanHistory.user_id == user.id
    ).order_by(ScanHistory.scanned_at.desc()).all()

    return envelope(True, data=[HistoryEntryResponse.model_validate(e) for e in entries])


@router.get("/{history_id}")
def get_history_entry(
    history_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Get a specific scan snapshot"""
    entry = _get_owned_entry(db, history_id, user)
    return envelope(True, data=HistoryEntryResponse.model_validate(entry))


@router.delete("/{history_id}")
def delete_history_entry(
    history_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Delete one scan from history"""
    entry = _get_owned_entry(db, history_id, user)

    db.delete(entry)
    db.commit()

    return envelope(True, message="History item deleted successfully")


@router.delete("")
def clear_history(user: User = Depends(get_current_user)):
    """
    Bulk clear is not defined yet; the route is reserved and answers 501.
    """
    return envelope(False, message="Clearing all history is not available.", status_code=501)
