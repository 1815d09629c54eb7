from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_realtime
from app.core.security import get_current_user
from app.realtime.rooms import room_name
from app.realtime.server import RealtimeServer

router = APIRouter()


@router.get("/{shop_id}/realtime")
async def get_shop_realtime_status(
    shop_id: str,
    current_user: dict = Depends(get_current_user),
    realtime: RealtimeServer = Depends(get_realtime),
):
    """Live connection count for a shop's room (this process only)."""
    if not await realtime.verifier.is_member(shop_id, current_user["user_id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized access to shop",
        )

    return {
        "shopId": shop_id,
        "room": room_name(shop_id),
        "connectedClients": realtime.registry.count(shop_id),
    }
