from fastapi import APIRouter

from app.infrastructure.realtime import get_realtime_hub

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, object]:
    hub = get_realtime_hub()
    return {
        "status": "ok",
        "connections": hub.registry.connection_count() if hub else 0,
        "online_users": len(hub.registry.online_user_ids()) if hub else 0,
    }
