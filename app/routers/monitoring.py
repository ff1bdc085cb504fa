import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.ai.model_router import get_rollout_stats, update_rollout_config
from app.ai.performance import health_status, performance_monitor
from app.config import settings
from app.errors import ChatSDKError
from app.models.user import User
from app.schemas.monitoring import RolloutUpdate
from app.utils.auth import get_current_user

router = APIRouter(tags=["monitoring"])

logger = logging.getLogger(__name__)

SERVICE_NAME = "ai-chatbot"


def require_regular_user(user: User = Depends(get_current_user)) -> User:
    if user.is_guest:
        raise ChatSDKError("forbidden:auth")
    return user


@router.get("/health")
@router.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": SERVICE_NAME,
        "version": settings.app_version,
    }


@router.get("/api/performance")
async def get_performance(
    action: Literal["summary", "export"] = "summary",
    hours: int = Query(24, ge=1, le=24 * 7),
):
    """Chat completion metrics for the last ``hours`` hours"""
    if action == "export":
        return {"metrics": performance_monitor.export(hours)}

    summary = performance_monitor.summary(hours)
    return {
        "summary": summary,
        "health": health_status(summary["errorRate"]),
        "rollout": get_rollout_stats(),
    }


@router.post("/api/performance/reset")
async def reset_performance(user: User = Depends(require_regular_user)):
    performance_monitor.reset()
    logger.info(f"Performance metrics reset by user {user.id}")
    return {"success": True}


@router.get("/api/gemini-rollout-status")
async def gemini_rollout_status():
    """Current Gemini Flash Lite rollout with its observed performance"""
    summary = performance_monitor.summary(24)
    return {
        "rollout": get_rollout_stats(),
        "performance": summary["byModel"].get("gemini-flash-lite"),
        "health": health_status(summary["errorRate"]),
    }


@router.post("/api/gemini-rollout-status")
async def update_gemini_rollout(
    update: RolloutUpdate,
    user: User = Depends(require_regular_user),
):
    """Enable or disable the rollout or change its traffic share"""
    changes = {}
    if update.enabled is not None:
        changes["gemini_flash_lite_enabled"] = update.enabled
    if update.trafficPercentage is not None:
        changes["traffic_percentage"] = update.trafficPercentage

    update_rollout_config(**changes)
    logger.info(f"Rollout updated by user {user.id}: {changes}")
    return {"rollout": get_rollout_stats()}
