"""
Gradual rollout of Gemini Flash Lite for chat-model traffic.

Users are bucketed by a stable hash of their id so the same user always
lands on the same model while the rollout percentage is unchanged.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class UserContext:
    is_guest: bool
    session_id: str
    user_id: Optional[str] = None


@dataclass
class RoutingConfig:
    gemini_flash_lite_enabled: bool
    traffic_percentage: int
    force_model: Optional[str] = None


rollout_config = RoutingConfig(
    gemini_flash_lite_enabled=settings.gemini_flash_lite_enabled,
    traffic_percentage=settings.gemini_traffic_percentage,
)


def hash_user_for_routing(user_context: UserContext) -> int:
    """Bucket 0-99 for a user, stable across processes"""
    identifier = user_context.user_id or user_context.session_id
    value = 0
    for char in identifier:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    # Read as signed 32-bit before taking the magnitude
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value) % 100


def should_use_gemini_flash_lite(user_context: UserContext, config: Optional[RoutingConfig] = None) -> bool:
    config = config or rollout_config
    if not config.gemini_flash_lite_enabled:
        return False
    if config.force_model:
        return config.force_model == "gemini-flash-lite"
    return hash_user_for_routing(user_context) < config.traffic_percentage


def select_model_with_routing(
    requested_model: str, user_context: UserContext, config: Optional[RoutingConfig] = None
) -> str:
    """
    Pick the model key to serve a request

    Args:
        requested_model: Model key chosen by the client
        user_context: Identity used for bucketing
        config: Rollout config, the shared one by default

    Returns:
        "gemini-flash-lite" for routed or explicit requests when enabled,
        otherwise the requested key ("chat-model" if flash lite is disabled)
    """
    config = config or rollout_config
    if requested_model == "gemini-flash-lite":
        return "gemini-flash-lite" if config.gemini_flash_lite_enabled else "chat-model"
    if requested_model == "chat-model":
        if should_use_gemini_flash_lite(user_context, config):
            return "gemini-flash-lite"
        return "chat-model"
    return requested_model


def get_rollout_stats() -> dict:
    return {
        "enabled": rollout_config.gemini_flash_lite_enabled,
        "trafficPercentage": rollout_config.traffic_percentage,
        "estimatedUsersAffected": f"~{rollout_config.traffic_percentage}% of chat-model users",
    }


def update_rollout_config(**updates) -> RoutingConfig:
    """Change the shared rollout config in place and return a copy"""
    for key, value in updates.items():
        if not hasattr(rollout_config, key):
            raise ValueError(f"Unknown rollout setting: {key}")
        setattr(rollout_config, key, value)

    logger.info(f"Gemini Flash Lite rollout config updated: {asdict(rollout_config)}")
    return RoutingConfig(**asdict(rollout_config))
