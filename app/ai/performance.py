"""
Per-request performance metrics for chat completions.

Metrics live in a bounded in-memory buffer; they are lost on restart.
"""
import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_METRICS_STORED = 10000

# USD per token
MODEL_PRICING = {
    "gemini-flash-lite": {"prompt": 0.000000075, "completion": 0.0000003},
    "chat-model": {"prompt": 0.000003, "completion": 0.000015},
    "chat-model-reasoning": {"prompt": 0.000015, "completion": 0.00006},
    "title-model": {"prompt": 0.000003, "completion": 0.000015},
    "artifact-model": {"prompt": 0.000003, "completion": 0.000015},
    "image-model": {"prompt": 0.000003, "completion": 0.000015},
}


@dataclass
class ModelPerformanceMetric:
    model: str
    user_id: str
    session_id: str
    latency_ms: float
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    success: bool = True
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    pricing = MODEL_PRICING.get(model, MODEL_PRICING["chat-model"])
    return prompt_tokens * pricing["prompt"] + completion_tokens * pricing["completion"]


class PerformanceMonitor:
    """Bounded store of request metrics with per-model summaries"""

    def __init__(self, max_metrics: int = MAX_METRICS_STORED):
        self._metrics: Deque[ModelPerformanceMetric] = deque(maxlen=max_metrics)
        self._lock = threading.Lock()
        self.last_reset = datetime.utcnow()

    def record(self, metric: ModelPerformanceMetric) -> None:
        with self._lock:
            self._metrics.append(metric)
        logger.info(
            f"Performance: {metric.model} - {metric.latency_ms:.0f}ms - "
            f"${metric.cost:.6f} - {'ok' if metric.success else 'failed'}"
        )

    def recent(self, hours: int = 24) -> List[ModelPerformanceMetric]:
        cutoff = datetime.utcnow() - timedelta(hours=hours)
        with self._lock:
            return [metric for metric in self._metrics if metric.timestamp > cutoff]

    def summary(self, hours: int = 24) -> Dict[str, Any]:
        """
        Aggregate recent metrics

        Returns:
            Totals across all requests plus a per-model breakdown of request
            count, average latency, error rate, tokens and cost
        """
        metrics = self.recent(hours)
        by_model: Dict[str, Dict[str, Any]] = {}
        for metric in metrics:
            entry = by_model.setdefault(metric.model, {
                "requests": 0, "errors": 0, "totalLatencyMs": 0.0, "totalTokens": 0, "totalCost": 0.0,
            })
            entry["requests"] += 1
            entry["errors"] += 0 if metric.success else 1
            entry["totalLatencyMs"] += metric.latency_ms
            entry["totalTokens"] += metric.total_tokens
            entry["totalCost"] += metric.cost

        for entry in by_model.values():
            entry["averageLatencyMs"] = entry["totalLatencyMs"] / entry["requests"]
            entry["errorRate"] = entry["errors"] / entry["requests"]

        total = len(metrics)
        errors = sum(1 for metric in metrics if not metric.success)
        return {
            "timeWindowHours": hours,
            "requestCount": total,
            "errorRate": errors / total if total else 0,
            "averageLatencyMs": sum(m.latency_ms for m in metrics) / total if total else 0,
            "tokensGenerated": sum(m.completion_tokens for m in metrics),
            "totalCost": sum(m.cost for m in metrics),
            "byModel": by_model,
            "lastReset": self.last_reset.isoformat(),
        }

    def export(self, hours: int = 24) -> List[Dict[str, Any]]:
        return [asdict(metric) for metric in self.recent(hours)]

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()
            self.last_reset = datetime.utcnow()


def health_status(error_rate: float) -> str:
    if error_rate < 0.05:
        return "healthy"
    if error_rate < 0.15:
        return "warning"
    return "critical"


performance_monitor = PerformanceMonitor()
