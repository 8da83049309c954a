from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

PERIODS = ("hour", "day", "month", "year")
DEFAULT_PERIOD = "day"

# metric name -> (endpoint path, response field, display unit)
DASHBOARD_METRICS = {
    "automation_rate": ("/avg-automation-rate", "avg_automation_rate", "%"),
    "customer_response_time": (
        "/customer-avg-response-time",
        "avg_customer_response_time",
        "s",
    ),
    "agent_response_time": ("/agent-avg-response-time", "avg_response_time", "s"),
    "completion_time": (
        "/appointment-avg-completion-time",
        "avg_completion_time",
        "min",
    ),
    "new_appointments": ("/new-appointments", "count", ""),
    "returning_customers": ("/returning-customers", "count", ""),
    "new_customers": ("/new-customers", "count", ""),
}


@dataclass
class MetricState:
    value: float = 0
    loading: bool = True
    error: Optional[str] = None


@dataclass
class DashboardState:
    """What the dashboard shows. Each metric is loaded and failed independently."""

    period: str = DEFAULT_PERIOD
    metrics: Dict[str, MetricState] = field(
        default_factory=lambda: {name: MetricState() for name in DASHBOARD_METRICS}
    )
    session_expired: bool = False
    customers: List[dict] = field(default_factory=list)
    customers_loading: bool = True
    customers_error: Optional[str] = None

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        state = cls(
            period=data.get("period", DEFAULT_PERIOD),
            session_expired=data.get("session_expired", False),
            customers=data.get("customers", []),
            customers_loading=data.get("customers_loading", True),
            customers_error=data.get("customers_error"),
        )
        for name, metric in (data.get("metrics") or {}).items():
            if name in state.metrics:
                state.metrics[name] = MetricState(**metric)
        return state
