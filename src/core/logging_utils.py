"""Structured key=value logs for orders, production, scheduler transitions and account summaries.

Each line carries a short trace_id so one operation can be followed across modules.
"""

import logging
import uuid
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _new_trace_id() -> str:
    return uuid.uuid4().hex[:8]


def _emit(prefix: str, trace_id: Optional[str], fields: Dict[str, Any]) -> str:
    """Drop empty fields, stamp trace_id and log one sorted key=value line. Returns the trace_id used."""
    record = {k: v for k, v in fields.items() if v is not None and v != ""}
    record["trace_id"] = trace_id or record.get("trace_id") or _new_trace_id()
    logger.info("%s %s", prefix, " ".join(f"{k}={v}" for k, v in sorted(record.items())))
    return record["trace_id"]


def log_order_status(
    trace_id: Optional[str] = None,
    order_status: Optional[str] = None,
    client_order_id: Optional[str] = None,
    side: Optional[str] = None,
    product: Optional[str] = None,
    quantity: Optional[int] = None,
    extra: Optional[dict] = None,
) -> str:
    """Outbound order or offer response."""
    fields = dict(extra or {})
    fields.update(
        order_status=order_status,
        cl_ord_id=client_order_id,
        side=side,
        product=product,
        quantity=quantity,
    )
    return _emit("order_status", trace_id, fields)


def log_production(
    product: str,
    units: int,
    premium: bool,
    trace_id: Optional[str] = None,
    consumed: Optional[Dict[str, int]] = None,
) -> str:
    consumed_txt = ",".join(f"{k}:{v}" for k, v in sorted((consumed or {}).items()))
    return _emit(
        "production",
        trace_id,
        {"product": product, "units": units, "premium": premium, "consumed": consumed_txt},
    )


def log_scheduler_transition(
    from_state: str,
    to_state: str,
    event: str,
    product: Optional[str] = None,
    extra: Optional[dict] = None,
) -> str:
    fields = dict(extra or {})
    fields.update(from_state=from_state, to_state=to_state, event=event, product=product)
    return _emit("scheduler_transition", None, fields)


def log_state_summary(summary: Dict[str, Any], trace_id: Optional[str] = None) -> str:
    """Balance / inventory value / net worth / P&L line."""
    return _emit("account_summary", trace_id, dict(summary))
