from __future__ import annotations

import json
from datetime import date
from typing import Any, Mapping
from urllib.parse import quote

from src.domain.models import StopOrder, TimetableRecord


def timetable_key(service_date: date, route_id: str) -> str:
    """Destination key for one (date, route) document."""

    # Route ids are free text; quoting keeps distinct ids on distinct keys.
    return f"{service_date.isoformat()}/{quote(route_id, safe='')}.json"


def _add_order(out: dict[str, Any], name: str, order: StopOrder | None) -> None:
    if order is None:
        return
    out[f"{name}_order"] = list(order.stop_ids)
    if not order.is_total:
        out[f"{name}_order_partial"] = True
    if order.reversed_from_opposite:
        out[f"{name}_order_reversed"] = True


def timetable_to_dict(record: TimetableRecord) -> dict[str, Any]:
    """Output document for a route on one date.

    `*_order` keys are absent when no order could be resolved;
    `*_order_partial` is only present for cycle-truncated orders,
    `*_order_reversed` only for orders taken from the opposite direction,
    and `unknown` only when some trips carry no direction.
    """

    out: dict[str, Any] = {
        "route_id": record.route_id,
        "date": record.service_date.isoformat(),
        "inbound": [dict(t.times) for t in record.inbound],
        "outbound": [dict(t.times) for t in record.outbound],
    }
    if record.unknown:
        out["unknown"] = [dict(t.times) for t in record.unknown]
    _add_order(out, "inbound", record.inbound_order)
    _add_order(out, "outbound", record.outbound_order)
    return out


def dumps_document(document: Mapping[str, Any]) -> str:
    return json.dumps(dict(document), separators=(",", ":"), sort_keys=True)
