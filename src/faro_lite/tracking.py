"""
Typed tracking helpers.

Each helper exposes one fixed envelope shape to application code. Helpers
take an optional ``client=`` and fall back to the module default client.
They never raise: a failure is logged at WARNING and the helper returns
False.

Usage:
    from faro_lite import tracking

    tracking.track_screen_view("Home")
    tracking.add_to_cart("sku-1", "Coffee", price=4.5, quantity=2)
    tracking.track_performance("cold_start", 812.0)
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Iterable, Mapping, TypeVar

from .client import FaroClient, format_stack, get_client
from .envelope import LogLevel, Measurement


logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _never_raise(func: F) -> F:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.warning(f"Tracking helper {func.__name__} failed: {e!r}")
            return False
    return wrapper  # type: ignore[return-value]


def _resolve(client: FaroClient | None) -> FaroClient:
    return client if client is not None else get_client()


def _merge(base: Mapping[str, Any], extra: Mapping[str, Any] | None) -> dict[str, Any]:
    # Fixed fields win over free-form extras
    return {**dict(extra or {}), **base}


# =============================================================================
# Generic
# =============================================================================

@_never_raise
def push_event(
    name: str,
    attributes: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(name, attributes)


@_never_raise
def push_measurement(
    name: str,
    value: float,
    unit: str = "ms",
    attributes: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_measurement(name, value, unit, attributes)


@_never_raise
def push_error(
    error: BaseException | str,
    context: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_error(error, context)


@_never_raise
def push_log(
    message: str,
    level: LogLevel | str = LogLevel.INFO,
    context: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_log(message, level, context)


# =============================================================================
# Screens, gestures and user context
# =============================================================================

@_never_raise
def track_screen_view(
    screen_name: str,
    params: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "screen_view", _merge({"screen_name": str(screen_name)}, params)
    )


@_never_raise
def track_navigation(
    route_name: str,
    params: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    """Screen view raised by the navigator, with the route params attached."""
    extra = {"navigation_params": dict(params)} if params else {}
    return track_screen_view(route_name, extra, client=client)


@_never_raise
def track_user_action(
    action: str,
    details: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event("user_action", _merge({"action": str(action)}, details))


@_never_raise
def track_gesture(
    gesture_type: str,
    target: str,
    details: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "gesture",
        _merge({"gesture_type": str(gesture_type), "target": str(target)}, details),
    )


@_never_raise
def track_network_request(
    url: str,
    method: str,
    status: int,
    duration: float,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "network_request",
        {
            "url": str(url),
            "method": str(method).upper(),
            "status": int(status),
            "duration": float(duration),
        },
    )


@_never_raise
def track_performance(
    metric: str,
    value: float,
    unit: str = "ms",
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_measurement(
        Measurement(
            name=str(metric),
            value=float(value),
            unit=unit,
            attributes={"category": "performance"},
        )
    )


@_never_raise
def track_error(
    error: BaseException | str,
    context: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_error(error, context)


@_never_raise
def set_user_context(
    user_id: str,
    attributes: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    _resolve(client).set_user(user_id, attributes)
    return True


@_never_raise
def add_session_attribute(key: str, value: Any, *, client: FaroClient | None = None) -> bool:
    _resolve(client).set_session({str(key): value})
    return True


# =============================================================================
# Storefront
# =============================================================================

@_never_raise
def track_page_view(
    page: str,
    attributes: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event("page_view", _merge({"page": str(page)}, attributes))


@_never_raise
def product_view(
    product_id: str,
    product_name: str,
    category: str,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "product_view",
        {
            "product_id": str(product_id),
            "product_name": str(product_name),
            "category": str(category),
        },
    )


@_never_raise
def add_to_cart(
    product_id: str,
    product_name: str,
    price: float,
    quantity: int = 1,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "add_to_cart",
        {
            "product_id": str(product_id),
            "product_name": str(product_name),
            "price": float(price),
            "quantity": int(quantity),
        },
    )


@_never_raise
def remove_from_cart(
    product_id: str,
    product_name: str,
    quantity: int = 1,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "remove_from_cart",
        {
            "product_id": str(product_id),
            "product_name": str(product_name),
            "quantity": int(quantity),
        },
    )


@_never_raise
def checkout(
    items: Iterable[Any] | None,
    total_value: float,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event(
        "checkout_start",
        {
            "item_count": len(list(items or [])),
            "total_value": float(total_value),
        },
    )


@_never_raise
def search(query: str, results_count: int, *, client: FaroClient | None = None) -> bool:
    return _resolve(client).push_event(
        "search_performed",
        {"query": str(query), "results_count": int(results_count)},
    )


# =============================================================================
# UI metrics
# =============================================================================

@_never_raise
def record_click(
    element: str,
    metadata: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_event("click", _merge({"element": str(element)}, metadata))


@_never_raise
def record_page_load(page: str, duration_ms: float, *, client: FaroClient | None = None) -> bool:
    return _resolve(client).push_measurement(
        "page_load", float(duration_ms), "ms", {"page": str(page)}
    )


@_never_raise
def record_api_response(
    endpoint: str,
    duration_ms: float,
    status_code: int,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_measurement(
        "api_response",
        float(duration_ms),
        "ms",
        {"endpoint": str(endpoint), "status_code": int(status_code)},
    )


# =============================================================================
# Logs
# =============================================================================

@_never_raise
def log_info(
    message: str,
    context: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_log(message, LogLevel.INFO, context)


@_never_raise
def log_warn(
    message: str,
    context: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    return _resolve(client).push_log(message, LogLevel.WARN, context)


@_never_raise
def log_error(
    message: str,
    error: BaseException | None = None,
    context: Mapping[str, Any] | None = None,
    *,
    client: FaroClient | None = None,
) -> bool:
    details = dict(context or {})
    details["error"] = str(error) if error is not None else "Unknown error"
    if error is not None:
        details["error_type"] = type(error).__name__
        stack = format_stack(error)
        if stack:
            details["stack"] = stack
    return _resolve(client).push_log(message, LogLevel.ERROR, details)
