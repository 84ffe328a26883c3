#!/usr/bin/env python3
"""
faro-lite Demo Script

Simulates a short shopping session and ships its telemetry:
- Session and user context attached to every envelope
- Screen views, gestures and cart events through the typed helpers
- A performance measurement and a captured error
- flush() before exit so nothing is lost

Run the collector first:
    pip install -e .
    faro-lite collector

Then run this demo:
    python demo.py
    curl http://localhost:4328/events
"""

from __future__ import annotations

import random
import sys
import time

from colorama import Fore, Style, init as colorama_init

from faro_lite import ClientConfig, FaroClient, tracking
from faro_lite.hooks import capture_exceptions


def c(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def header(text: str) -> None:
    print(f"\n{c('=' * 60, Style.DIM)}")
    print(c(f"  {text}", Style.BRIGHT))
    print(c('=' * 60, Style.DIM))


def step(text: str) -> None:
    print(f"  {c('>', Fore.CYAN)} {text}")


def demo_session(client: FaroClient) -> None:
    header("SESSION CONTEXT")
    tracking.add_session_attribute("device_model", "demo-laptop", client=client)
    tracking.set_user_context("user-42", {"plan": "pro"}, client=client)
    step(f"session = {client.context.session}")
    step(f"user    = {client.context.user}")


def demo_browsing(client: FaroClient) -> None:
    header("BROWSING")
    tracking.track_screen_view("Home", client=client)
    step("screen_view Home")

    start = time.perf_counter()
    time.sleep(random.uniform(0.05, 0.15))
    tracking.record_page_load("/products", (time.perf_counter() - start) * 1000, client=client)
    step("page_load /products")

    tracking.search("coffee", results_count=3, client=client)
    tracking.product_view("sku-101", "Espresso Beans", "coffee", client=client)
    tracking.track_gesture("tap", "product_card", {"position": 1}, client=client)
    step("search, product_view, gesture")


def demo_cart(client: FaroClient) -> None:
    header("CART")
    tracking.add_to_cart("sku-101", "Espresso Beans", price=12.5, quantity=2, client=client)
    tracking.remove_from_cart("sku-101", "Espresso Beans", quantity=1, client=client)
    tracking.checkout([{"sku": "sku-101", "qty": 1}], total_value=12.5, client=client)
    step("add_to_cart, remove_from_cart, checkout_start")


def demo_error(client: FaroClient) -> None:
    header("ERRORS")
    try:
        with capture_exceptions(client, screen="Checkout"):
            raise ValueError("payment provider unavailable")
    except ValueError:
        step("ValueError forwarded as an error envelope (and re-raised to the caller)")

    tracking.log_warn("Retrying payment", {"attempt": 2}, client=client)
    step("log warn")


def main() -> int:
    colorama_init()
    config = ClientConfig(app_name="faro-lite-demo", platform="python-demo")

    with FaroClient(config=config) as client:
        demo_session(client)
        demo_browsing(client)
        demo_cart(client)
        demo_error(client)

        header("FLUSH")
        drained = client.flush()
        stats = client.stats
        color = Fore.GREEN if drained and not stats["failed"] else Fore.RED
        step(c(f"drained={drained} sent={stats['sent']} failed={stats['failed']} "
               f"dropped={stats['dropped']}", color))

    if stats["failed"]:
        print(c(f"\n  Is the collector running at {config.url}?", Fore.YELLOW))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
