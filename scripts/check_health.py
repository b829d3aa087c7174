#!/usr/bin/env python3
"""Post-deploy checks for the marketplace API: liveness, readiness and webhook guard."""

from __future__ import annotations

import os
import sys
import time

import httpx


def fail(message: str) -> None:
    print(f"ERROR: {message}")
    raise SystemExit(1)


def normalize_base_url(base_url: str) -> str:
    url = (base_url or "").strip().rstrip("/")
    for suffix in ("/api/v1", "/api"):
        if url.endswith(suffix):
            return url[: -len(suffix)]
    return url


def _with_retries(check, *, retries: int, retry_delay: float) -> None:
    last_error = None
    for attempt in range(retries + 1):
        try:
            check()
            return
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            last_error = str(exc)
        if attempt < retries:
            wait = retry_delay * (attempt + 1)
            print(f"WARN: {last_error} (retry {attempt + 1}/{retries} in {wait:.1f}s)")
            time.sleep(wait)
    fail(last_error or "check failed")


def status_check(client: httpx.Client, path: str, expected_status: str):
    def check() -> None:
        resp = client.get(path)
        if resp.status_code != 200:
            raise RuntimeError(f"{path} returned HTTP {resp.status_code}: {resp.text[:200]}")
        actual = resp.json().get("status")
        if actual != expected_status:
            raise RuntimeError(f"{path} status mismatch: expected '{expected_status}', got '{actual}'.")
        print(f"OK: {path} -> status={actual}")

    return check


def unsigned_webhook_check(client: httpx.Client):
    # A deploy that accepts unsigned payment callbacks must never pass.
    def check() -> None:
        resp = client.post("/webhooks/payment", content=b'{"event": "charge.success"}')
        if resp.status_code != 401:
            raise RuntimeError(f"/webhooks/payment accepted an unsigned event (HTTP {resp.status_code}).")
        print("OK: /webhooks/payment rejects unsigned events")

    return check


def main() -> None:
    base_url = normalize_base_url(os.getenv("PROD_BACKEND_BASE_URL", ""))
    if not base_url:
        fail("Missing PROD_BACKEND_BASE_URL environment variable.")

    timeout = float(os.getenv("HEALTHCHECK_TIMEOUT_SECONDS", "25"))
    retries = int(os.getenv("HEALTHCHECK_RETRIES", "4"))
    retry_delay = float(os.getenv("HEALTHCHECK_RETRY_DELAY_SECONDS", "4"))
    print(f"Healthcheck config: base_url={base_url} timeout={timeout}s retries={retries}")

    with httpx.Client(base_url=base_url, timeout=timeout, headers={"User-Agent": "marketplace-healthcheck/1.0"}) as client:
        _with_retries(status_check(client, "/healthz", "ok"), retries=retries, retry_delay=retry_delay)
        _with_retries(status_check(client, "/readyz", "ready"), retries=retries, retry_delay=retry_delay)
        _with_retries(unsigned_webhook_check(client), retries=0, retry_delay=retry_delay)
    print("SUCCESS: all health checks passed.")


if __name__ == "__main__":
    sys.exit(main())
