#!/usr/bin/env python3
"""
Stock Service - E2E Smoke Test (live server)

Run against a freshly started service with an empty database:
  python -m stock_service
  python e2e_smoke.py

Optional env:
  STOCK_BASE=http://localhost:3000
  ADMIN_USERNAME=admin
  ADMIN_PASSWORD=pw1
  DEBUG=1
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


# =========================
# Simple CLI UI (ANSI)
# =========================

class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def section_title(text: str):
    print(f"\n{Style.BLUE}{Style.BOLD}== {text} =={Style.RESET}")


def info(msg: str):
    print(f"{Style.CYAN}ℹ {msg}{Style.RESET}")


def ok(msg: str):
    print(f"{Style.GREEN}✔ {msg}{Style.RESET}")


def fail(msg: str):
    print(f"{Style.RED}✘ {msg}{Style.RESET}")


# =========================
# Config
# =========================

STOCK_BASE = os.getenv("STOCK_BASE", "http://localhost:3000")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "pw1")
DEBUG = os.getenv("DEBUG", "0").strip() in {"1", "true", "True", "YES", "yes"}

ITEM_NAME = "Widget"
INITIAL_QUANTITY = 5
UPDATED_QUANTITY = 10


def debug(msg: str):
    if DEBUG:
        print(f"{Style.GRAY}… {msg}{Style.RESET}")


@dataclass
class TestResult:
    name: str
    success: bool
    details: str = ""


# =========================
# HTTP helpers
# =========================

def http(method: str, path: str, token: Optional[str] = None, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 8)
    if token:
        kwargs.setdefault("headers", {})["Authorization"] = f"Bearer {token}"
    url = STOCK_BASE + path
    debug(f"{method} {url} json={kwargs.get('json')}")
    resp = requests.request(method, url, **kwargs)
    debug(f"-> {resp.status_code} {resp.text}")
    return resp


def check(name: str, resp: requests.Response, expected_status: int, **expected_fields: Any) -> TestResult:
    try:
        body: Dict[str, Any] = resp.json()
    except ValueError:
        body = {}

    problems = []
    if resp.status_code != expected_status:
        problems.append(f"expected HTTP {expected_status}, got {resp.status_code}")
    for key, value in expected_fields.items():
        if body.get(key) != value:
            problems.append(f"expected {key}={value!r}, got {body.get(key)!r}")

    if problems:
        fail(f"{name}: {'; '.join(problems)}")
        return TestResult(name, False, f"{'; '.join(problems)} body={body}")
    ok(name)
    return TestResult(name, True)


# =========================
# Scenario
# =========================

def scenario_admin_lifecycle() -> List[TestResult]:
    section_title("Admin Bootstrap & Stock Lifecycle")
    results: List[TestResult] = []
    creds = {"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}

    results.append(check("Create admin", http("POST", "/api/admin/create", json=creds), 200, success=True))
    results.append(check(
        "Create same admin again is rejected",
        http("POST", "/api/admin/create", json=creds), 400, success=False,
    ))

    results.append(check(
        "Protected route without token",
        http("POST", "/api/stock", json={"name": ITEM_NAME, "quantity": 1}), 403, success=False,
    ))

    login = http("POST", "/api/admin/login", json=creds)
    results.append(check("Login", login, 200, success=True))
    token = login.json().get("token") if login.ok else None
    if not token:
        fail("No token returned, skipping protected steps.")
        return results

    created = http("POST", "/api/stock", token, json={"name": ITEM_NAME, "quantity": INITIAL_QUANTITY})
    results.append(check("Create item", created, 200, success=True))
    item = created.json().get("item") or {}
    item_id = item.get("id")
    if not item_id:
        fail("No item id returned, skipping update/delete.")
        return results

    results.append(check(
        "Duplicate item name (different case) is rejected",
        http("POST", "/api/stock", token, json={"name": ITEM_NAME.upper(), "quantity": 1}), 400, success=False,
    ))

    listed = http("GET", "/api/stock").json().get("items", [])
    summary = [(i.get("name"), i.get("quantity")) for i in listed]
    success = summary == [(ITEM_NAME, INITIAL_QUANTITY)]
    (ok if success else fail)(f"Listing after create: {summary}")
    results.append(TestResult("List after create", success, f"items={summary}"))

    updated = http("PUT", f"/api/stock/{item_id}", token, json={"quantity": UPDATED_QUANTITY})
    results.append(check("Update quantity", updated, 200, success=True))
    new_item = updated.json().get("item") or {}
    success = new_item.get("quantity") == UPDATED_QUANTITY and new_item.get("updatedAt") != item.get("updatedAt")
    (ok if success else fail)(f"Quantity now {new_item.get('quantity')}, updatedAt {new_item.get('updatedAt')}")
    results.append(TestResult("Quantity and updatedAt changed", success, f"item={new_item}"))

    results.append(check("Delete item", http("DELETE", f"/api/stock/{item_id}", token), 200, success=True))
    results.append(check(
        "Delete item again is NotFound",
        http("DELETE", f"/api/stock/{item_id}", token), 404, success=False,
    ))

    items = http("GET", "/api/stock").json().get("items")
    success = items == []
    (ok if success else fail)(f"Listing after delete: {items}")
    results.append(TestResult("List after delete", success, f"items={items}"))
    return results


# =========================
# Summary
# =========================

def print_results(results: List[TestResult]) -> int:
    print(f"\n{Style.BOLD}================ TEST RESULTS ================ {Style.RESET}")
    passed = 0
    for r in results:
        icon = "✅" if r.success else "❌"
        color = Style.GREEN if r.success else Style.RED
        print(f"{color}{icon} {r.name}{Style.RESET}")
        if r.details:
            print(f"    {Style.DIM}{r.details}{Style.RESET}")
        if r.success:
            passed += 1

    total = len(results)
    failed = total - passed
    print(f"{Style.BOLD}==============================================={Style.RESET}")
    print(f"Total tests: {total}  |  Passed: {Style.GREEN}{passed}{Style.RESET}  |  Failed: {Style.RED}{failed}{Style.RESET}")

    if failed > 0:
        print(f"\n{Style.YELLOW}{Style.BOLD}Troubleshooting hints:{Style.RESET}")
        print(f"{Style.YELLOW}- The scenario expects an empty database; remove stock.db or point DATABASE_URL at a fresh one.{Style.RESET}")
        print(f"{Style.YELLOW}- 401 on protected routes: the server may have restarted with a different JWT_SECRET.{Style.RESET}")
    return failed


def main() -> int:
    info(f"Target: {STOCK_BASE}")
    try:
        http("GET", "/")
    except requests.exceptions.RequestException as e:
        fail(f"Stock service is not reachable: {e}")
        return 1

    results = scenario_admin_lifecycle()
    return 1 if print_results(results) else 0


if __name__ == "__main__":
    sys.exit(main())
