#!/usr/bin/env python3
"""
End-to-end demo script for the Contract Version Comparison service.

Prerequisites:
    1. API running: uvicorn redline.main:app
    2. OPENAI_API_KEY set in .env
    3. For --background: Temporal and the worker running (python -m worker.run)

Usage:
    python scripts/e2e_demo.py v1.txt v2.txt

    # Run on the Temporal worker and poll for the result:
    python scripts/e2e_demo.py v1.txt v2.txt --background

    # Output raw JSON:
    python scripts/e2e_demo.py v1.txt v2.txt --json
"""

import argparse
import json
import sys
import time
from pathlib import Path

import httpx

# Configuration
API_BASE = "http://localhost:8000"
POLL_INTERVAL = 3  # seconds
MAX_WAIT = 600  # seconds


def check_health(client: httpx.Client) -> bool:
    """Check if API is healthy."""
    try:
        resp = client.get(f"{API_BASE}/health")
        return resp.status_code == 200
    except httpx.RequestError:
        return False


def check_readiness(client: httpx.Client) -> dict:
    """Check readiness of all dependencies."""
    try:
        resp = client.get(f"{API_BASE}/health/ready")
        return resp.json()
    except httpx.RequestError as e:
        return {"error": str(e)}


def build_payload(v1_path: Path, v2_path: Path) -> dict:
    """Build a comparison request from two text files."""
    return {
        "v1": {"id": v1_path.stem, "version_number": 1, "text": v1_path.read_text()},
        "v2": {"id": v2_path.stem, "version_number": 2, "text": v2_path.read_text()},
    }


def compare(client: httpx.Client, payload: dict) -> dict:
    """Run a synchronous comparison."""
    resp = client.post(f"{API_BASE}/api/comparisons", json=payload)
    resp.raise_for_status()
    return resp.json()


def start_background(client: httpx.Client, payload: dict) -> str:
    """Start a comparison workflow and return its id."""
    resp = client.post(f"{API_BASE}/api/comparisons/workflows", json=payload)
    resp.raise_for_status()
    return resp.json()["workflow_id"]


def poll_until_complete(client: httpx.Client, workflow_id: str, max_wait: int = MAX_WAIT) -> dict:
    """Poll for workflow completion."""
    start = time.time()
    while time.time() - start < max_wait:
        resp = client.get(f"{API_BASE}/api/comparisons/workflows/{workflow_id}")
        resp.raise_for_status()
        data = resp.json()
        status = data.get("status", "running")

        if status == "completed":
            return data["result"]
        elif status != "running":
            return {"status": status}

        elapsed = int(time.time() - start)
        print(f"  Status: {status} ({elapsed}s elapsed)", end="\r")
        time.sleep(POLL_INTERVAL)

    return {"status": "timeout", "error": f"Exceeded {max_wait}s wait time"}


def print_comparison_result(result: dict) -> None:
    """Pretty print a comparison result."""
    executive = result.get("executive_summary", {})

    print("\n" + "=" * 60)
    print("COMPARISON RESULTS")
    print("=" * 60)

    print(f"\nSummary: {executive.get('summary')}")
    print(f"Favorability shift: {executive.get('favorability_shift')}")
    print(f"Risk score delta: {executive.get('risk_score_delta')}")
    flagged = executive.get("flagged_domains") or []
    print(f"Flagged domains: {', '.join(flagged) if flagged else 'none'}")

    print("\n--- Domains ---")
    for diff in result.get("diffs", []):
        marker = "CHANGED" if diff.get("changed") else "unchanged"
        print(f"  {diff['domain'].title()}: {marker}")
        if diff.get("changed"):
            display = diff["diff"][:200] + "..." if len(diff["diff"]) > 200 else diff["diff"]
            print(f"    Diff: {display}")
            print(f"    Impact: {diff.get('impact')}")

    print("\n" + "=" * 60)


def main():
    parser = argparse.ArgumentParser(description="E2E demo for Contract Version Comparison")
    parser.add_argument("v1", type=Path, help="Text file of the earlier version")
    parser.add_argument("v2", type=Path, help="Text file of the later version")
    parser.add_argument("--background", action="store_true", help="Run on the Temporal worker")
    parser.add_argument("--json", action="store_true", help="Output raw JSON")
    args = parser.parse_args()

    for path in (args.v1, args.v2):
        if not path.exists():
            print(f"Error: file not found: {path}")
            sys.exit(1)

    print("=" * 60)
    print("CONTRACT VERSION COMPARISON - E2E DEMO")
    print("=" * 60)

    with httpx.Client(timeout=float(MAX_WAIT)) as client:
        print("\n[1/3] Checking API health...")
        if not check_health(client):
            print("  Error: API is not responding.")
            sys.exit(1)
        print("  API is healthy")

        print("\n[2/3] Checking service readiness...")
        readiness = check_readiness(client)
        if "error" in readiness:
            print(f"  Error: {readiness['error']}")
            sys.exit(1)

        checks = readiness.get("checks", readiness)
        for service, status in checks.items():
            icon = "OK" if status == "ok" else "FAIL"
            print(f"  {service}: {icon}")

        if checks.get("analysis") != "ok":
            print("  Error: Analysis client not configured")
            sys.exit(1)

        payload = build_payload(args.v1, args.v2)
        print(f"\n[3/3] Comparing {args.v1.name} -> {args.v2.name}...")
        try:
            if args.background:
                workflow_id = start_background(client, payload)
                print(f"  Workflow ID: {workflow_id}")
                result = poll_until_complete(client, workflow_id)
                if "status" in result:
                    print(f"  Comparison did not complete: {result['status']}")
                    sys.exit(1)
            else:
                result = compare(client, payload)
        except httpx.HTTPStatusError as e:
            print(f"  Error: {e.response.text}")
            sys.exit(1)

        print("  Comparison completed!              ")

    if args.json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print_comparison_result(result)

    sys.exit(0)


if __name__ == "__main__":
    main()
