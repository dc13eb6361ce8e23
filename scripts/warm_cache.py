#!/usr/bin/env python3
"""Prime the cache through a running quotecache API: trending lists first, then their quotes."""
import json
import sys
import time

import requests

API = "http://localhost:8080/api/yh"
BATCH = 10


def warm_trending(region: str) -> list[str]:
    """Fetch the trending list for a region and return its symbols."""
    resp = requests.get(f"{API}/trending/{region}", timeout=30)
    if resp.status_code != 200:
        print(f"  ✗ trending/{region}: {resp.status_code} {resp.text[:120]}")
        return []
    stocks = resp.json().get("stocks", [])
    print(f"  ✓ trending/{region}: {len(stocks)} stocks")
    return [s["symbol"] for s in stocks]


def warm_quotes(symbols: list[str], region: str) -> dict:
    """Request quotes in batches of BATCH; each batch lands in the cache."""
    ok, failed = 0, []
    for i in range(0, len(symbols), BATCH):
        chunk = symbols[i:i + BATCH]
        resp = requests.get(
            f"{API}/quote",
            params={"symbols": ",".join(chunk), "region": region, "lang": "en"},
            timeout=30,
        )
        if resp.status_code == 200:
            ok += len(resp.json().get("quotes", []))
        else:
            code = resp.json().get("error", {}).get("code", resp.status_code)
            failed.append({"symbols": chunk, "error": code})
        time.sleep(0.5)
    return {"region": region, "quoted": ok, "failed": failed}


def main():
    regions = sys.argv[1:] or ["US"]

    print(f"\n{'='*60}")
    print(f"  Warming cache for {', '.join(regions)}")
    print(f"{'='*60}\n")

    results = []
    for region in regions:
        symbols = warm_trending(region)
        if symbols:
            result = warm_quotes(symbols, region)
            print(f"    quotes: {result['quoted']} cached, {len(result['failed'])} failed batches")
            results.append(result)

    with open("warm_cache_results.json", "w") as f:
        json.dump(results, f, indent=2)
    print(f"\nResults saved to warm_cache_results.json")


if __name__ == "__main__":
    main()
