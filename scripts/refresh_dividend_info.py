#!/usr/bin/env python3
"""
Refresh listing prices, trailing yields and dividend_info rows from yfinance.

Usage:
  python scripts/refresh_dividend_info.py [--symbol JEPI] [--as-of YYYY-MM-DD] [--bypass-cache]

Listings whose provider lookup fails are skipped, and listings with no
dividend data keep their stored dividend_info; everything else is committed
in one transaction at the end.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import date

# Ensure repo root on sys.path before importing app.*
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.infra.db import SessionLocal  # noqa: E402
from app.infra.models import Listing  # noqa: E402
from app.infra.settings import settings  # noqa: E402
from app.services.dividend_profile import (  # noqa: E402
    DividendProfileUnavailable,
    clear_dividend_profiles,
    get_dividend_profile,
    refresh_listing_from_profile,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Refresh dividend metadata from yfinance.")
    parser.add_argument("--symbol", type=str, help="Only refresh listings with this ticker.")
    parser.add_argument("--as-of", type=str, help="Optional as-of date (YYYY-MM-DD). Defaults to today.")
    parser.add_argument(
        "--bypass-cache",
        action="store_true",
        help="Ignore cached yfinance profiles.",
    )
    parser.add_argument("--clear-cache", action="store_true", help="Delete all cached profiles first.")
    args = parser.parse_args()

    logging.basicConfig(level=settings.projector_log_level.upper())

    as_of = date.fromisoformat(args.as_of) if args.as_of else date.today()

    if args.clear_cache:
        print(f"[refresh] cleared {clear_dividend_profiles()} cached profiles")

    with SessionLocal() as db:
        q = db.query(Listing)
        if args.symbol:
            q = q.filter(Listing.ticker_symbol == args.symbol.upper())
        listings = q.order_by(Listing.ticker_symbol.asc()).all()
        if not listings:
            raise SystemExit("No listings found.")

        print(f"[refresh] {len(listings)} listings as_of={as_of} bypass_cache={args.bypass_cache}")
        updated = 0
        for listing in listings:
            try:
                profile = get_dividend_profile(listing.ticker_symbol, as_of, bypass_cache=args.bypass_cache)
            except DividendProfileUnavailable as e:
                print(f"  failed for {listing.ticker_symbol}: {e}")
                continue
            if refresh_listing_from_profile(db, listing, profile) is None:
                print(f"  {listing.ticker_symbol}: no dividend data, kept stored dividend_info")
                continue
            updated += 1
            print(f"  {listing.ticker_symbol}: frequency={profile['frequency']} avg={profile['average_amount_per_share']}")

        db.commit()
        print(f"[refresh] completed: {updated} listings updated.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
