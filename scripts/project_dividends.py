#!/usr/bin/env python3
"""
Print the 12-month dividend projection for one portfolio as JSON.

Usage:
  python scripts/project_dividends.py --portfolio-id UUID --user-id USER [--as-of YYYY-MM-DD] [--indent 2]

Reads the DB URL from your normal .env via app.infra.settings.
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

from app.domain.schemas import ProjectionsResponse  # noqa: E402
from app.infra.db import SessionLocal  # noqa: E402
from app.infra.settings import settings  # noqa: E402
from app.services.portfolio import PortfolioNotFoundError, get_portfolio_projections  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Project dividends for the next 12 months.")
    parser.add_argument("--portfolio-id", required=True, help="Portfolio id")
    parser.add_argument("--user-id", required=True, help="Owner of the portfolio")
    parser.add_argument(
        "--as-of",
        type=str,
        help="Optional 'now' (YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with this indent.")
    args = parser.parse_args()

    logging.basicConfig(level=settings.projector_log_level.upper())

    now = date.fromisoformat(args.as_of) if args.as_of else date.today()

    with SessionLocal() as db:
        try:
            result = get_portfolio_projections(db, args.user_id, args.portfolio_id, now)
        except PortfolioNotFoundError as e:
            raise SystemExit(str(e))

    print(ProjectionsResponse.from_result(result).model_dump_json(by_alias=True, indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
