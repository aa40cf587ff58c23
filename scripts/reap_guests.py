#!/usr/bin/env python3
"""
Remove guest accounts older than GUEST_TTL_SECONDS in one pass.

Useful from cron when the API runs with GUEST_SWEEP_INTERVAL_SECONDS=0.

Uso:
  python scripts/reap_guests.py [--ttl 86400]
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Garantir que o pacote pawprint seja importável quando rodado diretamente
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pawprint.core import config as core_config  # noqa: E402
from pawprint.services.guest_service import GuestService  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Delete expired guest accounts")
    ap.add_argument("--ttl", type=int, help="Override GUEST_TTL_SECONDS for this run")
    args = ap.parse_args()

    if args.ttl is not None:
        if args.ttl <= 0:
            raise SystemExit("TTL must be a positive number of seconds")
        os.environ["GUEST_TTL_SECONDS"] = str(args.ttl)
        core_config.get_settings.cache_clear()

    logging.basicConfig(level=core_config.get_settings().log_level)
    deleted = GuestService().reap_expired()
    print(f"OK: {deleted} expired guest(s) removed")


if __name__ == "__main__":
    main()
