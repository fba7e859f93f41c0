#!/usr/bin/env python3
"""
Prime coffee shop menus from the command line:
- load shops and config
- prime each shop's menu (memory -> disk -> network)
- print a per-shop summary

Order reconciliation: run with --reconcile to poll the POS for every stored
order (config sync.orders_file, or --orders) and write back status changes.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.database.orders import JsonFileOrderStore
from src.integrations.contracts.menus import count_items
from src.sync.service import build_sync_service
from src.utils.sync_config_loader import load_sync_config


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


async def run(args: argparse.Namespace) -> int:
    cfg = load_sync_config(Path(args.config) if args.config else None)
    if args.mock:
        cfg.adapters = "mock"
    order_store = JsonFileOrderStore(args.orders) if args.orders else None
    service = build_sync_service(cfg, order_store=order_store)

    shops = service.list_shops()
    if args.shop:
        wanted = set(args.shop)
        shops = [s for s in shops if s.id in wanted]
        missing = wanted - {s.id for s in shops}
        if missing:
            print(f"Unknown shop id(s): {', '.join(sorted(missing))}")

    failures = 0
    print("\n### Menus\n")
    for shop in shops:
        if args.refresh:
            state = await service.synchronizer.refresh_menu_data(shop)
        else:
            state = await service.synchronizer.prime_menu(shop)
        if state.error_message:
            failures += 1
            print(f"- {shop.name} [{shop.pos_type.display_name}]: ERROR {state.error_message}")
        else:
            print(
                f"- {shop.name} [{shop.pos_type.display_name}]: "
                f"{len(state.categories)} categories, {count_items(state.categories)} items"
            )

    await service.synchronizer.wait_for_background_refreshes()

    if args.reconcile:
        report = await service.reconciler.reconcile()
        print("\n### Orders\n")
        print(f"checked={report.checked} updated={len(report.updated)} failed={len(report.failed)}")
        for order_id in report.failed:
            print(f"  failed: {order_id}")

    return 1 if failures else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Prime coffee shop menus and reconcile order statuses")
    parser.add_argument("--config", help="Path to sync_config.yml (default: config/sync_config.yml)")
    parser.add_argument("--shop", action="append", help="Only this shop id (repeatable)")
    parser.add_argument("--refresh", action="store_true", help="Always fetch from the POS instead of priming")
    parser.add_argument("--mock", action="store_true", help="Use mock catalog adapters (no network)")
    parser.add_argument("--reconcile", action="store_true", help="Also reconcile stored order statuses")
    parser.add_argument("--orders", help="Order records JSON file (default: config sync.orders_file)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
