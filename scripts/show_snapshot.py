#!/usr/bin/env python3
"""Inspect a saved account snapshot: balance, P&L, inventory, recipes and role."""

import argparse
import logging
import os
import sys

# Project root: always resolve relative to script location, not cwd
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

_RESET = "\033[0m"
_BOLD = "\033[1m"
_GRAY = "\033[90m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_CYAN = "\033[36m"

_LEVEL_COLORS = {
    logging.DEBUG: _GRAY,
    logging.INFO: _CYAN,
    logging.WARNING: _YELLOW,
    logging.ERROR: _RED + _BOLD,
    logging.CRITICAL: _RED + _BOLD,
}


class ColoredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        record.levelname = f"{color}[{record.levelname}]{_RESET}"
        return super().format(record)


def setup_logging(debug: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)


def main() -> int:
    parser = argparse.ArgumentParser(description="Print a summary of an account snapshot")
    parser.add_argument("path", help="snapshot file (relative paths resolve against snapshots_dir)")
    parser.add_argument("--dir", default=None, help="snapshots directory (default: from config)")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()
    setup_logging(debug=args.debug)

    from src.config.settings import get_session_config, read_config
    from src.core.errors import ConfigurationInvalid
    from src.engine.state import StateStore
    from src.persistence.snapshot import SnapshotPersistence

    base_dir = args.dir
    if base_dir is None:
        cfg, _ = read_config()
        base_dir = get_session_config(cfg).snapshots_dir
    try:
        state = SnapshotPersistence(base_dir).load(args.path)
    except ConfigurationInvalid as e:
        logging.getLogger(__name__).error("%s", e)
        return 1

    store = StateStore()
    store.copy_from(state)
    balance = store.balance()
    value = store.inventory_value()
    print(f"{_BOLD}Balance{_RESET}          {balance:,.2f}")
    print(f"{_BOLD}Initial balance{_RESET}  {store.initial_balance():,.2f}")
    print(f"{_BOLD}Inventory value{_RESET}  {value:,.2f}")
    print(f"{_BOLD}Net worth{_RESET}        {balance + value:,.2f}")
    print(f"{_BOLD}P&L{_RESET}              {store.profit_and_loss():+.2f}%")
    print(f"{_BOLD}Inventory{_RESET}")
    for product, qty in sorted(state.inventory.items()):
        price = state.prices.get(product)
        price_txt = f"@ {price:,.2f}" if price is not None else "(no price)"
        print(f"  {product:<24} {qty:>8} {price_txt}")
    print(f"{_BOLD}Recipes{_RESET}")
    for product, recipe in sorted(state.recipes.items()):
        ingredients = ", ".join(f"{k}:{v}" for k, v in sorted(recipe.ingredients.items())) or "-"
        print(f"  {product:<24} {recipe.kind.value:<8} {ingredients}")
    print(f"{_BOLD}Authorized{_RESET}       {', '.join(sorted(state.authorized_products)) or '-'}")
    if state.role is not None:
        r = state.role
        print(
            f"{_BOLD}Role{_RESET}             branches={r.branches} max_depth={r.max_depth} "
            f"decay={r.decay} base_energy={r.base_energy} level_energy={r.level_energy}"
        )
    else:
        print(f"{_BOLD}Role{_RESET}             (none)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
