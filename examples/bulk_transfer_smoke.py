from __future__ import annotations

import argparse
import json
import logging
import os

from backoffice_client_sdk import ApiSession, BulkTransferComposer, ConfigError, load_config


def _immediate(delay_seconds: float, callback) -> None:
    # nothing to wait for in a one-shot script
    return None


def run(argv: list[str] | None = None) -> dict:
    parser = argparse.ArgumentParser(description="Bulk stock transfer smoke CLI")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--from-branch", type=int, default=os.getenv("BACKOFFICE_TRANSFER_FROM_BRANCH"))
    parser.add_argument("--to-branch", type=int, default=os.getenv("BACKOFFICE_TRANSFER_TO_BRANCH"))
    parser.add_argument("--product", action="append", default=[], help="Product id; repeat for more lines")
    parser.add_argument("--qty", type=int, default=1, help="Quantity applied to every product line")
    parser.add_argument("--notes", default=None)
    args = parser.parse_args(argv)

    config = load_config(args.env_file)
    composer = BulkTransferComposer.from_session(ApiSession(config), scheduler=_immediate)

    opened = composer.open()
    if not opened["ok"]:
        return {"ok": False, "stage": "branches", "error": opened["error"]}
    loaded = composer.select_source(args.from_branch)
    if not loaded["ok"]:
        return {"ok": False, "stage": "inventory", "error": loaded.get("error")}
    composer.select_destination(args.to_branch)
    composer.set_notes(args.notes)
    for product_id in args.product:
        added = composer.add_product(product_id)
        if not added["ok"]:
            return {"ok": False, "stage": "add", "product": product_id, "error": added["error"]}
        composer.commit_quantity(product_id, str(args.qty))
    submitted = composer.submit()
    return {"stage": "submit", **submitted}


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        result = run()
    except ConfigError as exc:
        print(json.dumps({"ok": False, "error": "config", "message": str(exc)}, indent=2))
        raise SystemExit(1) from exc
    print(json.dumps(result, indent=2, default=str))
    if not result.get("ok"):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
