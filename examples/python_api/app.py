from __future__ import annotations

import argparse
from pathlib import Path

from osac_provisioner.config import apply, load, plan
from osac_provisioner.engine.errors import ApplyCanceled


def _progress(change: object, event: str) -> None:
    address = getattr(change, "address", "unknown")
    if event == "start":
        print(f"[apply:start] {address}")
    else:
        print(f"[apply:done]  {address}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Plan/apply osac-provisioner config via Python API"
    )
    parser.add_argument("--config", default="osac-provisioner.yaml", help="Path to config file")
    parser.add_argument("--apply", action="store_true", help="Apply the generated plan")
    parser.add_argument("--no-refresh", action="store_true", help="Skip refresh during plan")
    args = parser.parse_args()

    config = load(Path(args.config))

    plan_obj = plan(config, refresh=not args.no_refresh)
    print("Plan summary:", plan_obj.summary())
    for change in plan_obj.changes:
        reason = f" (forced by {', '.join(change.replace_fields)})" if change.replace_fields else ""
        print(f"- {change.action.value:7} {change.address}{reason}")

    if args.apply:
        try:
            result = apply(plan_obj, config, progress=_progress)
        except ApplyCanceled:
            print("Apply canceled; state keeps what finished.")
            raise SystemExit(1) from None
        print("Apply summary:", result.summary())


if __name__ == "__main__":
    main()
