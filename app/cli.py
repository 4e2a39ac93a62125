# app/cli.py
import argparse, json, time, sys

import numpy as np

from app.orchestrator import get_catalog, result_to_dict, run_adaptation
from common.types import to_dict
from meditation.catalog import NoMatchError
from utils.metrics import init_metrics


def _load_snapshot(path: str):
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def main(argv=None):
    p = argparse.ArgumentParser(description="Biometric adaptation engine for guided meditation")
    sub = p.add_subparsers(dest="cmd", required=True)

    evalp = sub.add_parser("evaluate", help="Evaluate one sensor snapshot (JSON file, '-' for stdin)")
    evalp.add_argument("--snapshot", required=True)
    evalp.add_argument("--pretty", action="store_true")
    evalp.add_argument("--seed", type=int, default=None, help="Seed for the meditation pick")
    evalp.add_argument("--catalog", type=str, default=None)
    evalp.add_argument("--run-id", type=str, default=None)
    evalp.add_argument("--metrics-port", type=int, default=None)

    catp = sub.add_parser("catalog", help="List the meditation catalog")
    catp.add_argument("--energy-type", type=str, default=None)
    catp.add_argument("--catalog", type=str, default=None)

    servep = sub.add_parser("serve", help="Expose /metrics and keep running")
    servep.add_argument("--metrics-port", type=int, default=9000)

    args = p.parse_args(argv)

    if args.cmd == "evaluate":
        snapshot = _load_snapshot(args.snapshot)
        rng = np.random.default_rng(args.seed) if args.seed is not None else None
        try:
            result = run_adaptation(
                snapshot,
                catalog=get_catalog(args.catalog),
                rng=rng,
                run_id=args.run_id,
                metrics_port=args.metrics_port,
            )
        except NoMatchError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        out = result_to_dict(result)
        print(json.dumps(out, ensure_ascii=False, indent=2) if args.pretty else json.dumps(out, ensure_ascii=False))
        return 0

    if args.cmd == "catalog":
        catalog = get_catalog(args.catalog)
        scripts = catalog.by_energy_type(args.energy_type) if args.energy_type else tuple(catalog)
        for script in scripts:
            row = to_dict(script)
            print(json.dumps({k: row[k] for k in ("id", "title", "energy_type", "duration")}, ensure_ascii=False))
        return 0

    if args.cmd == "serve":
        init_metrics(args.metrics_port)
        url = f"http://localhost:{args.metrics_port}/metrics"
        print(f"[metrics] serving {url}. Ctrl+C to exit.")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\n[exit on Ctrl+C]")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
