# run_alerts_demo.py
from __future__ import annotations

import argparse
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

# --- Sørg for import fra projektroden ---
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from alerts.broker import AlertBroker  # noqa: E402
from config.env_loader import load_config  # noqa: E402
from core.state import WaitResult  # noqa: E402
from utils.log_utils import configure_logging, tail_text_log  # noqa: E402

logger = logging.getLogger("alerts_demo")


def color(s: str, c: str) -> str:
    if not sys.stdout.isatty():
        return s
    pal = {
        "green": "\033[92m",
        "yellow": "\033[93m",
        "red": "\033[91m",
        "cyan": "\033[96m",
        "reset": "\033[0m",
        "bold": "\033[1m",
    }
    return f"{pal.get(c,'')}{s}{pal['reset']}"


# ------------------------- scenarier -------------------------


def run_scenario(
    broker: AlertBroker,
    name: str = "ORD_READY",
    message: str = "order 42",
    timeout: float = 5.0,
    rollback: bool = False,
    delay: float = 0.2,
) -> Dict[str, object]:
    """
    Backend A registrerer `name` og venter; backend B signalerer og
    committer (eller ruller tilbage) efter `delay` sekunder.
    """
    a = broker.open_session()
    b = broker.open_session()
    a.register(name)
    out: Dict[str, object] = {}

    def _waiter() -> None:
        t0 = time.monotonic()
        res: WaitResult = a.waitone(name, timeout)
        out["result"] = res
        out["elapsed"] = time.monotonic() - t0

    t = threading.Thread(target=_waiter, name="backend-A", daemon=True)
    t.start()
    time.sleep(delay)
    with b.transaction():
        b.signal(name, message)
        if rollback:
            b.rollback()
    t.join(timeout + 1.0)
    a.close()
    b.close()
    return out


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Demo af alert-brokeren: signal → commit → waitone (og rollback-variant)."
    )
    ap.add_argument("--sensitivity", type=float, default=None, help="Overstyr sensitivity (sek).")
    ap.add_argument("--timeout", type=float, default=5.0, help="Timeout for waitone (sek).")
    ap.add_argument("--log-level", type=str, default=None, help="DEBUG/INFO/WARNING/...")
    ap.add_argument("--tail", type=int, default=0, help="Vis de sidste N linjer af broker.log til sidst.")
    args = ap.parse_args(argv)

    overrides = {}
    if args.sensitivity is not None:
        overrides["sensitivity_s"] = args.sensitivity
    cfg = load_config(**overrides)
    configure_logging(args.log_level or cfg.log_level, cfg.log_dir)
    broker = AlertBroker(cfg)

    print(color("== Alert-broker demo starter ==", "bold"))

    print(color("[1] Commit-scenarie", "yellow"))
    res = run_scenario(broker, timeout=args.timeout)
    r = res.get("result")
    ok = isinstance(r, WaitResult) and r.ok
    print(color(f" -> {r} efter {res.get('elapsed', 0.0):.3f}s", "green" if ok else "red"))

    print(color("[2] Rollback-scenarie", "yellow"))
    res_rb = run_scenario(broker, timeout=min(1.0, args.timeout), rollback=True)
    r_rb = res_rb.get("result")
    rb_ok = isinstance(r_rb, WaitResult) and not r_rb.ok
    print(color(f" -> {r_rb} efter {res_rb.get('elapsed', 0.0):.3f}s", "green" if rb_ok else "red"))

    print(color(f"Broker stats: {broker.stats()}", "cyan"))
    if args.tail > 0:
        print(tail_text_log(cfg.log_dir / "broker.log", n=args.tail))
    print(color("== Demo slut ==", "bold"))
    return 0 if ok and rb_ok else 1


if __name__ == "__main__":
    sys.exit(main())
