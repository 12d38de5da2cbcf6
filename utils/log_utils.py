# utils/log_utils.py
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def _ensure_parent_dir(path: str | os.PathLike) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)


def configure_logging(
    level: str | int = "INFO",
    log_dir: Optional[str | os.PathLike] = None,
    filename: str = "broker.log",
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Sæt root-loggeren op med konsol-handler og (valgfrit) roterende logfil.
    Kan kaldes flere gange; tidligere handlers fra denne funktion erstattes.
    """
    if isinstance(level, str):
        level_name = level.upper()
        level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        if getattr(h, "_alert_broker_handler", False):
            root.removeHandler(h)
            h.close()

    fmt = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console._alert_broker_handler = True  # type: ignore[attr-defined]
    root.addHandler(console)

    if log_dir is not None:
        path = Path(log_dir) / filename
        _ensure_parent_dir(path)
        fh = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        fh.setFormatter(fmt)
        fh._alert_broker_handler = True  # type: ignore[attr-defined]
        root.addHandler(fh)

    logger.debug("Logging initialiseret med level=%s log_dir=%s", logging.getLevelName(level), log_dir)
    return root


def tail_text_log(log_path: str | os.PathLike, n: int = 200) -> str:
    p = Path(log_path)
    if not p.exists():
        return ""
    want = max(1, int(n))
    # +1 så en afsluttende newline ikke æder en linje
    keep = want + 1
    res: list[str] = []
    block = 128 * 1024
    with open(p, "rb") as f:
        f.seek(0, os.SEEK_END)
        pos = f.tell()
        buf = b""
        while pos > 0 and len(res) <= keep:
            n = min(block, pos)
            pos -= n
            f.seek(pos)
            chunk = f.read(n)
            buf = chunk + buf
            parts = buf.split(b"\n")
            buf = parts[0]
            for part in reversed(parts[1:]):
                res.append(part.decode("utf-8", errors="ignore"))
                if len(res) >= keep:
                    break
        if buf and len(res) < keep:
            res.append(buf.decode("utf-8", errors="ignore"))
    # fjern tom sidste linje fra afsluttende newline
    lines = list(reversed(res))
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines[-want:])
