# config/env_loader.py
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from core.state import DEFAULT_SENSITIVITY
from utils.errors import InvalidConfigError

DEFAULT_YAML_PATH = Path("config") / "alerts.yml"


def _to_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def _to_float(name: str, v: Any, default: float) -> float:
    if v is None or v == "":
        return default
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(f"{name}: forventede et tal, fik {v!r}") from e


def _to_int(name: str, v: Any, default: int) -> int:
    if v is None or v == "":
        return default
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError(f"{name}: forventede et heltal, fik {v!r}") from e


@dataclass(frozen=True)
class BrokerCfg:
    sensitivity_s: float = DEFAULT_SENSITIVITY
    deliver_to_sender: bool = True
    max_subscriptions_per_backend: int = 256
    max_pending: int = 65_536
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    api_port: int = 8000

    def validate(self) -> "BrokerCfg":
        if self.sensitivity_s < 0:
            raise InvalidConfigError(f"sensitivity_s må ikke være negativ ({self.sensitivity_s})")
        if self.max_subscriptions_per_backend < 1:
            raise InvalidConfigError("max_subscriptions_per_backend skal være >= 1")
        if self.max_pending < 1:
            raise InvalidConfigError("max_pending skal være >= 1")
        return self


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Læs 'broker'-sektionen (eller roden) fra en YAML-fil."""
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise InvalidConfigError(f"Ugyldigt YAML-indhold i {path}: forventet mapping.")
    section = raw.get("broker", raw)
    if not isinstance(section, dict):
        raise InvalidConfigError(f"Ugyldig struktur i {path}: 'broker' skal være en mapping.")
    return section


def load_config(
    env_path: str | None = None,
    yaml_path: str | os.PathLike | None = None,
    **overrides: Any,
) -> BrokerCfg:
    """
    Prioritet (laveste først):
    1) Hardcodede defaults
    2) YAML (ALERT_CONFIG_YAML eller config/alerts.yml hvis den findes)
    3) ENV-variabler (evt. fra .env)
    4) Eksplicitte keyword-overrides
    """
    if env_path:
        load_dotenv(dotenv_path=env_path)
    elif Path(".env").exists():
        # eksplicit sti: find_dotenv() leder ellers fra modulets mappe, ikke CWD
        load_dotenv(dotenv_path=Path(".env"))

    y: Dict[str, Any] = {}
    ypath = yaml_path or os.getenv("ALERT_CONFIG_YAML")
    if ypath:
        p = Path(ypath)
        if not p.exists():
            raise InvalidConfigError(f"Config-fil mangler: {p}")
        y = _load_yaml(p)
    elif DEFAULT_YAML_PATH.exists():
        y = _load_yaml(DEFAULT_YAML_PATH)

    base = BrokerCfg()
    cfg = BrokerCfg(
        sensitivity_s=_to_float(
            "ALERT_SENSITIVITY_SEC",
            os.getenv("ALERT_SENSITIVITY_SEC", y.get("sensitivity_sec")),
            base.sensitivity_s,
        ),
        deliver_to_sender=_to_bool(
            os.getenv("ALERT_DELIVER_TO_SENDER", y.get("deliver_to_sender")),
            base.deliver_to_sender,
        ),
        max_subscriptions_per_backend=_to_int(
            "ALERT_MAX_SUBSCRIPTIONS",
            os.getenv("ALERT_MAX_SUBSCRIPTIONS", y.get("max_subscriptions")),
            base.max_subscriptions_per_backend,
        ),
        max_pending=_to_int(
            "ALERT_MAX_PENDING",
            os.getenv("ALERT_MAX_PENDING", y.get("max_pending")),
            base.max_pending,
        ),
        log_dir=Path(os.getenv("LOG_DIR", y.get("log_dir") or str(base.log_dir))),
        log_level=str(os.getenv("LOG_LEVEL", y.get("log_level") or base.log_level)).upper(),
        api_port=_to_int("ALERT_API_PORT", os.getenv("ALERT_API_PORT", y.get("api_port")), base.api_port),
    )
    if overrides:
        try:
            cfg = replace(cfg, **overrides)
        except TypeError as e:
            raise InvalidConfigError(str(e)) from e
    return cfg.validate()
