# alerts/validation.py
from __future__ import annotations

import math
from typing import Any, Optional

from core.state import MAX_MESSAGE_LENGTH, MAX_NAME_LENGTH, MAXWAIT
from utils.errors import InvalidArgumentError


def check_name(name: Any) -> str:
    """Alert-navne er case-sensitive; tomme eller for lange navne afvises."""
    if not isinstance(name, str):
        raise InvalidArgumentError(f"alert-navn skal være en streng, fik {type(name).__name__}")
    if not name:
        raise InvalidArgumentError("alert-navn må ikke være tomt")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidArgumentError(
            f"alert-navn er for langt ({len(name)} > {MAX_NAME_LENGTH}): {name[:MAX_NAME_LENGTH]}..."
        )
    return name


def check_message(message: Any) -> str:
    if message is None:
        return ""
    message = str(message)
    if len(message) > MAX_MESSAGE_LENGTH:
        raise InvalidArgumentError(
            f"besked er for lang ({len(message)} > {MAX_MESSAGE_LENGTH} tegn)"
        )
    return message


def check_sensitivity(value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"sensitivity skal være et tal, fik {value!r}") from e
    if math.isnan(v) or v < 0:
        raise InvalidArgumentError(f"sensitivity må ikke være negativ ({value!r})")
    return v


def normalize_timeout(timeout: Optional[float]) -> float:
    """
    0      -> tjek én gang og returnér straks
    < 0    -> MAXWAIT
    None   -> MAXWAIT
    > MAXWAIT klippes til MAXWAIT
    """
    if timeout is None:
        return float(MAXWAIT)
    try:
        t = float(timeout)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"timeout skal være et tal, fik {timeout!r}") from e
    if math.isnan(t):
        raise InvalidArgumentError("timeout må ikke være NaN")
    if t < 0 or t > MAXWAIT:
        return float(MAXWAIT)
    return t
