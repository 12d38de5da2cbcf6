# -*- coding: utf-8 -*-
"""
Tilpassede undtagelser for alert-brokeren.
"""

__all__ = [
    "AlertBrokerError",
    "InvalidArgumentError",
    "NotInTransactionError",
    "SessionGoneError",
    "CapacityError",
    "InvalidConfigError",
]


class AlertBrokerError(Exception):
    """Fælles basisklasse for broker-fejl."""
    pass


class InvalidArgumentError(AlertBrokerError, ValueError):
    """Kastes ved ugyldigt alert-navn, besked, sensitivity eller timeout."""
    pass


class NotInTransactionError(AlertBrokerError):
    """Kastes når commit/rollback kaldes uden en åben transaktion."""
    pass


class SessionGoneError(AlertBrokerError):
    """Kastes når sessionen er lukket (også midt i en wait)."""
    pass


class CapacityError(AlertBrokerError):
    """Kastes når registry eller postkasse ikke har flere pladser."""
    pass


class InvalidConfigError(AlertBrokerError):
    """Kastes ved ugyldig konfiguration."""
    pass
