# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
import enum
from typing import Optional, Union

import attr

from .logging import Logger


class AlertSeverity(str, enum.Enum):
    DANGER = 'danger'
    WARNING = 'warning'
    INFO = 'info'
    SUCCESS = 'success'


@attr.s(frozen=True)
class Alert:
    severity = attr.ib(type=AlertSeverity, converter=AlertSeverity)
    message = attr.ib(type=str)


class AlertChannel(Logger):
    """Holds at most one pending alert for the current page. No queueing."""

    def __init__(self):
        Logger.__init__(self)
        self._alert = None  # type: Optional[Alert]

    @property
    def current(self) -> Optional[Alert]:
        return self._alert

    def set_alert(self, severity: Union[AlertSeverity, str], message: str) -> Alert:
        self._alert = Alert(severity, message)
        self.logger.debug(f"alert set: {self._alert.severity.value}: {message}")
        return self._alert

    def clear(self) -> None:
        self._alert = None

    def __bool__(self):
        return self._alert is not None
