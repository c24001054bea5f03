"""
Outbound SMS backends.

Modelled on Django's email backends: the active backend is chosen by the
SMS_BACKEND setting and every backend exposes ``send(phone, message)``
returning True when the message was handed over for delivery.
"""

import logging
import time

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

# Messages captured by LocmemSmsBackend, as (phone, message) tuples.
outbox = []


class BaseSmsBackend:
    """Base class for SMS backends."""

    def __init__(self, latency=None):
        if latency is None:
            latency = getattr(settings, 'SMS_SIMULATED_LATENCY', 0)
        self.latency = latency

    def send(self, phone: str, message: str) -> bool:
        raise NotImplementedError(
            'subclasses of BaseSmsBackend must override send()'
        )


class ConsoleSmsBackend(BaseSmsBackend):
    """Writes each message to the log instead of a carrier."""

    def send(self, phone: str, message: str) -> bool:
        if self.latency:
            time.sleep(self.latency)
        logger.info("SMS to %s: %s", phone, message)
        return True


class LocmemSmsBackend(BaseSmsBackend):
    """Keeps messages in the module-level ``outbox`` list."""

    def send(self, phone: str, message: str) -> bool:
        outbox.append((phone, message))
        return True


def get_sms_backend(path=None, **kwargs):
    """Instantiate the configured SMS backend (or the one at ``path``)."""
    backend_class = import_string(path or settings.SMS_BACKEND)
    return backend_class(**kwargs)
