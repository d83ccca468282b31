"""
Outcome notification.

Public API:
    Notifier — Abstract outcome reporter
    EmailNotifier — SMTP implementation
    load_recipients / ensure_recipients_file — Recipient list file
    find_lane_barcode_report — Report attached on analysis completion
"""

from .errors import NotificationError
from .base import Notifier
from .recipients import (
    RECIPIENTS_TEMPLATE,
    ensure_recipients_file,
    parse_recipients,
    load_recipients,
)
from .reports import find_lane_barcode_report
from .mailer import EmailNotifier

__all__ = [
    # Errors
    "NotificationError",
    # Interface
    "Notifier",
    "EmailNotifier",
    # Recipients
    "RECIPIENTS_TEMPLATE",
    "ensure_recipients_file",
    "parse_recipients",
    "load_recipients",
    # Reports
    "find_lane_barcode_report",
]
