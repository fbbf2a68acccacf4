"""Notification collaborators for finished dumps.

Usage:
    from db_snapshot.notifications import SmtpNotifier, render_report_html
"""

from db_snapshot.notifications.base import DumpNotifier
from db_snapshot.notifications.html import render_report_html
from db_snapshot.notifications.smtp import SmtpNotifier, report_subject

__all__ = [
    "DumpNotifier",
    "SmtpNotifier",
    "report_subject",
    "render_report_html",
]
