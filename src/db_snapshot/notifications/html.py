"""HTML body for backup notification mails.

``render_report_html`` is a pure function of the report; it knows nothing
about recipients or transport.
"""

from datetime import datetime
from html import escape

from db_snapshot.dump.models import DumpReport

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
    body {{ font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; background-color: #f9f9f9; margin: 0; padding: 0; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; background-color: #ffffff; border-radius: 8px; }}
    .header {{ text-align: center; padding: 20px 0; border-bottom: 1px solid #eaeaea; }}
    h1 {{ color: #2c3e50; font-size: 24px; margin: 0; }}
    .backup-info {{ background-color: #f8fafc; border-radius: 6px; padding: 20px; margin: 20px 0; }}
    .info-item {{ display: flex; justify-content: space-between; border-bottom: 1px dashed #eaeaea; padding: 6px 0; }}
    .info-item:last-child {{ border-bottom: none; }}
    .info-label {{ font-weight: 600; color: #4a5568; }}
    .info-value {{ color: #2d3748; }}
    .warnings {{ border: 1px solid #d69e2e; background-color: #fffbeb; border-radius: 6px; padding: 10px 20px; }}
    .footer {{ text-align: center; padding-top: 20px; border-top: 1px solid #eaeaea; color: #718096; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{title}</h1></div>
    <p>Your database backup has been successfully completed and is attached to this email.</p>
    <div class="backup-info">
{items}
    </div>
{warnings}
    <p>Please store this backup in a secure location. For any questions or issues, please contact your system administrator.</p>
    <div class="footer"><p>This is an automated message. Please do not reply to this email.</p></div>
  </div>
</body>
</html>
"""


def report_fields(report: DumpReport, sent_at: datetime | None = None) -> list[tuple[str, str]]:
    """Label/value pairs shown in notifications."""
    when = sent_at or report.finished_at
    return [
        ("Filename", report.filename),
        ("File Size", f"{report.size_mb} MB"),
        ("Tables Backed Up", str(report.tables_count)),
        ("Rows Backed Up", str(report.rows_written)),
        ("Duration", f"{report.duration_seconds:.2f} seconds"),
        ("Warnings", str(report.warning_count)),
        ("Date", f"{when:%B} {when.day}, {when:%Y}"),
        ("Time", when.strftime("%I:%M %p").lstrip("0")),
    ]


def render_report_html(report: DumpReport, sent_at: datetime | None = None) -> str:
    """Render the notification body for a finished dump."""
    items = "\n".join(
        f'      <div class="info-item"><span class="info-label">{escape(label)}:</span>'
        f'<span class="info-value">{escape(value)}</span></div>'
        for label, value in report_fields(report, sent_at)
    )
    warnings = ""
    if report.warnings:
        entries = "\n".join(
            f"        <li>{escape(w.table or '-')}: {escape(w.message)}</li>"
            for w in report.warnings
        )
        warnings = f'    <div class="warnings"><ul>\n{entries}\n      </ul></div>'
    return _TEMPLATE.format(
        title="Database Backup Completed",
        items=items,
        warnings=warnings,
    )
