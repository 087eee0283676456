"""
Relays the census master workbook by email through Django's mail backend.
"""
from __future__ import annotations

import logging
from email.utils import make_msgid
from typing import Iterable, Optional

from django.conf import settings
from django.core.mail import EmailMessage

from census.constants import build_census_email_body, build_census_email_subject
from census.services.reports import XLSX_CONTENT_TYPE, build_census_master_bytes, month_records_until

logger = logging.getLogger(__name__)


def attachment_filename(date: str) -> str:
    year, month = date.split('-')[:2]
    return f'Censo_Maestro_{month}_{year}.xlsx'


def resolve_recipients(recipients: Optional[Iterable[str]]) -> list[str]:
    cleaned = [r.strip() for r in (recipients or []) if r and r.strip()]
    return cleaned or list(settings.CENSUS_DEFAULT_RECIPIENTS)


def send_census_email(
    date: str,
    records: Optional[list[dict]] = None,
    recipients: Optional[Iterable[str]] = None,
    nurses_signature: Optional[str] = None,
    body: Optional[str] = None,
    requested_by: Optional[str] = None,
) -> str:
    """Build the month workbook up to ``date``, send it and return the Message-ID.

    Raises :class:`census.services.reports.ReportError` when there is nothing
    to attach; mail backend errors propagate.
    """
    if records is None:
        records = month_records_until(date)
    attachment = build_census_master_bytes(records)
    to = resolve_recipients(recipients)

    message_id = make_msgid(domain=settings.DEFAULT_FROM_EMAIL.rpartition('@')[2] or None)
    headers = {'Message-ID': message_id}
    if requested_by:
        headers['X-Requested-By'] = requested_by

    msg = EmailMessage(
        subject=build_census_email_subject(date),
        body=body or build_census_email_body(date, nurses_signature),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=to,
        headers=headers,
    )
    msg.attach(attachment_filename(date), attachment, XLSX_CONTENT_TYPE)
    msg.send(fail_silently=False)
    logger.info('census email for %s sent to %d recipient(s) id=%s', date, len(to), message_id)
    return message_id
