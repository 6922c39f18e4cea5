"""
Bursary reporting: payment and scholarship overviews and exportable
payment reports (json, csv or pdf).
"""
from __future__ import annotations

import base64
import csv
import hashlib
import io
import json
import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Sum
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from portal.exceptions import BadRequest
from portal.models import Payment, Scholarship
from portal.services.common import iso, money
from portal.services.payments import PAYMENT_STATUSES, PAYMENT_TYPES

logger = logging.getLogger(__name__)

REPORT_FORMATS = ('json', 'csv', 'pdf')
DEFAULT_LIMIT = 500
MAX_LIMIT = 2000
CSV_HEADER = ['Reference', 'Student Name', 'Student ID', 'Email', 'Type', 'Status', 'Amount',
              'Session', 'Semester', 'Payment Date', 'Recorded At']
CACHE_GENERATION_KEY = 'bursary:overview:generation'


def _as_list(value) -> Optional[list[str]]:
    if value is None or value == '':
        return None
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value]
    else:
        items = [v.strip() for v in str(value).split(',')]
    items = list(OrderedDict.fromkeys(i for i in items if i))
    return items or None


def parse_date_input(value) -> Optional[datetime]:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        parsed = parse_datetime(text)
        if parsed is None:
            day = parse_date(text)
            parsed = datetime(day.year, day.month, day.day) if day else None
        if parsed is None:
            raise BadRequest(f'Invalid date provided: {text}')
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def build_payment_filter(*, session=None, statuses=None, types=None, start_date=None, end_date=None) -> dict:
    statuses = _as_list(statuses)
    types = _as_list(types)
    for s in statuses or []:
        if s not in PAYMENT_STATUSES:
            raise BadRequest(f'Unsupported payment status: {s}')
    for t in types or []:
        if t not in PAYMENT_TYPES:
            raise BadRequest(f'Unsupported payment type: {t}')
    start = parse_date_input(start_date)
    end = parse_date_input(end_date)
    if start and end and start > end:
        raise BadRequest('startDate cannot be after endDate')
    return {'session': session or None, 'statuses': statuses, 'types': types, 'start': start, 'end': end}


def _payments_qs(f: dict):
    qs = Payment.objects.select_related('student', 'session').order_by('-created_at', '-id')
    if f['session']:
        qs = qs.filter(session_id=f['session'])
    if f['statuses']:
        qs = qs.filter(status__in=f['statuses'])
    if f['types']:
        qs = qs.filter(type__in=f['types'])
    if f['start']:
        qs = qs.filter(created_at__gte=f['start'])
    if f['end']:
        qs = qs.filter(created_at__lte=f['end'])
    return qs


def _breakdown(qs, field: str) -> list[dict]:
    rows = qs.order_by().values(field).annotate(count=Count('id'), amount=Sum('amount')).order_by(field)
    return [{'key': r[field], 'count': r['count'], 'amount': money(r['amount'])} for r in rows]


def _cache_key(filters: dict) -> str:
    generation = cache.get(CACHE_GENERATION_KEY, 0)
    digest = hashlib.sha1(json.dumps(filters, sort_keys=True, default=str).encode()).hexdigest()
    return f'bursary:overview:{generation}:{digest}'


def clear_report_cache() -> int:
    """Invalidate every cached overview; returns the new generation."""
    try:
        generation = cache.incr(CACHE_GENERATION_KEY)
    except ValueError:
        generation = 1
        cache.set(CACHE_GENERATION_KEY, generation, None)
    logger.info('Bursary report cache cleared (generation %s)', generation)
    return generation


def overview(*, session=None, status=None, type=None, start_date=None, end_date=None,
             academic_year=None, scholarship_status=None) -> dict:
    f = build_payment_filter(session=session, statuses=status, types=type, start_date=start_date, end_date=end_date)
    filters = {
        'session': session or None,
        'status': status or None,
        'type': type or None,
        'startDate': iso(f['start']),
        'endDate': iso(f['end']),
        'academicYear': academic_year or None,
        'scholarshipStatus': scholarship_status or None,
    }
    key = _cache_key(filters)
    cached = cache.get(key)
    if cached is not None:
        return cached

    payments = _payments_qs(f)
    agg = payments.aggregate(total=Sum('amount'), count=Count('id'))
    by_status = {r['key']: r['amount'] for r in _breakdown(payments, 'status')}
    total_count = agg['count'] or 0
    total_amount = money(agg['total'])
    totals = {
        'totalCount': total_count,
        'totalAmount': total_amount,
        'verifiedAmount': by_status.get(Payment.STATUS_VERIFIED, 0.0),
        'pendingAmount': by_status.get(Payment.STATUS_PENDING, 0.0),
        'rejectedAmount': by_status.get(Payment.STATUS_REJECTED, 0.0),
        'averageTransaction': round(total_amount / total_count, 2) if total_count else 0,
    }
    recent = [
        {
            'id': p.id,
            'reference': p.reference,
            'amount': money(p.amount),
            'status': p.status,
            'type': p.type,
            'recordedAt': iso(p.created_at),
            'paymentDate': iso(p.payment_date),
            'student': {
                'id': p.student.id,
                'name': p.student.full_name,
                'email': p.student.email,
                'studentId': p.student.student_id,
            },
            'session': p.session.name if p.session else None,
            'semester': p.semester or None,
        }
        for p in payments[:15]
    ]

    scholarships = Scholarship.objects.all().order_by('-created_at')
    if academic_year:
        scholarships = scholarships.filter(academic_year=academic_year)
    if scholarship_status:
        scholarships = scholarships.filter(status=scholarship_status)
    scholarship_rows = list(scholarships)

    data = {
        'filters': filters,
        'payments': {
            'totals': totals,
            'byStatus': _breakdown(payments, 'status'),
            'byType': _breakdown(payments, 'type'),
            'recent': recent,
        },
        'scholarships': _scholarship_summary(scholarship_rows),
    }
    cache.set(key, data, settings.BURSARY_REPORT_CACHE_SECONDS)
    return data


def _scholarship_summary(rows: list[Scholarship]) -> dict:
    summary = {'totalAmount': 0.0, 'totalScholarships': 0, 'totalBeneficiaries': 0, 'availableSlots': 0}
    by_status: dict[str, dict] = {}
    timeline: dict[str, dict] = {}
    for s in rows:
        amount = money(s.amount)
        summary['totalScholarships'] += 1
        summary['totalAmount'] += amount
        summary['totalBeneficiaries'] += s.filled_slots
        summary['availableSlots'] += s.available_slots

        bucket = by_status.setdefault(s.status, {'key': s.status, 'count': 0, 'amount': 0.0, 'beneficiaries': 0})
        bucket['count'] += 1
        bucket['amount'] += amount
        bucket['beneficiaries'] += s.filled_slots

        year = timeline.setdefault(s.academic_year, {'academicYear': s.academic_year, 'totalAmount': 0.0,
                                                     'scholarships': 0, 'beneficiaries': 0})
        year['totalAmount'] += amount
        year['scholarships'] += 1
        year['beneficiaries'] += s.filled_slots
    summary['totalAmount'] = round(summary['totalAmount'], 2)
    return {
        'summary': summary,
        'byStatus': list(by_status.values()),
        'timeline': [timeline[k] for k in sorted(timeline, reverse=True)[:5]],
        'recent': [
            {
                'id': s.id,
                'name': s.name,
                'amount': money(s.amount),
                'status': s.status,
                'academicYear': s.academic_year,
                'applicationDeadline': iso(s.application_deadline),
                'filledSlots': s.filled_slots,
                'availableSlots': s.available_slots,
            }
            for s in rows[:5]
        ],
    }


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------
def clamp_limit(limit: Any) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = 0
    return min(max(value or DEFAULT_LIMIT, 1), MAX_LIMIT)


def build_rows(payments: Iterable[Payment]) -> list[dict]:
    return [
        {
            'reference': p.reference,
            'studentName': p.student.full_name,
            'studentId': p.student.student_id or 'N/A',
            'email': p.student.email or 'N/A',
            'type': p.type,
            'status': p.status,
            'amount': money(p.amount),
            'session': p.session.name if p.session else 'N/A',
            'semester': p.semester or None,
            'paymentDate': iso(p.payment_date),
            'recordedAt': iso(p.created_at),
        }
        for p in payments
    ]


def summarize(rows: list[dict]) -> dict:
    summary = {
        'totalTransactions': 0,
        'totalAmount': Decimal('0'),
        'verifiedAmount': Decimal('0'),
        'pendingAmount': Decimal('0'),
        'byStatus': {},
        'byType': {},
    }
    for row in rows:
        amount = Decimal(str(row['amount']))
        summary['totalTransactions'] += 1
        summary['totalAmount'] += amount
        summary['byStatus'][row['status']] = summary['byStatus'].get(row['status'], 0) + 1
        summary['byType'][row['type']] = summary['byType'].get(row['type'], 0) + 1
        if row['status'] == Payment.STATUS_VERIFIED:
            summary['verifiedAmount'] += amount
        elif row['status'] == Payment.STATUS_PENDING:
            summary['pendingAmount'] += amount
    count = summary['totalTransactions']
    for k in ('totalAmount', 'verifiedAmount', 'pendingAmount'):
        summary[k] = money(summary[k])
    summary['averageTransaction'] = round(summary['totalAmount'] / count, 2) if count else 0
    return summary


def _file_payload(content, extension: str, mime_type: str, stamp: int) -> dict:
    raw = content if isinstance(content, bytes) else content.encode('utf-8')
    return {
        'fileName': f'bursary-report-{stamp}.{extension}',
        'mimeType': mime_type,
        'size': len(raw),
        'content': base64.b64encode(raw).decode('ascii'),
    }


def build_csv(rows: list[dict]) -> str:
    buf = io.StringIO()
    buf.write(','.join(CSV_HEADER) + '\n')
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator='\n')
    for row in rows:
        writer.writerow([
            row['reference'], row['studentName'], row['studentId'], row['email'], row['type'],
            row['status'], row['amount'], row['session'], row['semester'] or '',
            row['paymentDate'] or '', row['recordedAt'] or '',
        ])
    return buf.getvalue().rstrip('\n')


PDF_COLUMNS = [('reference', 'Reference'), ('studentName', 'Student'), ('type', 'Type'), ('status', 'Status'),
               ('amount', 'Amount'), ('session', 'Session'), ('semester', 'Semester')]
PDF_ROW_LIMIT = 50


def build_pdf(rows: list[dict], summary: dict) -> bytes:
    """Render the summary and the first rows as an A4 landscape PDF."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), title='Bursary Report',
                            leftMargin=1.5 * cm, rightMargin=1.5 * cm, topMargin=1.5 * cm, bottomMargin=1.5 * cm)
    styles = getSampleStyleSheet()
    story = [
        Paragraph('Bursary Report', styles['Title']),
        Paragraph(f'Generated at {timezone.now():%Y-%m-%d %H:%M}', styles['Normal']),
        Spacer(1, 12),
    ]
    totals = Table([
        ['Total transactions', str(summary['totalTransactions'])],
        ['Total amount', f"{summary['totalAmount']:,.2f}"],
        ['Verified amount', f"{summary['verifiedAmount']:,.2f}"],
        ['Pending amount', f"{summary['pendingAmount']:,.2f}"],
    ], hAlign='LEFT')
    totals.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    story += [totals, Spacer(1, 18), Paragraph(f'First {PDF_ROW_LIMIT} payments', styles['Heading2'])]

    data = [[label for _, label in PDF_COLUMNS]]
    for row in rows[:PDF_ROW_LIMIT]:
        data.append([str(row[key] if row[key] is not None else '') for key, _ in PDF_COLUMNS])
    payments = Table(data, repeatRows=1)
    payments.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1f3b70')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ALIGN', (4, 1), (4, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    story.append(payments)
    doc.build(story)
    return buf.getvalue()


def _scholarship_status_summary() -> list[dict]:
    rows = (Scholarship.objects.values('status')
            .annotate(count=Count('id'), amount=Sum('amount'), beneficiaries=Sum('filled_slots'))
            .order_by('status'))
    return [{'status': r['status'], 'count': r['count'], 'amount': money(r['amount']),
             'beneficiaries': r['beneficiaries'] or 0} for r in rows]


def generate_report(*, format: str = 'json', filters: Optional[dict] = None, limit: Any = DEFAULT_LIMIT,
                    include_scholarships: bool = False) -> dict:
    fmt = str(format or 'json').lower()
    if fmt not in REPORT_FORMATS:
        raise BadRequest('format must be one of json, csv, or pdf')
    filters = filters or {}
    f = build_payment_filter(
        session=filters.get('session') or filters.get('sessionId'),
        statuses=filters.get('statuses') or filters.get('status'),
        types=filters.get('types') or filters.get('type'),
        start_date=filters.get('startDate'),
        end_date=filters.get('endDate'),
    )
    limit = clamp_limit(limit)
    rows = build_rows(_payments_qs(f)[:limit])
    summary = summarize(rows)

    now = timezone.now()
    stamp = int(now.timestamp() * 1000)
    file_payload = None
    if fmt == 'csv':
        file_payload = _file_payload(build_csv(rows), 'csv', 'text/csv', stamp)
    elif fmt == 'pdf':
        file_payload = _file_payload(build_pdf(rows, summary), 'pdf', 'application/pdf', stamp)
    logger.info('Bursary report generated: format=%s rows=%d', fmt, len(rows))

    data = {
        'metadata': {
            'format': fmt,
            'generatedAt': now.isoformat(),
            'rowCount': len(rows),
            'limit': limit,
            'filters': {
                'session': f['session'],
                'statuses': f['statuses'],
                'types': f['types'],
                'startDate': iso(f['start']),
                'endDate': iso(f['end']),
            },
        },
        'summary': summary,
        'scholarshipSummary': _scholarship_status_summary() if include_scholarships else None,
        'file': file_payload,
    }
    if fmt == 'json':
        data['rows'] = rows
    else:
        data['preview'] = rows[:10]
    return data
