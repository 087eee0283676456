"""
Excel exports built with openpyxl.

``build_census_master_workbook`` lays out one formatted sheet per day
(header, summary, patient table, discharges, transfers and CMA); the raw
exports write one flat row per occupied/blocked bed so the data can be
filtered or pivoted. Every builder returns the workbook as ``bytes``.
"""
from __future__ import annotations

import io
from typing import Any, Iterable

import openpyxl
from django.conf import settings
from django.utils import timezone
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from census.constants import (
    BED_MODE_BED, BEDS, DISCHARGE_ALIVE, DISCHARGE_DECEASED, MONTH_NAMES, format_date_ddmmyyyy,
)
from census.services import records as record_store
from census.services.cudyr import daily_rows as cudyr_daily_rows
from census.services.stats import calculate_stats

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

COLORS = {
    'headerBlue': '2F5597',
    'headerGreen': '70AD47',
    'accentBlue': 'DDEBF7',
    'accentPurple': 'E4DFEC',
    'accentOrange': 'F4B084',
    'accentLightBlue': 'BDD7EE',
    'accentPink': 'B4C7E7',
    'tableHeader': 'D9E1F2',
    'blocked': 'F8CBAD',
    'upc': 'E2EFDA',
}

THIN = Side(style='thin')
BORDER_THIN = Border(top=THIN, left=THIN, bottom=THIN, right=THIN)
CENTER = Alignment(horizontal='center', vertical='center')

CENSUS_HEADERS = ['#', 'CAMA', 'TIPO', 'PACIENTE', 'RUT', 'EDAD', 'Dx', 'ESP', 'F. ING', 'ESTADO',
                  'BRAZ', 'C.QX', 'UPC', 'POST', 'DISPOSITIVOS']
CENSUS_COLUMN_WIDTHS = [4, 10, 7, 22, 14, 6, 28, 14, 10, 10, 5, 5, 5, 5, 18]

RAW_HEADER = [
    'FECHA', 'CAMA', 'TIPO_CAMA', 'UBICACION', 'MODO_CAMA', 'TIENE_ACOMPANANTE',
    'BLOQUEADA', 'MOTIVO_BLOQUEO',
    'PACIENTE', 'RUT', 'EDAD', 'SEXO', 'PREVISION', 'ORIGEN', 'ORIGEN_INGRESO', 'ES_RAPANUI',
    'DIAGNOSTICO', 'ESPECIALIDAD', 'ESTADO', 'FECHA_INGRESO',
    'BRAZALETE', 'POSTRADO', 'DISPOSITIVOS', 'COMP_QUIRURGICA', 'UPC',
    'ENFERMEROS', 'ULTIMA_ACTUALIZACION',
]

CUDYR_HEADER = ['FECHA', 'CAMA', 'PACIENTE', 'RUT', 'PUNTAJE_TOTAL', 'CATEGORIA', 'DEPENDENCIA', 'RIESGO']

EMPTY_MASTER_ERROR = 'No hay registros disponibles para generar el Excel maestro.'


class ReportError(ValueError):
    """Nothing to export for the requested period."""


def _fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type='solid')


def _yes_no(value) -> str:
    return 'SI' if value else 'NO'


def _occupied(p) -> bool:
    return bool(p and (p.get('patientName') or '').strip())


def _to_bytes(wb: openpyxl.Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _new_workbook() -> openpyxl.Workbook:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    wb.properties.creator = settings.HOSPITAL_NAME
    return wb


# ---------------------------------------------------------------------------
# Census master workbook
# ---------------------------------------------------------------------------
def census_master_filename(date: str) -> str:
    year_str, month_str = date.split('-')[:2]
    month_index = max(0, min(11, int(month_str) - 1))
    return f'Censo_Maestro_{MONTH_NAMES[month_index]}_{int(year_str)}.xlsx'


def _style_header(cell, fill: str | None = None, size: int = 10) -> None:
    cell.font = Font(bold=True, size=size, color='000000')
    cell.alignment = CENTER
    cell.border = BORDER_THIN
    if fill:
        cell.fill = _fill(fill)


def _style_data(cell) -> None:
    cell.border = BORDER_THIN
    cell.alignment = Alignment(vertical='center', wrap_text=True)


def _banner(ws, row: int, text: str, width: int, fill: str, font: Font) -> None:
    cell = ws.cell(row=row, column=1, value=text)
    cell.font = font
    cell.fill = _fill(fill)
    cell.alignment = CENTER
    for col in range(1, width + 1):
        ws.cell(row=row, column=col).border = BORDER_THIN
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=width)


def _add_header(ws, record: dict, row: int) -> int:
    title = f"CENSO CAMAS DIARIO - {settings.HOSPITAL_NAME.upper()}"
    _banner(ws, row, title, 10, COLORS['headerBlue'], Font(bold=True, size=14, color='FFFFFF'))

    cell = ws.cell(row=row + 1, column=1, value=f"Fecha: {format_date_ddmmyyyy(record['date'])}")
    cell.font = Font(bold=True)
    cell.fill = _fill(COLORS['accentBlue'])
    cell.border = BORDER_THIN
    ws.merge_cells(start_row=row + 1, start_column=1, end_row=row + 1, end_column=5)

    nurses = [n for n in (record.get('nursesNightShift') or []) if n and n.strip()]
    cell = ws.cell(row=row + 2, column=1,
                   value=f"Enfermeras Turno Noche: {', '.join(nurses) if nurses else 'Sin asignar'}")
    cell.font = Font(italic=True)
    cell.fill = _fill(COLORS['accentPurple'])
    cell.border = BORDER_THIN
    ws.merge_cells(start_row=row + 2, start_column=1, end_row=row + 2, end_column=5)
    return row + 3


def _add_summary(ws, record: dict, stats: dict, row: int) -> int:
    discharges = record.get('discharges') or []
    deceased = sum(1 for d in discharges if d.get('status') == DISCHARGE_DECEASED)
    alive = sum(1 for d in discharges if d.get('status') == DISCHARGE_ALIVE)

    for col, text, color in ((1, 'CENSO CAMAS', COLORS['headerBlue']), (5, 'MOVIMIENTOS', COLORS['headerGreen'])):
        cell = ws.cell(row=row, column=col, value=text)
        cell.font = Font(bold=True, color='FFFFFF')
        cell.fill = _fill(color)
        cell.alignment = CENTER
        for c in range(col, col + 4):
            ws.cell(row=row, column=c).border = BORDER_THIN
        ws.merge_cells(start_row=row, start_column=col, end_row=row, end_column=col + 3)

    labels = ['Ocupadas', 'Libres', 'Bloqueadas', 'Cunas', 'Altas', 'Traslados', 'Hosp. Diurna', 'Fallecidos']
    for idx, label in enumerate(labels, start=1):
        _style_header(ws.cell(row=row + 1, column=idx, value=label), COLORS['accentBlue'], size=9)

    values = [
        stats['occupiedBeds'],
        stats['availableCapacity'],
        stats['blockedBeds'],
        stats['clinicalCribsCount'] + stats['companionCribs'],
        alive,
        len(record.get('transfers') or []),
        len(record.get('cma') or []),
        deceased,
    ]
    for idx, value in enumerate(values, start=1):
        cell = ws.cell(row=row + 2, column=idx, value=value)
        cell.alignment = CENTER
        cell.border = BORDER_THIN

    capacity = [
        f"Capacidad Servicio: {stats['serviceCapacity']}",
        f"Disponibles: {stats['availableCapacity']}",
        f"Total Pacientes: {stats['totalHospitalized']}",
    ]
    for idx, text in enumerate(capacity, start=1):
        cell = ws.cell(row=row + 3, column=idx, value=text)
        cell.font = Font(size=9)
        cell.border = BORDER_THIN
        cell.fill = _fill(COLORS['accentPurple'])
    return row + 4


def _census_row(ws, row: int, index: int, bed_id: str, bed_type: str, p: dict, location: str = '') -> int:
    values = [
        index,
        f'{bed_id} ({location})' if location else bed_id,
        bed_type,
        p.get('patientName') or '',
        p.get('rut') or '',
        p.get('age') or '',
        p.get('pathology') or '',
        p.get('specialty') or '',
        format_date_ddmmyyyy(p.get('admissionDate')),
        p.get('status') or '',
        _yes_no(p.get('hasWristband')),
        _yes_no(p.get('surgicalComplication')),
        _yes_no(p.get('isUPC')),
        _yes_no(p.get('isBedridden')),
        ', '.join(p.get('devices') or []),
    ]
    for idx, value in enumerate(values):
        cell = ws.cell(row=row, column=idx + 1, value=value)
        _style_data(cell)
        if idx <= 1 or idx in (5, 8, 9) or 10 <= idx <= 13:
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
        if p.get('isBlocked'):
            cell.fill = _fill(COLORS['blocked'])
        elif p.get('isUPC'):
            cell.fill = _fill(COLORS['upc'])
    return row + 1


def _add_census_table(ws, record: dict, row: int) -> int:
    _banner(ws, row, 'TABLA DE PACIENTES HOSPITALIZADOS', len(CENSUS_HEADERS),
            COLORS['accentBlue'], Font(bold=True, size=12))
    row += 1
    for idx, header in enumerate(CENSUS_HEADERS, start=1):
        _style_header(ws.cell(row=row, column=idx, value=header), COLORS['tableHeader'])
    row += 1

    beds = record.get('beds') or {}
    index = 1
    for bed in BEDS:
        p = beds.get(bed.id)
        if not p:
            continue
        if _occupied(p) or p.get('isBlocked'):
            row = _census_row(ws, row, index, bed.id, bed.type, p)
            index += 1
        crib = p.get('clinicalCrib')
        if _occupied(crib):
            row = _census_row(ws, row, index, f'{bed.id}-C', 'Cuna', crib, p.get('location') or '')
            index += 1
    return row


def _add_movement_table(ws, row: int, title: str, headers: list[str], fill: str,
                        rows: list[list[Any]], empty_text: str) -> int:
    _banner(ws, row, title, len(headers), fill, Font(bold=True, size=11))
    for idx, header in enumerate(headers, start=1):
        _style_header(ws.cell(row=row + 1, column=idx, value=header), fill)
    row += 2
    if not rows:
        cell = ws.cell(row=row, column=1, value=empty_text)
        cell.font = Font(italic=True)
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=len(headers))
        return row + 1
    for values in rows:
        for idx, value in enumerate(values, start=1):
            _style_data(ws.cell(row=row, column=idx, value=value))
        row += 1
    return row


def _discharge_rows(discharges: list[dict]) -> list[list[Any]]:
    out = []
    for d in discharges:
        original = d.get('originalData') or {}
        out.append([d.get('status') or '', d.get('patientName') or '', d.get('rut') or '',
                    original.get('age') or '', d.get('diagnosis') or '', original.get('specialty') or '',
                    d.get('dischargeType') or ''])
    return out


def _transfer_rows(transfers: list[dict]) -> list[list[Any]]:
    out = []
    for t in transfers:
        original = t.get('originalData') or {}
        out.append([t.get('evacuationMethod') or '', t.get('patientName') or '', t.get('rut') or '',
                    original.get('age') or '', t.get('diagnosis') or '', original.get('specialty') or '',
                    t.get('receivingCenterOther') or t.get('receivingCenter') or ''])
    return out


def _cma_rows(cma: list[dict]) -> list[list[Any]]:
    return [[c.get('interventionType') or '', c.get('patientName') or '', c.get('rut') or '',
             c.get('age') or '', c.get('diagnosis') or '', c.get('specialty') or '', c.get('bedName') or '']
            for c in cma]


def _add_day_sheet(wb: openpyxl.Workbook, record: dict) -> None:
    ws = wb.create_sheet(title=format_date_ddmmyyyy(record['date']))
    ws.page_setup.orientation = 'landscape'
    ws.page_setup.paperSize = ws.PAPERSIZE_A4
    ws.sheet_format.defaultRowHeight = 18
    ws.freeze_panes = 'A7'

    row = _add_header(ws, record, 1) + 1
    stats = calculate_stats(record.get('beds') or {}, record.get('activeExtraBeds') or [])
    row = _add_summary(ws, record, stats, row) + 1
    row = _add_census_table(ws, record, row) + 1
    row = _add_movement_table(ws, row, 'ALTAS DEL DÍA',
                              ['ALTAS', 'PACIENTE', 'RUT', 'EDAD', 'DIAGNÓSTICO', 'ESPECIALIDAD', 'DESTINO'],
                              COLORS['accentOrange'], _discharge_rows(record.get('discharges') or []),
                              'Sin Altas') + 1
    row = _add_movement_table(ws, row, 'TRASLADOS',
                              ['TRASLADOS', 'PACIENTE', 'RUT', 'EDAD', 'DIAGNÓSTICO', 'ESPECIALIDAD', 'DESTINO'],
                              COLORS['accentLightBlue'], _transfer_rows(record.get('transfers') or []),
                              'Sin Traslados') + 1
    _add_movement_table(ws, row, 'HOSPITALIZACIÓN DIURNA (CMA)',
                        ['HOSPITALIZACIÓN DIURNA', 'PACIENTE', 'RUT', 'EDAD', 'DIAGNÓSTICO', 'ESPECIALIDAD', 'SERVICIO'],
                        COLORS['accentPink'], _cma_rows(record.get('cma') or []),
                        'Sin hospitalización diurna')

    for idx, width in enumerate(CENSUS_COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width


def build_census_master_workbook(records: Iterable[dict]) -> openpyxl.Workbook:
    records = sorted(records or [], key=lambda r: r['date'])
    if not records:
        raise ReportError(EMPTY_MASTER_ERROR)
    wb = _new_workbook()
    for record in records:
        _add_day_sheet(wb, record)
    return wb


def build_census_master_bytes(records: Iterable[dict]) -> bytes:
    return _to_bytes(build_census_master_workbook(records))


def month_records_until(date: str) -> list[dict]:
    """Stored records from the first of ``date``'s month up to ``date``."""
    year, month = int(date[:4]), int(date[5:7])
    return [r for r in record_store.list_month_records(year, month) if r['date'] <= date]


# ---------------------------------------------------------------------------
# Raw exports
# ---------------------------------------------------------------------------
def _format_timestamp(value) -> str:
    dt = record_store.parse_timestamp(value)
    return timezone.localtime(dt).strftime('%d-%m-%Y %H:%M:%S') if dt else ''


def _raw_row(date: str, bed_id: str, bed_type: str, p: dict, nurses: list[str],
             last_updated: str, location: str = '') -> list[Any]:
    return [
        date,
        bed_id,
        bed_type,
        location or p.get('location') or '',
        p.get('bedMode') or BED_MODE_BED,
        _yes_no(p.get('hasCompanionCrib')),
        _yes_no(p.get('isBlocked')),
        p.get('blockedReason') or '',
        p.get('patientName') or '',
        p.get('rut') or '',
        p.get('age') or '',
        p.get('biologicalSex') or '',
        p.get('insurance') or '',
        p.get('origin') or '',
        p.get('admissionOrigin') or '',
        _yes_no(p.get('isRapanui')),
        p.get('pathology') or '',
        p.get('specialty') or '',
        p.get('status') or '',
        format_date_ddmmyyyy(p.get('admissionDate')),
        _yes_no(p.get('hasWristband')),
        _yes_no(p.get('isBedridden')),
        ', '.join(p.get('devices') or []),
        _yes_no(p.get('surgicalComplication')),
        _yes_no(p.get('isUPC')),
        ' & '.join(nurses),
        last_updated,
    ]


def extract_raw_rows(record: dict) -> list[list[Any]]:
    rows = []
    nurses = [n for n in (record.get('nurses') or []) if n]
    active_extra = set(record.get('activeExtraBeds') or [])
    last_updated = _format_timestamp(record.get('lastUpdated'))
    beds = record.get('beds') or {}
    for bed in BEDS:
        if bed.is_extra and bed.id not in active_extra:
            continue
        p = beds.get(bed.id)
        if not p:
            continue
        if _occupied(p) or p.get('isBlocked'):
            rows.append(_raw_row(record['date'], bed.id, bed.type, p, nurses, last_updated))
        crib = p.get('clinicalCrib')
        if _occupied(crib):
            rows.append(_raw_row(record['date'], f'{bed.id}-C', 'Cuna', crib, nurses, last_updated,
                                 location=p.get('location') or ''))
    return rows


def _flat_workbook(title: str, header: list[str], rows: list[list[Any]]) -> bytes:
    wb = _new_workbook()
    ws = wb.create_sheet(title=title)
    ws.append(header)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for r in rows:
        ws.append(r)
    for idx in range(1, len(header) + 1):
        ws.column_dimensions[get_column_letter(idx)].width = 20
    return _to_bytes(wb)


def build_daily_raw(record: dict) -> bytes:
    return _flat_workbook('Censo Diario', RAW_HEADER, extract_raw_rows(record))


def build_range_raw(records: list[dict]) -> bytes:
    if not records:
        raise ReportError('No hay registros en el rango de fechas seleccionado.')
    rows: list[list[Any]] = []
    for record in sorted(records, key=lambda r: r['date']):
        rows.extend(extract_raw_rows(record))
    return _flat_workbook('Datos Brutos', RAW_HEADER, rows)


def build_cudyr_daily(record: dict) -> bytes:
    return _flat_workbook('CUDYR Diario', CUDYR_HEADER, cudyr_daily_rows(record))


def daily_raw_filename(date: str) -> str:
    return f'Censo_HangaRoa_Bruto_{date}.xlsx'


def range_raw_filename(start: str, end: str) -> str:
    return f'Censo_HangaRoa_Rango_{start}_{end}.xlsx'


def cudyr_filename(date: str) -> str:
    return f'CUDYR_{date}.xlsx'
