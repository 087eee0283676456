import io

import openpyxl
import pytest

from census.services import reports
from census.services.records import empty_patient, empty_record


def _load(content: bytes):
    return openpyxl.load_workbook(io.BytesIO(content))


@pytest.fixture
def record():
    rec = empty_record('2024-03-10')
    rec['beds']['R1'].update(patientName='Juan Pérez', rut='12.345.678-5', pathology='Neumonía',
                             admissionDate='2024-03-01', isUPC=True, devices=['CVC', 'SNG'])
    rec['beds']['R1']['cudyr'] = {'C': 1, 'D': 2, 'R': 1}
    rec['beds']['R2']['isBlocked'] = True
    rec['beds']['R2']['blockedReason'] = 'Mantención'
    rec['beds']['H1C1'].update(patientName='Ana Tuki', location='Sala 1')
    rec['beds']['H1C1']['clinicalCrib'] = dict(empty_patient('H1C1'), patientName='RN Tuki')
    rec['beds']['E1']['patientName'] = 'Extra Inactiva'
    rec['nursesNightShift'] = ['Enf. Rapu', 'Enf. Hey']
    rec['lastUpdated'] = '2024-03-10T12:00:00+00:00'
    return rec


def test_master_filename():
    assert reports.census_master_filename('2024-03-10') == 'Censo_Maestro_Marzo_2024.xlsx'
    assert reports.census_master_filename('2025-12-01') == 'Censo_Maestro_Diciembre_2025.xlsx'


def test_master_requires_records():
    with pytest.raises(reports.ReportError) as exc:
        reports.build_census_master_bytes([])
    assert str(exc.value) == reports.EMPTY_MASTER_ERROR


def test_master_sheets_sorted_by_date(record):
    other = empty_record('2024-03-09')
    wb = _load(reports.build_census_master_bytes([record, other]))
    assert wb.sheetnames == ['09-03-2024', '10-03-2024']


def test_master_sheet_layout(record, settings):
    settings.HOSPITAL_NAME = 'Hospital Hanga Roa'
    ws = _load(reports.build_census_master_bytes([record]))['10-03-2024']
    assert ws['A1'].value == 'CENSO CAMAS DIARIO - HOSPITAL HANGA ROA'
    assert ws['A2'].value == 'Fecha: 10-03-2024'
    assert ws['A3'].value == 'Enfermeras Turno Noche: Enf. Rapu, Enf. Hey'
    assert ws.freeze_panes == 'A7'
    assert ws['A5'].value == 'CENSO CAMAS' and ws['E5'].value == 'MOVIMIENTOS'
    assert ws['A6'].alignment.horizontal == 'center' and ws['A6'].alignment.vertical == 'center'
    assert [ws.cell(row=6, column=c).value for c in range(1, 9)] == [
        'Ocupadas', 'Libres', 'Bloqueadas', 'Cunas', 'Altas', 'Traslados', 'Hosp. Diurna', 'Fallecidos']
    assert ws['A7'].value == 2  # R1 + H1C1
    assert ws['C7'].value == 1  # R2 blocked
    assert ws['D7'].value == 1  # clinical crib

    assert ws['A10'].value == 'TABLA DE PACIENTES HOSPITALIZADOS'
    assert [ws.cell(row=11, column=c).value for c in range(1, 16)] == reports.CENSUS_HEADERS
    rows = [[ws.cell(row=r, column=c).value for c in range(1, 16)] for r in range(12, 16)]
    assert rows[0][1:5] == ['R1', 'UTI', 'Juan Pérez', '12.345.678-5']
    assert rows[0][8] == '01-03-2024'
    assert rows[0][12] == 'SI'
    assert rows[0][14] == 'CVC, SNG'
    assert rows[1][1] == 'R2'
    assert rows[2][1] == 'H1C1'
    assert rows[3][1:4] == ['H1C1-C (Sala 1)', 'Cuna', 'RN Tuki']
    assert ws['B12'].fill.start_color.rgb.endswith(reports.COLORS['upc'])
    assert ws['B13'].fill.start_color.rgb.endswith(reports.COLORS['blocked'])


def test_master_empty_movement_tables(record):
    ws = _load(reports.build_census_master_bytes([record]))['10-03-2024']
    values = [c.value for row in ws.iter_rows(min_row=16) for c in row if c.value]
    for text in ('Sin Altas', 'Sin Traslados', 'Sin hospitalización diurna'):
        assert text in values


def test_unassigned_night_nurses():
    ws = _load(reports.build_census_master_bytes([empty_record('2024-03-10')]))['10-03-2024']
    assert ws['A3'].value == 'Enfermeras Turno Noche: Sin asignar'


def test_raw_rows_skip_inactive_extra_beds(record):
    rows = reports.extract_raw_rows(record)
    assert [r[1] for r in rows] == ['R1', 'R2', 'H1C1', 'H1C1-C']
    assert all(len(r) == len(reports.RAW_HEADER) == 27 for r in rows)
    assert rows[1][6] == 'SI' and rows[1][7] == 'Mantención'
    assert rows[3][2] == 'Cuna' and rows[3][3] == 'Sala 1'
    assert rows[0][25] == ''
    record['nurses'] = ['Enf. Rapu', 'Enf. Hey']
    assert reports.extract_raw_rows(record)[0][25] == 'Enf. Rapu & Enf. Hey'

    record['activeExtraBeds'] = ['E1']
    assert 'E1' in [r[1] for r in reports.extract_raw_rows(record)]


def test_daily_raw_workbook(record):
    wb = _load(reports.build_daily_raw(record))
    ws = wb['Censo Diario']
    assert [c.value for c in ws[1]] == reports.RAW_HEADER
    assert ws.max_row == 5


def test_range_raw(record):
    with pytest.raises(reports.ReportError):
        reports.build_range_raw([])
    other = empty_record('2024-03-09')
    other['beds']['R4']['patientName'] = 'Ayer'
    ws = _load(reports.build_range_raw([record, other]))['Datos Brutos']
    assert ws['A2'].value == '2024-03-09'
    assert ws.max_row == 6


def test_cudyr_daily(record):
    ws = _load(reports.build_cudyr_daily(record))['CUDYR Diario']
    assert [c.value for c in ws[1]] == reports.CUDYR_HEADER
    assert [c.value for c in ws[2]] == ['2024-03-10', 'R1', 'Juan Pérez', '12.345.678-5', 4, 'C,D,R', 2, 'ALTO']
