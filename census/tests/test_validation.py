from datetime import date

from census.services.validation import (
    FUTURE_ADMISSION_ERROR, INVALID_DATE_ERROR, compute_check_digit, format_patient_name, format_rut,
    is_passport_format, is_valid_rut, process_field_value, validate_admission_date, validate_rut,
)


def test_check_digit():
    assert compute_check_digit('12345678') == '5'
    assert is_valid_rut('12.345.678-5')
    assert is_valid_rut('123456785')
    assert not is_valid_rut('12345678-9')
    assert not is_valid_rut('1')


def test_format_rut_adds_dots_and_dash():
    assert format_rut('123456785') == '12.345.678-5'
    assert format_rut('12345678-5') == '12.345.678-5'


def test_validate_rut_formats_valid_and_keeps_others():
    assert validate_rut('123456785').value == '12.345.678-5'
    # invalid check digit is accepted as typed
    res = validate_rut(' 12345678-9 ')
    assert res.valid and res.value == '12345678-9'
    assert validate_rut('').valid


def test_passport_is_kept_verbatim():
    assert is_passport_format('AB1234567')
    assert not is_passport_format('12.345.678-K')
    assert validate_rut('AB1234567').value == 'AB1234567'


def test_patient_name_is_title_cased():
    assert format_patient_name('  juan PEREZ  ') == 'Juan Perez'
    assert process_field_value('patientName', 'maria tepano').value == 'Maria Tepano'


def test_admission_date_rules():
    today = date(2024, 3, 10)
    assert validate_admission_date('2024-03-09', today=today).valid
    assert validate_admission_date('2024-03-10', today=today).valid
    future = validate_admission_date('2024-03-11', today=today)
    assert not future.valid and future.error == FUTURE_ADMISSION_ERROR
    bad = validate_admission_date('10/03/2024', today=today)
    assert not bad.valid and bad.error == INVALID_DATE_ERROR
    trailing = validate_admission_date('2024-01-01xyz', today=today)
    assert not trailing.valid and trailing.error == INVALID_DATE_ERROR


def test_other_fields_pass_through():
    assert process_field_value('devices', ['CVC']).value == ['CVC']
    assert process_field_value('isUPC', True).value is True
