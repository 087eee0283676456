import io

import openpyxl
import pytest
from django.core import mail
from django.urls import reverse

from census.models import AuditEvent
from census.services.audit import CENSUS_EMAIL_SENT
from census.services.email import attachment_filename, send_census_email
from census.services.feature_flags import feature_flags
from census.services.reports import XLSX_CONTENT_TYPE, ReportError

from .conftest import DAY, client_for

pytestmark = pytest.mark.django_db

URL = '/api/census/email'


@pytest.fixture(autouse=True)
def _locmem_mail(settings):
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    settings.DEFAULT_FROM_EMAIL = 'censo@hospital.test'
    settings.CENSUS_DEFAULT_RECIPIENTS = ['jefatura@hospital.test']


def test_reverse_name():
    assert reverse('census_email') == URL


def test_attachment_filename():
    assert attachment_filename('2024-03-10') == 'Censo_Maestro_03_2024.xlsx'


def test_send_uses_store_and_default_recipients(admitted_day):
    message_id = send_census_email(DAY, nurses_signature='Enf. Rapu')
    assert len(mail.outbox) == 1
    msg = mail.outbox[0]
    assert msg.to == ['jefatura@hospital.test']
    assert msg.subject == 'Censo diario hospitalizados – 10-03-2024'
    assert 'Enfermería turno noche - Enf. Rapu.' in msg.body
    assert msg.extra_headers['Message-ID'] == message_id
    name, content, mimetype = msg.attachments[0]
    assert name == 'Censo_Maestro_03_2024.xlsx'
    assert mimetype == XLSX_CONTENT_TYPE
    assert content[:2] == b'PK'


def test_send_without_records_fails(db):
    with pytest.raises(ReportError):
        send_census_email(DAY)
    assert mail.outbox == []


def test_endpoint_sends_and_audits(nurse, admitted_day):
    client = client_for(nurse)
    r = client.post(URL, {'date': DAY, 'recipients': ['a@hospital.test', 'b@hospital.test'],
                          'nursesSignature': 'Enf. Rapu'},
                    format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 200, r.content
    assert r.data['success'] is True
    assert r.data['message'] == 'Correo enviado'
    assert r.data['gmailId'] == mail.outbox[0].extra_headers['Message-ID']
    assert mail.outbox[0].to == ['a@hospital.test', 'b@hospital.test']
    ev = AuditEvent.objects.get(action=CENSUS_EMAIL_SENT)
    assert ev.record_date == DAY and ev.user == nurse


def test_endpoint_accepts_records_in_body(nurse):
    record = {'date': DAY, 'beds': {'R1': {'patientName': 'Juan'}}}
    r = client_for(nurse).post(URL, {'date': DAY, 'record': record}, format='json',
                               HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 200
    assert len(mail.outbox) == 1


def test_endpoint_role_header_must_match(nurse, viewer):
    r = client_for(nurse).post(URL, {'date': DAY}, format='json')
    assert r.status_code == 403
    assert r.data == {'success': False, 'message': 'No autorizado para enviar correos de censo.'}
    # header claims admin but the user is a nurse
    r = client_for(nurse).post(URL, {'date': DAY}, format='json', HTTP_X_USER_ROLE='admin')
    assert r.status_code == 403
    r = client_for(viewer).post(URL, {'date': DAY}, format='json', HTTP_X_USER_ROLE='viewer_census')
    assert r.status_code == 403
    assert mail.outbox == []


def test_endpoint_validation(nurse):
    client = client_for(nurse)
    r = client.post(URL, {}, format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 400
    assert r.data['message'] == 'Solicitud inválida: falta el cuerpo.'
    r = client.post(URL, {'recipients': []}, format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 400
    assert r.data['message'] == 'Solicitud inválida: falta la fecha o los datos del censo.'
    r = client.post(URL, {'date': DAY}, format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 400  # nothing stored for the month


def test_endpoint_only_accepts_post(nurse):
    r = client_for(nurse).get(URL, HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 405


def test_endpoint_requires_authentication():
    from rest_framework.test import APIClient
    r = APIClient().post(URL, {'date': DAY}, format='json', HTTP_X_USER_ROLE='admin')
    assert r.status_code in (401, 403)


def test_backend_failure_is_500(nurse, admitted_day, monkeypatch):
    def broken(self, fail_silently=False):
        raise ConnectionRefusedError('smtp down')

    monkeypatch.setattr('django.core.mail.EmailMessage.send', broken)
    r = client_for(nurse).post(URL, {'date': DAY}, format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 500
    assert r.data['success'] is False
    assert not AuditEvent.objects.filter(action=CENSUS_EMAIL_SENT).exists()


def test_disabled_flag(nurse, admitted_day):
    feature_flags.disable('ENABLE_EMAIL_CENSUS')
    r = client_for(nurse).post(URL, {'date': DAY}, format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 404
    assert mail.outbox == []


def test_endpoint_rejects_malformed_record_date(nurse):
    r = client_for(nurse).post(URL, {'date': DAY, 'records': [{'date': '10/03/2024', 'beds': {}}]},
                               format='json', HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 400
    assert r.data['success'] is False
    assert mail.outbox == []


def test_endpoint_keeps_only_month_to_date_records(nurse):
    records = [
        {'date': '2024-02-28', 'beds': {}},
        {'date': DAY, 'beds': {'R1': {'patientName': 'Juan'}}},
        {'date': '2024-03-12', 'beds': {}},
    ]
    r = client_for(nurse).post(URL, {'date': DAY, 'records': records}, format='json',
                               HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 200
    _, content, _ = mail.outbox[0].attachments[0]
    assert openpyxl.load_workbook(io.BytesIO(content)).sheetnames == ['10-03-2024']

    r = client_for(nurse).post(URL, {'date': DAY, 'records': [records[0]]}, format='json',
                               HTTP_X_USER_ROLE='nurse_hospital')
    assert r.status_code == 400


def test_endpoint_needs_send_capability(doctor, settings):
    settings.CENSUS_EMAIL_ALLOWED_ROLES = ['nurse_hospital', 'admin', 'doctor_urgency']
    r = client_for(doctor).post(URL, {'date': DAY, 'record': {'date': DAY, 'beds': {}}}, format='json',
                                HTTP_X_USER_ROLE='doctor_urgency')
    assert r.status_code == 403
    assert mail.outbox == []
