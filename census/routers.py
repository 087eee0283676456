"""
URL mappings for the census API.

Census days are addressed by ISO date (``YYYY-MM-DD``) and beds by their
id (``R1``, ``H3C2``, ``E1``...). Trailing slashes are omitted.
"""
from django.urls import include, path

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view
from .views import audit, beds, config, email, flags, handoff, health, movements, records, reports

DAY = 'api/records/<str:date>'
BED = DAY + '/beds/<str:bed_id>'

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),
    # Census days
    path('api/records', records.records_collection, name='records'),
    path('api/records/existing-days', records.existing_days, name='existing_days'),
    path('api/records/sync', records.offline_sync, name='offline_sync'),
    path(DAY, records.record_detail, name='record_detail'),
    path(DAY + '/patch', records.record_patch, name='record_patch'),
    path(DAY + '/stats', records.record_stats, name='record_stats'),
    # Beds
    path(DAY + '/beds/clear-all', beds.clear_all_beds, name='clear_all_beds'),
    path(DAY + '/beds/move', beds.move_or_copy_patient, name='move_patient'),
    path(BED + '/patient', beds.update_patient, name='update_patient'),
    path(BED + '/patient/multiple', beds.update_patient_multiple, name='update_patient_multiple'),
    path(BED + '/cudyr', beds.update_cudyr, name='update_cudyr'),
    path(BED + '/crib', beds.clinical_crib, name='clinical_crib'),
    path(BED + '/crib/patient', beds.update_clinical_crib, name='update_clinical_crib'),
    path(BED + '/crib/patient/multiple', beds.update_clinical_crib_multiple, name='update_clinical_crib_multiple'),
    path(BED + '/clear', beds.clear_patient, name='clear_patient'),
    path(BED + '/block', beds.toggle_block_bed, name='toggle_block_bed'),
    path(BED + '/extra', beds.toggle_extra_bed, name='toggle_extra_bed'),
    path(BED + '/mode', beds.toggle_bed_mode, name='toggle_bed_mode'),
    path(BED + '/companion-crib', beds.toggle_companion_crib, name='toggle_companion_crib'),
    # Movements
    path(DAY + '/movements', movements.movements_summary, name='movements'),
    path(DAY + '/discharges', movements.add_discharge, name='add_discharge'),
    path(DAY + '/discharges/<str:entry_id>', movements.discharge_detail, name='discharge_detail'),
    path(DAY + '/discharges/<str:entry_id>/undo', movements.undo_discharge, name='undo_discharge'),
    path(DAY + '/transfers', movements.add_transfer, name='add_transfer'),
    path(DAY + '/transfers/<str:entry_id>', movements.transfer_detail, name='transfer_detail'),
    path(DAY + '/transfers/<str:entry_id>/undo', movements.undo_transfer, name='undo_transfer'),
    path(DAY + '/cma', movements.add_cma, name='add_cma'),
    path(DAY + '/cma/<str:entry_id>', movements.cma_detail, name='cma_detail'),
    # Handoff
    path(DAY + '/handoff/schedule', handoff.shift_schedule, name='shift_schedule'),
    path(DAY + '/handoff/nursing-note', handoff.nursing_note, name='nursing_note'),
    path(DAY + '/handoff/checklist', handoff.checklist, name='handoff_checklist'),
    path(DAY + '/handoff/novedades', handoff.novedades, name='handoff_novedades'),
    path(DAY + '/handoff/staff', handoff.staff, name='handoff_staff'),
    path(DAY + '/handoff/medical/note', handoff.medical_note, name='medical_note'),
    path(DAY + '/handoff/medical/doctor', handoff.medical_doctor, name='medical_doctor'),
    path(DAY + '/handoff/medical/sent', handoff.medical_sent, name='medical_sent'),
    path(DAY + '/handoff/medical/sign', handoff.medical_sign, name='medical_sign'),
    # Reports
    path('api/reports/census-master/<str:date>', reports.census_master, name='report_census_master'),
    path('api/reports/raw/daily/<str:date>', reports.raw_daily, name='report_raw_daily'),
    path('api/reports/raw/range', reports.raw_range, name='report_raw_range'),
    path('api/reports/raw/month', reports.raw_month, name='report_raw_month'),
    path('api/reports/cudyr/<str:date>', reports.cudyr_daily, name='report_cudyr_daily'),
    # Email relay
    path('api/census/email', email.census_email, name='census_email'),
    # Audit, flags and settings documents
    path('api/audit', audit.audit_list, name='audit_list'),
    path('api/audit/local', audit.audit_local, name='audit_local'),
    path('api/feature-flags', flags.feature_flag_list, name='feature_flags'),
    path('api/config/<str:name>', config.config_document, name='config_document'),
]
