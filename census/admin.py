"""
Django admin registrations for the census models.
"""
from django.contrib import admin

from .models import AuditEvent, ConfigDocument, DailyRecord, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser', 'is_active')
    list_filter = ('role', 'is_staff')
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(DailyRecord)
class DailyRecordAdmin(admin.ModelAdmin):
    list_display = ('date', 'last_updated', 'created_at')
    search_fields = ('date',)
    ordering = ('-date',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'entity_type', 'entity_id', 'user_label', 'record_date')
    list_filter = ('action', 'entity_type')
    search_fields = ('entity_id', 'user_label', 'record_date')
    readonly_fields = [f.name for f in AuditEvent._meta.fields]


@admin.register(ConfigDocument)
class ConfigDocumentAdmin(admin.ModelAdmin):
    list_display = ('name', 'updated_at')
