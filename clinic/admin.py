"""
Django admin registrations for the clinic models.

Superusers can inspect and fix data via ``/admin/``; list displays and
filters follow the fields the dashboard filters on.
"""

from django.contrib import admin

from .models import (
    Alert,
    Appointment,
    AppointmentReminder,
    AuditLog,
    Occurrence,
    Patient,
    PatientContact,
    PatientSession,
    PatientStatusHistory,
    Role,
    Setting,
    User,
    UserRole,
)


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


class PatientContactInline(admin.TabularInline):
    model = PatientContact
    extra = 0


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'description')
    search_fields = ('name',)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'specialty', 'is_active', 'must_change_password', 'created_at')
    list_filter = ('is_active', 'roles')
    search_fields = ('email', 'name', 'document_id')
    exclude = ('password',)
    inlines = [UserRoleInline]


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'cpf', 'stage', 'status', 'pin_attempts', 'pin_blocked_until')
    list_filter = ('stage', 'status', 'clinical_unit')
    search_fields = ('full_name', 'cpf', 'phone')
    exclude = ('pin_hash',)
    inlines = [PatientContactInline]


@admin.register(PatientStatusHistory)
class PatientStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ('patient', 'stage', 'status', 'reason', 'recorded_at')
    list_filter = ('stage', 'status')
    search_fields = ('patient__full_name', 'patient__cpf')


@admin.register(PatientSession)
class PatientSessionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'created_at', 'expires_at', 'revoked_at', 'ip')
    search_fields = ('patient__full_name', 'patient__cpf', 'ip')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'professional', 'starts_at', 'type', 'status')
    list_filter = ('status', 'type')
    search_fields = ('patient__full_name', 'patient__cpf', 'professional__name')


@admin.register(AppointmentReminder)
class AppointmentReminderAdmin(admin.ModelAdmin):
    list_display = ('appointment', 'channel', 'recipient', 'scheduled_for', 'status', 'sent_at')
    list_filter = ('status', 'channel', 'recipient')
    search_fields = ('appointment__id',)


@admin.register(Occurrence)
class OccurrenceAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'professional', 'kind', 'intensity', 'source', 'created_at')
    list_filter = ('source',)
    search_fields = ('kind', 'patient__full_name', 'patient__cpf')


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'kind', 'severity', 'status', 'created_at', 'resolved_by')
    list_filter = ('status', 'severity', 'kind')
    search_fields = ('patient__full_name', 'patient__cpf', 'details')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'entity', 'entity_id', 'user', 'ip')
    list_filter = ('action', 'entity')
    search_fields = ('entity_id', 'user__email', 'ip')


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ('key', 'description', 'updated_by', 'updated_at')
    search_fields = ('key', 'description')
