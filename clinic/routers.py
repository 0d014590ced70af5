"""
URL mappings for the RotaOnco API.

Trailing slashes are deliberately omitted; both the web dashboard and the
mobile app call these paths verbatim.
"""
from django.urls import include, path

from .auth_views import jwt_refresh_view, login_view, logout_view, me_view, patient_pin_login_view
from .views import alerts, appointments, health, patients, professionals, reports, system_settings

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', logout_view, name='logout_view'),
    path('api/auth/me', me_view, name='me_view'),
    path('api/auth/patient-pin', patient_pin_login_view, name='patient_pin_login_view'),
    # Patients
    path('api/patients', patients.patients_collection, name='patients'),
    path('api/patients/search', patients.patients_search, name='patients_search'),
    path('api/patients/me', patients.patient_me, name='patient_me'),
    path('api/patients/me/appointments', patients.patient_me_appointments, name='patient_me_appointments'),
    path('api/patients/me/occurrences', patients.patient_me_occurrences, name='patient_me_occurrences'),
    path('api/patients/<int:pk>', patients.patient_detail_view, name='patient_detail'),
    path('api/patients/<int:pk>/occurrences', patients.patient_occurrences, name='patient_occurrences'),
    # Appointments
    path('api/appointments', appointments.appointments_collection, name='appointments'),
    path('api/appointments/<int:pk>', appointments.appointment_detail_view, name='appointment_detail'),
    path('api/appointments/<int:pk>/cancel', appointments.appointment_cancel, name='appointment_cancel'),
    path('api/appointments/<int:pk>/status', appointments.appointment_status, name='appointment_status'),
    path('api/appointments/<int:pk>/confirm', appointments.appointment_confirm, name='appointment_confirm'),
    path('api/appointments/<int:pk>/decline', appointments.appointment_decline, name='appointment_decline'),
    # Alerts
    path('api/alerts', alerts.alerts_list, name='alerts'),
    path('api/alerts/<int:pk>', alerts.alert_detail_view, name='alert_detail'),
    # Reports
    path('api/reports/attendance', reports.attendance_report, name='report_attendance'),
    path('api/reports/wait-times', reports.wait_times_report, name='report_wait_times'),
    path('api/reports/adherence', reports.adherence_report, name='report_adherence'),
    path('api/reports/alerts', reports.alerts_report, name='report_alerts'),
    # Professionals
    path('api/professionals', professionals.professionals_collection, name='professionals'),
    path('api/professionals/onboarding', professionals.professional_onboarding, name='professional_onboarding'),
    path('api/professionals/me', professionals.professional_me, name='professional_me'),
    path('api/professionals/me/password', professionals.professional_me_password, name='professional_me_password'),
    path('api/professionals/<int:pk>', professionals.professional_delete, name='professional_delete'),
    # Runtime settings
    path('api/settings', system_settings.settings_list, name='settings'),
    path('api/settings/<str:key>', system_settings.setting_update, name='setting_update'),
]
