"""
Data models for the RotaOnco clinical coordination API.

Professionals are Django users with roles attached through
:class:`UserRole`. Patients are not Django users: they authenticate with
their CPF and a numeric PIN, and each successful login opens a
:class:`PatientSession`. Appointments, occurrences and alerts hang off
the patient record; every write goes through the service layer, which
records an :class:`AuditLog` entry.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class Role(models.Model):
    ADMIN = "admin"
    PROFESSIONAL = "professional"

    name = models.CharField(max_length=32, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Professional account (doctor, nurse or administrator).

    ``username`` mirrors ``email`` so that Django's authentication
    backend can be used unchanged for e-mail logins.
    """

    name = models.CharField(max_length=120)
    email = models.EmailField(unique=True)
    document_id = models.CharField(max_length=11, unique=True, null=True, blank=True)
    specialty = models.CharField(max_length=120, null=True, blank=True)
    phone = models.CharField(max_length=20, null=True, blank=True)
    avatar_url = models.TextField(null=True, blank=True)
    must_change_password = models.BooleanField(default=False)
    roles = models.ManyToManyField(Role, through="UserRole", related_name="users", blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    def role_names(self) -> set[str]:
        return set(self.roles.values_list("name", flat=True))

    def __str__(self) -> str:
        return self.name or self.email


class UserRole(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="user_roles")
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="user_roles")
    assigned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("user", "role")

    def __str__(self) -> str:
        return f"{self.user_id}:{self.role.name}"


class Patient(models.Model):
    class Stage(models.TextChoices):
        PRE_TRIAGE = "pre_triage", "Pré-triagem"
        IN_TREATMENT = "in_treatment", "Em tratamento"
        POST_TREATMENT = "post_treatment", "Pós-tratamento"

    class Status(models.TextChoices):
        ACTIVE = "active", "Ativo"
        INACTIVE = "inactive", "Inativo"
        AT_RISK = "at_risk", "Em risco"

    full_name = models.CharField(max_length=160)
    cpf = models.CharField(max_length=11, unique=True)
    birth_date = models.DateField(null=True, blank=True)
    phone = models.CharField(max_length=20, null=True, blank=True)
    emergency_phone = models.CharField(max_length=20, null=True, blank=True)
    tumor_type = models.CharField(max_length=120, null=True, blank=True)
    clinical_unit = models.CharField(max_length=120, null=True, blank=True)
    stage = models.CharField(max_length=20, choices=Stage.choices, default=Stage.PRE_TRIAGE)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    audio_material_url = models.URLField(max_length=500, null=True, blank=True)
    pin_hash = models.CharField(max_length=255)
    pin_attempts = models.PositiveSmallIntegerField(default=0)
    pin_blocked_until = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.cpf})"


class PatientContact(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="contacts")
    full_name = models.CharField(max_length=160)
    relation = models.CharField(max_length=60)
    phone = models.CharField(max_length=20)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.relation})"


class PatientStatusHistory(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="status_history")
    stage = models.CharField(max_length=20, choices=Patient.Stage.choices)
    status = models.CharField(max_length=20, choices=Patient.Status.choices)
    reason = models.CharField(max_length=255, null=True, blank=True)
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-recorded_at"]


class PatientSession(models.Model):
    """A PIN login. The signed cookie carries this row's id."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="sessions")
    expires_at = models.DateTimeField()
    revoked_at = models.DateTimeField(null=True, blank=True)
    ip = models.CharField(max_length=64, null=True, blank=True)
    user_agent = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None and self.expires_at > timezone.now()


class Appointment(models.Model):
    class Type(models.TextChoices):
        TRIAGE = "triage", "Triagem"
        TREATMENT = "treatment", "Tratamento"
        RETURN = "return", "Retorno"

    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Agendada"
        CONFIRMED = "confirmed", "Confirmada"
        COMPLETED = "completed", "Realizada"
        NO_SHOW = "no_show", "Falta"
        CANCELED = "canceled", "Cancelada"

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="appointments")
    professional = models.ForeignKey(User, on_delete=models.PROTECT, related_name="appointments")
    starts_at = models.DateTimeField()
    type = models.CharField(max_length=20, choices=Type.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SCHEDULED)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["patient", "starts_at"], name="appt_patient_starts_idx"),
            models.Index(fields=["professional", "starts_at"], name="appt_prof_starts_idx"),
        ]

    def __str__(self) -> str:
        return f"#{self.pk} {self.patient_id} @ {self.starts_at:%Y-%m-%d %H:%M}"


class AppointmentReminder(models.Model):
    class Channel(models.TextChoices):
        WHATSAPP = "whatsapp", "WhatsApp"
        SMS = "sms", "SMS"

    class Recipient(models.TextChoices):
        PATIENT = "patient", "Paciente"
        PROFESSIONAL = "professional", "Profissional"

    class Status(models.TextChoices):
        QUEUED = "queued", "Na fila"
        SENT = "sent", "Enviado"
        FAILED = "failed", "Falhou"

    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name="reminders")
    channel = models.CharField(max_length=20, choices=Channel.choices)
    recipient = models.CharField(max_length=20, choices=Recipient.choices)
    scheduled_for = models.DateTimeField()
    sent_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.QUEUED)
    error = models.TextField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["appointment", "channel", "recipient", "scheduled_for"],
                name="uniq_appointment_reminder",
            ),
        ]


class Occurrence(models.Model):
    class Source(models.TextChoices):
        PATIENT = "patient", "Paciente"
        PROFESSIONAL = "professional", "Profissional"

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="occurrences")
    professional = models.ForeignKey(User, on_delete=models.PROTECT, related_name="occurrences")
    kind = models.CharField(max_length=120)
    intensity = models.PositiveSmallIntegerField()
    source = models.CharField(max_length=20, choices=Source.choices)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)


class Alert(models.Model):
    class Severity(models.TextChoices):
        LOW = "low", "Baixa"
        MEDIUM = "medium", "Média"
        HIGH = "high", "Alta"

    class Status(models.TextChoices):
        OPEN = "open", "Aberto"
        ACKNOWLEDGED = "acknowledged", "Reconhecido"
        CLOSED = "closed", "Fechado"

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="alerts")
    kind = models.CharField(max_length=60)
    severity = models.CharField(max_length=10, choices=Severity.choices, default=Severity.MEDIUM)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN)
    details = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="resolved_alerts"
    )

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="alert_status_created_idx"),
        ]


class AuditLog(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="audit_logs")
    action = models.CharField(max_length=64)
    entity = models.CharField(max_length=64)
    entity_id = models.CharField(max_length=64, null=True, blank=True)
    details = models.JSONField(default=dict, blank=True)
    ip = models.CharField(max_length=64, null=True, blank=True)
    user_agent = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["entity", "entity_id"], name="audit_entity_idx"),
            models.Index(fields=["action", "created_at"], name="audit_action_created_idx"),
        ]


class Setting(models.Model):
    """Runtime key/value configuration editable by administrators."""

    key = models.CharField(max_length=100, primary_key=True)
    value = models.JSONField(null=True, blank=True)
    description = models.CharField(max_length=255, null=True, blank=True)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.key
