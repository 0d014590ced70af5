"""
Management command to populate the database with demo data.

Safe to run repeatedly: records are looked up by their natural keys
(e-mail, CPF, appointment slot) before being created.
"""
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clinic.models import Alert, Appointment, Occurrence, Patient, Role, User
from clinic.services.alerts import ABSENCE_ALERT_KIND
from clinic.services.patients import record_status
from clinic.services.professionals import assign_role
from clinic.services.sessions import hash_pin

DEMO_PIN = "1234"
DEMO_PASSWORD = "rotaonco2025"

PROFESSIONALS = [
    {"email": "admin@rotaonco.local", "name": "Administração RotaOnco", "document_id": "00000000001",
     "specialty": None, "roles": [Role.ADMIN, Role.PROFESSIONAL]},
    {"email": "oncologista@rotaonco.local", "name": "Dra. Helena Prado", "document_id": "00000000002",
     "specialty": "Oncologia clínica", "roles": [Role.PROFESSIONAL]},
]

PATIENTS = [
    {"cpf": "12345678901", "full_name": "Maria Aparecida Souza", "tumor_type": "Mama",
     "clinical_unit": "Ambulatório A", "stage": Patient.Stage.IN_TREATMENT,
     "audio_material_url": "https://example.org/audio/quimioterapia.mp3"},
    {"cpf": "98765432100", "full_name": "João Batista Lima", "tumor_type": "Próstata",
     "clinical_unit": "Ambulatório B", "stage": Patient.Stage.PRE_TRIAGE, "audio_material_url": None},
]


class Command(BaseCommand):
    help = "Populate the database with demo roles, professionals, patients and history (idempotent)."

    @transaction.atomic
    def handle(self, *args, **options):
        for name in (Role.ADMIN, Role.PROFESSIONAL):
            Role.objects.get_or_create(name=name)

        professionals = [self.ensure_professional(entry) for entry in PROFESSIONALS]
        patients = [self.ensure_patient(entry) for entry in PATIENTS]
        doctor = professionals[1]

        now = timezone.now().replace(minute=0, second=0, microsecond=0)
        first, second = patients
        self.ensure_appointment(first, doctor, now + timedelta(days=2, hours=1), Appointment.Type.TREATMENT)
        self.ensure_appointment(first, doctor, now - timedelta(days=14), Appointment.Type.TRIAGE,
                                Appointment.Status.COMPLETED)
        self.ensure_appointment(second, doctor, now - timedelta(days=7), Appointment.Type.TRIAGE,
                                Appointment.Status.NO_SHOW)
        self.ensure_appointment(second, doctor, now - timedelta(days=3), Appointment.Type.RETURN,
                                Appointment.Status.NO_SHOW)

        if not Occurrence.objects.filter(patient=first).exists():
            Occurrence.objects.create(patient=first, professional=doctor, kind="Náusea", intensity=5,
                                      source=Occurrence.Source.PATIENT, notes="Após a sessão de quimioterapia")
            Alert.objects.create(patient=first, kind="patient_symptom", severity=Alert.Severity.MEDIUM,
                                 details='Paciente relatou "Náusea" com intensidade 5/10.')
        if not Alert.objects.filter(patient=second, kind=ABSENCE_ALERT_KIND).exists():
            Alert.objects.create(patient=second, kind=ABSENCE_ALERT_KIND, severity=Alert.Severity.MEDIUM,
                                 details="Paciente faltou 2 consultas consecutivas.")
            second.status = Patient.Status.AT_RISK
            second.save(update_fields=["status", "updated_at"])
            record_status(second, reason="Faltas consecutivas")

        self.stdout.write(self.style.SUCCESS(
            f"Demo data ready: {len(professionals)} professionals, {len(patients)} patients (PIN {DEMO_PIN})"
        ))

    def ensure_professional(self, entry) -> User:
        user = User.objects.filter(email=entry["email"]).first()
        if user is None:
            user = User.objects.create_user(
                username=entry["email"],
                email=entry["email"],
                password=DEMO_PASSWORD,
                name=entry["name"],
                document_id=entry["document_id"],
                specialty=entry["specialty"],
                is_staff=Role.ADMIN in entry["roles"],
                is_superuser=Role.ADMIN in entry["roles"],
            )
        for role in entry["roles"]:
            assign_role(user, role)
        self.stdout.write(f"ok: {user.email} {sorted(user.role_names())}")
        return user

    def ensure_patient(self, entry) -> Patient:
        values = {k: v for k, v in entry.items() if k != "cpf"}
        patient, created = Patient.objects.get_or_create(
            cpf=entry["cpf"], defaults={**values, "pin_hash": hash_pin(DEMO_PIN)}
        )
        if created:
            record_status(patient, reason="Cadastro inicial")
        return patient

    def ensure_appointment(self, patient, professional, starts_at, type_, status=Appointment.Status.SCHEDULED):
        Appointment.objects.get_or_create(
            patient=patient,
            professional=professional,
            type=type_,
            defaults={"starts_at": starts_at, "status": status},
        )
