"""Clinical coordination app for RotaOnco.

Patients, appointments, occurrences, alerts, reports and the
professional directory all live here, exposed as a REST API.
"""
