"""Hospital clinic app.

Departments, doctors, patients, appointments, medical records,
prescriptions, billing, reception and notifications, exposed as a JSON
API under ``/api/`` plus a small gateway to downstream services.
"""
