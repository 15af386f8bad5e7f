"""
Clinic Scheduling API.

FastAPI backend for a medical clinic: a directory of doctors and patients and
appointment booking that never double-books a doctor.
"""
