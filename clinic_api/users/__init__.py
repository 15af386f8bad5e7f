"""
User directory for the clinic scheduling system.

Doctors, patients and staff are users distinguished by role. The scheduling
core uses this module to confirm that a booking names a real doctor and patient.
"""
