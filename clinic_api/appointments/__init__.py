"""
Appointment scheduling for the medical clinic system.

This module provides:
- Half-open time intervals and the overlap predicate
- The appointment entity and its status state machine
- Doctor availability checks
- Booking, status changes, rescheduling and deletion
"""
