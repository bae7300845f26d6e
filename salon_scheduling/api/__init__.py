"""
Salon Scheduling API

Structure:
    api/
    ├── __init__.py              # This file
    ├── appointment_api.py       # Whitelisted scheduling endpoints
    └── security.py              # Rate limiting, honeypot and input validation

Usage:
    frappe.call("salon_scheduling.api.appointment_api.get_available_slots", ...)
"""
