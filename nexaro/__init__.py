"""
Nexaro CRM Backend

Multi-tenant business management API: organizations, their team members,
clients, services and bookings, with invitation-based onboarding.
"""

__version__ = "1.0.0"
