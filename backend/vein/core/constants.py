"""
Centralized constants for sessions, lifecycle states and scheduler jobs.

Change job IDs, TTLs or retention windows here instead of scattering literals across main and routes.
"""

# Roles (stored lower-case; comparisons are case-insensitive)
ROLE_DONOR = "donor"
ROLE_VOLUNTEER = "volunteer"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_DONOR, ROLE_VOLUNTEER, ROLE_ADMIN)

USER_STATUS_ACTIVE = "active"
USER_STATUS_BLOCKED = "blocked"
USER_STATUSES = (USER_STATUS_ACTIVE, USER_STATUS_BLOCKED)

# Donation request lifecycle
STATUS_PENDING = "pending"
STATUS_INPROGRESS = "inprogress"
STATUS_DONE = "done"
STATUS_CANCELED = "canceled"
STATUS_EXPIRED = "expired"
DONATION_STATUSES = (STATUS_PENDING, STATUS_INPROGRESS, STATUS_DONE, STATUS_CANCELED, STATUS_EXPIRED)

# Status changes a client may request, keyed by the stored status. expired is set only by the sweep.
ALLOWED_STATUS_TRANSITIONS = {
    STATUS_PENDING: (STATUS_INPROGRESS, STATUS_CANCELED),
    STATUS_INPROGRESS: (STATUS_DONE, STATUS_CANCELED),
    STATUS_DONE: (),
    STATUS_CANCELED: (),
    STATUS_EXPIRED: (),
}

# Session credential
SESSION_COOKIE_NAME = "token"
SESSION_TTL_SECONDS = 60 * 60
JWT_ALGORITHM = "HS256"

# Notifications: purged this many days after creation, read or not
NOTIFICATION_RETENTION_DAYS = 30

# Scheduler job IDs (must match ids used in main.py add_job)
NOTIFICATION_RETENTION_JOB_ID = "notifications_retention"
EXPIRY_SWEEP_JOB_ID = "expiry_sweep"
NOTIFICATION_PURGE_INTERVAL_MINUTES = 60
EXPIRY_SWEEP_INTERVAL_MINUTES = 15
