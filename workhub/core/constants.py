"""
Service-wide constants
"""

SERVICE_NAME = "workhub-backend"

DEFAULT_VERSION = "1.0.0"

ADMIN_HOME_URL = "/admin"
EMPLOYEE_HOME_URL = "/employee-dashboard"
