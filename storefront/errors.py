"""
Common Error Constants

Centralized error messages shared by the HTTP layer.
"""

# Auth errors
ERROR_INVALID_TOKEN = "Invalid or expired access token"

# Session errors
ERROR_SESSION_REQUIRED = "X-Cart-Session header is required"
