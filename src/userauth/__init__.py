"""userauth — minimal user-account API.

Register a user, log in for a signed session token, fetch the current
user, and update or delete your own record.
"""

__version__ = "0.1.0"
