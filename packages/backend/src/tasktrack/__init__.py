"""tasktrack — multi-user task tracking API.

Users sign up, log in from any number of devices, and manage their own
tasks. Every bearer token is a session entry on the user record, so a
single device (or every device) can be logged out at any time.
"""

__version__ = "0.1.0"
