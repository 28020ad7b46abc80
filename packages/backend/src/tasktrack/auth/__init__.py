"""Authentication and authorization.

Learn: Users authenticate with email/password and receive a session token
(a signed JWT). Each token is also stored in the user's active-session
list; a request is authenticated only when the token verifies AND is still
in that list. Logging out removes it, logging out everywhere clears it.

The authenticated user becomes the request's RequestContext, and every
task/profile operation downstream is scoped to that user's id.
"""
