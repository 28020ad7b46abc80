"""Event type constants.

Learn: Centralizing event types as constants prevents typos and
makes it easy to discover every event a hook can receive.
"""

# ─── Accounts & sessions ─────────────────────────────────

USER_SIGNED_UP = "user.signed_up"
USER_LOGGED_IN = "user.logged_in"
USER_LOGGED_OUT = "user.logged_out"
USER_LOGGED_OUT_ALL = "user.logged_out_all"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"
USER_AVATAR_UPDATED = "user.avatar_updated"
USER_AVATAR_DELETED = "user.avatar_deleted"

# ─── Tasks ───────────────────────────────────────────────

TASK_CREATED = "task.created"
TASK_UPDATED = "task.updated"
TASK_DELETED = "task.deleted"
