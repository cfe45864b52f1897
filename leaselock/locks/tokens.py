import uuid


def new_token() -> str:
    """Return a fresh 32 character hex session token."""
    return uuid.uuid4().hex
