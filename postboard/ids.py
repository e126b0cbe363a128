import re
import uuid

# 8-4-4-4-12 lowercase hex, version nibble 4, variant nibble 8/9/a/b
ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def new_id() -> str:
    """Return a fresh random (version 4) identifier for a new row."""
    return str(uuid.uuid4())
