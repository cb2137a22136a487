import hashlib

DISPLAY_RANGE = 10000


def generate_anonymous_id(guide_id: str) -> str:
    """Stable display label for a guide before a match is accepted. Collisions are possible."""
    digest = hashlib.sha256(str(guide_id).encode("utf-8")).hexdigest()
    number = int(digest[:8], 16) % DISPLAY_RANGE
    return f"Guide #{number:04d}"
