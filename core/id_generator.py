import random
import re
import string

# Two-digit entity postfixes
TYPE_POSTFIX = {
    "travel_schedules": 11,
    "job_postings": 12,
    "saved_jobs": 13,
    "job_applications": 14,
}

_BASE36 = string.digits + string.ascii_lowercase


def generate_random_id(entity: str) -> int:
    """Return an 8-digit id: 6 random digits + 2-digit postfix."""
    if entity not in TYPE_POSTFIX:
        raise ValueError(f"Unknown entity for ID generation: {entity}")
    rand6 = random.randint(0, 999_999)
    postfix = TYPE_POSTFIX[entity]
    return rand6 * 100 + postfix


def random_suffix(length: int = 6) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def generate_slug(title: str) -> str:
    """
    URL-safe slug for a job posting: lowercased title, whitespace runs turned
    into hyphens, anything outside [A-Za-z0-9_-] dropped, plus a random
    base36 suffix so equal titles never collide.
    """
    base = re.sub(r"\s+", "-", title.lower())
    base = re.sub(r"[^\w-]+", "", base, flags=re.ASCII)
    return f"{base}-{random_suffix()}"


def generate_username(email: str | None) -> str:
    """Bootstrap username derived from the email local part."""
    local_part = (email or "").split("@")[0] or "user"
    safe = re.sub(r"[^a-z0-9_]", "_", local_part.lower())
    return f"{safe}_{random_suffix()}"
