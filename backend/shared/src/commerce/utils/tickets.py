"""Ticket code generation for event registrations.

Codes look like ``7AK-3F9M-Q2XH`` and are shown to attendees with the
``NIH-`` brand prefix. The alphabet leaves out I, O, 0 and 1 so codes can be
read aloud and typed from a printout.
"""

import secrets

TICKET_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
TICKET_SEGMENTS = (3, 4, 4)
TICKET_PREFIX = "NIH-"


def generate_ticket_code() -> str:
    """Generate a random ticket code in XXX-XXXX-XXXX format."""
    return "-".join(
        "".join(secrets.choice(TICKET_ALPHABET) for _ in range(length))
        for length in TICKET_SEGMENTS
    )


def format_ticket_code(code: str) -> str:
    """Add the brand prefix for display (idempotent)."""
    if code.startswith(TICKET_PREFIX):
        return code
    return f"{TICKET_PREFIX}{code}"


def parse_ticket_code(code: str) -> str:
    """Strip the brand prefix and normalize case."""
    code = code.strip().upper()
    if code.startswith(TICKET_PREFIX):
        return code[len(TICKET_PREFIX):]
    return code
