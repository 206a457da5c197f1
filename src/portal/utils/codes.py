"""Random code generation for recharge cards and reward redemptions."""

import secrets
import string

CARD_ALPHABET = string.ascii_uppercase + string.digits
# Ambiguous glyphs (0/O, 1/I) are left out of codes that users read back to staff.
REDEMPTION_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def random_code(length: int, alphabet: str = CARD_ALPHABET) -> str:
    """Return a cryptographically random code of ``length`` characters."""

    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(code: str) -> str:
    """Canonical form used for lookups: trimmed, upper-case, no inner spaces or dashes."""

    return code.strip().upper().replace(" ", "").replace("-", "")
