"""Password hashing with bcrypt."""

import bcrypt

DEFAULT_ROUNDS = 12


def hash_password(plaintext: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with a fresh salt.

    Args:
        plaintext: The password as entered by the user.
        rounds: bcrypt cost factor (log2 of the iteration count).

    Returns:
        The bcrypt credential string, salt included.
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")


def verify_password(plaintext: str, credential: str) -> bool:
    """Check a password against a stored credential.

    A credential that is not a valid bcrypt hash never verifies.
    """
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), credential.encode("utf-8"))
    except ValueError:
        return False
