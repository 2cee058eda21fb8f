"""Random resource names.

Web app names must be globally unique (they become <name>.azurewebsites.net),
so every resource created by the sample gets a random numeric suffix.
"""

import secrets

# Web app names are limited to 60 characters
MAX_NAME_LENGTH = 60
SUFFIX_DIGITS = 8


def create_random_name(prefix: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Generate a resource name from a prefix and a random numeric suffix.

    Args:
        prefix: Name prefix (letters, digits and hyphens)
        max_length: Maximum length of the generated name

    Returns:
        str: Name such as "rgMonitor48213907"

    Raises:
        ValueError: If the prefix is empty or leaves no room for the suffix

    Examples:
        >>> create_random_name("rgMonitor")  # doctest: +SKIP
        'rgMonitor48213907'
    """
    if not prefix:
        raise ValueError("prefix must not be empty")
    if len(prefix) + SUFFIX_DIGITS > max_length:
        raise ValueError(
            f"prefix {prefix!r} too long: name would exceed {max_length} characters"
        )

    suffix = "".join(str(secrets.randbelow(10)) for _ in range(SUFFIX_DIGITS))
    return f"{prefix}{suffix}"
