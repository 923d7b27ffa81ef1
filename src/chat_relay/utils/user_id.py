import re

_DISALLOWED_CHARACTERS = re.compile(r"[^a-zA-Z0-9_-]")


def derive_user_id(email: str) -> str:
    """Map an email address to the identifier shared by the database and the presence provider.

    Every character outside '[A-Za-z0-9_-]' is replaced by an underscore, so
    'ana@x.com' becomes 'ana_x_com'. The mapping is pure: the same email always
    yields the same identifier.
    """
    return _DISALLOWED_CHARACTERS.sub("_", email)
