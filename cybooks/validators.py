import re
from typing import Optional


class EmailValidator:
    """Syntax check for member email addresses.

    Local part: ASCII letters, digits and ``+_.-``; domain: letters, digits,
    ``.`` and ``-``; exactly one ``@`` and no whitespace.
    """

    EMAIL_PATTERN = re.compile(r"[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+")

    @staticmethod
    def is_valid_email(email: Optional[str]) -> bool:
        if not email:
            return False
        return EmailValidator.EMAIL_PATTERN.fullmatch(email) is not None
