from __future__ import annotations

import re
from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _


class PasswordComplexityValidator:
    """Require a digit and a symbol in every password.

    Rules (in addition to minimum length configured separately):
    - At least one digit
    - At least one special character from the accepted symbol set
    """

    digit = re.compile(r"\d")
    symbol = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

    def validate(self, password: str, user=None):  # noqa: D401
        if not self.digit.search(password):
            raise ValidationError(_("Password must contain a number."))
        if not self.symbol.search(password):
            raise ValidationError(_("Password must contain a special character."))

    def get_help_text(self):  # noqa: D401
        return _("Password must include at least one number and one special character.")
