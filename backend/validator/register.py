"""Account registration parameters."""
from core.validation import BaseValidator, Rule

PASSWORD_PATTERN = (
    r"^(?![0-9]+$)(?![a-z]+$)(?![A-Z]+$)(?![,.#%'+*\-:;^_`]+$)"
    r"[,.#%'+*\-:;^_`0-9A-Za-z]{6,20}$"
)


class RegisterValidator(BaseValidator):
    email = [
        Rule("isEmail", "email address is not valid"),
    ]
    password1 = [
        Rule("isLength", "password must be 6 to 32 characters", {"min": 6, "max": 32}),
        Rule("matches", "password must mix letters, digits or symbols", PASSWORD_PATTERN),
    ]
    password2 = password1
    nickname = [
        Rule("isLength", "nickname must be 4 to 32 characters", {"min": 4, "max": 32}),
    ]
    like = [
        Rule("isLength", "hobby must be 2 to 32 characters", {"min": 2, "max": 32}),
        Rule("isOptional", "", "none"),
    ]

    def validate_password(self, params):
        body = params["body"]
        if body.get("password1") != body.get("password2"):
            raise ValueError("passwords do not match")
