import re

MASK = "****"

def mask_email(email: str | None) -> str:
    """Show the first character of the local part and the domain only."""
    if not email or not isinstance(email, str):
        return MASK
    name, _, domain = email.partition("@")
    if not name or not domain:
        return MASK
    return f"{name[0]}***@{domain}"

def mask_phone(phone: str | None) -> str:
    """Show the last two digits only, e.g. ``9876543210`` -> ``********10``."""
    if not phone or not isinstance(phone, str):
        return MASK
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 2:
        return "********"
    return f"********{digits[-2:]}"

def mask_income(income: str | None) -> str:
    return MASK
