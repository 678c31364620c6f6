# contest_portal/utils/validators.py
import re
from typing import Any, Dict, List, Tuple

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as SchemaError

from contest_portal.domain.statuses import ParticipantType

_EMAIL = TypeAdapter(EmailStr)
# wymagany format miedzynarodowy: +<kod kraju><numer>
_PHONE_RE = re.compile(r"^\+\d{1,3}\d{9,14}$")
_PHONE_STRIP_RE = re.compile(r"[\s\-()]")

_PHONE_FORMAT_HINT = "Invalid phone number format (use format: +94771234567)"


def sanitize_input(value: str) -> str:
    return value.strip().replace("<", "").replace(">", "")


def is_valid_email(value: str | None) -> bool:
    # ta sama walidacja co EmailStr w schematach (email-validator)
    if not value:
        return False
    try:
        _EMAIL.validate_python(value)
    except SchemaError:
        return False
    return True


def is_valid_phone(value: str | None) -> bool:
    if not value:
        return False
    return bool(_PHONE_RE.match(_PHONE_STRIP_RE.sub("", value)))


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def _check_phone(value: str | None, missing: str, errors: List[str]):
    if _blank(value):
        errors.append(missing)
    elif not is_valid_phone(value):
        errors.append(_PHONE_FORMAT_HINT)


def validate_member_info(member: Dict[str, Any], participant_type: str) -> Tuple[bool, List[str]]:
    """
    Walidacja danych uczestnika. Wymagane pola zaleza od typu zgloszenia:
    - KIDS: dane opiekuna + data urodzenia + adres,
    - STUDENT: mail studencki, uczelnia, kierunek, legitymacja,
    - pozostale: email + telefon.
    """
    errors: List[str] = []

    if _blank(member.get("name")) or len(member["name"].strip()) < 2:
        errors.append("Name must be at least 2 characters")

    if participant_type == ParticipantType.KIDS:
        if not is_valid_email(member.get("parent_email")):
            errors.append("Valid parent/guardian email is required")
        _check_phone(member.get("parent_phone"), "Parent/guardian phone number is required", errors)
        if _blank(member.get("parent_first_name")):
            errors.append("Parent/guardian first name is required")
        if _blank(member.get("parent_last_name")):
            errors.append("Parent/guardian last name is required")
        if _blank(member.get("date_of_birth")):
            errors.append("Child's date of birth is required")
        if _blank(member.get("postal_address")):
            errors.append("Postal address is required for kids registrations")
    elif participant_type == ParticipantType.STUDENT:
        if not is_valid_email(member.get("student_email")):
            errors.append("Valid student email is required")
        _check_phone(member.get("phone"), "Phone number is required", errors)
        if _blank(member.get("institution")):
            errors.append("Institution name is required for student registrations")
        if _blank(member.get("course_of_study")):
            errors.append("Course of study is required for student registrations")
        if _blank(member.get("date_of_birth")):
            errors.append("Date of birth is required for student registrations")
        if _blank(member.get("id_card_url")):
            errors.append("Student ID card upload is required for student registrations")
    else:
        if not is_valid_email(member.get("email")):
            errors.append("Valid email is required")
        _check_phone(member.get("phone"), "Phone number is required", errors)

    return len(errors) == 0, errors


def sanitize_member(member: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: sanitize_input(value) if isinstance(value, str) else value
        for key, value in member.items()
        if value is not None
    }
