"""Credential store: user registration and password validation.

Users live on the "credentials" bind. Passwords are hashed with werkzeug's
salted generate_password_hash before storage and verified with
check_password_hash; the plain password is never stored or logged.

Both functions return (user, error_message) tuples.
"""

import logging
import re

from werkzeug.security import check_password_hash, generate_password_hash

from fluxx.extensions import db
from fluxx.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."

REQUIRED_FIELDS = ["email", "password", "firstname", "lastname", "reference_id"]

# Reference IDs name upload folders, so keep them to path-safe characters.
REFERENCE_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")


def _normalize_email(email):
    return (email or "").lower().strip()


def is_valid_reference_id(reference_id):
    return isinstance(reference_id, str) and bool(REFERENCE_ID_RE.fullmatch(reference_id))


def register_user(email, password, firstname, lastname, role=None,
                  department=None, reference_id=None, manager=None, tsm=None):
    """Create a user if the email is not taken.

    Returns:
        tuple: (user, error_message)
            - On success: (User, None). The caller commits.
            - On failure: (None, "reason string")
    """
    email = _normalize_email(email)
    fields = {
        "email": email,
        "password": password,
        "firstname": (firstname or "").strip(),
        "lastname": (lastname or "").strip(),
        "reference_id": (reference_id or "").strip(),
    }
    missing = [name for name in REQUIRED_FIELDS if not fields[name]]
    if missing:
        return None, f"Missing required fields: {', '.join(missing)}."

    if not is_valid_reference_id(fields["reference_id"]):
        return None, "Reference ID may only contain letters, digits, '-' and '_'."

    if len(password) < 8:
        return None, "Password must be at least 8 characters."

    if User.query.filter_by(email=email).first():
        return None, "Email already in use."

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        firstname=fields["firstname"],
        lastname=fields["lastname"],
        role=role,
        department=department,
        reference_id=fields["reference_id"],
        manager=manager,
        tsm=tsm,
    )
    db.session.add(user)
    db.session.flush()

    logger.info(f"Registered user {email} ({fields['reference_id']})")
    return user, None


def validate_user(email, password, department=None):
    """Check an email/password pair.

    Unknown email, wrong password and department mismatch all produce the
    same message so the response does not reveal which accounts exist.

    Returns:
        tuple: (user, error_message)
    """
    email = _normalize_email(email)
    if not email or not password:
        return None, INVALID_CREDENTIALS

    user = User.query.filter_by(email=email).first()
    if user is None or not check_password_hash(user.password_hash, password):
        return None, INVALID_CREDENTIALS

    if department and user.department and department != user.department:
        logger.info(f"Login for {email} rejected: department mismatch")
        return None, INVALID_CREDENTIALS

    return user, None
