# rentals/accounts.py
# Staff accounts: self-registration, admin management and own profile.
from flask import current_app

from rentals.errors import AuthenticationError, ValidationError
from rentals.extensions import db
from rentals.models import Building, Incident, MeterReading, Notification, Payment, User


def _check_email_free(email, exclude_id=None):
    if not email:
        raise ValidationError("Email is required")
    q = User.query.filter(User.email == email)
    if exclude_id:
        q = q.filter(User.id != exclude_id)
    if q.first():
        raise ValidationError("Email is already registered")


def create_user(data: dict) -> User:
    _check_email_free(data.get("email"))
    user = User(
        name=data["name"].strip(),
        email=data["email"],
        phone=data.get("phone"),
        role=data.get("role") or "staff",
        is_active=data.get("is_active", True),
    )
    user.set_password(data["password"])
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("user %s created (%s)", user.email, user.role)
    return user


def register_user(data: dict) -> User:
    """Public sign-up; always a staff account, whatever the payload says."""
    if not current_app.config.get("ALLOW_REGISTRATION", True):
        raise ValidationError("Registration is disabled")
    return create_user({**data, "role": "staff", "is_active": True})


def update_user(user: User, changes: dict, acting_user=None) -> User:
    if "email" in changes and changes["email"] != user.email:
        _check_email_free(changes["email"], exclude_id=user.id)

    if acting_user is not None and acting_user.id == user.id:
        if changes.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account")
        if changes.get("role") not in (None, user.role):
            raise ValidationError("You cannot change your own role")

    password = changes.pop("password", None)
    if password:
        user.set_password(password)
    for field, value in changes.items():
        if value is None and field != "address":
            continue
        setattr(user, field, value)
    db.session.commit()
    return user


def _references(user: User) -> list:
    found = []
    for model, column, label in (
        (Building, Building.owner_id, "buildings"),
        (Payment, Payment.recorded_by_id, "payments"),
        (MeterReading, MeterReading.recorded_by_id, "meter readings"),
        (Notification, Notification.sender_id, "notifications"),
        (Incident, Incident.handler_id, "incidents"),
    ):
        if model.query.filter(column == user.id).first():
            found.append(label)
    return found


def delete_user(user: User, acting_user) -> None:
    if acting_user is not None and acting_user.id == user.id:
        raise ValidationError("You cannot delete your own account")
    refs = _references(user)
    if refs:
        raise ValidationError(f"User is referenced by {', '.join(refs)}; deactivate it instead")
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("user %s deleted", user.email)


def update_profile(user: User, changes: dict) -> User:
    current = changes.pop("current_password", None)
    new = changes.pop("new_password", None)
    if new:
        if not user.check_password(current or ""):
            raise AuthenticationError("Current password is incorrect")
        user.set_password(new)

    for field in ("name", "phone", "address", "avatar"):
        if field in changes:
            if changes[field] is None and field == "name":
                continue
            setattr(user, field, changes[field])
    db.session.commit()
    return user
