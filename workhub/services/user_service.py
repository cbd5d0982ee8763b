"""
User accounts: login, password flows and admin user management.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from workhub.core.config import settings
from workhub.core.constants import ADMIN_HOME_URL, EMPLOYEE_HOME_URL
from workhub.core.security import (
    create_access_token,
    hash_password,
    validate_new_password,
    verify_password,
)
from workhub.models.user import Role, User
from workhub.services.audit_service import log_audit
from workhub.services.results import ErrorCode, OperationResult

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."


def normalize_email(value: Optional[str]) -> str:
    """Complete a bare login name with the company domain."""
    value = (value or "").strip().lower()
    if value and "@" not in value:
        value = f"{value}@{settings.EMAIL_DOMAIN}"
    return value


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def redirect_for(user: User) -> str:
    return ADMIN_HOME_URL if user.is_admin else EMPLOYEE_HOME_URL


def login(db: Session, email: str, password: str) -> OperationResult:
    """
    Check credentials and issue an access token.

    An employee created by an admin gets no token until they have chosen
    their own password; data carries reset_required instead.
    """
    if not email or not password:
        return OperationResult.failed("Please enter both email and password.")

    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return OperationResult.failed(INVALID_CREDENTIALS, ErrorCode.UNAUTHORIZED)

    if user.must_change_password and user.role == Role.EMPLOYEE.value:
        return OperationResult(
            success=False,
            data={"reset_required": True, "user_id": user.id},
            error="Password change required.",
            error_code=ErrorCode.INVALID_STATE,
        )

    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    log_audit(db=db, actor_id=user.id, action="AUTH_LOGIN_SUCCESS", entity_type="auth", meta={"email": user.email})
    return OperationResult.ok({
        "access_token": token,
        "token_type": "bearer",
        "role": user.role,
        "redirect_url": redirect_for(user),
    })


def _check_new_password(user: User, new_password: str, confirm_password: str) -> Optional[str]:
    error = validate_new_password(new_password)
    if error:
        return error
    if new_password != confirm_password:
        return "Passwords do not match."
    if verify_password(new_password, user.password_hash):
        return "New password cannot be the same as your current password."
    return None


def complete_first_login(
    db: Session,
    email: str,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> OperationResult:
    """Replace the admin-issued temporary password and lift the first-login gate."""
    user = get_user_by_email(db, email)
    if user is None or not verify_password(current_password, user.password_hash):
        return OperationResult.failed(INVALID_CREDENTIALS, ErrorCode.UNAUTHORIZED)

    error = _check_new_password(user, new_password, confirm_password)
    if error:
        return OperationResult.failed(error)

    try:
        user.password_hash = hash_password(new_password)
        user.must_change_password = False
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("First login reset error: user_id=%s", user.id)
        return OperationResult.failed("Failed to reset password.", ErrorCode.INTERNAL)

    log_audit(db=db, actor_id=user.id, action="AUTH_FIRST_LOGIN_COMPLETE", entity_type="users", entity_id=user.id)
    return OperationResult.ok()


def change_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> OperationResult:
    if not current_password or not new_password or not confirm_password:
        return OperationResult.failed("All fields are required.")
    if not verify_password(current_password, user.password_hash):
        return OperationResult.failed("Incorrect current password.")

    error = _check_new_password(user, new_password, confirm_password)
    if error:
        return OperationResult.failed(error)

    try:
        user.password_hash = hash_password(new_password)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Change password error: user_id=%s", user.id)
        return OperationResult.failed("Failed to update password. Please try again.", ErrorCode.INTERNAL)

    log_audit(db=db, actor_id=user.id, action="AUTH_PASSWORD_CHANGE", entity_type="users", entity_id=user.id)
    return OperationResult.ok()


# --- Admin user management ---


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def user_counts(db: Session) -> Dict[str, int]:
    rows = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    return {
        "total": sum(rows.values()),
        "admins": rows.get(Role.ADMIN.value, 0),
        "employees": rows.get(Role.EMPLOYEE.value, 0),
    }


def _coerce_role(role: Optional[str]) -> Optional[str]:
    if role is None:
        return None
    try:
        return Role(role.strip().lower()).value
    except ValueError:
        return None


def add_user(
    db: Session,
    actor: User,
    name: str,
    email: str,
    password: str,
    role: Optional[str] = None,
) -> OperationResult:
    """Create an account with a temporary password; the user must change it on first login."""
    if not name or not email or not password:
        return OperationResult.failed("Missing required fields")
    error = validate_new_password(password)
    if error:
        return OperationResult.failed(error)
    role_value = _coerce_role(role or Role.EMPLOYEE.value)
    if role_value is None:
        return OperationResult.failed("Invalid role")

    user = User(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=hash_password(password),
        role=role_value,
        must_change_password=True,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        return OperationResult.failed("Failed to create user. Email might already exist.", ErrorCode.CONFLICT)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Add user error: email=%s", email)
        return OperationResult.failed("Failed to create user.", ErrorCode.INTERNAL)

    log_audit(db=db, actor_id=actor.id, action="USER_CREATE", entity_type="users", entity_id=user.id,
              meta={"email": user.email, "role": user.role})
    return OperationResult.ok(user, "User created successfully")


def update_user(
    db: Session,
    actor: User,
    user_id: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[str] = None,
) -> OperationResult:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return OperationResult.failed("User not found", ErrorCode.NOT_FOUND)

    changes = {}
    if name is not None:
        if not name.strip():
            return OperationResult.failed("Name cannot be empty")
        changes["name"] = name.strip()
    if email is not None:
        if not email.strip():
            return OperationResult.failed("Email cannot be empty")
        changes["email"] = normalize_email(email)
    if role is not None:
        role_value = _coerce_role(role)
        if role_value is None:
            return OperationResult.failed("Invalid role")
        changes["role"] = role_value

    try:
        for field, value in changes.items():
            setattr(user, field, value)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        return OperationResult.failed("Failed to update user. Email might already exist.", ErrorCode.CONFLICT)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Update user error: user_id=%s", user_id)
        return OperationResult.failed("Failed to update user", ErrorCode.INTERNAL)

    log_audit(db=db, actor_id=actor.id, action="USER_UPDATE", entity_type="users", entity_id=user.id, meta=changes)
    return OperationResult.ok(user, "User updated successfully")


def delete_user(db: Session, actor: User, user_id: int) -> OperationResult:
    if actor.id == user_id:
        return OperationResult.failed("You cannot delete your own account", ErrorCode.INVALID_STATE)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return OperationResult.failed("User not found", ErrorCode.NOT_FOUND)

    email = user.email
    try:
        db.delete(user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Delete user error: user_id=%s", user_id)
        return OperationResult.failed("Failed to delete user", ErrorCode.INTERNAL)

    log_audit(db=db, actor_id=actor.id, action="USER_DELETE", entity_type="users", entity_id=user_id,
              meta={"email": email})
    return OperationResult.ok(message="User deleted successfully")


def reset_user_password(db: Session, actor: User, user_id: int, password: str) -> OperationResult:
    """Admin sets a new temporary password; the user must change it again on next login."""
    error = validate_new_password(password)
    if error:
        return OperationResult.failed(error)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return OperationResult.failed("User not found", ErrorCode.NOT_FOUND)

    try:
        user.password_hash = hash_password(password)
        user.must_change_password = True
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Reset password error: user_id=%s", user_id)
        return OperationResult.failed("Failed to reset password", ErrorCode.INTERNAL)

    log_audit(db=db, actor_id=actor.id, action="USER_PASSWORD_RESET", entity_type="users", entity_id=user_id)
    return OperationResult.ok(message="Password reset successfully")


def ensure_initial_admin(db: Session) -> Optional[User]:
    """Create the bootstrap admin account when no admin exists yet."""
    if db.query(User).filter(User.role == Role.ADMIN.value).first() is not None:
        logger.info("Admin user already exists, skipping initial bootstrap")
        return None

    admin = User(
        name="System Administrator",
        email=normalize_email(settings.INITIAL_ADMIN_EMAIL),
        password_hash=hash_password(settings.INITIAL_ADMIN_PASSWORD),
        role=Role.ADMIN.value,
        must_change_password=False,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Initial admin user created: %s", admin.email)
    return admin
