# create_user.py - bootstrap a user with a given role (e.g. the first admin)
import sys

from bookkeeping.core.config import settings
from bookkeeping.db import models
from bookkeeping.db.session import build_engine, build_session_factory
from bookkeeping.services.security import check_password_policy, hash_password


def create_user(email: str, password: str, name: str, role: str, session_factory=None) -> int:
    try:
        role = models.Role(role).value
    except ValueError:
        print("Unknown role:", role, "- expected one of", ", ".join(r.value for r in models.Role))
        return 2
    try:
        check_password_policy(password)
    except ValueError as exc:
        print("Weak password:", exc)
        return 2

    if session_factory is None:
        session_factory = build_session_factory(build_engine(settings.DATABASE_URL))
    db = session_factory()
    try:
        user = db.query(models.User).filter(models.User.email == email).first()
        if user:
            # existing account: promote and reset the password
            user.role = role
            user.hashed_password = hash_password(password)
            action = "Updated"
        else:
            user = models.User(email=email, name=name, role=role, hashed_password=hash_password(password))
            action = "Created"
        db.add(user)
        db.commit()
        print(f"{action} {role} {email} (id={user.id})")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print("Usage: python create_user.py <email> <password> <name> [role]")
        sys.exit(2)
    role = sys.argv[4] if len(sys.argv) > 4 else models.Role.admin.value
    sys.exit(create_user(sys.argv[1], sys.argv[2], sys.argv[3], role))
