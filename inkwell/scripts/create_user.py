"""
Create a user with any role (e.g. the first SUPERADMIN; registration only creates USERs).
Run from project root:
  python -m inkwell.scripts.create_user EMAIL USERNAME PASSWORD FIRST LAST [--role ROLE]
Example:
  python -m inkwell.scripts.create_user root@example.com root 'S3cure!pass' Site Owner --role SUPERADMIN
"""
import argparse
import sys

from pydantic import ValidationError
from sqlalchemy import func, or_

from inkwell.core.database import SessionLocal
from inkwell.core.roles import Role
from inkwell.core.security import hash_password
from inkwell.models import User
from inkwell.schemas.auth import RegisterRequest


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an Inkwell user with a chosen role.")
    parser.add_argument("email")
    parser.add_argument("username", help="Username (3-31 chars)")
    parser.add_argument("password", help="Password (8+ chars with upper, lower, digit, symbol)")
    parser.add_argument("first_name")
    parser.add_argument("last_name")
    parser.add_argument("--role", default=Role.USER.value, choices=[r.value for r in Role])
    args = parser.parse_args()

    try:
        body = RegisterRequest(
            email=args.email,
            username=args.username,
            password=args.password,
            first_name=args.first_name,
            last_name=args.last_name,
        )
    except ValidationError as e:
        for err in e.errors():
            print(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = (
            db.query(User)
            .filter(
                or_(
                    func.lower(User.email) == body.email,
                    func.lower(User.username) == body.username.lower(),
                )
            )
            .first()
        )
        if existing:
            print("A user with this email or username already exists.", file=sys.stderr)
            return 1
        user = User(
            email=body.email,
            username=body.username,
            first_name=body.first_name,
            last_name=body.last_name,
            password_hash=hash_password(body.password),
            role=args.role,
            is_active=True,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{body.username}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
