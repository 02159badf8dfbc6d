"""
Create or promote a user (e.g. the first admin). Run from project root:
  python -m grievance_tracker.scripts.create_user EMAIL PASSWORD [role] [--name NAME] [--reset-password]
Example:
  python -m grievance_tracker.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from grievance_tracker.core.database import SessionLocal
from grievance_tracker.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN
from grievance_tracker.services.accounts import ensure_account

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote a Grievance Tracker user.")
    parser.add_argument("email", help="Email (exact match, 1-255 chars)")
    parser.add_argument("password", help=f"Password (1-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Replace the password when the account already exists",
    )
    args = parser.parse_args(argv)

    email = args.email.strip()
    if not email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email length.", file=sys.stderr)
        return 1
    if not args.password or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be 1-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user, created = ensure_account(
            db,
            email=email,
            password=args.password,
            name=args.name,
            role=args.role,
            reset_password=args.reset_password,
        )
        action = "Created" if created else "Updated"
        print(f"{action} user '{user.email}' with role '{user.role}'.")
        return 0
    except Exception as e:
        logger.exception("create_user failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
