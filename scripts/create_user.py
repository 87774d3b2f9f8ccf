import argparse
import getpass
import os
import sys

# Add project root to path
sys.path.append(os.getcwd())

from warroom.database import Base, SessionLocal, engine
import warroom.models  # noqa: F401
from warroom.data.user_manager import UserManager
from warroom.models.user import UserRole
from warroom.utils.password_validation import validate_password
from warroom.utils.security import get_password_hash


def create_user(args) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    manager = UserManager()
    manager.set_db(db)

    try:
        if manager.get_user_by_login(args.login):
            print(f"User {args.login} already exists.")
            return 1

        password = args.password or getpass.getpass(f"Password for {args.login}: ")
        is_valid, error_message = validate_password(password)
        if not is_valid:
            print(error_message)
            return 1

        role = UserRole.ADMIN if args.admin else UserRole.MEMBER
        user = manager.add_user(
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email,
            hashed_password=get_password_hash(password),
            role=role.value,
            login=args.login,
            company=args.company,
        )
        print(f"Created {role.value} {user.login} ({user.user_id}).")
        return 0
    except ValueError as e:
        print(f"Failed to create user: {e}")
        return 1
    finally:
        db.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a war room account.")
    parser.add_argument("login")
    parser.add_argument("--email")
    parser.add_argument("--first-name", dest="first_name")
    parser.add_argument("--last-name", dest="last_name")
    parser.add_argument("--company")
    parser.add_argument("--password", help="Prompted for when omitted")
    parser.add_argument("--admin", action="store_true")
    return create_user(parser.parse_args())


if __name__ == "__main__":
    sys.exit(main())
