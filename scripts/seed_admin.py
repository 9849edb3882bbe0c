import argparse
from pathlib import Path
import sys

from sqlalchemy import select

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from fleetgate.core.config import get_settings
from fleetgate.core.security import hash_password
from fleetgate.db.session import get_session_factory
from fleetgate.models.admin import Admin


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create or update an operator account.")
    parser.add_argument("--login", default=settings.bootstrap_admin_login)
    parser.add_argument("--password", default=settings.bootstrap_admin_password)
    parser.add_argument("--role", default="admin", choices=("admin", "operator"))
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    with get_session_factory()() as db:
        operator = db.scalar(select(Admin).where(Admin.login == args.login))
        action = "updated" if operator else "created"
        if operator is None:
            operator = Admin(login=args.login)
        operator.password_hash = hash_password(args.password)
        operator.role = args.role
        db.add(operator)
        db.commit()
    print(f"Operator {args.login} ({args.role}) {action}.")


if __name__ == "__main__":
    main()
