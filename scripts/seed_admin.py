"""Seed an administrator account.

Admins cannot sign up through the public endpoints; this script is the only
way to create one.
"""

import os

from app import create_app
from models import db
from models.user import PROVIDER_LOCAL, ROLE_ADMIN, User
from services.passwords import PasswordHasher

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")


def main() -> None:
    if not ADMIN_PASSWORD:
        raise SystemExit("Set ADMIN_PASSWORD before seeding the admin account.")

    app = create_app()
    with app.app_context():
        hasher = PasswordHasher(app.config.get("PASSWORD_HASH_METHOD", "scrypt"))
        admin = User.query.filter_by(email=ADMIN_EMAIL).first()
        if admin is None:
            admin = User(
                email=ADMIN_EMAIL,
                role=ROLE_ADMIN,
                provider=PROVIDER_LOCAL,
                is_verified=True,
            )
            db.session.add(admin)
            action = "created"
        else:
            admin.role = ROLE_ADMIN
            admin.is_verified = True
            action = "updated"
        admin.password_hash = hasher.hash(ADMIN_PASSWORD)
        db.session.commit()
        print(f"Admin user {action}: {ADMIN_EMAIL}")


if __name__ == "__main__":
    main()
