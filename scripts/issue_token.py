"""Print a bearer token for local testing.

Usage: python scripts/issue_token.py <user_id> <student|faculty|admin>
"""

from __future__ import annotations

import argparse
import importlib

from dotenv import load_dotenv

from class_attendance.config import get_settings_module
from class_attendance.core.enums import Role
from class_attendance.users.service import IdentityService


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", type=int)
    parser.add_argument("role", choices=[r.value for r in Role])
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    identity = IdentityService(
        settings.JWT_SECRET,
        algorithm=getattr(settings, "JWT_ALGORITHM", "HS256"),
        token_ttl_hours=int(getattr(settings, "TOKEN_TTL_HOURS", 24)),
    )
    print(identity.issue_token(args.user_id, Role(args.role)))


if __name__ == "__main__":
    main()
