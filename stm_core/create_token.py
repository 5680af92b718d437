"""
Print a signed token for a user, for local testing without the login service.

    python -m stm_core.create_token Peter
"""

import sys
from datetime import timedelta

from stm_core.api.helpers.authentication import create_token
from stm_core.config import settings


def main(argv: list[str]) -> int:
    if len(argv) != 1:
        print("usage: python -m stm_core.create_token <user>", file=sys.stderr)
        return 2

    print(
        create_token(
            argv[0],
            settings.secret_key,
            timedelta(minutes=settings.token_lifetime_minutes),
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
