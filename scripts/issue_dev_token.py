"""
Issue Development Token

Mints a signed access token for one of the demo actors so the API can be
exercised locally without the external identity provider.

Usage:
    python scripts/issue_dev_token.py director
    python scripts/issue_dev_token.py student --minutes 480
"""

import argparse
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.config import settings  # noqa: E402
from app.core.security import create_access_token  # noqa: E402

DEMO_ACTORS = {
    "director": {
        "sub": "1",
        "name": "Dr. Carlos Silva",
        "role": "director",
        "school": "Escola Primária São João",
        "city": "Maputo",
    },
    "student": {
        "sub": "3",
        "name": "Maria Silva",
        "role": "student",
        "school": "Escola Técnica de Gaza",
        "city": "Gaza",
        "class_name": "11B",
        "grade": "11",
        "national_id": "987654321",
    },
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Mint a JWT for a demo actor")
    parser.add_argument("actor", choices=sorted(DEMO_ACTORS))
    parser.add_argument("--minutes", type=int, default=None, help="Token lifetime")
    args = parser.parse_args()

    if settings.is_production:
        print("Refusing to mint demo tokens with PYTHON_ENV=production", file=sys.stderr)
        sys.exit(1)

    token = create_access_token(subject=DEMO_ACTORS[args.actor], expires_minutes=args.minutes)
    print(token)


if __name__ == "__main__":
    main()
