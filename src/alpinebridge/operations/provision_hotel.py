"""Provision (or rename) a hotel so the booking form can submit to it.

Usage:
    HOTEL_CODE=alpenhof HOTEL_NAME="Hotel Alpenhof" \
        python -m alpinebridge.operations.provision_hotel
"""

import os

from alpinebridge.infra.store import PostgresGuestRequestStore


def env(name: str, default: str | None = None) -> str:
    v = os.getenv(name, default)
    if v is None or v.strip() == "":
        raise RuntimeError(f"Missing env var: {name}")
    return v.strip()


def main() -> int:
    env("DATABASE_URL")
    hotel_code = env("HOTEL_CODE")
    hotel_name = env("HOTEL_NAME", hotel_code)

    created = PostgresGuestRequestStore().upsert_hotel(hotel_code, hotel_name)

    print(
        "provision ok:",
        {
            "hotel_code": hotel_code,
            "hotel_name": hotel_name,
            "created": created,
        },
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
