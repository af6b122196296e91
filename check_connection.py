"""
Backend connection diagnostic script.
Checks the DATABASE_URL format, tries a query and reports Cloudinary configuration.

Usage:
    uv run python check_connection.py
"""
import asyncio
import os
from urllib.parse import urlparse

from dotenv import load_dotenv

EXPECTED_SCHEME = "postgresql+asyncpg"


def inspect_database_url(database_url: str) -> list[str]:
    """
    Return the problems found in a connection string; empty when it looks right.
    """
    if not database_url:
        return ["DATABASE_URL is not set"]

    try:
        parsed = urlparse(database_url)
    except ValueError as e:
        return [f"DATABASE_URL could not be parsed: {str(e)}"]

    issues = []
    if parsed.scheme == "postgresql":
        issues.append(f"Scheme should be '{EXPECTED_SCHEME}' for async operations")
    elif parsed.scheme != EXPECTED_SCHEME:
        issues.append(f"Scheme '{parsed.scheme}' is invalid, expected '{EXPECTED_SCHEME}'")
    if not parsed.username:
        issues.append("Username is missing")
    if not parsed.password:
        issues.append("Password is missing")
    if not parsed.hostname:
        issues.append("Hostname is missing")
    return issues


async def check_database(database_url: str) -> None:
    from sqlalchemy import text
    from sqlalchemy.ext.asyncio import create_async_engine

    engine = create_async_engine(database_url)
    try:
        async with engine.begin() as conn:
            items = (await conn.execute(text("SELECT COUNT(*) FROM items"))).scalar()
            settings_rows = (await conn.execute(text("SELECT COUNT(*) FROM settings"))).scalar()
        print(f"[OK] Database reachable: {items} item(s), {settings_rows} settings row(s)")
        if settings_rows != 1:
            print("[WARN] Expected exactly one settings row; start the app once to create it")
    except Exception as e:
        print(f"[ERROR] Database check failed ({type(e).__name__}): {str(e)}")
    finally:
        await engine.dispose()


def main() -> None:
    load_dotenv()
    database_url = os.getenv("DATABASE_URL", "")

    print("=" * 70)
    print("Catalog Backend Verification")
    print("=" * 70)

    issues = inspect_database_url(database_url)
    if issues:
        print("[WARN] Found potential issues:")
        for issue in issues:
            print(f"  - {issue}")
        print()
        print("Recommended format:")
        print(f"  {EXPECTED_SCHEME}://postgres:PASSWORD@HOSTNAME:5432/postgres")
    else:
        print("[OK] Connection string format looks correct")

    if database_url:
        asyncio.run(check_database(database_url))

    cloudinary_vars = ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
    missing = [name for name in cloudinary_vars if not os.getenv(name)]
    if missing:
        print(f"[WARN] Cloudinary not configured, missing: {', '.join(missing)}")
    else:
        print("[OK] Cloudinary credentials are set")

    if not os.getenv("ADMIN_PASSWORD_HASH"):
        print("[WARN] ADMIN_PASSWORD_HASH is not set; the CMS will reject every request")

    print("=" * 70)


if __name__ == "__main__":
    main()
