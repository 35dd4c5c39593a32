#!/usr/bin/env python3
"""
FinDash - Entry point for running the application.

Usage:
    python main.py                              # Run web server
    python main.py --create-token user-1        # Issue a bearer token
    python main.py --revoke-token tok_... --user user-1
"""

import argparse
import asyncio
import logging

import uvicorn

from findash import Database, FinDashError, Settings, TokenManager
from findash.config import get_config

config = get_config()
logging.basicConfig(level=config.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def create_token(user_id: str, name: str, expires_days: int | None) -> None:
    """Issue a token and print it once."""
    db = Database()
    await db.connect()
    await Settings().init_defaults()
    try:
        token, info = await TokenManager(db).create_token(user_id, name, expires_in_days=expires_days)
        print(f"Token id:   {info.id}")
        print(f"Expires at: {info.expires_at or 'never'}")
        print(f"Token:      {token}")
        print("Store this token now; it cannot be shown again.")
    finally:
        await db.close()


async def revoke_token(token_id: str, user_id: str) -> None:
    db = Database()
    await db.connect()
    try:
        await TokenManager(db).revoke(token_id, user_id)
        print(f"Revoked {token_id}")
    finally:
        await db.close()


def main():
    parser = argparse.ArgumentParser(description="FinDash Financial Operations Dashboard")
    parser.add_argument("--host", default=config.host, help="Web server host")
    parser.add_argument("--port", type=int, default=config.port, help="Web server port")
    parser.add_argument("--create-token", metavar="USER_ID", help="Issue a bearer token for a user and exit")
    parser.add_argument("--token-name", default="cli", help="Label for --create-token")
    parser.add_argument(
        "--expires-days",
        type=int,
        default=config.token_default_expiry_days,
        help="Days until the new token expires (0 for never)",
    )
    parser.add_argument("--revoke-token", metavar="TOKEN_ID", help="Revoke a token and exit (needs --user)")
    parser.add_argument("--user", help="Owner of the token for --revoke-token")
    args = parser.parse_args()

    try:
        if args.create_token:
            asyncio.run(create_token(args.create_token, args.token_name, args.expires_days or None))
            return
        if args.revoke_token:
            if not args.user:
                parser.error("--revoke-token requires --user")
            asyncio.run(revoke_token(args.revoke_token, args.user))
            return
    except FinDashError as e:
        parser.exit(1, f"error: {e.message}\n")

    # The app's lifespan (findash.app) connects the DB in the same loop that serves requests
    logger.info(f"Running web server on {args.host}:{args.port}")
    uvicorn.run("findash.app:app", host=args.host, port=args.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
