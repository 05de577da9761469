#!/usr/bin/env python3
"""
Command-line interface for the QR code manager.

Usage:
    dynqr init-db
    dynqr create-link <url>
    dynqr create-vcard --first-name NAME --last-name NAME [--email E] [--phone P] ...
    dynqr list
    dynqr get <id>
    dynqr delete <id>
    dynqr clear-all --yes
    dynqr resolve <short_id>

The store is chosen with --database-url (default: DATABASE_URL, else memory://).
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Optional

from .common.logging_config import setup_logging
from .database import create_store
from .database.cache import RedisCache
from .errors import QRManagerError
from .resolver import RedirectTo
from .service import QRCodeService
from .shortid import ShortIdGenerator


class QRManagerCLI:
    """Command-line interface for the QR code manager."""

    def __init__(
        self,
        database_url: str,
        redis_url: Optional[str] = None,
        base_url: str = "http://localhost:3000",
        custom_short_domain: Optional[str] = None,
        production: bool = False,
        verbose: bool = False,
    ):
        """Initialize CLI."""
        self.database_url = database_url
        self.redis_url = redis_url
        self.base_url = base_url
        self.custom_short_domain = custom_short_domain
        self.production = production
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.store = None
        self.service = None

    async def initialize(self):
        """Initialize store and service."""
        self.store = create_store(self.database_url, logger=self.logger)

        cache = None
        if self.redis_url:
            cache = RedisCache(redis_url=self.redis_url, logger=self.logger)
            await cache.connect()

        self.service = QRCodeService(
            store=self.store,
            cache=cache,
            short_id_generator=ShortIdGenerator(),
            logger=self.logger,
            production=self.production,
            custom_short_domain=self.custom_short_domain,
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    def _print(self, payload) -> int:
        print(json.dumps(payload, indent=2))
        return 0

    def _summary(self, record) -> dict:
        return {
            **record.to_dict(),
            "qrUrl": self.service.resolution_url(record, self.base_url),
        }

    async def init_db(self) -> int:
        ensure = getattr(self.store, "ensure_tables", None)
        if ensure is None:
            return self._print({"success": True, "message": "Store needs no tables"})
        await ensure()
        return self._print({"success": True, "message": "Tables initialized"})

    async def create(self, kind: str, data: dict) -> int:
        record = await self.service.create(kind, data)
        return self._print({"success": True, **self._summary(record)})

    async def list(self) -> int:
        records = await self.service.list_all()
        return self._print([self._summary(r) for r in records])

    async def get(self, record_id: int) -> int:
        record = await self.service.get_record(record_id)
        return self._print(self._summary(record))

    async def delete(self, record_id: int) -> int:
        await self.service.delete(record_id)
        return self._print({"success": True})

    async def clear_all(self) -> int:
        deleted = await self.service.clear_all()
        return self._print({"success": True, "deleted": deleted})

    async def resolve(self, short_id: str) -> int:
        resolution = await self.service.resolver.resolve(short_id)
        if isinstance(resolution, RedirectTo):
            return self._print({"action": "redirect", "url": resolution.url})
        return self._print({
            "action": "download",
            "filename": resolution.filename,
            "contentType": resolution.content_type,
            "content": resolution.content.decode("utf-8"),
        })


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dynamic QR code manager CLI")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "memory://"),
        help="Record store URL (memory://, sqlite:///path.db, postgresql://...)",
    )
    parser.add_argument("--redis-url", default=os.getenv("REDIS_URL"), help="Redis URL (optional)")
    parser.add_argument(
        "--base-url",
        default=os.getenv("BASE_URL", "http://localhost:3000"),
        help="Public origin used in printed resolution URLs",
    )
    parser.add_argument("--custom-short-domain", default=os.getenv("CUSTOM_SHORT_DOMAIN"))
    parser.add_argument(
        "--production",
        action="store_true",
        default=os.getenv("ENVIRONMENT", "development") == "production",
        help="Reject links to local or private hosts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables for SQL stores")

    link = sub.add_parser("create-link", help="Create a link QR code")
    link.add_argument("url")

    vcard = sub.add_parser("create-vcard", help="Create a contact card QR code")
    vcard.add_argument("--first-name", required=True)
    vcard.add_argument("--last-name", required=True)
    vcard.add_argument("--email")
    vcard.add_argument("--phone")
    vcard.add_argument("--organization")
    vcard.add_argument("--title")
    vcard.add_argument("--website")

    sub.add_parser("list", help="List QR codes")

    get = sub.add_parser("get", help="Show one QR code")
    get.add_argument("id", type=int)

    delete = sub.add_parser("delete", help="Delete one QR code")
    delete.add_argument("id", type=int)

    clear = sub.add_parser("clear-all", help="Delete every QR code")
    clear.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    resolve = sub.add_parser("resolve", help="Show what scanning a short id does")
    resolve.add_argument("short_id")

    return parser


async def run(args: argparse.Namespace) -> int:
    cli = QRManagerCLI(
        database_url=args.database_url,
        redis_url=args.redis_url,
        base_url=args.base_url,
        custom_short_domain=args.custom_short_domain,
        production=args.production,
        verbose=args.verbose,
    )

    try:
        await cli.initialize()

        if args.command == "init-db":
            return await cli.init_db()
        if args.command == "create-link":
            return await cli.create("link", {"url": args.url})
        if args.command == "create-vcard":
            data = {
                "firstName": args.first_name,
                "lastName": args.last_name,
                "email": args.email,
                "phone": args.phone,
                "organization": args.organization,
                "title": args.title,
                "website": args.website,
            }
            return await cli.create("vcard", data)
        if args.command == "list":
            return await cli.list()
        if args.command == "get":
            return await cli.get(args.id)
        if args.command == "delete":
            return await cli.delete(args.id)
        if args.command == "clear-all":
            if not args.yes:
                print(json.dumps({"success": False, "error": "Pass --yes to delete every QR code"}), file=sys.stderr)
                return 1
            return await cli.clear_all()
        if args.command == "resolve":
            return await cli.resolve(args.short_id)

        return 1

    except QRManagerError as e:
        print(json.dumps({"success": False, "error": e.message}, indent=2), file=sys.stderr)
        return 1
    finally:
        await cli.cleanup()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
