#!/usr/bin/env python3
"""Script to delete clients duplicating an earlier client's name or e-mail.

Names and contact e-mails are compared case-insensitively; the oldest
client in each group is kept.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from convops.api.dependencies import get_storage
from convops.models import Client


def find_duplicates(clients: list[Client]) -> list[tuple[Client, str]]:
    """Clients to remove, each with the reason it duplicates an older one."""
    seen_names: set[str] = set()
    seen_emails: set[str] = set()
    duplicates = []

    for client in sorted(clients, key=lambda c: c.created_at):
        name = client.name.strip().lower()
        email = (client.contact_email or "").strip().lower()

        if name in seen_names:
            duplicates.append((client, f"name: {name}"))
            continue
        if email and email in seen_emails:
            duplicates.append((client, f"email: {email}"))
            continue

        seen_names.add(name)
        if email:
            seen_emails.add(email)

    return duplicates


async def main():
    parser = argparse.ArgumentParser(description="Remove duplicate clients")
    parser.add_argument("--dry-run", action="store_true", help="Only list what would be removed")

    args = parser.parse_args()

    storage = get_storage()
    duplicates = find_duplicates(await storage.list_clients())

    if not duplicates:
        print("No duplicate clients found")
        return

    for client, reason in duplicates:
        if args.dry_run:
            print(f"Would remove {client.id} ({client.name}), duplicate {reason}")
        else:
            await storage.delete_client(client.id)
            print(f"Removed {client.id} ({client.name}), duplicate {reason}")

    print(f"\nTotal duplicates {'found' if args.dry_run else 'removed'}: {len(duplicates)}")


if __name__ == "__main__":
    asyncio.run(main())
