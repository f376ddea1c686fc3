"""One-shot Gmail watch registration for an existing account."""

from __future__ import annotations

import argparse
import asyncio

from loguru import logger

from inboxtrack.application.ports.account_store import AccountStore
from inboxtrack.application.ports.mailbox_gateway import MailboxGateway
from inboxtrack.domain.errors import CryptoError, GatewayError
from inboxtrack.infrastructure.security.token_vault import TokenVault


async def register_watch(
    email: str,
    accounts: AccountStore,
    vault: TokenVault,
    gateway: MailboxGateway,
) -> str | None:
    """Start Gmail push for ``email`` and seed its checkpoint.

    Returns the history id Gmail reported, or None when the account cannot
    be watched.
    """
    account = await asyncio.to_thread(accounts.find_by_email, email)
    if account is None or account.credential is None:
        logger.error(f"No account with a stored credential for {email}")
        return None

    try:
        credential = vault.decrypt(account.credential)
        registration = await gateway.register_watch(credential)
    except (CryptoError, GatewayError) as e:
        logger.error(f"Watch registration failed for {email}: {e}")
        return None

    advanced = await asyncio.to_thread(accounts.advance_checkpoint, account.id, registration.history_id)
    if advanced:
        logger.info(f"Watching {email}, checkpoint set to {registration.history_id}")
    else:
        logger.info(f"Watching {email}, kept existing checkpoint {account.last_history_id}")
    return registration.history_id


def main() -> int:
    parser = argparse.ArgumentParser(description="Register a Gmail push watch for an account")
    parser.add_argument("--email", required=True, help="Mailbox address of the account")
    args = parser.parse_args()

    from inboxtrack.infrastructure.gmail.client import gmail_gateway_from_settings
    from inboxtrack.infrastructure.log_config import configure_logging
    from inboxtrack.infrastructure.security.token_vault import token_vault_from_settings
    from inboxtrack.infrastructure.settings import get_settings
    from inboxtrack.infrastructure.sqlite.client import get_sqlite_client
    from inboxtrack.infrastructure.stores import SQLiteAccountStore

    settings = get_settings()
    configure_logging(settings.log_level)

    history_id = asyncio.run(
        register_watch(
            args.email,
            accounts=SQLiteAccountStore(get_sqlite_client()),
            vault=token_vault_from_settings(settings),
            gateway=gmail_gateway_from_settings(settings),
        )
    )
    if history_id is None:
        return 1
    print(f"Watch registered for {args.email} (historyId {history_id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
