"""SQLite implementation of AccountStore, including the history checkpoint."""

from __future__ import annotations

import sqlite3
from typing import Optional

from loguru import logger

from inboxtrack.application.ports.account_store import AccountStore
from inboxtrack.domain.models import EncryptedCredential, UserAccount, history_is_after
from inboxtrack.infrastructure.sqlite.client import SQLiteClient


def _from_row(row: sqlite3.Row) -> UserAccount:
    credential = None
    if row["credential_iv"] and row["credential_ciphertext"]:
        credential = EncryptedCredential(iv=row["credential_iv"], ciphertext=row["credential_ciphertext"])
    return UserAccount(
        id=row["id"],
        provider_account_id=row["provider_account_id"],
        email=row["email"],
        name=row["name"],
        credential=credential,
        last_history_id=row["last_history_id"],
        created_at=row["created_at"],
    )


class SQLiteAccountStore(AccountStore):
    def __init__(self, client: SQLiteClient):
        self.client = client

    def get(self, user_id: str) -> Optional[UserAccount]:
        with self.client.connection() as conn:
            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (user_id,)).fetchone()
        return _from_row(row) if row else None

    def find_by_email(self, email: str) -> Optional[UserAccount]:
        with self.client.connection() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE email = ? ORDER BY created_at LIMIT 1",
                (email.strip(),),
            ).fetchone()
        return _from_row(row) if row else None

    def upsert(self, account: UserAccount) -> UserAccount:
        """Create or refresh an account keyed by provider account id.

        Profile and credential are overwritten; the checkpoint is left to
        advance_checkpoint so a login never rewinds it.
        """
        iv = account.credential.iv if account.credential else None
        ciphertext = account.credential.ciphertext if account.credential else None

        with self.client.connection() as conn:
            conn.execute(
                """INSERT INTO accounts
                   (id, provider_account_id, email, name, credential_iv, credential_ciphertext,
                    last_history_id, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(provider_account_id) DO UPDATE SET
                       email = excluded.email,
                       name = excluded.name,
                       credential_iv = COALESCE(excluded.credential_iv, accounts.credential_iv),
                       credential_ciphertext = COALESCE(excluded.credential_ciphertext, accounts.credential_ciphertext)""",
                (
                    account.id,
                    account.provider_account_id,
                    account.email,
                    account.name,
                    iv,
                    ciphertext,
                    account.last_history_id,
                    account.created_at.isoformat(),
                ),
            )
            row = conn.execute(
                "SELECT * FROM accounts WHERE provider_account_id = ?",
                (account.provider_account_id,),
            ).fetchone()
        return _from_row(row)

    def advance_checkpoint(self, user_id: str, history_id: str) -> bool:
        """Move the checkpoint forward; refuses to move it backward."""
        with self.client.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT last_history_id FROM accounts WHERE id = ?", (user_id,)
            ).fetchone()
            if row is None:
                logger.warning(f"Cannot advance checkpoint: account {user_id} not found")
                return False

            current = row["last_history_id"]
            if current and not history_is_after(history_id, current):
                if current != history_id:
                    logger.warning(
                        f"Refusing to move checkpoint for {user_id} backward ({current} -> {history_id})"
                    )
                return False

            conn.execute(
                "UPDATE accounts SET last_history_id = ? WHERE id = ?",
                (history_id, user_id),
            )
        logger.debug(f"Checkpoint for {user_id} -> {history_id}")
        return True
