"""
Breach enforcement policies.

Two independent policies, invoked by the host on two events:

- password change: warn when the new password is breached
- login: after a successful credential check, force a password
  rotation when the submitted password is breached

Both fail open: an unreachable range service never blocks the user.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import asyncio
import logging
from typing import Any, Callable, Mapping

from pwnedcheck.accounts.base import AccountStore, AccountStoreError, RotationUpdateError
from pwnedcheck.breach.evaluator import BreachEvaluator
from pwnedcheck.enforcement.messages import PASSWORD_BREACHED
from pwnedcheck.enforcement.models import EnforcementOutcome, EnforcementResult, LoginStage

logger = logging.getLogger(__name__)

NEW_PASSWORD_FIELD = "new_password"

PasswordVerifier = Callable[[str, str], bool]


class BreachPolicy:
    """Host-facing entry points for breach enforcement."""

    def __init__(
        self,
        evaluator: BreachEvaluator,
        store: AccountStore,
        verify_password: PasswordVerifier,
    ):
        """Initialize policy.

        Args:
            evaluator: Breach evaluator (owns the range fetcher)
            store: Account storage collaborator
            verify_password: Host's ``(password, stored_hash) -> bool`` check
        """
        self.evaluator = evaluator
        self.store = store
        self.verify_password = verify_password

    # =========================================================================
    # Password change
    # =========================================================================

    def on_password_change(
        self,
        data: Mapping[str, Any],
        timeout: float | None = None,
    ) -> EnforcementResult:
        """Warn if the newly submitted password is breached.

        Only runs when the change payload carries a new password. Never
        blocks the change and never mutates stored state.
        """
        new_password = data.get(NEW_PASSWORD_FIELD)
        if new_password is None:
            return EnforcementResult(EnforcementOutcome.NO_ACTION)

        breached = self.evaluator.is_breached(new_password, timeout=timeout)
        return self._change_result(breached)

    async def on_password_change_async(
        self,
        data: Mapping[str, Any],
        timeout: float | None = None,
    ) -> EnforcementResult:
        """Awaitable variant of ``on_password_change``."""
        new_password = data.get(NEW_PASSWORD_FIELD)
        if new_password is None:
            return EnforcementResult(EnforcementOutcome.NO_ACTION)

        breached = await self.evaluator.is_breached_async(new_password, timeout=timeout)
        return self._change_result(breached)

    def _change_result(self, breached: bool) -> EnforcementResult:
        if not breached:
            return EnforcementResult(EnforcementOutcome.NO_ACTION)
        logger.info("New password found in breach corpus, warning user")
        return EnforcementResult(
            EnforcementOutcome.WARNING_ISSUED,
            message_key=PASSWORD_BREACHED,
        )

    # =========================================================================
    # Login
    # =========================================================================

    def on_login_attempt(
        self,
        username: str,
        password: str,
        timeout: float | None = None,
    ) -> EnforcementResult:
        """Force a password rotation if a verified login used a breached password.

        Raises:
            RotationUpdateError: If the account could not be flagged
        """
        stage, user_id = self._verify_login(username, password)
        if user_id is None:
            return EnforcementResult(EnforcementOutcome.NO_ACTION, stage=stage)

        breached = self.evaluator.is_breached(password, timeout=timeout)
        return self._login_result(user_id, breached)

    async def on_login_attempt_async(
        self,
        username: str,
        password: str,
        timeout: float | None = None,
    ) -> EnforcementResult:
        """Awaitable variant of ``on_login_attempt``.

        Store access and password verification run in a worker thread
        so a slow hash does not stall the event loop.
        """
        stage, user_id = await asyncio.to_thread(self._verify_login, username, password)
        if user_id is None:
            return EnforcementResult(EnforcementOutcome.NO_ACTION, stage=stage)

        breached = await self.evaluator.is_breached_async(password, timeout=timeout)
        return await asyncio.to_thread(self._login_result, user_id, breached)

    def _verify_login(self, username: str, password: str) -> tuple[LoginStage, int | None]:
        """Resolve and verify the account.

        Returns the furthest stage reached and the user id, which is
        None unless the password verified against the stored hash.
        """
        identity = self.store.find_account(username)
        if identity is None:
            logger.debug("Login check skipped: no matching account")
            return LoginStage.START, None

        stored_hash = identity.stored_credential_hash
        if stored_hash is None:
            stored_hash = self.store.get_password_hash(identity.user_id)
        if not stored_hash:
            logger.debug(f"Login check skipped: no stored credential for user {identity.user_id}")
            return LoginStage.IDENTITY_RESOLVED, None

        try:
            verified = self.verify_password(password, stored_hash)
        except ValueError:
            logger.debug(f"Login check skipped: unreadable credential for user {identity.user_id}")
            verified = False

        if not verified:
            return LoginStage.IDENTITY_RESOLVED, None

        return LoginStage.CREDENTIAL_VERIFIED, identity.user_id

    def _login_result(self, user_id: int, breached: bool) -> EnforcementResult:
        if not breached:
            return EnforcementResult(
                EnforcementOutcome.NO_ACTION,
                stage=LoginStage.BREACH_EVALUATED,
            )

        try:
            updated = self.store.mark_rotation_required(user_id)
        except AccountStoreError as e:
            logger.error(f"Breached password still active for user {user_id}: {e}")
            raise RotationUpdateError(user_id, str(e)) from e

        if not updated:
            logger.error(f"Breached password still active for user {user_id}: no account updated")
            raise RotationUpdateError(user_id, "no account updated")

        logger.info(f"Forced password rotation for user {user_id}")
        return EnforcementResult(
            EnforcementOutcome.ROTATION_FORCED,
            stage=LoginStage.BREACH_EVALUATED,
        )
