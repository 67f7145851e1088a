"""
Concurrency tests for the transfer engine.

Many transfers run at once as separate asyncio tasks against the same
accounts. These tests verify:
  - Opposite-direction transfers on the same pair all complete (no deadlock)
  - No update is lost: final balances equal the serial result
  - A balance never goes negative under contention
  - Money is conserved across a ring of accounts
"""

import asyncio

from transfer_api.exceptions import InsufficientBalanceError
from transfer_api.models.transaction import TransactionStatus


class TestOppositeDirections:
    async def test_pairwise_transfers_all_complete(
        self, transfer_service, make_account, balance_of, count_transactions
    ):
        await make_account(1, "100.00")
        await make_account(2, "100.00")
        n = 10

        results = await asyncio.gather(
            *[transfer_service.transfer(1, 2, "1.00") for _ in range(n)],
            *[transfer_service.transfer(2, 1, "1.00") for _ in range(n)],
        )

        assert all(r.status == TransactionStatus.COMPLETED.value for r in results)
        assert await balance_of(1) == "100.00"
        assert await balance_of(2) == "100.00"
        assert await count_transactions(TransactionStatus.COMPLETED.value) == 2 * n

    async def test_one_direction_no_lost_updates(
        self, transfer_service, make_account, balance_of
    ):
        await make_account(1, "100")
        await make_account(2, "0")

        await asyncio.gather(
            *[transfer_service.transfer(1, 2, "0.12345") for _ in range(20)]
        )

        assert await balance_of(1) == "97.531"
        assert await balance_of(2) == "2.469"


class TestContention:
    async def test_balance_never_goes_negative(
        self, transfer_service, make_account, balance_of, count_transactions
    ):
        """Ten 1.00 debits race for 5.00: exactly five succeed."""
        await make_account(1, "5.00")
        await make_account(2, "0")

        results = await asyncio.gather(
            *[transfer_service.transfer(1, 2, "1.00") for _ in range(10)],
            return_exceptions=True,
        )

        completed = [r for r in results if not isinstance(r, BaseException)]
        declined = [r for r in results if isinstance(r, InsufficientBalanceError)]
        assert len(completed) == 5
        assert len(declined) == 5

        assert await balance_of(1) == "0.00"
        assert await balance_of(2) == "5.00"
        assert await count_transactions(TransactionStatus.FAILED.value) == 5

    async def test_ring_conserves_money(
        self, transfer_service, make_account, balance_of
    ):
        for account_id in (1, 2, 3):
            await make_account(account_id, "50")

        ring = [(1, 2), (2, 3), (3, 1)]
        await asyncio.gather(
            *[
                transfer_service.transfer(source, destination, "2.5")
                for _ in range(5)
                for source, destination in ring
            ]
        )

        for account_id in (1, 2, 3):
            assert await balance_of(account_id) == "50.00"
