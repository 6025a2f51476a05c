import asyncio

import pytest
from solders.pubkey import Pubkey

from raydium_clmm.config import ClusterProgramIds, WSOL_MINT
from raydium_clmm.errors import PoolNotFound
from raydium_clmm.resolver import PoolResolver
from raydium_clmm.snapshot import PoolSnapshotService
from raydium_clmm.tests.fakes import DEVNET_CLMM, FakeRpc, account, build_pool_data


class GatedRpc(FakeRpc):
    """Holds get_account_info for an address until its gate is opened."""

    def __init__(self, accounts):
        super().__init__(accounts)
        self.gates = {}

    async def _get_account_info(self, pubkey, encoding="base64", commitment=None):
        gate = self.gates.get(pubkey)
        if gate is not None:
            await gate.wait()
        return await super()._get_account_info(pubkey, encoding, commitment)


@pytest.fixture
def two_pools():
    return Pubkey.new_unique(), Pubkey.new_unique()


@pytest.fixture
def gated_rpc(two_pools):
    pool_a, pool_b = two_pools
    return GatedRpc(
        {
            pool_a: account(DEVNET_CLMM, build_pool_data(WSOL_MINT, Pubkey.new_unique(), tick_current=1)),
            pool_b: account(DEVNET_CLMM, build_pool_data(WSOL_MINT, Pubkey.new_unique(), tick_current=2)),
        }
    )


@pytest.fixture
def snapshots(gated_rpc):
    return PoolSnapshotService(PoolResolver(gated_rpc, ClusterProgramIds().allow_list()), {str(WSOL_MINT): "SOL"})


class TestRefresh:
    @pytest.mark.asyncio
    async def test_snapshot_fields(self, snapshots, two_pools):
        update = await snapshots.refresh(str(two_pools[0]))

        assert update.ok
        assert update.snapshot.id == str(two_pools[0])
        assert update.snapshot.mint_a.symbol == "SOL"
        assert update.snapshot.tick_current == 1
        assert snapshots.current is update

    @pytest.mark.asyncio
    async def test_last_request_wins_when_first_answers_late(self, snapshots, gated_rpc, two_pools):
        pool_a, pool_b = two_pools
        gated_rpc.gates[pool_a] = asyncio.Event()

        slow_a = asyncio.ensure_future(snapshots.refresh(str(pool_a)))
        await asyncio.sleep(0)
        update_b = await snapshots.refresh(str(pool_b))
        gated_rpc.gates[pool_a].set()

        assert await slow_a is None
        assert update_b.snapshot.id == str(pool_b)
        assert snapshots.current.snapshot.id == str(pool_b)

    @pytest.mark.asyncio
    async def test_invalid_address_skips_network(self, snapshots, gated_rpc):
        update = await snapshots.refresh("nope")

        assert not update.ok
        assert update.error == "Enter a valid CLMM pool address."
        assert update.error_kind == "InvalidAddress"
        gated_rpc.get_account_info.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, snapshots):
        update = await snapshots.refresh(str(Pubkey.new_unique()))
        assert update.error_kind == "PoolNotFound"
        assert update.snapshot is None

    @pytest.mark.asyncio
    async def test_cancel_drops_inflight_result(self, snapshots, gated_rpc, two_pools):
        pool_a = two_pools[0]
        gated_rpc.gates[pool_a] = asyncio.Event()

        pending = asyncio.ensure_future(snapshots.refresh(str(pool_a)))
        await asyncio.sleep(0)
        snapshots.cancel()
        gated_rpc.gates[pool_a].set()

        assert await pending is None
        assert snapshots.current is None

    @pytest.mark.asyncio
    async def test_fetch_snapshot_raises(self, snapshots):
        with pytest.raises(PoolNotFound):
            await snapshots.fetch_snapshot(str(Pubkey.new_unique()))


class TestWatch:
    @pytest.mark.asyncio
    async def test_address_change_cancels_pending_fetch(self, snapshots, gated_rpc, two_pools):
        pool_a, pool_b = two_pools
        gated_rpc.gates[pool_a] = asyncio.Event()

        async def addresses():
            yield str(pool_a)
            await asyncio.sleep(0)
            yield str(pool_b)

        updates = [u async for u in snapshots.watch(addresses())]

        assert [u.snapshot.id for u in updates] == [str(pool_b)]
        assert snapshots.current.snapshot.id == str(pool_b)

    @pytest.mark.asyncio
    async def test_each_settled_address_is_yielded(self, snapshots, two_pools):
        pool_a, pool_b = two_pools

        async def addresses():
            yield str(pool_a)
            await asyncio.sleep(0.01)
            yield "bad-address"

        updates = [u async for u in snapshots.watch(addresses())]

        assert updates[0].snapshot.id == str(pool_a)
        assert updates[-1].error_kind == "InvalidAddress"
