import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from raydium_clmm.cluster import KeypairSigner, create_session
from raydium_clmm.config import WSOL_MINT, ClmmConfig
from raydium_clmm.pool_layout import decode_pool_state
from raydium_clmm.tests.fakes import DEVNET_CLMM, FakeRpc, account, build_pool_data


@pytest.fixture
def usdc_mint():
    return Pubkey.new_unique()


@pytest.fixture
def pool_address():
    return Pubkey.new_unique()


@pytest.fixture
def pool_data(usdc_mint):
    return build_pool_data(WSOL_MINT, usdc_mint, decimals_a=9, decimals_b=6)


@pytest.fixture
def rpc(pool_address, pool_data):
    return FakeRpc({pool_address: account(DEVNET_CLMM, pool_data)})


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def signer(keypair):
    return KeypairSigner(keypair)


@pytest.fixture
def session(signer):
    return create_session(signer, "devnet")


@pytest.fixture
def config():
    return ClmmConfig(rpc_url="https://api.devnet.solana.com", confirm_timeout_sec=5, confirm_poll_sec=0)


@pytest.fixture
def pool(pool_address, pool_data):
    return decode_pool_state(pool_address, DEVNET_CLMM, pool_data)
