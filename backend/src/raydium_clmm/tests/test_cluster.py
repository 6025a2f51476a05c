import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

from raydium_clmm.cluster import KeypairSigner, create_session, detect_cluster, load_keypair_from_env
from raydium_clmm.errors import WalletCannotSign, WalletNotConnected


class TestDetectCluster:
    @pytest.mark.parametrize(
        "endpoint,expected",
        [
            ("https://api.devnet.solana.com", "devnet"),
            ("https://api.mainnet-beta.solana.com", "mainnet"),
            ("https://rpc.solana.com", "mainnet"),
            ("https://my-node.example.org", "devnet"),
            ("", "devnet"),
        ],
    )
    def test_substring_rules(self, endpoint, expected):
        assert detect_cluster(endpoint) == expected

    def test_falls_back_to_configured_default(self):
        assert detect_cluster("https://my-node.example.org", default="mainnet") == "mainnet"


class SignOneWallet:
    def __init__(self, keypair):
        self.keypair = keypair
        self.calls = 0

    @property
    def public_key(self):
        return self.keypair.pubkey()

    async def sign_transaction(self, tx):
        self.calls += 1
        return Transaction([self.keypair], tx.message, tx.message.recent_blockhash)


class DisconnectedWallet:
    public_key = None


class ReadOnlyWallet:
    def __init__(self, pubkey):
        self.public_key = pubkey


def unsigned_tx(payer):
    return Transaction.new_unsigned(Message.new_with_blockhash([], payer, Hash.default()))


class TestCreateSession:
    def test_prefers_batch_signing(self, signer, keypair):
        session = create_session(signer, "devnet")
        assert session.owner == keypair.pubkey()
        assert session.signing_mode == "batch"
        assert session.cluster == "devnet"

    @pytest.mark.asyncio
    async def test_falls_back_to_sequential_signing(self, keypair):
        wallet = SignOneWallet(keypair)
        session = create_session(wallet, "mainnet")
        assert session.signing_mode == "sequential"

        signed = await session.sign_all([unsigned_tx(keypair.pubkey()), unsigned_tx(keypair.pubkey())])

        assert wallet.calls == 2
        assert all(tx.signatures[0] != Signature.default() for tx in signed)

    def test_no_identity_is_not_connected(self):
        with pytest.raises(WalletNotConnected):
            create_session(DisconnectedWallet(), "devnet")
        with pytest.raises(WalletNotConnected):
            create_session(None, "devnet")

    def test_no_signing_capability(self, keypair):
        with pytest.raises(WalletCannotSign):
            create_session(ReadOnlyWallet(keypair.pubkey()), "devnet")

    @pytest.mark.asyncio
    async def test_keypair_signer_signs_batch(self, keypair):
        signed = await KeypairSigner(keypair).sign_all_transactions([unsigned_tx(keypair.pubkey())])
        signed[0].verify()


class TestLoadKeypair:
    def test_base58_secret(self, monkeypatch):
        kp = Keypair()
        monkeypatch.setenv("WALLET_PRIVATE_KEY", str(kp))
        assert load_keypair_from_env().pubkey() == kp.pubkey()

    def test_json_keypair_file(self, monkeypatch, tmp_path):
        kp = Keypair()
        path = tmp_path / "id.json"
        path.write_text(str(list(bytes(kp))))
        monkeypatch.delenv("WALLET_PRIVATE_KEY", raising=False)
        monkeypatch.setenv("WALLET_KEYPAIR_PATH", str(path))
        assert load_keypair_from_env().pubkey() == kp.pubkey()

    def test_missing_or_garbage(self, monkeypatch):
        monkeypatch.delenv("WALLET_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("WALLET_KEYPAIR_PATH", raising=False)
        assert load_keypair_from_env() is None
        monkeypatch.setenv("WALLET_PRIVATE_KEY", "tooshort")
        assert load_keypair_from_env() is None
