"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import Dict, List, Optional, Sequence

import pytest

from rollup_wallet.config import WalletConfig
from rollup_wallet.core.types import (
    EthSignerType,
    FeeType,
    SignedPayload,
    SignedTransaction,
    TokenLike,
    TxEthSignature,
)
from rollup_wallet.core.wallet import Wallet
from rollup_wallet.provider.interface import (
    AccountNotFoundError,
    AccountState,
    AccountStateSnapshot,
    ProviderInterface,
    TransactionFee,
)
from rollup_wallet.provider.tokens import Token, TokenSet
from rollup_wallet.signer.eth import EthAccountSigner
from rollup_wallet.signer.interface import L2Signer


# Well-known development key; never holds funds.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

RECIPIENT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
OTHER_RECIPIENT = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

NEW_PUB_KEY_HASH = "sync:" + "ab" * 20
OLD_PUB_KEY_HASH = "sync:" + "00" * 20

DEFAULT_FEE = 1000


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> WalletConfig:
    """Create a test configuration."""
    return WalletConfig(
        eth_private_key=TEST_PRIVATE_KEY,
        log_level="DEBUG",
    )


# ============================================================================
# Test Tokens
# ============================================================================

def generate_test_tokens() -> TokenSet:
    """Generate the token set served by the mock provider."""
    return TokenSet([
        Token(id=0, address="0x" + "00" * 20, symbol="ETH", decimals=18),
        Token(id=2, address="0x" + "11" * 20, symbol="USDC", decimals=6),
        Token(id=5, address="0x" + "22" * 20, symbol="DAI", decimals=18),
    ])


@pytest.fixture
def token_set() -> TokenSet:
    return generate_test_tokens()


# ============================================================================
# Mock Provider
# ============================================================================

class MockProvider(ProviderInterface):
    """In-memory operator for testing. Counts every network call."""

    def __init__(self, tokens: Optional[TokenSet] = None):
        self.tokens = tokens or generate_test_tokens()
        self.accounts: Dict[str, AccountState] = {}
        self.fees: Dict[str, int] = {}
        self.batch_fee = 5000
        self.submitted: List[SignedTransaction] = []
        self.submitted_batches: List[tuple] = []
        self.state_calls = 0
        self.fee_calls = 0
        self.batch_fee_calls: List[tuple] = []

    @property
    def token_set(self) -> TokenSet:
        return self.tokens

    @property
    def network_calls(self) -> int:
        return self.state_calls + self.fee_calls + len(self.batch_fee_calls)

    def add_account(
        self,
        address: str,
        account_id: Optional[int] = 7,
        nonce: int = 0,
        verified_nonce: Optional[int] = None,
        pub_key_hash: str = OLD_PUB_KEY_HASH,
    ) -> AccountState:
        """Register an account (simulate a deposit)."""
        state = AccountState(
            address=address,
            id=account_id,
            committed=AccountStateSnapshot(nonce=nonce, pub_key_hash=pub_key_hash),
            verified=AccountStateSnapshot(
                nonce=nonce if verified_nonce is None else verified_nonce,
                pub_key_hash=pub_key_hash,
            ),
        )
        self.accounts[address.lower()] = state
        return state

    async def get_state(self, address: str) -> AccountState:
        self.state_calls += 1
        state = self.accounts.get(address.lower())
        if state is None:
            raise AccountNotFoundError(f"Unknown account: {address}")
        return state

    async def get_transaction_fee(
        self,
        fee_type: FeeType,
        address: str,
        token: TokenLike,
    ) -> TransactionFee:
        self.fee_calls += 1
        return TransactionFee(fee_type=fee_type, total_fee=self.fees.get(str(fee_type), DEFAULT_FEE))

    async def get_transactions_batch_fee(
        self,
        fee_types: Sequence[FeeType],
        addresses: Sequence[str],
        token: TokenLike,
    ) -> int:
        self.batch_fee_calls.append((list(fee_types), list(addresses), token))
        return self.batch_fee

    async def submit_tx(self, tx: SignedTransaction, fast_processing: bool = False) -> str:
        self.submitted.append(tx)
        return f"sync-tx:{len(self.submitted):064x}"

    async def submit_txs_batch(
        self,
        transactions: Sequence[SignedTransaction],
        eth_signatures: Sequence[TxEthSignature],
    ) -> List[str]:
        self.submitted_batches.append((list(transactions), list(eth_signatures)))
        start = len(self.submitted)
        self.submitted.extend(transactions)
        return [f"sync-tx:{start + i + 1:064x}" for i in range(len(transactions))]


@pytest.fixture
def mock_provider() -> MockProvider:
    """Create a mock provider with the test account registered."""
    provider = MockProvider()
    provider.add_account(TEST_ADDRESS, account_id=7, nonce=3)
    return provider


# ============================================================================
# Test Signers
# ============================================================================

class FakeL2Signer(L2Signer):
    """Deterministic L2 signer: echoes the payload with a type and a marker signature."""

    def __init__(self, pub_key_hash: str = NEW_PUB_KEY_HASH):
        self._pub_key_hash = pub_key_hash
        self.signed: List[SignedPayload] = []

    async def pub_key_hash(self) -> str:
        return self._pub_key_hash

    def _sign(self, kind: str, payload: dict) -> SignedPayload:
        signed = dict(payload)
        signed["type"] = kind
        signed["signature"] = {"pubKey": self._pub_key_hash[5:], "signature": f"l2sig:{kind}"}
        self.signed.append(signed)
        return signed

    async def sign_sync_transfer(self, payload: dict) -> SignedPayload:
        return self._sign("Transfer", payload)

    async def sign_sync_withdraw(self, payload: dict) -> SignedPayload:
        return self._sign("Withdraw", payload)

    async def sign_sync_forced_exit(self, payload: dict) -> SignedPayload:
        return self._sign("ForcedExit", payload)

    async def sign_sync_change_pub_key(self, payload: dict) -> SignedPayload:
        return self._sign("ChangePubKey", payload)

    async def sign_sync_swap(self, payload: dict) -> SignedPayload:
        return self._sign("Swap", payload)

    async def sign_mint_nft(self, payload: dict) -> SignedPayload:
        return self._sign("MintNFT", payload)

    async def sign_withdraw_nft(self, payload: dict) -> SignedPayload:
        return self._sign("WithdrawNFT", payload)

    async def sign_sync_order(self, payload: dict) -> SignedPayload:
        return self._sign("Order", payload)


@pytest.fixture
def l2_signer() -> FakeL2Signer:
    return FakeL2Signer()


@pytest.fixture
def eth_signer(test_config) -> EthAccountSigner:
    """Create an Ethereum signer with the fixed test key."""
    signer = EthAccountSigner(test_config)
    signer.load_from_config()
    return signer


# ============================================================================
# Wallet Fixtures
# ============================================================================

@pytest.fixture
def wallet(eth_signer, mock_provider, l2_signer, test_config) -> Wallet:
    """Create a fully capable ECDSA wallet."""
    return Wallet.from_eth_signer(
        eth_signer,
        mock_provider,
        signer=l2_signer,
        eth_signer_type=EthSignerType(verification_method="ECDSA", is_signed_msg_prefixed=True),
        config=test_config,
    )


@pytest.fixture
def wallet_without_signer(eth_signer, mock_provider, test_config) -> Wallet:
    """Create a wallet that can only sign Ethereum messages."""
    return Wallet.from_eth_signer_no_keys(
        eth_signer,
        mock_provider,
        eth_signer_type=EthSignerType(),
        config=test_config,
    )
