"""
Token metadata and amount formatting.

The TokenSet resolves token identifiers (id, symbol or contract address)
to canonical token ids and symbols, and converts between minor units and
the human-readable strings used in Ethereum-compatible messages.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from typing import Dict, Iterable, Optional, Union

from rollup_wallet.core.types import TokenLike
from rollup_wallet.core.utils import is_nft


@dataclass(frozen=True)
class Token:
    """
    Fungible token known to the network.

    Attributes:
        id: Numeric id used in transaction signatures
        address: Contract address (zero address for the native coin)
        symbol: Ticker symbol, e.g. "ETH"
        decimals: Number of fractional digits in one whole token
    """
    id: int
    address: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class NFT:
    """Non-fungible token minted on L2."""
    id: int
    symbol: str
    creator_id: int
    creator_address: str
    content_hash: str
    address: Optional[str] = None
    serial_id: int = 0


def format_units(amount: int, decimals: int) -> str:
    """
    Format an integer amount of minor units.

    At least one fractional digit is kept ("1.0"), trailing zeros are
    trimmed, and zero-decimal amounts print as plain integers.
    """
    amount = int(amount)
    negative = amount < 0
    amount = abs(amount)

    if decimals == 0:
        result = str(amount)
    else:
        multiplier = 10 ** decimals
        whole, fraction = divmod(amount, multiplier)
        fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
        result = f"{whole}.{fraction_str}"

    return f"-{result}" if negative else result


def parse_units(value: Union[str, int, Decimal], decimals: int) -> int:
    """
    Parse a human-readable amount into minor units.

    Raises:
        ValueError: If the value is not a number or has more fractional
            digits than the token supports
    """
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = parsed.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Fractional component exceeds {decimals} decimals: {value}")
        return int(scaled)


class TokenSet:
    """
    Lookup table for the tokens supported by the network.

    Tokens can be referenced by numeric id, symbol (case-insensitive) or
    contract address. NFT ids resolve to a synthetic ``NFT-<id>`` symbol
    with zero decimals.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens: Dict[str, Token] = {}
        for token in tokens:
            self._tokens[token.symbol] = token

    def _resolve(self, token_like: TokenLike) -> Token:
        if is_nft(token_like):
            return Token(id=token_like, address="", symbol=f"NFT-{token_like}", decimals=0)

        for token in self._tokens.values():
            if isinstance(token_like, int) and not isinstance(token_like, bool):
                if token.id == token_like:
                    return token
            elif (
                token.symbol.lower() == str(token_like).lower()
                or token.address.lower() == str(token_like).lower()
            ):
                return token

        raise ValueError(f"Token {token_like} is not supported")

    def resolve_token_id(self, token_like: TokenLike) -> int:
        return self._resolve(token_like).id

    def resolve_token_symbol(self, token_like: TokenLike) -> str:
        return self._resolve(token_like).symbol

    def resolve_token_decimals(self, token_like: TokenLike) -> int:
        return self._resolve(token_like).decimals

    def resolve_token_address(self, token_like: TokenLike) -> str:
        return self._resolve(token_like).address

    def format_token(self, token_like: TokenLike, amount: int) -> str:
        """Format a minor-unit amount using the token's decimals."""
        return format_units(amount, self.resolve_token_decimals(token_like))

    def parse_token(self, token_like: TokenLike, amount: Union[str, int, Decimal]) -> int:
        """Parse a human-readable amount into the token's minor units."""
        return parse_units(amount, self.resolve_token_decimals(token_like))

    def __contains__(self, token_like: TokenLike) -> bool:
        try:
            self._resolve(token_like)
        except ValueError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._tokens)
