"""
Swap service adapter.

Turns tool parameters into 1Click quote requests (placeholder addresses for
dry runs, defaults, omission of unset optional fields) and forwards every
operation to the API client.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from nearswap.oneclick import OneClickClient

logger = logging.getLogger(__name__)


class SwapType(str, Enum):
    EXACT_INPUT = "EXACT_INPUT"
    EXACT_OUTPUT = "EXACT_OUTPUT"


class RecipientType(str, Enum):
    DESTINATION_CHAIN = "DESTINATION_CHAIN"
    INTENTS = "INTENTS"


class RefundType(str, Enum):
    ORIGIN_CHAIN = "ORIGIN_CHAIN"
    INTENTS = "INTENTS"


class DepositType(str, Enum):
    ORIGIN_CHAIN = "ORIGIN_CHAIN"
    INTENTS = "INTENTS"


class SwapStatus(str, Enum):
    """Lifecycle states reported by the status endpoint."""
    KNOWN_DEPOSIT_TX = "KNOWN_DEPOSIT_TX"
    PENDING_DEPOSIT = "PENDING_DEPOSIT"
    INCOMPLETE_DEPOSIT = "INCOMPLETE_DEPOSIT"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    REFUNDED = "REFUNDED"
    FAILED = "FAILED"


HOME_CHAIN = "near"
OMFT_SUFFIX = ".omft.near"

DEFAULT_SLIPPAGE_BPS = 100
DEFAULT_DEADLINE = timedelta(hours=1)
DEFAULT_QUOTE_WAITING_TIME_MS = 3000

ZERO_EVM_ADDRESS = "0x0000000000000000000000000000000000000000"

# Bump when an entry is added or changed.
PLACEHOLDER_TABLE_VERSION = 1

# Syntactically valid addresses used as recipient/refund for dry-run quotes,
# keyed by the chain qualifier of an omft asset id.
PLACEHOLDER_ADDRESSES = {
    "near": "dummy.near",
    "eth": ZERO_EVM_ADDRESS,
    "btc": "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa",
    "sol": "A" * 43,
    "arb": ZERO_EVM_ADDRESS,
    "doge": "DQUyqE96EgXjHn46K9GsF4Lp7jS7wc4VBz",
    "xrp": "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh",
    "gnosis": ZERO_EVM_ADDRESS,
    "bera": ZERO_EVM_ADDRESS,
    "base": ZERO_EVM_ADDRESS,
    "tron": "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb",
    "zec": "t1Ww3oCEsYqK879WpKTpgKa4jWjYkPjK2Th",
}


class QuoteValidationError(ValueError):
    """Quote parameters rejected before any network call."""


def chain_from_asset_id(asset_id: str) -> str:
    """Derive the chain qualifier from an asset id.

    ``nep141:arb-0xaf88...omft.near`` -> ``arb``, ``nep141:btc.omft.near`` -> ``btc``.
    Anything that is not an omft asset is native to NEAR.
    """
    parts = asset_id.split(":")
    if len(parts) != 2:
        return HOME_CHAIN

    token = parts[1]
    if token.endswith(OMFT_SUFFIX):
        return token.split("-")[0].split(".")[0]
    return HOME_CHAIN


def placeholder_address(chain: str) -> str:
    """Placeholder address for a chain, falling back to the NEAR entry."""
    return PLACEHOLDER_ADDRESSES.get(chain, PLACEHOLDER_ADDRESSES[HOME_CHAIN])


def is_placeholder_address(address: str) -> bool:
    return address in PLACEHOLDER_ADDRESSES.values()


def default_deadline(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp one hour after ``now``."""
    now = now or datetime.now(timezone.utc)
    deadline = now.astimezone(timezone.utc) + DEFAULT_DEADLINE
    return deadline.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _value(option: Union[Enum, str]) -> str:
    return option.value if isinstance(option, Enum) else option


@dataclass
class QuoteParams:
    """Caller-facing quote parameters."""
    origin_asset: str
    destination_asset: str
    amount: str
    swap_type: Union[SwapType, str] = SwapType.EXACT_INPUT
    recipient: Optional[str] = None
    recipient_type: Union[RecipientType, str] = RecipientType.DESTINATION_CHAIN
    refund_to: Optional[str] = None
    refund_type: Optional[Union[RefundType, str]] = None
    slippage_tolerance: int = DEFAULT_SLIPPAGE_BPS
    dry: bool = True
    deposit_type: Union[DepositType, str] = DepositType.ORIGIN_CHAIN
    deadline: Optional[str] = None
    referral: Optional[str] = None
    quote_waiting_time_ms: Optional[int] = DEFAULT_QUOTE_WAITING_TIME_MS


@dataclass
class SwapExecution:
    """Evidence that funds were sent to a deposit address."""
    tx_hash: str
    deposit_address: str


def build_quote_request(params: QuoteParams, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Map quote parameters onto the 1Click quote request body.

    Raises:
        QuoteValidationError: a non-dry quote without a real recipient.
    """
    recipient = params.recipient or None
    refund_to = params.refund_to or None

    if not params.dry:
        if recipient is None:
            raise QuoteValidationError("recipient address is required when dry=false")
        if is_placeholder_address(recipient):
            raise QuoteValidationError(
                f"recipient must be a real address when dry=false, got placeholder {recipient}"
            )

    if params.dry:
        if recipient is None:
            recipient = placeholder_address(chain_from_asset_id(params.destination_asset))
        if refund_to is None:
            refund_to = placeholder_address(chain_from_asset_id(params.origin_asset))

    slippage = params.slippage_tolerance
    request = {
        "dry": params.dry,
        "swapType": _value(params.swap_type),
        "slippageTolerance": DEFAULT_SLIPPAGE_BPS if slippage is None else slippage,
        "originAsset": params.origin_asset,
        "depositType": _value(params.deposit_type),
        "destinationAsset": params.destination_asset,
        "amount": params.amount,
        "recipient": recipient,
        "recipientType": _value(params.recipient_type),
        "deadline": params.deadline or default_deadline(now),
    }

    # Unset optional fields are omitted rather than sent as null
    if refund_to:
        request["refundTo"] = refund_to
    if params.refund_type:
        request["refundType"] = _value(params.refund_type)
    if params.referral:
        request["referral"] = params.referral
    if params.quote_waiting_time_ms is not None:
        request["quoteWaitingTimeMs"] = params.quote_waiting_time_ms

    return request


class NearSwapService:
    """Adapter between the MCP tools and the 1Click API client."""

    def __init__(self, client: OneClickClient):
        self.client = client

    async def get_quote(self, params: QuoteParams) -> Any:
        quote_request = build_quote_request(params)
        logger.info(
            f"Requesting {'dry' if params.dry else 'full'} quote: "
            f"{params.origin_asset} -> {params.destination_asset} ({params.amount})"
        )
        return await self.client.get_quote(quote_request)

    async def submit_execution(self, execution: SwapExecution) -> Any:
        logger.info(f"Submitting deposit tx {execution.tx_hash} for {execution.deposit_address}")
        return await self.client.submit_deposit_tx(execution.tx_hash, execution.deposit_address)

    async def get_status(self, deposit_address: str) -> Any:
        return await self.client.get_execution_status(deposit_address)

    async def list_supported_tokens(self) -> Any:
        return await self.client.get_tokens()
