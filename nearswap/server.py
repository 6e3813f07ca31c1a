#!/usr/bin/env python3
"""
NEAR Intent Swaps MCP Server (FastMCP Implementation)
Provides AI agents with tools to quote, execute and track cross-chain swaps
through the 1Click API for NEAR Intents.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any, List, Literal, Optional

import httpx
from pydantic import Field

from mcp.server.fastmcp import FastMCP, Context

from nearswap.config import SUPPORTED_TRANSPORTS, SwapConfig
from nearswap.oneclick import OneClickAuthError, OneClickClient
from nearswap.service import (
    NearSwapService,
    QuoteParams,
    SwapExecution,
    SwapStatus,
    chain_from_asset_id,
    default_deadline,
)

# Configure logging (stderr, stdout carries the stdio transport)
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

JWT_REQUIRED_MESSAGE = (
    "Error: JWT token is required for this operation. "
    "Please set the NEAR_SWAP_JWT_TOKEN environment variable."
)

FINAL_STATUSES = {SwapStatus.SUCCESS.value, SwapStatus.REFUNDED.value, SwapStatus.FAILED.value}

TOOL_SUMMARIES = [
    ("GET_NEAR_SWAP_SIMPLE_QUOTE", "Get simple quotes for cross-chain token swaps (dry run, no addresses needed)"),
    ("GET_NEAR_SWAP_FULL_QUOTE", "Get full quotes for cross-chain token swaps (requires addresses)"),
    ("EXECUTE_NEAR_SWAP", "Execute swaps by submitting deposit transactions"),
    ("CHECK_NEAR_SWAP_STATUS", "Check the status of swap executions"),
    ("GET_NEAR_SWAP_TOKENS", "Get list of supported tokens for swaps"),
]

@dataclass
class NearSwapContext:
    """Context for the NEAR swap MCP server."""
    oneclick: OneClickClient

@asynccontextmanager
async def nearswap_lifespan(server: FastMCP) -> AsyncIterator[NearSwapContext]:
    """Manages the 1Click client lifecycle."""
    config = SwapConfig.from_env()

    if not config.has_token:
        logger.warning("NEAR_SWAP_JWT_TOKEN is not set; authenticated 1Click calls will be rejected")

    http_client = httpx.AsyncClient(timeout=config.http_timeout)
    oneclick = OneClickClient(http_client, config.base_url, config.jwt_token)
    logger.info(f"Initialized 1Click client: {config.base_url}")

    try:
        yield NearSwapContext(oneclick=oneclick)
    finally:
        await http_client.aclose()
        logger.info("NEAR swap server shutdown complete")

# Initialize FastMCP server
mcp = FastMCP(
    "NEAR Intent Swaps MCP Server",
    instructions=(
        "Cross-chain token swaps through NEAR Intents. Typical flow: "
        "GET_NEAR_SWAP_TOKENS to discover asset ids, GET_NEAR_SWAP_SIMPLE_QUOTE to estimate, "
        "GET_NEAR_SWAP_FULL_QUOTE to obtain a deposit address, send funds, "
        "EXECUTE_NEAR_SWAP to report the deposit, then poll CHECK_NEAR_SWAP_STATUS."
    ),
    lifespan=nearswap_lifespan,
)


def _service(ctx: Context) -> NearSwapService:
    swap_ctx = ctx.request_context.lifespan_context
    return NearSwapService(swap_ctx.oneclick)


def _render(title: str, lines: List[Optional[str]], response_label: Optional[str], response: Any) -> str:
    """Render a titled block of ``Label: value`` lines followed by the JSON response."""
    parts = [f"{title}:", ""]
    parts.extend(line for line in lines if line)
    if lines:
        parts.append("")
    if response_label:
        parts.append(f"{response_label}:")
    parts.append(json.dumps(response, indent=2, default=str))
    return "\n".join(parts)


def _format_error(error: Exception, verb: str) -> str:
    """Classify a failure into the text returned to the MCP client."""
    if isinstance(error, OneClickAuthError):
        return JWT_REQUIRED_MESSAGE
    message = str(error)
    if not message:
        return f"An unknown error occurred while {verb}"
    return f"Error {verb}: {message}"


def _slippage_line(slippage_tolerance: int) -> str:
    return f"Slippage Tolerance: {slippage_tolerance} basis points ({slippage_tolerance / 100:.2f}%)"


AssetId = Annotated[str, Field(
    min_length=1,
    description="Asset id, e.g. 'nep141:arb-0xaf88d065e77c8cc2239327c5edb3a432268e5831.omft.near'",
)]
Amount = Annotated[str, Field(
    min_length=1,
    description=(
        "Amount to swap as the base amount (can be switched to exact input/output using swapType), "
        "denoted in the smallest unit of the specified currency (e.g., wei for ETH)"
    ),
)]
SwapTypeOption = Annotated[Literal["EXACT_INPUT", "EXACT_OUTPUT"], Field(
    description=(
        "EXACT_INPUT - request output amount for exact input, "
        "EXACT_OUTPUT - request input amount for exact output. "
        "The refundTo address always receives excess tokens back."
    ),
)]
SlippageBps = Annotated[int, Field(
    description="Slippage tolerance in basis points (1/100th of a percent), e.g. 100 for 1% slippage.",
)]
QuoteWaitingTime = Annotated[int, Field(
    description="Time in milliseconds the user is willing to wait for a quote from the relay",
)]


@mcp.tool(
    name="GET_NEAR_SWAP_SIMPLE_QUOTE",
    description=(
        "[STEP 1] Get a simple dry-run quote for a NEAR intent swap between chains. "
        "No addresses are needed: placeholder recipient and refund addresses are filled in "
        "for the assets' chains. Use this to show users the expected output before they commit."
    ),
)
async def get_near_swap_simple_quote(
    ctx: Context,
    originAsset: AssetId,
    destinationAsset: AssetId,
    amount: Amount,
    swapType: SwapTypeOption = "EXACT_INPUT",
    slippageTolerance: SlippageBps = 100,
    quoteWaitingTimeMs: QuoteWaitingTime = 3000,
) -> str:
    """Dry-run quote with placeholder addresses."""
    params = QuoteParams(
        origin_asset=originAsset,
        destination_asset=destinationAsset,
        amount=amount,
        swap_type=swapType,
        refund_type="ORIGIN_CHAIN",
        slippage_tolerance=slippageTolerance,
        dry=True,
        quote_waiting_time_ms=quoteWaitingTimeMs,
    )
    try:
        quote = await _service(ctx).get_quote(params)

        return _render(
            "NEAR Swap Simple Quote",
            [
                f"Swap Type: {swapType}",
                f"Origin Asset: {originAsset} (chain: {chain_from_asset_id(originAsset)})",
                f"Destination Asset: {destinationAsset} (chain: {chain_from_asset_id(destinationAsset)})",
                f"Amount: {amount}",
                _slippage_line(slippageTolerance),
                "Dry Run: true",
                f"Quote Waiting Time: {quoteWaitingTimeMs}ms",
            ],
            "Quote Response",
            quote,
        )

    except Exception as e:
        logger.error(f"Error getting simple swap quote: {e}")
        return _format_error(e, "getting swap quote")


@mcp.tool(
    name="GET_NEAR_SWAP_FULL_QUOTE",
    description=(
        "[STEP 2] Get a full quote with deposit address for a NEAR intent swap. This requires "
        "recipient and refund addresses and returns a unique deposit address where users can "
        "send their funds to initiate the swap. Use this when users are ready to proceed "
        "after checking the simple quote."
    ),
)
async def get_near_swap_full_quote(
    ctx: Context,
    originAsset: AssetId,
    destinationAsset: AssetId,
    amount: Amount,
    recipient: Annotated[str, Field(
        min_length=1,
        description="Recipient address. The format should match recipientType.",
    )],
    swapType: SwapTypeOption = "EXACT_INPUT",
    recipientType: Annotated[Literal["DESTINATION_CHAIN", "INTENTS"], Field(
        description=(
            "DESTINATION_CHAIN - assets are transferred to the chain of destinationAsset, "
            "INTENTS - assets are transferred to an account inside intents"
        ),
    )] = "DESTINATION_CHAIN",
    refundTo: Annotated[Optional[str], Field(description="Address for user refund")] = None,
    refundType: Annotated[Literal["ORIGIN_CHAIN", "INTENTS"], Field(
        description=(
            "ORIGIN_CHAIN - refunds go to refundTo on the origin chain, "
            "INTENTS - refunds go to the refundTo intents account"
        ),
    )] = "ORIGIN_CHAIN",
    slippageTolerance: SlippageBps = 100,
    dry: Annotated[bool, Field(
        description=(
            "Whether this is a dry run. If true, the response will NOT contain "
            "depositAddress, timeWhenInactive or deadline."
        ),
    )] = False,
    depositType: Annotated[Literal["ORIGIN_CHAIN", "INTENTS"], Field(
        description=(
            "ORIGIN_CHAIN - deposit address on the origin chain, "
            "INTENTS - account id inside NEAR intents to transfer assets to"
        ),
    )] = "ORIGIN_CHAIN",
    deadline: Annotated[Optional[str], Field(
        description=(
            "ISO timestamp after which a refund begins if the swap isn't completed. Defaults to one "
            "hour from now; it must exceed the time needed to confirm the deposit (e.g. ~1h for Bitcoin)."
        ),
    )] = None,
    referral: Annotated[Optional[str], Field(
        description="Referral identifier (lower case only), shown on public analytics platforms.",
    )] = None,
    quoteWaitingTimeMs: QuoteWaitingTime = 3000,
) -> str:
    """Full quote returning a deposit address."""
    deadline = deadline or default_deadline()
    params = QuoteParams(
        origin_asset=originAsset,
        destination_asset=destinationAsset,
        amount=amount,
        swap_type=swapType,
        recipient=recipient,
        recipient_type=recipientType,
        refund_to=refundTo,
        refund_type=refundType,
        slippage_tolerance=slippageTolerance,
        dry=dry,
        deposit_type=depositType,
        deadline=deadline,
        referral=referral,
        quote_waiting_time_ms=quoteWaitingTimeMs,
    )
    try:
        quote = await _service(ctx).get_quote(params)

        return _render(
            "NEAR Swap Full Quote",
            [
                f"Swap Type: {swapType}",
                f"Origin Asset: {originAsset}",
                f"Destination Asset: {destinationAsset}",
                f"Amount: {amount}",
                f"Recipient: {recipient} ({recipientType})",
                f"Refund To: {refundTo} ({refundType})" if refundTo else None,
                _slippage_line(slippageTolerance),
                f"Dry Run: {str(dry).lower()}",
                f"Deadline: {deadline}",
                f"Deposit Type: {depositType}",
                f"Referral: {referral}" if referral else None,
                f"Quote Waiting Time: {quoteWaitingTimeMs}ms",
            ],
            "Quote Response",
            quote,
        )

    except Exception as e:
        logger.error(f"Error getting full swap quote: {e}")
        return _format_error(e, "getting swap quote")


@mcp.tool(
    name="EXECUTE_NEAR_SWAP",
    description=(
        "[STEP 4] Submit a deposit transaction hash to notify the 1Click service that funds have "
        "been sent. Optional, but it can speed up processing by letting the service verify the "
        "deposit instead of waiting for automatic detection."
    ),
)
async def execute_near_swap(
    ctx: Context,
    txHash: Annotated[str, Field(
        min_length=1,
        description="Hash of the deposit transaction sent to the deposit address from the quote",
    )],
    depositAddress: Annotated[str, Field(
        min_length=1,
        description="Deposit address from the quote response that the deposit transaction was sent to",
    )],
) -> str:
    """Report a deposit transaction."""
    try:
        result = await _service(ctx).submit_execution(
            SwapExecution(tx_hash=txHash, deposit_address=depositAddress)
        )

        return _render(
            "NEAR Swap Execution Notification",
            [
                f"Transaction Hash: {txHash}",
                f"Deposit Address: {depositAddress}",
            ],
            "Execution Result",
            result,
        )

    except Exception as e:
        logger.error(f"Error executing swap: {e}")
        return _format_error(e, "executing swap")


def _status_lines(deposit_address: str, status: Any) -> List[str]:
    lines = [f"Deposit Address: {deposit_address}"]
    state = status.get("status") if isinstance(status, dict) else None
    if state:
        if state in FINAL_STATUSES:
            lines.append(f"Current Status: {state} (final)")
        else:
            lines.append(f"Current Status: {state} (in progress, check again later)")
    return lines


@mcp.tool(
    name="CHECK_NEAR_SWAP_STATUS",
    description=(
        "[STEP 5] Check the current execution status of a NEAR intent swap. Returns the swap state "
        "(PENDING_DEPOSIT, PROCESSING, SUCCESS, REFUNDED, FAILED, etc.) along with detailed "
        "transaction information. Keep polling until the swap is complete."
    ),
)
async def check_near_swap_status(
    ctx: Context,
    depositAddress: Annotated[str, Field(
        min_length=1,
        description="The unique deposit address from the quote response, used to track the swap",
    )],
) -> str:
    """Look up swap status by deposit address."""
    try:
        status = await _service(ctx).get_status(depositAddress)

        return _render(
            "NEAR Swap Status Check",
            _status_lines(depositAddress, status),
            "Status Response",
            status,
        )

    except Exception as e:
        logger.error(f"Error checking swap status: {e}")
        return _format_error(e, "checking swap status")


@mcp.tool(
    name="GET_NEAR_SWAP_TOKENS",
    description=(
        "[DISCOVERY] Get a list of tokens currently supported by the 1Click API for NEAR Intents. "
        "Returns token metadata including blockchain, contract address, current USD price, symbol, "
        "decimals, and price update timestamp. Use this to discover asset ids before requesting quotes."
    ),
)
async def get_near_swap_tokens(ctx: Context) -> str:
    """List supported tokens."""
    try:
        tokens = await _service(ctx).list_supported_tokens()
        return _render("NEAR Swap Supported Tokens", [], None, tokens)

    except Exception as e:
        logger.error(f"Error getting supported tokens: {e}")
        return _format_error(e, "getting supported tokens")


def configure_logging(config: SwapConfig) -> int:
    """Apply LOG_LEVEL to the root logger, falling back to INFO for unknown names."""
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        logger.warning(f"Unknown LOG_LEVEL {config.log_level!r}, using INFO")
        level = logging.INFO
    logging.getLogger().setLevel(level)
    return level


def _log_startup(config: SwapConfig) -> None:
    logger.info("NEAR Intent Swaps MCP Server starting")
    logger.info("Available tools:")
    for name, summary in TOOL_SUMMARIES:
        logger.info(f"  - {name}: {summary}")
    if not config.has_token:
        logger.info("Make sure to set the NEAR_SWAP_JWT_TOKEN environment variable for authentication.")

async def main():
    """Main function to run the MCP server."""
    config = SwapConfig.from_env()
    configure_logging(config)
    _log_startup(config)

    if config.transport not in SUPPORTED_TRANSPORTS:
        logger.error(f"Unsupported transport: {config.transport}")
        return

    if config.transport == "stdio":
        await mcp.run_stdio_async()
    else:
        await mcp.run_sse_async()

if __name__ == "__main__":
    asyncio.run(main())
