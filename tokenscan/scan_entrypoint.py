"""Scan entrypoint - Standalone script for one-off scans and refreshes.

Usage:
    python -m tokenscan.scan_entrypoint <token_address>            # Scan on Ethereum
    python -m tokenscan.scan_entrypoint <token_address> <chain>    # Scan on a chain (0x38, bsc, ...)
    python -m tokenscan.scan_entrypoint --refresh-all              # Re-scan every cached token
"""

import asyncio
import json
import sys

from tokenscan.core.logging import get_logger
from tokenscan.schemas.api import ScanRequest
from tokenscan.services.refresh_service import RefreshService
from tokenscan.services.scan_service import ScanService

logger = get_logger("scan_entrypoint")


async def run_scan_job(token_address: str, chain_id: str):
    """Run a forced scan for one token."""
    logger.info(f"Starting scan job for {token_address} on {chain_id}")
    service = ScanService()
    outcome = await service.scan(ScanRequest(token_address=token_address, chain_id=chain_id, force_refresh=True))
    logger.info(f"Scan job finished in state={outcome.state.value}")
    return outcome.payload


async def run_refresh_job():
    """Re-scan every cached token."""
    logger.info("Running refresh for all cached tokens")
    return await RefreshService().run_all()


def main():
    """Main entry point for command-line scans."""
    args = sys.argv[1:]
    if not args:
        print(__doc__)
        sys.exit(2)

    if args[0] == "--refresh-all":
        result = asyncio.run(run_refresh_job())
    else:
        chain_id = args[1] if len(args) > 1 else "0x1"
        result = asyncio.run(run_scan_job(args[0], chain_id))

    print(json.dumps(result, indent=2, default=str))

    # Exit with error code if the scan or any refresh failed
    if not result.get("success", False):
        sys.exit(1)
    return result


if __name__ == "__main__":
    main()
