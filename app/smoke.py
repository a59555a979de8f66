"""
Send one STK push through the configured Daraja account and print the result.

Usage (from repo root, with the usual environment / .env in place):
  python -m app.smoke --phone 254708374149 --amount 10
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from app.core.config import get_settings
from app.core.exceptions import APIException
from app.services.mpesa import MpesaClient

logger = logging.getLogger(__name__)

# Daraja sandbox test MSISDN
SANDBOX_PHONE = 254708374149


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--phone", type=int, default=SANDBOX_PHONE, help="payer MSISDN, e.g. 254708374149")
    parser.add_argument("--amount", type=int, default=10, help="amount to request")
    return parser.parse_args(argv)


async def run(client: MpesaClient, phone: int, amount: int) -> int:
    try:
        response = await client.initiate_payment(phone, amount)
    except APIException as e:
        logger.error("Smoke payment failed [%s]: %s", e.error_code.value, e)
        return 1

    print(json.dumps(response, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings = get_settings()
    except APIException as e:
        logger.error("%s", e)
        return 1

    return asyncio.run(run(MpesaClient(settings), args.phone, args.amount))


if __name__ == "__main__":
    sys.exit(main())
