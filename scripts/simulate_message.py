"""
Simulate an inbound SMS command (Twilio webhook format) against a running bot.

Start the server with TWILIO_VALIDATE_SIGNATURE=false, then:

Usage:
    python scripts/simulate_message.py "/start"
    python scripts/simulate_message.py "/activate me@example.com" --phone "+15125559999"
    python scripts/simulate_message.py "/admin" --phone "+15550000000"
"""
import argparse
import asyncio
import logging

import httpx

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_URL = "http://localhost:8000"


async def simulate_sms(body: str, phone: str, to_phone: str, base_url: str):
    """POST an inbound SMS to the Twilio webhook."""
    payload = {
        "From": phone,
        "To": to_phone,
        "Body": body,
        "MessageSid": "SM_simulated",
    }
    async with httpx.AsyncClient(timeout=30) as client:
        resp = await client.post(f"{base_url}/api/v1/webhook/twilio/sms", data=payload)
        logger.info("Webhook response: %s %s", resp.status_code, resp.json())
        return resp


def main():
    parser = argparse.ArgumentParser(description="Send a simulated SMS command to ProBot")
    parser.add_argument("body", help='Message text, e.g. "/status"')
    parser.add_argument("--phone", default="+15125551234", help="Sender identity")
    parser.add_argument("--to", default="+15125550000", help="Bot phone number")
    parser.add_argument("--base-url", default=BASE_URL)
    args = parser.parse_args()

    asyncio.run(simulate_sms(args.body, args.phone, args.to, args.base_url))


if __name__ == "__main__":
    main()
