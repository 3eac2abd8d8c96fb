"""Submit one card payment and print the JSON response."""

import argparse
import json

import httpx


def main() -> None:
    """CLI entrypoint for manual payment checks."""

    parser = argparse.ArgumentParser(description="POST a single payment to the payment API.")
    parser.add_argument("--base-url", default="http://127.0.0.1:3000")
    parser.add_argument("--amount", type=int, default=1000)
    parser.add_argument("--currency", default="USD")
    parser.add_argument("--card-number", default="4111111111111111")
    parser.add_argument("--expiry-month", type=int, default=12)
    parser.add_argument("--expiry-year", type=int, default=2030)
    parser.add_argument("--cvv", default="123")
    args = parser.parse_args()

    payload = {
        "amount": args.amount,
        "currency": args.currency,
        "card_number": args.card_number,
        "expiry_month": args.expiry_month,
        "expiry_year": args.expiry_year,
        "cvv": args.cvv,
    }
    resp = httpx.post(f"{args.base_url}/api/payment", json=payload, timeout=10.0)
    print(f"HTTP {resp.status_code}")
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
