"""Connect to channelgate and print every frame received."""

import argparse
import asyncio

import httpx


async def run(token: str, token_type: str, host: str) -> None:
    params = {"token": token, "type": token_type}
    async with httpx.AsyncClient(base_url=host, timeout=None) as client:
        async with client.stream("GET", "/events", params=params) as response:
            if response.status_code != 200:
                await response.aread()
                print(f"rejected ({response.status_code}): {response.text}")
                return
            print(f"connected: {response.url}")
            async for line in response.aiter_lines():
                if line:
                    print(line)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--token", required=True)
    parser.add_argument("--type", dest="token_type", required=True)
    parser.add_argument("--host", default="http://127.0.0.1:3000")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(run(args.token, args.token_type, args.host))


if __name__ == "__main__":
    main()
