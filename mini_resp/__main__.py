"""mini-resp demo entry point.

`python -m mini_resp` で起動します。
127.0.0.1:6379 のRedis互換サーバに接続し、PING と SET abc 123 を送信します。
"""

import asyncio
import logging
import sys

from mini_resp.client import RedisClient
from mini_resp.protocol import RESPError


def setup_logging() -> None:
    """ログ設定を初期化."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


async def main() -> int:

    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        client = await RedisClient.connect(host="127.0.0.1", port=6379)
    except OSError as e:
        logger.error(f"Could not connect: {e}")
        return 1

    async with client:
        try:
            await client.ping()
            logger.info("PING -> PONG")
            await client.set("abc", "123")
            logger.info("SET abc 123 -> OK")
        except (RESPError, asyncio.IncompleteReadError, OSError) as e:
            logger.error(f"Request failed: {e}", exc_info=True)
            return 1
        finally:
            logger.info(f"Commands handled: {client.commands_handled}")

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
