"""Thin Redis client over a single connection.

このモジュールは、1本の接続上でリクエスト→レスポンスを
1つずつ順番に（パイプラインなしで）やり取りするクライアントを提供します。

【1回のやり取りの流れ】
1. Commandをエンコードして全て書き込む（write + drain）
2. デコーダで応答を1つだけ読み取る
3. Error応答ならServerErrorを送出、それ以外はcommands_handledを加算して返す
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter

from . import commands
from .decoder import RESPDecoder
from .encoder import RESPEncoder
from .protocol import (
    Command,
    ConnectionClosedError,
    RedisError,
    RESPProtocolError,
    RespValue,
    ServerError,
)

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis互換サーバのクライアント.

    責務:
    - リクエストとレスポンスの厳密な1対1の対応（同時に1リクエストのみ）
    - Error応答をServerErrorとして呼び出し側に通知
    - 成功したやり取りの回数（commands_handled）の管理
    - フレーミングエラーやI/Oエラー発生時の接続の破棄

    タイムアウトは扱わない。必要なら呼び出し側で asyncio.wait_for() を使う。
    """

    def __init__(
        self,
        reader: StreamReader,
        writer: StreamWriter,
        encoder: RESPEncoder | None = None,
        decoder: RESPDecoder | None = None,
    ) -> None:
        """クライアントを初期化.

        Args:
            reader: asyncioのStreamReader
            writer: asyncioのStreamWriter
            encoder: エンコーダ（Noneの場合は新規作成）
            decoder: デコーダ（Noneの場合は新規作成）
        """
        self._reader = reader
        self._writer = writer
        self._encoder = encoder if encoder is not None else RESPEncoder()
        self._decoder = decoder if decoder is not None else RESPDecoder()
        self._lock = asyncio.Lock()
        self._closed = False
        self.commands_handled = 0

    @classmethod
    async def connect(
        cls,
        host: str = "127.0.0.1",
        port: int = 6379,
        encoder: RESPEncoder | None = None,
        decoder: RESPDecoder | None = None,
    ) -> "RedisClient":
        """サーバに接続してクライアントを作成する."""
        reader, writer = await asyncio.open_connection(host, port)
        logger.info(f"Connected to {host}:{port}")
        return cls(reader, writer, encoder=encoder, decoder=decoder)

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "RedisClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def execute(self, command: Command) -> RespValue:
        """コマンドを送信し、応答を1つ受信する.

        Args:
            command: 送信するコマンド

        Returns:
            デコードした応答値（RedisError以外）

        Raises:
            ServerError: サーバがError応答を返した（接続は引き続き使用可能）
            RESPProtocolError: 不正な応答（接続は破棄される）
            asyncio.IncompleteReadError: 応答の途中で接続が切れた（接続は破棄される）
            ConnectionClosedError: クローズ済みの接続を使おうとした
        """
        async with self._lock:
            if self._closed:
                raise ConnectionClosedError("Connection is closed")

            name = commands.command_name(command)
            try:
                self._writer.write(self._encoder.encode(command))
                await self._writer.drain()
                reply = await self._decoder.decode(self._reader)

            except RESPProtocolError as e:
                logger.error(f"RESP protocol error in reply to {name}: {e}")
                await self._abandon()
                raise

            except asyncio.IncompleteReadError:
                logger.error(f"Connection closed by server while waiting for {name}")
                await self._abandon()
                raise

            except OSError as e:
                logger.error(f"I/O error during {name}: {e}")
                await self._abandon()
                raise

            except asyncio.CancelledError:
                # 応答を読み切れていないので、このストリームはもう使えない
                logger.info(f"{name} cancelled, dropping connection")
                await self._abandon()
                raise

        if isinstance(reply, RedisError):
            logger.debug(f"{name} -> server error: {reply.value}")
            raise ServerError(reply)

        self.commands_handled += 1
        logger.debug(f"{name} -> {reply!r}")
        return reply

    async def ping(self) -> None:
        command = commands.ping()
        reply = await self.execute(command)
        commands.expect_simple_string(command, reply, "PONG")

    async def echo(self, message) -> bytes | None:
        command = commands.echo(message)
        reply = await self.execute(command)
        return commands.expect_bulk_string(command, reply)

    async def set(self, key, value) -> None:
        command = commands.set_(key, value)
        reply = await self.execute(command)
        commands.expect_simple_string(command, reply, "OK")

    async def get(self, key) -> bytes | None:
        """キーの値を取得する.

        Returns:
            値のバイト列。キーが存在しない場合はNone（空の値 b"" とは区別される）
        """
        command = commands.get(key)
        reply = await self.execute(command)
        return commands.expect_bulk_string(command, reply)

    async def mget(self, *keys) -> list[bytes | None] | None:
        """複数キーの値をまとめて取得する.

        Returns:
            値のリスト（存在しないキーはNone）。Null Array (*-1) の場合はNone
            （空の Array (*0) の [] とは区別される）
        """
        command = commands.mget(*keys)
        reply = await self.execute(command)
        items = commands.expect_array(command, reply)
        if items is None:
            return None
        return [commands.expect_bulk_string(command, item) for item in items]

    async def delete(self, *keys) -> int:
        command = commands.delete(*keys)
        reply = await self.execute(command)
        return commands.expect_integer(command, reply)

    async def incr(self, key) -> int:
        command = commands.incr(key)
        reply = await self.execute(command)
        return commands.expect_integer(command, reply)

    async def close(self) -> None:
        """接続をクローズする. 2回目以降の呼び出しは何もしない."""
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing connection: {e}")
        logger.info("Connection closed")

    async def _abandon(self) -> None:
        """同期が失われた接続を破棄する."""
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing abandoned connection: {e}")
        logger.info("Connection dropped")
