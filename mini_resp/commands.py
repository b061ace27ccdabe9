"""Command builders and reply checks for the client layer.

このモジュールは、個々のRedisコマンドのCommandを組み立てる関数と、
応答がコマンドの期待どおりかを確認する関数を提供します。

デコーダはコマンドを知らないので、期待値のチェックはすべてここで行う。
"""

from .protocol import (
    Array,
    BulkString,
    Command,
    Integer,
    RespValue,
    SimpleString,
    UnexpectedReplyError,
)


def ping() -> Command:
    return Command.of("PING")


def echo(message) -> Command:
    return Command.of("ECHO", message)


def set_(key, value) -> Command:
    return Command.of("SET", key, value)


def get(key) -> Command:
    return Command.of("GET", key)


def delete(*keys) -> Command:
    return Command.of("DEL", *keys)


def incr(key) -> Command:
    return Command.of("INCR", key)


def mget(*keys) -> Command:
    return Command.of("MGET", *keys)


def command_name(command: Command) -> str:
    """ログやエラーメッセージ用のコマンド名."""
    return command.name.decode("utf-8", errors="replace").upper()


def expect_simple_string(command: Command, reply: RespValue, expected: str) -> None:
    """応答が指定した内容のSimple Stringであることを確認する.

    例: PING → SimpleString("PONG")、SET → SimpleString("OK")

    Raises:
        UnexpectedReplyError: 型または内容が一致しない
    """
    if not isinstance(reply, SimpleString) or reply.value != expected:
        raise UnexpectedReplyError(command_name(command), reply)


def expect_bulk_string(command: Command, reply: RespValue) -> bytes | None:
    """応答がBulk Stringであることを確認し、その中身を返す.

    Returns:
        バイト列。Null Bulk Stringの場合はNone（空文字列 b"" とは区別される）

    Raises:
        UnexpectedReplyError: Bulk String以外の応答
    """
    if not isinstance(reply, BulkString):
        raise UnexpectedReplyError(command_name(command), reply)
    return reply.value


def expect_integer(command: Command, reply: RespValue) -> int:
    if not isinstance(reply, Integer):
        raise UnexpectedReplyError(command_name(command), reply)
    return reply.value


def expect_array(command: Command, reply: RespValue) -> tuple | None:
    if not isinstance(reply, Array):
        raise UnexpectedReplyError(command_name(command), reply)
    return reply.items
