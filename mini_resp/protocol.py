"""RESP (REdis Serialization Protocol) value model and errors.

このモジュールは、RESPの値モデル（応答値とコマンド）と
プロトコル全体で使う例外階層を定義します。

エンコードは encoder.py、デコードは decoder.py が担当します。
"""

from dataclasses import dataclass, field
from typing import Union

CRLF = b"\r\n"

SIMPLE_STRING_PREFIX = b"+"
ERROR_PREFIX = b"-"
INTEGER_PREFIX = b":"
BULK_STRING_PREFIX = b"$"
ARRAY_PREFIX = b"*"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class SimpleString:
    """Simple String型を表すラッパー (+)"""
    value: str


@dataclass(frozen=True)
class RedisError:
    """Error型を表すラッパー (-)

    例: RedisError("WRONGTYPE Operation against a key") の場合
        kind == "WRONGTYPE", message == "Operation against a key"
    """
    value: str

    @property
    def kind(self) -> str:
        """先頭の大文字の単語（ERR, WRONGTYPEなど）。なければ空文字列."""
        head = self.value.split(" ", 1)[0]
        return head if head and head.isupper() else ""

    @property
    def message(self) -> str:
        """kindを除いたエラーメッセージ本体."""
        if not self.kind:
            return self.value
        return self.value[len(self.kind):].lstrip(" ")


@dataclass(frozen=True)
class Integer:
    """Integer型を表すラッパー (:)"""
    value: int


@dataclass(frozen=True)
class BulkString:
    """Bulk String型を表すラッパー ($)

    value が None の場合は Null Bulk String ($-1)、
    b"" の場合は空の Bulk String ($0) を表す。
    """
    value: bytes | None

    @property
    def is_null(self) -> bool:
        return self.value is None


@dataclass(frozen=True)
class Array:
    """Array型を表すラッパー (*)

    items が None の場合は Null Array (*-1)、() の場合は空の Array (*0)。
    リストを渡した場合はタプルに変換して保持する。
    """
    items: tuple | None  # Noneの場合はNull Array

    def __post_init__(self) -> None:
        if self.items is not None and not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    @property
    def is_null(self) -> bool:
        return self.items is None


RespValue = Union[SimpleString, RedisError, Integer, BulkString, Array]


def to_bytes(value: str | bytes | bytearray | memoryview | int) -> bytes:
    """コマンド引数を不透明なバイト列に変換する.

    Args:
        value: 文字列（UTF-8でエンコード）、バイト列、または整数

    Returns:
        バイト列

    Raises:
        TypeError: 変換できない型の場合
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    # boolはintのサブクラスだが、コマンド引数としては曖昧なので拒否する
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value).encode("ascii")
    raise TypeError(f"Unsupported argument type: {type(value).__name__}")


@dataclass(frozen=True)
class Command:
    """送信するコマンド（コマンド名 + バイナリ引数の列）.

    Attributes:
        name: コマンド名（例: b"SET"）
        args: 引数のタプル

    【使い方】
    cmd = Command.of("SET", "abc", b"123")
    """

    name: bytes
    args: tuple[bytes, ...] = field(default=())

    def __post_init__(self) -> None:
        # コンストラクタを直接呼んだ場合も name/args をバイト列に揃える
        object.__setattr__(self, "name", to_bytes(self.name))
        object.__setattr__(self, "args", tuple(to_bytes(arg) for arg in self.args))

    @classmethod
    def of(cls, name, *args) -> "Command":
        """任意の文字列・バイト列・整数からコマンドを作成する."""
        return cls(name, args)

    def __len__(self) -> int:
        """エンコード時の配列要素数（コマンド名 + 引数）."""
        return 1 + len(self.args)


class RESPError(Exception):
    """このパッケージが送出するすべての例外の基底クラス."""


class RESPProtocolError(RESPError):
    """RESPプロトコルのパースエラー（フレーミングエラー）.

    このエラーが発生したストリームは同期が失われているため、
    呼び出し側は接続を破棄しなければならない。

    例:
        raise RESPProtocolError(f"Expected CRLF after bulk string, got: {tail!r}")
    """


class InvalidPrefixError(RESPProtocolError):
    """先頭バイトが + - : $ * のいずれでもない."""


class MalformedLineError(RESPProtocolError):
    """ヘッダ行がCR/LFを含む、UTF-8として不正、または長すぎる."""


class BadIntegerError(RESPProtocolError):
    """Integer応答が符号付き64bit整数として解釈できない."""


class BadBulkStringError(RESPProtocolError):
    """Bulk Stringの長さヘッダ、または末尾のCRLFが不正."""


class BadArrayError(RESPProtocolError):
    """Arrayの要素数ヘッダが不正."""


class NestingTooDeepError(RESPProtocolError):
    """Arrayのネストが上限を超えた."""


class ServerError(RESPError):
    """サーバがError応答を返した.

    フレーミングの問題ではなく、サーバがコマンドを拒否したことを表す。
    接続はそのまま使い続けられる。
    """

    def __init__(self, reply: RedisError) -> None:
        super().__init__(reply.value)
        self.reply = reply

    @property
    def kind(self) -> str:
        return self.reply.kind


class UnexpectedReplyError(RESPError):
    """応答の型または値がコマンドの期待と一致しない."""

    def __init__(self, command: str, reply: RespValue) -> None:
        super().__init__(f"Unexpected reply to {command}: {reply!r}")
        self.command = command
        self.reply = reply


class ConnectionClosedError(RESPError):
    """クローズ済み、または破棄された接続を使おうとした."""
