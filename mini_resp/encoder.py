"""RESP encoder.

このモジュールは、Commandをリクエストフレーム（Bulk Stringの配列）に、
また応答値（RespValue）をバイト列にエンコードする処理を担当します。

エンコードはI/Oを伴わない純粋な処理で、バイト列の引数に対しては失敗しない。
"""

from .protocol import (
    ARRAY_PREFIX,
    BULK_STRING_PREFIX,
    CRLF,
    ERROR_PREFIX,
    INTEGER_PREFIX,
    SIMPLE_STRING_PREFIX,
    Array,
    BulkString,
    Command,
    Integer,
    RedisError,
    SimpleString,
)


class RESPEncoder:
    """RESPプロトコルのエンコーダ.

    責務:
    - Commandのエンコード（サーバへ送るリクエスト）
    - 応答値のエンコード（テスト用サーバやラウンドトリップ検証で使用）
    """

    def encode(self, command: Command) -> bytes:
        """Commandをリクエストフレームにエンコード.

        Args:
            command: エンコードするコマンド

        Returns:
            RESP Array形式のバイト列。要素はすべてBulk String。

        例: Command.of("SET", "abc", "123")
            → b'*3\\r\\n$3\\r\\nSET\\r\\n$3\\r\\nabc\\r\\n$3\\r\\n123\\r\\n'
        """
        parts = [self._header(ARRAY_PREFIX, len(command))]
        parts.append(self.encode_bulk_string(command.name))
        for arg in command.args:
            parts.append(self.encode_bulk_string(arg))
        return b"".join(parts)

    def encode_simple_string(self, value: str) -> bytes:
        """Simple Stringをエンコードする"""
        return SIMPLE_STRING_PREFIX + self._line(value) + CRLF

    def encode_error(self, message: str) -> bytes:
        """エラーメッセージをエンコードする"""
        return ERROR_PREFIX + self._line(message) + CRLF

    def encode_integer(self, value: int) -> bytes:
        """整数をエンコードする"""
        return self._header(INTEGER_PREFIX, value)

    def encode_bulk_string(self, value: bytes | None) -> bytes:
        """Bulk Stringをエンコードする

        Args:
            value: エンコードするバイト列（Noneの場合はNull Bulk String）

        Returns:
            RESP Bulk String形式（例: $3\\r\\nfoo\\r\\n または $-1\\r\\n）
        """
        if value is None:
            return BULK_STRING_PREFIX + b"-1" + CRLF

        # $<length>\r\n<data>\r\n
        return self._header(BULK_STRING_PREFIX, len(value)) + value + CRLF

    def encode_array(self, items) -> bytes:
        """Arrayをエンコード

        Args:
            items: RespValueの列（Noneの場合はNull Array）
        """
        if items is None:
            return ARRAY_PREFIX + b"-1" + CRLF

        parts = [self._header(ARRAY_PREFIX, len(items))]
        for item in items:
            parts.append(self.encode_value(item))
        return b"".join(parts)

    def encode_value(self, value) -> bytes:
        """応答値を適切な形式でエンコードする"""
        if isinstance(value, SimpleString):
            return self.encode_simple_string(value.value)
        elif isinstance(value, RedisError):
            return self.encode_error(value.value)
        elif isinstance(value, Integer):
            return self.encode_integer(value.value)
        elif isinstance(value, BulkString):
            return self.encode_bulk_string(value.value)
        elif isinstance(value, Array):
            return self.encode_array(value.items)
        else:
            raise ValueError(f"Unsupported type: {type(value)}")

    @staticmethod
    def _header(prefix: bytes, number: int) -> bytes:
        return prefix + str(number).encode("ascii") + CRLF

    @staticmethod
    def _line(text: str) -> bytes:
        # Simple String/Errorは1行でなければならない
        if "\r" in text or "\n" in text:
            raise ValueError(f"Simple string must not contain CR or LF: {text!r}")
        return text.encode("utf-8")
