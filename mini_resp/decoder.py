"""RESP decoder.

このモジュールは、StreamReaderから応答フレームを1つ読み取り、
RespValueに変換する処理を担当します。

読み取りは readuntil(b"\\r\\n") と readexactly(n) だけで行うため、
データが何回に分かれて届いても正しく復元でき、
現在のフレームの終端より先のバイトを消費することはない。
"""

import asyncio
import re
from asyncio import StreamReader

from .protocol import (
    ARRAY_PREFIX,
    BULK_STRING_PREFIX,
    CRLF,
    ERROR_PREFIX,
    INT64_MAX,
    INT64_MIN,
    INTEGER_PREFIX,
    SIMPLE_STRING_PREFIX,
    Array,
    BadArrayError,
    BadBulkStringError,
    BadIntegerError,
    BulkString,
    Integer,
    InvalidPrefixError,
    MalformedLineError,
    NestingTooDeepError,
    RedisError,
    RespValue,
    SimpleString,
)

_INTEGER_RE = re.compile(rb"-?[0-9]+")
# int64の最長表記 "-9223372036854775808" の長さ
_MAX_INTEGER_LENGTH = len(str(INT64_MIN))

DEFAULT_MAX_DEPTH = 128
# Redisのproto-max-bulk-lenのデフォルト値
DEFAULT_MAX_BULK_LENGTH = 512 * 1024 * 1024


class RESPDecoder:
    """RESPプロトコルのデコーダ.

    責務:
    - 1回のdecode()呼び出しで応答フレームを1つだけ読み取る
    - Null値と空値（$-1 と $0、*-1 と *0）を区別する
    - ネストしたArrayを深さ制限付きで再帰的にデコードする

    デコーダ自身は設定値しか持たない。読み取り位置はStreamReaderが管理する。
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_bulk_length: int = DEFAULT_MAX_BULK_LENGTH,
    ) -> None:
        """デコーダを初期化.

        Args:
            max_depth: Arrayのネストの上限
            max_bulk_length: Bulk Stringの長さの上限（バイト）
        """
        self.max_depth = max_depth
        self.max_bulk_length = max_bulk_length

    async def decode(self, reader: StreamReader) -> RespValue:
        """StreamReaderから応答を1つ読み取りデコード.

        Args:
            reader: asyncioのStreamReader

        Returns:
            デコードした応答値

        Raises:
            RESPProtocolError: 不正なRESP形式（ストリームは破棄すべき）
            asyncio.IncompleteReadError: フレームの途中でストリームが終了した
        """
        return await self._decode(reader, 0)

    async def _decode(self, reader: StreamReader, depth: int) -> RespValue:
        prefix = await reader.readexactly(1)

        if prefix == SIMPLE_STRING_PREFIX:
            return SimpleString(await self._read_text_line(reader))
        if prefix == ERROR_PREFIX:
            return RedisError(await self._read_text_line(reader))
        if prefix == INTEGER_PREFIX:
            return await self._decode_integer(reader)
        if prefix == BULK_STRING_PREFIX:
            return await self._decode_bulk_string(reader)
        if prefix == ARRAY_PREFIX:
            return await self._decode_array(reader, depth)

        raise InvalidPrefixError(f"Unknown RESP type prefix: {prefix!r}")

    async def _decode_integer(self, reader: StreamReader) -> Integer:
        line = await self._read_line(reader)
        value = self._parse_int(line)
        if value is None:
            raise BadIntegerError(f"Invalid integer reply: {line!r}")
        return Integer(value)

    async def _decode_bulk_string(self, reader: StreamReader) -> BulkString:
        line = await self._read_line(reader)
        length = self._parse_int(line)
        if length is None:
            raise BadBulkStringError(f"Invalid bulk string length: {line!r}")

        # Null値のチェック
        if length == -1:
            return BulkString(None)
        if length < 0:
            raise BadBulkStringError(f"Negative bulk string length: {length}")
        if length > self.max_bulk_length:
            raise BadBulkStringError(
                f"Bulk string length {length} exceeds limit {self.max_bulk_length}"
            )

        # データを読む（データ + \r\n）
        data = await reader.readexactly(length + 2)

        # 末尾が\r\nかチェック（宣言された長さと実データの不一致）
        if data[-2:] != CRLF:
            raise BadBulkStringError(
                f"Expected CRLF after {length} byte bulk string, got: {data[-2:]!r}"
            )

        # バイナリセーフ: デコードせずにそのまま返す
        return BulkString(data[:-2])

    async def _decode_array(self, reader: StreamReader, depth: int) -> Array:
        if depth >= self.max_depth:
            raise NestingTooDeepError(f"Array nesting exceeds {self.max_depth} levels")

        line = await self._read_line(reader)
        count = self._parse_int(line)
        if count is None:
            raise BadArrayError(f"Invalid array length: {line!r}")

        if count == -1:
            return Array(None)
        if count < 0:
            raise BadArrayError(f"Negative array length: {count}")

        # 要素のデコードに失敗した場合は例外がそのまま伝播し、部分的なArrayは返さない
        items = []
        for _ in range(count):
            items.append(await self._decode(reader, depth + 1))
        return Array(tuple(items))

    async def _read_line(self, reader: StreamReader) -> bytes:
        """CRLFまでの1行を読み取り、CRLFを除いて返す."""
        try:
            line = await reader.readuntil(CRLF)
        except asyncio.LimitOverrunError as e:
            raise MalformedLineError(f"Header line exceeds {e.consumed} bytes") from e
        line = line[:-2]  # CRLF削除

        if b"\r" in line or b"\n" in line:
            raise MalformedLineError(f"Unexpected CR or LF in line: {line!r}")
        return line

    async def _read_text_line(self, reader: StreamReader) -> str:
        line = await self._read_line(reader)
        try:
            return line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedLineError(f"Line is not valid UTF-8: {line!r}") from e

    @staticmethod
    def _parse_int(line: bytes) -> int | None:
        # int()は4300桁を超えるとValueErrorになるため、先に長さで弾く
        if len(line) > _MAX_INTEGER_LENGTH:
            return None
        # -?[0-9]+ のみ許可（int()は空白・"+"・"_"も受け付ける）
        if not _INTEGER_RE.fullmatch(line):
            return None
        value = int(line)
        if not INT64_MIN <= value <= INT64_MAX:
            return None
        return value
