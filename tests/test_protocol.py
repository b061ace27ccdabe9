"""Tests for the RESP value model and errors."""

import dataclasses

import pytest

from mini_resp.protocol import (
    Array,
    BulkString,
    Command,
    Integer,
    RedisError,
    RESPError,
    ServerError,
    SimpleString,
    UnexpectedReplyError,
)


class TestValueModel:
    """Test reply value semantics."""

    def test_null_is_not_empty(self) -> None:
        """Test that null and empty values never compare equal."""
        assert BulkString(None) != BulkString(b"")
        assert Array(None) != Array(())
        assert BulkString(None).is_null
        assert Array(None).is_null
        assert not Array([]).is_null

    def test_array_items_are_frozen(self) -> None:
        """Test that list items are stored as a tuple."""
        items = [Integer(1), Integer(2)]
        array = Array(items)
        items.append(Integer(3))

        assert array.items == (Integer(1), Integer(2))
        assert array == Array((Integer(1), Integer(2)))

    def test_values_are_immutable(self) -> None:
        """Test that reply values cannot be modified."""
        value = SimpleString("OK")
        with pytest.raises(dataclasses.FrozenInstanceError):
            value.value = "NO"  # type: ignore[misc]

    def test_values_of_different_types_differ(self) -> None:
        """Test that a status reply is not an error reply."""
        assert SimpleString("OK") != RedisError("OK")
        assert BulkString(b"1") != Integer(1)

    def test_redis_error_kind(self) -> None:
        """Test splitting an error reply into kind and message."""
        error = RedisError("WRONGTYPE Operation against a key holding the wrong kind of value")
        assert error.kind == "WRONGTYPE"
        assert error.message == "Operation against a key holding the wrong kind of value"

        # 大文字の接頭辞がない場合
        plain = RedisError("something failed")
        assert plain.kind == ""
        assert plain.message == "something failed"


class TestCommand:
    """Test the outbound command model."""

    def test_of_converts_arguments(self) -> None:
        """Test that text, bytes and integers become bytes."""
        command = Command.of("SET", "key", b"\x00", bytearray(b"ba"), memoryview(b"mv"), 10)

        assert command.name == b"SET"
        assert command.args == (b"key", b"\x00", b"ba", b"mv", b"10")
        assert len(command) == 6

    def test_no_arguments(self) -> None:
        """Test a command without arguments."""
        command = Command.of("PING")

        assert command.args == ()
        assert len(command) == 1

    @pytest.mark.parametrize("bad", [None, 1.5, True, object()])
    def test_unsupported_argument_type(self, bad) -> None:
        """Test that non-binary arguments are rejected."""
        with pytest.raises(TypeError):
            Command.of("SET", "key", bad)

    def test_constructor_normalizes_text(self) -> None:
        """Test that the plain constructor also stores bytes."""
        command = Command("SET", ["key", 1])

        assert command.name == b"SET"
        assert command.args == (b"key", b"1")
        assert command == Command.of("SET", "key", 1)

    def test_constructor_rejects_unsupported_types(self) -> None:
        """Test that the plain constructor validates arguments too."""
        with pytest.raises(TypeError):
            Command("SET", (None,))


class TestErrors:
    """Test error types."""

    def test_server_error_carries_reply(self) -> None:
        """Test that ServerError keeps the reply it was raised for."""
        reply = RedisError("ERR wrong type")
        error = ServerError(reply)

        assert isinstance(error, RESPError)
        assert error.reply is reply
        assert error.kind == "ERR"
        assert str(error) == "ERR wrong type"

    def test_unexpected_reply_error(self) -> None:
        """Test the message of UnexpectedReplyError."""
        error = UnexpectedReplyError("PING", SimpleString("OK"))

        assert error.command == "PING"
        assert error.reply == SimpleString("OK")
        assert "PING" in str(error)
