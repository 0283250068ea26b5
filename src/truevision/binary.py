"""バイナリ読み取り補助モジュール"""

import struct
from typing import Any, BinaryIO

from truevision.errors import TruncatedDataError


def read_exact(stream: BinaryIO, size: int, what: str = "データ") -> bytes:
    """ストリームから指定バイト数をちょうど読み取る

    Args:
        stream: 読み取り元のバイナリストリーム
        size: 読み取るバイト数
        what: エラーメッセージに含める読み取り対象の名前

    Returns:
        読み取ったバイト列（長さは必ず size）

    Raises:
        TruncatedDataError: ストリームが途中で終端に達した場合
    """
    if size == 0:
        return b""

    data = stream.read(size)
    if data is None or len(data) < size:
        got = 0 if data is None else len(data)
        raise TruncatedDataError(f"{what}が不完全です: {size}バイト必要ですが{got}バイトしかありません")
    return data


def read_struct(stream: BinaryIO, fmt: struct.Struct, what: str = "データ") -> tuple[Any, ...]:
    """ストリームから構造体を1つ読み取ってアンパックする"""
    return fmt.unpack(read_exact(stream, fmt.size, what))
