"""TGAランレングス符号化モジュール

TGA形式のランレングス圧縮（画像タイプ9/10/11）の符号化と復号を行う。

パケットの構造:
- ヘッダー(1): ビット7=1 ならランレングスパケット、0 なら生パケット
- 下位7ビット + 1 がパケットに含まれるピクセル数（1-128）
- ランレングスパケットはピクセル1件、生パケットはピクセル数ぶんのデータが続く
"""

from collections.abc import Iterator
from typing import BinaryIO

from truevision.binary import read_exact
from truevision.errors import MalformedDataError

RUN_LENGTH_FLAG = 0x80
"""ランレングスパケットを示すヘッダーのビット"""

COUNT_MASK = 0x7F
"""ヘッダーのうちピクセル数 - 1 を表すビット"""

MAX_PACKET_PIXELS = 128
"""1パケットに含められる最大ピクセル数"""


class RLEEncoder:
    """TGAランレングス符号化クラス

    書き込まれたピクセルを固定長のバッファに溜め、まとめてパケット化して出力する。
    直前と同じピクセルは新しい要素を作らず、直前の要素の追加繰り返し回数を増やす。
    バッファが容量に達すると自動的に出力し、最後は呼び出し側が flush() で出力する。

    使用例:
        >>> encoder = RLEEncoder(sink)
        >>> for pixel in pixels:
        ...     encoder.write(pixel)
        >>> encoder.flush()
    """

    DEFAULT_CAPACITY: int = 65536
    """バッファの既定容量（要素数）"""

    MAX_EXTRA_REPEATS: int = MAX_PACKET_PIXELS - 1
    """1要素に記録できる追加繰り返し回数の上限"""

    def __init__(self, sink: BinaryIO, capacity: int = DEFAULT_CAPACITY) -> None:
        """符号化器を初期化する

        Args:
            sink: 出力先のバイナリストリーム
            capacity: バッファに溜められる要素数

        Raises:
            ValueError: capacity が1未満の場合
        """
        if capacity < 1:
            raise ValueError(f"バッファ容量は1以上である必要があります: {capacity}")

        self._sink = sink
        self._capacity = capacity
        self._pixels: list[bytes] = [b""] * capacity
        self._repeats: list[int] = [0] * capacity
        self._cursor = 0

    @property
    def capacity(self) -> int:
        """バッファ容量を返す"""
        return self._capacity

    @property
    def pending(self) -> int:
        """出力待ちの要素数を返す"""
        return self._cursor

    def write(self, pixel: bytes | bytearray | int) -> None:
        """ピクセルを1件追加する

        Args:
            pixel: ピクセルデータ（整数の場合は1バイトのピクセルとして扱う）
        """
        data = bytes((pixel,)) if isinstance(pixel, int) else bytes(pixel)

        last = self._cursor - 1
        if (
            last >= 0
            and self._pixels[last] == data
            and self._repeats[last] < self.MAX_EXTRA_REPEATS
        ):
            self._repeats[last] += 1
            return

        self._pixels[self._cursor] = data
        self._repeats[self._cursor] = 0
        self._cursor += 1

        if self._cursor >= self._capacity:
            self.flush()

    def flush(self) -> None:
        """バッファの内容をすべてパケット化して出力する

        バッファが空の場合は何も出力しない。
        """
        start = 0
        while start < self._cursor:
            if self._repeats[start] > 0:
                self._write_run_packet(start)
                start += 1
                continue

            end = start
            while (
                end + 1 < self._cursor
                and self._repeats[end + 1] == 0
                and end + 1 - start < MAX_PACKET_PIXELS
            ):
                end += 1
            self._write_raw_packet(start, end)
            start = end + 1

        self._cursor = 0

    def _write_run_packet(self, index: int) -> None:
        """ランレングスパケットを1つ出力する"""
        self._sink.write(bytes((RUN_LENGTH_FLAG | self._repeats[index],)))
        self._sink.write(self._pixels[index])

    def _write_raw_packet(self, start: int, end: int) -> None:
        """start から end まで（両端を含む）の生パケットを1つ出力する"""
        self._sink.write(bytes((end - start,)))
        self._sink.write(b"".join(self._pixels[start : end + 1]))


class RLEDecoder:
    """TGAランレングス復号クラス"""

    def iter_records(
        self,
        stream: BinaryIO,
        pixel_count: int,
        record_size: int,
    ) -> Iterator[bytes]:
        """ランレングス圧縮されたピクセルデータを1件ずつ復号する

        Args:
            stream: 圧縮データの先頭に位置するバイナリストリーム
            pixel_count: 復号するピクセル数
            record_size: ピクセル1件あたりのバイト数

        Yields:
            ピクセル1件ぶんのバイト列

        Raises:
            TruncatedDataError: 規定数のピクセルを復号する前にストリームが終端に達した場合
            MalformedDataError: パケットが画像の終端を越える場合
        """
        processed = 0
        while processed < pixel_count:
            (header,) = read_exact(stream, 1, "パケットヘッダー")
            count = (header & COUNT_MASK) + 1

            if processed + count > pixel_count:
                raise MalformedDataError(
                    f"パケットが画像の終端を越えています: "
                    f"{processed}+{count} > {pixel_count}ピクセル"
                )

            if header & RUN_LENGTH_FLAG:
                record = read_exact(stream, record_size, "ランレングスパケット")
                for _ in range(count):
                    yield record
            else:
                data = read_exact(stream, record_size * count, "生パケット")
                for i in range(count):
                    yield data[i * record_size : (i + 1) * record_size]

            processed += count

    def decode(self, stream: BinaryIO, pixel_count: int, record_size: int) -> bytes:
        """ランレングス圧縮されたピクセルデータをまとめて復号する

        Returns:
            pixel_count * record_size バイトの復号済みデータ
        """
        return b"".join(self.iter_records(stream, pixel_count, record_size))
