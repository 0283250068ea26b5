"""TGA画像エンコーダーモジュール

ピクセルアクセサ（width / height / get_pixel_rgba を持つオブジェクト）から
TGA形式のバイトストリームを生成する。

対応する保存モード:
- RAW_RGB: 24ビットトゥルーカラー（非圧縮、画像タイプ2）
- RLE_RGB: 24ビットトゥルーカラー（ランレングス圧縮、画像タイプ10）
- RAW_PALETTE: 8ビットパレット（非圧縮、画像タイプ1）
- RLE_PALETTE: 8ビットパレット（ランレングス圧縮、画像タイプ9）

フッターや拡張領域は出力しない。原点は常に左下として書き出す。
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import BinaryIO, Protocol

from truevision.header import ColorMapType, ImageType, TGAHeader
from truevision.logger import CodecLogger
from truevision.pixel_format import Rgba
from truevision.rle import RLEEncoder

MAX_PALETTE_COLORS = 256
"""8ビットパレットに格納できる最大色数"""


class PixelAccessor(Protocol):
    """ピクセルアクセサのプロトコル

    エンコーダーに画像を渡すためのインターフェース。
    座標 (0, 0) はTGAの慣例に従い画像の左下とする。
    """

    @property
    def width(self) -> int:
        """画像の幅（ピクセル）"""
        ...

    @property
    def height(self) -> int:
        """画像の高さ（ピクセル）"""
        ...

    def get_pixel_rgba(self, x: int, y: int) -> Rgba:
        """指定座標のピクセルを (r, g, b, a) で返す"""
        ...


class SaveMode(IntEnum):
    """保存モード

    値は出力される画像タイプコードと一致する。
    """

    RAW_RGB = 2
    RLE_RGB = 10
    RAW_PALETTE = 1
    RLE_PALETTE = 9

    @property
    def is_rle(self) -> bool:
        """ランレングス圧縮するモードかどうかを返す"""
        return self in (SaveMode.RLE_RGB, SaveMode.RLE_PALETTE)

    @property
    def is_palette(self) -> bool:
        """パレット形式で出力するモードかどうかを返す"""
        return self in (SaveMode.RAW_PALETTE, SaveMode.RLE_PALETTE)


@dataclass
class Palette:
    """8ビット出力用のパレット

    Attributes:
        colors: 出現順に並んだ (b, g, r) の一覧（最大256色）
        indices: (r, g, b) からパレットインデックスへの対応表
    """

    colors: list[tuple[int, int, int]] = field(default_factory=list)
    indices: dict[tuple[int, int, int], int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.colors)

    def add(self, r: int, g: int, b: int, max_colors: int = MAX_PALETTE_COLORS) -> None:
        """色を追加する（既出の色、または満杯の場合は何もしない）"""
        key = (r, g, b)
        if key in self.indices or len(self.colors) >= max_colors:
            return
        self.indices[key] = len(self.colors)
        self.colors.append((b, g, r))

    def index_of(self, r: int, g: int, b: int) -> int:
        """色のパレットインデックスを返す

        パレットに収まらなかった色は0を返す。
        """
        return self.indices.get((r, g, b), 0)

    def to_bytes(self) -> bytes:
        """パレットをBGR順のバイト列に変換する"""
        return b"".join(bytes(color) for color in self.colors)


def iter_pixels(accessor: PixelAccessor) -> Iterator[Rgba]:
    """ピクセルを行優先（y を外側、x を内側）で列挙する"""
    for y in range(accessor.height):
        for x in range(accessor.width):
            yield accessor.get_pixel_rgba(x, y)


def iter_rows(accessor: PixelAccessor) -> Iterator[list[Rgba]]:
    """走査線ごとにピクセルのリストを列挙する"""
    for y in range(accessor.height):
        yield [accessor.get_pixel_rgba(x, y) for x in range(accessor.width)]


def build_palette(accessor: PixelAccessor, max_colors: int = MAX_PALETTE_COLORS) -> Palette:
    """画像を走査して重複のないパレットを作成する

    出現順に最大 max_colors 色を登録する。それ以降に現れた新しい色は
    パレットに登録されず、書き出し時にはインデックス0として扱われる。

    Args:
        accessor: 走査対象の画像
        max_colors: パレットの最大色数

    Returns:
        作成されたパレット
    """
    palette = Palette()
    for r, g, b, _ in iter_pixels(accessor):
        palette.add(r & 0xFF, g & 0xFF, b & 0xFF, max_colors)
    return palette


class TGAEncoder:
    """TGA画像エンコーダー

    使用例:
        >>> encoder = TGAEncoder()
        >>> with open("out.tga", "wb") as f:
        ...     encoder.encode(SaveMode.RLE_RGB, image, f)
    """

    def __init__(
        self,
        rle_capacity: int = RLEEncoder.DEFAULT_CAPACITY,
        logger: CodecLogger | None = None,
    ) -> None:
        """エンコーダーを初期化する

        Args:
            rle_capacity: ランレングス符号化バッファの容量
            logger: 出力情報の出力先（Noneの場合は出力しない）
        """
        self._rle_capacity = rle_capacity
        self._logger = logger

    def _debug(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message)

    def encode(self, mode: SaveMode, accessor: PixelAccessor, sink: BinaryIO) -> None:
        """画像をTGA形式で書き出す

        出力先はフラッシュするが閉じない。失敗時に書き込み済みのデータは巻き戻さない。

        Args:
            mode: 保存モード
            accessor: 書き出す画像
            sink: 出力先のバイナリストリーム

        Raises:
            ValueError: 画像サイズが16ビットの範囲を超える場合
        """
        mode = SaveMode(mode)
        width, height = accessor.width, accessor.height
        if not (0 <= width <= 0xFFFF and 0 <= height <= 0xFFFF):
            raise ValueError(f"画像サイズがTGAの上限を超えています: {width}x{height}")

        self._debug(f"書き出し: mode={mode.name} {width}x{height}")

        if mode.is_palette:
            self._encode_palette(mode, accessor, sink)
        else:
            self._encode_rgb(mode, accessor, sink)

        sink.flush()

    def _encode_rgb(self, mode: SaveMode, accessor: PixelAccessor, sink: BinaryIO) -> None:
        """24ビットトゥルーカラーで書き出す"""
        header = TGAHeader(
            color_map_type=ColorMapType.NONE,
            image_type=ImageType(mode),
            width=accessor.width,
            height=accessor.height,
            pixel_depth=24,
        )
        sink.write(header.to_bytes())

        if mode.is_rle:
            # パケットは走査線をまたがない
            rle = RLEEncoder(sink, self._rle_capacity)
            for row in iter_rows(accessor):
                for r, g, b, _ in row:
                    rle.write(bytes((b & 0xFF, g & 0xFF, r & 0xFF)))
                rle.flush()
        else:
            sink.write(
                b"".join(
                    bytes((b & 0xFF, g & 0xFF, r & 0xFF)) for r, g, b, _ in iter_pixels(accessor)
                )
            )

    def _encode_palette(self, mode: SaveMode, accessor: PixelAccessor, sink: BinaryIO) -> None:
        """8ビットパレット形式で書き出す

        1回目の走査でパレットを作成し、2回目の走査で各ピクセルのインデックスを出力する。
        """
        palette = build_palette(accessor)
        self._debug(f"パレット: {len(palette)}色")

        header = TGAHeader(
            color_map_type=ColorMapType.INCLUDED,
            image_type=ImageType(mode),
            color_map_start=0,
            color_map_length=len(palette),
            color_map_depth=24,
            width=accessor.width,
            height=accessor.height,
            pixel_depth=8,
        )
        sink.write(header.to_bytes())
        sink.write(palette.to_bytes())

        if mode.is_rle:
            rle = RLEEncoder(sink, self._rle_capacity)
            for row in iter_rows(accessor):
                for r, g, b, _ in row:
                    rle.write(palette.index_of(r & 0xFF, g & 0xFF, b & 0xFF))
                rle.flush()
        else:
            sink.write(
                bytes(
                    palette.index_of(r & 0xFF, g & 0xFF, b & 0xFF)
                    for r, g, b, _ in iter_pixels(accessor)
                )
            )


def encode(
    mode: SaveMode,
    accessor: PixelAccessor,
    sink: BinaryIO,
    *,
    rle_capacity: int = RLEEncoder.DEFAULT_CAPACITY,
    logger: CodecLogger | None = None,
) -> None:
    """画像をTGA形式でストリームに書き出す

    Args:
        mode: 保存モード
        accessor: 書き出す画像
        sink: 出力先のバイナリストリーム（閉じない）
        rle_capacity: ランレングス符号化バッファの容量
        logger: 出力情報の出力先
    """
    TGAEncoder(rle_capacity=rle_capacity, logger=logger).encode(mode, accessor, sink)


def save(
    path: Path,
    mode: SaveMode,
    accessor: PixelAccessor,
    *,
    rle_capacity: int = RLEEncoder.DEFAULT_CAPACITY,
    logger: CodecLogger | None = None,
) -> None:
    """画像をTGAファイルとして保存する

    Args:
        path: 保存先のファイルパス（親ディレクトリは自動作成する）
        mode: 保存モード
        accessor: 書き出す画像
        rle_capacity: ランレングス符号化バッファの容量
        logger: 出力情報の出力先
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        encode(mode, accessor, f, rle_capacity=rle_capacity, logger=logger)
