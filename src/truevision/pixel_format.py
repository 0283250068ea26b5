"""ピクセル形式モジュール

画像タイプと色深度の組み合わせから、デコード後のピクセル形式を決定する。

| 画像タイプ | 参照する深度 | 15/16 | 24 | 32 | 8 |
|---|---|---|---|---|---|
| カラーマップ | color_map_depth | BGR555 | BGR24 | BGRA32 | - |
| トゥルーカラー | pixel_depth | BGR555 | BGR24 | BGRA32 | - |
| モノクロ | pixel_depth | - | - | - | GRAY8 |
"""

from enum import Enum

from truevision.errors import UnsupportedFormatError
from truevision.header import ImageType, image_type_label

Rgba = tuple[int, int, int, int]


class PixelFormat(Enum):
    """デコード後のピクセル形式"""

    BGRA32 = "bgra32"
    BGR24 = "bgr24"
    BGR555 = "bgr555"
    GRAY8 = "gray8"

    @property
    def bytes_per_pixel(self) -> int:
        """1ピクセルあたりのバイト数を返す"""
        return _BYTES_PER_PIXEL[self]

    @property
    def has_alpha_channel(self) -> bool:
        """アルファチャンネル用のバイトを持つかどうかを返す"""
        return self is PixelFormat.BGRA32

    def to_rgba(self, record: bytes | bytearray | memoryview) -> Rgba:
        """格納形式のピクセル1件を (r, g, b, a) に変換する

        Args:
            record: bytes_per_pixel バイトのピクセルデータ

        Returns:
            8ビットずつの (r, g, b, a)
        """
        if self is PixelFormat.BGRA32:
            return record[2], record[1], record[0], record[3]
        if self is PixelFormat.BGR24:
            return record[2], record[1], record[0], 255
        if self is PixelFormat.BGR555:
            value = record[0] | (record[1] << 8)
            # ビット配置: x RRRRR GGGGG BBBBB
            r5 = (value >> 10) & 0x1F
            g5 = (value >> 5) & 0x1F
            b5 = value & 0x1F
            return _expand5(r5), _expand5(g5), _expand5(b5), 255
        if self is PixelFormat.GRAY8:
            value = record[0]
            return value, value, value, 255
        raise UnsupportedFormatError(f"ピクセル形式 {self} には対応していません")


_BYTES_PER_PIXEL: dict[PixelFormat, int] = {
    PixelFormat.BGRA32: 4,
    PixelFormat.BGR24: 3,
    PixelFormat.BGR555: 2,
    PixelFormat.GRAY8: 1,
}

_COLOR_DEPTHS: dict[int, PixelFormat] = {
    15: PixelFormat.BGR555,
    16: PixelFormat.BGR555,
    24: PixelFormat.BGR24,
    32: PixelFormat.BGRA32,
}

_MONOCHROME_DEPTHS: dict[int, PixelFormat] = {
    8: PixelFormat.GRAY8,
}


def _expand5(value: int) -> int:
    """5ビットのチャンネル値を8ビットに拡張する"""
    return (value << 3) | (value >> 2)


def resolve_pixel_format(
    image_type: ImageType | int,
    color_map_depth: int,
    pixel_depth: int,
) -> PixelFormat:
    """画像タイプと色深度からピクセル形式を決定する

    カラーマップ形式ではパレットの深度、それ以外ではピクセル深度を参照する。

    Args:
        image_type: ヘッダーの画像タイプ
        color_map_depth: パレット1エントリあたりのビット数
        pixel_depth: ピクセル1つあたりのビット数

    Returns:
        デコード後のピクセル形式

    Raises:
        UnsupportedFormatError: 画像タイプまたは色深度が対応表に無い場合
    """
    if image_type in (ImageType.COLOR_MAPPED, ImageType.RLE_COLOR_MAPPED):
        depth, table = color_map_depth, _COLOR_DEPTHS
    elif image_type in (ImageType.TRUE_COLOR, ImageType.RLE_TRUE_COLOR):
        depth, table = pixel_depth, _COLOR_DEPTHS
    elif image_type in (ImageType.MONOCHROME, ImageType.RLE_MONOCHROME):
        depth, table = pixel_depth, _MONOCHROME_DEPTHS
    else:
        raise UnsupportedFormatError(
            f'画像タイプ "{int(image_type)}({image_type_label(image_type)})" には対応していません'
        )

    pixel_format = table.get(depth)
    if pixel_format is None:
        raise UnsupportedFormatError(f"色深度 {depth}bpp には対応していません")
    return pixel_format
