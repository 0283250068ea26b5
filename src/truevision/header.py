"""TGAヘッダーモジュール

TGAファイル先頭の18バイト固定長ヘッダーの解析と生成を行う。

ヘッダーの構造（すべてリトルエンディアン）:
- IDフィールド長(1) + カラーマップタイプ(1) + 画像タイプ(1)
- カラーマップ開始位置(2) + カラーマップ長(2) + カラーマップ深度(1)
- X原点(2) + Y原点(2) + 幅(2) + 高さ(2) + ピクセル深度(1) + 画像記述子(1)
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO

from truevision.binary import read_exact
from truevision.bits import extract_bits
from truevision.errors import TruncatedDataError


class ColorMapType(IntEnum):
    """カラーマップタイプ"""

    NONE = 0
    INCLUDED = 1

    @property
    def label(self) -> str:
        """表示用の名前を返す"""
        return "no palette" if self is ColorMapType.NONE else "palette"


class ImageType(IntEnum):
    """画像タイプ

    ヘッダー3バイト目の画像タイプコード。
    9以降はランレングス圧縮された各タイプに対応する。
    """

    NO_IMAGE = 0
    COLOR_MAPPED = 1
    TRUE_COLOR = 2
    MONOCHROME = 3
    RLE_COLOR_MAPPED = 9
    RLE_TRUE_COLOR = 10
    RLE_MONOCHROME = 11

    @property
    def label(self) -> str:
        """表示用の名前を返す"""
        return _IMAGE_TYPE_LABELS[self]

    @property
    def is_rle(self) -> bool:
        """ランレングス圧縮されたタイプかどうかを返す"""
        return self in (
            ImageType.RLE_COLOR_MAPPED,
            ImageType.RLE_TRUE_COLOR,
            ImageType.RLE_MONOCHROME,
        )

    @property
    def is_color_mapped(self) -> bool:
        """カラーマップ（パレット）形式かどうかを返す"""
        return self in (ImageType.COLOR_MAPPED, ImageType.RLE_COLOR_MAPPED)


_IMAGE_TYPE_LABELS: dict[ImageType, str] = {
    ImageType.NO_IMAGE: "no image",
    ImageType.COLOR_MAPPED: "color-mapped(uncompressed)",
    ImageType.TRUE_COLOR: "true-color(uncompressed)",
    ImageType.MONOCHROME: "monochrome(uncompressed)",
    ImageType.RLE_COLOR_MAPPED: "color-mapped(RLE)",
    ImageType.RLE_TRUE_COLOR: "true-color(RLE)",
    ImageType.RLE_MONOCHROME: "monochrome(RLE)",
}


class ImageOrigin(IntEnum):
    """画像の原点位置（画像記述子のビット4-5）"""

    BOTTOM_LEFT = 0
    BOTTOM_RIGHT = 1
    TOP_LEFT = 2
    TOP_RIGHT = 3

    @property
    def label(self) -> str:
        """表示用の名前を返す"""
        return self.name.lower().replace("_", " ")

    @property
    def is_top(self) -> bool:
        """先頭行が画像の上端かどうかを返す"""
        return self in (ImageOrigin.TOP_LEFT, ImageOrigin.TOP_RIGHT)

    @property
    def is_right(self) -> bool:
        """各行の先頭ピクセルが画像の右端かどうかを返す"""
        return self in (ImageOrigin.BOTTOM_RIGHT, ImageOrigin.TOP_RIGHT)


def to_image_type(code: int) -> ImageType | int:
    """画像タイプコードを列挙型に変換する

    未知のコードは未対応形式として報告できるよう整数のまま返す。
    """
    try:
        return ImageType(code)
    except ValueError:
        return code


def image_type_label(image_type: ImageType | int) -> str:
    """画像タイプの表示用文字列を返す"""
    if isinstance(image_type, ImageType):
        return image_type.label
    return "???"


@dataclass(frozen=True)
class TGAHeader:
    """TGAヘッダー情報

    TGAファイル先頭18バイトから読み取った情報を保持する不変データクラス。

    Attributes:
        id_length: 画像IDフィールドの長さ（0-255）
        color_map_type: カラーマップタイプ（0=なし、1=あり）
        image_type: 画像タイプ（未知のコードは整数のまま保持）
        color_map_start: パレット先頭エントリのインデックス
        color_map_length: パレットのエントリ数
        color_map_depth: パレット1エントリあたりのビット数
        x_offset: 画像のX原点
        y_offset: 画像のY原点
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル）
        pixel_depth: 格納されたピクセル1つあたりのビット数
        image_descriptor: 属性ビット数と原点位置を含む画像記述子
    """

    id_length: int = 0
    color_map_type: int = ColorMapType.NONE
    image_type: ImageType | int = ImageType.TRUE_COLOR
    color_map_start: int = 0
    color_map_length: int = 0
    color_map_depth: int = 0
    x_offset: int = 0
    y_offset: int = 0
    width: int = 0
    height: int = 0
    pixel_depth: int = 24
    image_descriptor: int = 0

    SIZE = 18
    """ヘッダーサイズ（バイト）"""

    _STRUCT = struct.Struct("<BBBHHBHHHHBB")

    @classmethod
    def from_bytes(cls, data: bytes) -> "TGAHeader":
        """18バイトのバッファからヘッダーを解析する

        Args:
            data: ヘッダーのバイト列（先頭18バイトを使用）

        Returns:
            解析されたヘッダー情報

        Raises:
            TruncatedDataError: データが18バイトに満たない場合
        """
        if len(data) < cls.SIZE:
            raise TruncatedDataError(
                f"ヘッダーが不完全です: {cls.SIZE}バイト必要ですが{len(data)}バイトしかありません"
            )

        (
            id_length,
            color_map_type,
            image_type,
            color_map_start,
            color_map_length,
            color_map_depth,
            x_offset,
            y_offset,
            width,
            height,
            pixel_depth,
            image_descriptor,
        ) = cls._STRUCT.unpack(data[: cls.SIZE])

        return cls(
            id_length=id_length,
            color_map_type=color_map_type,
            image_type=to_image_type(image_type),
            color_map_start=color_map_start,
            color_map_length=color_map_length,
            color_map_depth=color_map_depth,
            x_offset=x_offset,
            y_offset=y_offset,
            width=width,
            height=height,
            pixel_depth=pixel_depth,
            image_descriptor=image_descriptor,
        )

    @classmethod
    def parse(cls, stream: BinaryIO) -> "TGAHeader":
        """ストリームの現在位置からヘッダーを読み取る

        Raises:
            TruncatedDataError: 18バイト読み取れない場合
        """
        return cls.from_bytes(read_exact(stream, cls.SIZE, "ヘッダー"))

    def to_bytes(self) -> bytes:
        """ヘッダーを18バイトのバイト列に変換する"""
        return self._STRUCT.pack(
            self.id_length,
            int(self.color_map_type),
            int(self.image_type),
            self.color_map_start,
            self.color_map_length,
            self.color_map_depth,
            self.x_offset,
            self.y_offset,
            self.width,
            self.height,
            self.pixel_depth,
            self.image_descriptor,
        )

    @property
    def attribute_bits(self) -> int:
        """1ピクセルあたりの属性（アルファ）ビット数を返す"""
        return extract_bits(self.image_descriptor, 0, 4)

    @property
    def image_origin(self) -> ImageOrigin:
        """画像の原点位置を返す"""
        return ImageOrigin(extract_bits(self.image_descriptor, 4, 2))

    @property
    def pixel_count(self) -> int:
        """総ピクセル数を返す"""
        return self.width * self.height

    @property
    def stored_bytes_per_pixel(self) -> int:
        """ピクセルデータ1件あたりのバイト数を返す

        カラーマップ形式ではパレットのインデックス幅になる。
        """
        return (self.pixel_depth + 7) // 8

    def describe(self) -> list[tuple[str, str]]:
        """表示用の (項目名, 値) の一覧を返す"""
        try:
            color_map_label = ColorMapType(self.color_map_type).label
        except ValueError:
            color_map_label = "???"

        return [
            ("IDLength", str(self.id_length)),
            ("ColorMapType", f"{self.color_map_type}({color_map_label})"),
            ("ImageType", f"{int(self.image_type)}({image_type_label(self.image_type)})"),
            ("ColorMapStart", str(self.color_map_start)),
            ("ColorMapLength", str(self.color_map_length)),
            ("ColorMapDepth", str(self.color_map_depth)),
            ("XOffset", str(self.x_offset)),
            ("YOffset", str(self.y_offset)),
            ("Width", str(self.width)),
            ("Height", str(self.height)),
            ("PixelDepth", str(self.pixel_depth)),
            (
                "ImageDescriptor",
                f"0x{self.image_descriptor:02X}(attribute bits: {self.attribute_bits}, "
                f"image origin: {self.image_origin.label})",
            ),
        ]
