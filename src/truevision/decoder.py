"""TGA画像デコーダーモジュール

TGA形式のバイトストリームを解析し、ピクセル形式の確定したピクセルバッファに変換する。

読み取り手順:
1. ヘッダー(18) と画像IDフィールド
2. ピクセル形式の決定とパレットの読み取り
3. 末尾のフッター・拡張領域・開発者領域（読み取り後に位置を復元）
4. ピクセルデータ（非圧縮またはランレングス圧縮）

原点補正は行わない。(0, 0) は格納順で最初のピクセルであり、
原点位置の解釈は image_origin を参照する呼び出し側に任せる。
"""

import io
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from truevision.binary import read_exact
from truevision.errors import MalformedDataError, UnsupportedFormatError
from truevision.header import ImageOrigin, ImageType, TGAHeader
from truevision.logger import CodecLogger
from truevision.metadata import (
    DeveloperArea,
    ExtensionArea,
    TGAFooter,
    read_trailing_metadata,
)
from truevision.pixel_format import PixelFormat, Rgba, resolve_pixel_format
from truevision.rle import RLEDecoder

ALPHA_OFFSET = 3
"""BGRA32形式におけるアルファ値のバイト位置"""

OPAQUE = 0xFF


@dataclass(frozen=True)
class TGAImage:
    """デコード済みのTGA画像

    ピクセルデータは格納順（行優先）で、1ピクセルあたり
    pixel_format.bytes_per_pixel バイトの固定長レコードとして保持する。
    width / height / get_pixel_rgba を持つため、そのままエンコーダーに渡せる。

    Attributes:
        header: TGAヘッダー
        pixel_format: デコード後のピクセル形式
        pixel_data: ピクセルデータ
        image_id: 画像IDフィールドの内容（解釈しない）
        color_map: パレットの生データ
        footer: フッター（存在しない場合はNone）
        extension_area: 拡張領域（存在しない場合はNone）
        developer_area: 開発者領域（存在しない場合はNone）
    """

    header: TGAHeader
    pixel_format: PixelFormat
    pixel_data: bytes
    image_id: bytes = b""
    color_map: bytes = b""
    footer: TGAFooter | None = None
    extension_area: ExtensionArea | None = None
    developer_area: DeveloperArea | None = None

    @property
    def width(self) -> int:
        """画像の幅を返す"""
        return self.header.width

    @property
    def height(self) -> int:
        """画像の高さを返す"""
        return self.header.height

    @property
    def image_origin(self) -> ImageOrigin:
        """格納データの原点位置を返す"""
        return self.header.image_origin

    @property
    def bytes_per_pixel(self) -> int:
        """1ピクセルあたりのバイト数を返す"""
        return self.pixel_format.bytes_per_pixel

    @property
    def has_alpha(self) -> bool:
        """アルファチャンネルを持つかどうかを返す

        拡張領域がある場合はその属性タイプに従い、無い場合は
        属性ビット数が8またはピクセル形式がBGRA32であれば True とする。
        """
        if self.extension_area is not None:
            return self.extension_area.has_alpha
        return self.header.attribute_bits == 8 or self.pixel_format is PixelFormat.BGRA32

    def get_pixel_rgba(self, x: int, y: int) -> Rgba:
        """指定座標のピクセルを (r, g, b, a) で返す

        Args:
            x: X座標
            y: Y座標（TGAの慣例では (0, 0) が左下）

        Returns:
            8ビットずつの (r, g, b, a)

        Raises:
            IndexError: 座標が画像の範囲外の場合
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"座標 ({x}, {y}) が画像の範囲外です: {self.width}x{self.height}")

        size = self.bytes_per_pixel
        offset = (y * self.width + x) * size
        return self.pixel_format.to_rgba(self.pixel_data[offset : offset + size])


class TGADecoder:
    """TGA画像デコーダー

    使用例:
        >>> decoder = TGADecoder()
        >>> with open("image.tga", "rb") as f:
        ...     image = decoder.decode(f)
        >>> r, g, b, a = image.get_pixel_rgba(0, 0)
    """

    def __init__(self, logger: CodecLogger | None = None) -> None:
        """デコーダーを初期化する

        Args:
            logger: 解析情報の出力先（Noneの場合は出力しない）
        """
        self._logger = logger
        self._rle = RLEDecoder()

    def _debug(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message)

    def decode(self, stream: BinaryIO, force_alpha: bool = False) -> TGAImage:
        """TGA形式のストリームをデコードする

        Args:
            stream: ヘッダー先頭に位置するシーク可能なバイナリストリーム
            force_alpha: Trueの場合、格納されたアルファ値をそのまま使用する

        Returns:
            デコードされた画像

        Raises:
            TruncatedDataError: データが途中で途切れている場合
            MalformedDataError: パケットやパレット参照が不正な場合
            UnsupportedFormatError: 未対応の画像タイプや色深度の場合
            SeekNotSupportedError: ストリームがシークに対応していない場合
        """
        header = TGAHeader.parse(stream)
        self._debug(
            f"ヘッダー: type={int(header.image_type)} {header.width}x{header.height} "
            f"depth={header.pixel_depth} origin={header.image_origin.label}"
        )

        image_id = read_exact(stream, header.id_length, "画像ID")

        pixel_format = resolve_pixel_format(
            header.image_type, header.color_map_depth, header.pixel_depth
        )
        self._debug(f"ピクセル形式: {pixel_format.value}")

        color_map = read_exact(
            stream, header.color_map_length * pixel_format.bytes_per_pixel, "パレット"
        )

        trailing = read_trailing_metadata(stream)
        if trailing.footer is None:
            self._debug("フッターなし")
        else:
            self._debug(
                f"フッター: extension={trailing.footer.extension_offset} "
                f"developer={trailing.footer.developer_offset}"
            )

        declares_alpha = (
            trailing.extension_area is not None and trailing.extension_area.has_alpha
        )
        force_opaque = (
            pixel_format.has_alpha_channel and not declares_alpha and not force_alpha
        )

        pixel_data = self._read_pixel_data(
            stream, header, pixel_format, color_map, force_opaque
        )

        return TGAImage(
            header=header,
            pixel_format=pixel_format,
            pixel_data=pixel_data,
            image_id=image_id,
            color_map=color_map,
            footer=trailing.footer,
            extension_area=trailing.extension_area,
            developer_area=trailing.developer_area,
        )

    def _iter_raw_records(
        self, stream: BinaryIO, pixel_count: int, record_size: int
    ) -> Iterator[bytes]:
        """非圧縮のピクセルデータを1件ずつ返す"""
        data = read_exact(stream, pixel_count * record_size, "ピクセルデータ")
        for i in range(pixel_count):
            yield data[i * record_size : (i + 1) * record_size]

    def _read_pixel_data(
        self,
        stream: BinaryIO,
        header: TGAHeader,
        pixel_format: PixelFormat,
        color_map: bytes,
        force_opaque: bool,
    ) -> bytes:
        """ピクセルデータを読み取り、パレット参照とアルファ処理を適用する

        カラーマップ形式の場合、格納データはパレットのインデックスであるため
        ピクセル深度からレコード長を求める。
        """
        pixel_count = header.pixel_count
        record_size = header.stored_bytes_per_pixel
        bytes_per_pixel = pixel_format.bytes_per_pixel

        # 画像タイプはピクセル形式の決定時に検証済み
        image_type = ImageType(header.image_type)
        if image_type.is_rle:
            records = self._rle.iter_records(stream, pixel_count, record_size)
        else:
            records = self._iter_raw_records(stream, pixel_count, record_size)

        color_mapped = image_type.is_color_mapped

        output = bytearray(pixel_count * bytes_per_pixel)
        for i, record in enumerate(records):
            if color_mapped:
                pixel = self._lookup_palette(
                    record, header.color_map_start, color_map, bytes_per_pixel
                )
            else:
                pixel = record

            offset = i * bytes_per_pixel
            output[offset : offset + bytes_per_pixel] = pixel
            if force_opaque:
                output[offset + ALPHA_OFFSET] = OPAQUE

        return bytes(output)

    def _lookup_palette(
        self,
        record: bytes,
        color_map_start: int,
        color_map: bytes,
        entry_size: int,
    ) -> bytes:
        """パレットのインデックスを実際のピクセルデータに変換する

        Args:
            record: 1/2/4バイトのリトルエンディアンのインデックス
            color_map_start: パレット先頭エントリのインデックス
            color_map: パレットの生データ
            entry_size: パレット1エントリあたりのバイト数

        Returns:
            パレットエントリのバイト列

        Raises:
            UnsupportedFormatError: インデックスのバイト幅が1/2/4以外の場合
            MalformedDataError: インデックスがパレットの範囲外の場合
        """
        if len(record) not in (1, 2, 4):
            raise UnsupportedFormatError(
                f"インデックスのバイト長には対応していません: {len(record)}バイト"
            )

        index = int.from_bytes(record, "little")
        offset = (color_map_start + index) * entry_size
        if offset + entry_size > len(color_map):
            raise MalformedDataError(
                f"パレットインデックスが範囲外です: {index} (開始位置 {color_map_start})"
            )
        return color_map[offset : offset + entry_size]


def decode(
    source: BinaryIO | bytes,
    force_alpha: bool = False,
    logger: CodecLogger | None = None,
) -> TGAImage:
    """TGA形式のストリームまたはバイト列をデコードする

    Args:
        source: シーク可能なバイナリストリーム、またはTGAファイル全体のバイト列
        force_alpha: Trueの場合、格納されたアルファ値をそのまま使用する
        logger: 解析情報の出力先

    Returns:
        デコードされた画像
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(bytes(source))
    return TGADecoder(logger).decode(source, force_alpha=force_alpha)


def load(path: Path, force_alpha: bool = False, logger: CodecLogger | None = None) -> TGAImage:
    """TGAファイルを読み込む

    Raises:
        FileNotFoundError: ファイルが存在しない場合
    """
    if not path.exists():
        raise FileNotFoundError(f"ファイルが見つかりません: {path}")

    with open(path, "rb") as f:
        return TGADecoder(logger).decode(f, force_alpha=force_alpha)
