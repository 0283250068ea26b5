"""TGAフッター・拡張領域・開発者領域モジュール

TGA 2.0で追加されたファイル末尾の任意構造を読み取る。
フッターはストリーム末尾26バイトに置かれ、拡張領域と開発者領域の
絶対オフセットを保持する。いずれの読み取りもシーク可能なストリームを必要とし、
読み取り後は必ず元の位置へ戻す。

フッターの構造:
- 拡張領域オフセット(4) + 開発者領域オフセット(4) + シグネチャ(18)
"""

import io
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from typing import BinaryIO

from truevision.binary import read_exact, read_struct
from truevision.errors import MalformedDataError, SeekNotSupportedError

FOOTER_SIGNATURE = b"TRUEVISION-XFILE.\x00"
"""フッターのシグネチャ（終端のヌル文字を含む）"""

FOOTER_SIZE = 26
"""フッターサイズ: 拡張領域オフセット(4) + 開発者領域オフセット(4) + シグネチャ(18)"""

EXTENSION_AREA_SIZE = 495
"""TGA 2.0拡張領域のサイズ（サイズフィールドを含む）"""


class AttributesType(IntEnum):
    """拡張領域のアルファチャンネル属性"""

    NO_ALPHA = 0
    UNDEFINED_IGNORABLE = 1
    UNDEFINED_RETAINED = 2
    HAS_ALPHA = 3
    HAS_PREMULTIPLIED_ALPHA = 4


@contextmanager
def scoped_seek(stream: BinaryIO) -> Iterator[BinaryIO]:
    """ストリーム位置を保存し、ブロック終了時に必ず復元する

    例外で抜けた場合も元の位置へ戻す。

    Args:
        stream: 対象のバイナリストリーム

    Yields:
        同じストリーム

    Raises:
        SeekNotSupportedError: ストリームがシークに対応していない場合
    """
    if not stream.seekable():
        raise SeekNotSupportedError(
            "フッターを探索できません: ストリームがシークに対応していません"
        )

    saved_position = stream.tell()
    try:
        yield stream
    finally:
        stream.seek(saved_position, io.SEEK_SET)


@dataclass(frozen=True)
class TGAFooter:
    """TGAフッター

    Attributes:
        extension_offset: 拡張領域の絶対オフセット（0=なし）
        developer_offset: 開発者領域の絶対オフセット（0=なし）
    """

    extension_offset: int
    developer_offset: int

    _STRUCT = struct.Struct("<II")

    @property
    def has_extension_area(self) -> bool:
        """拡張領域が存在するかどうかを返す"""
        return self.extension_offset != 0

    @property
    def has_developer_area(self) -> bool:
        """開発者領域が存在するかどうかを返す"""
        return self.developer_offset != 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "TGAFooter | None":
        """26バイトのバッファからフッターを解析する

        Returns:
            シグネチャが一致した場合はフッター、そうでない場合はNone
        """
        if len(data) != FOOTER_SIZE or data[8:] != FOOTER_SIGNATURE:
            return None
        extension_offset, developer_offset = cls._STRUCT.unpack(data[:8])
        return cls(extension_offset=extension_offset, developer_offset=developer_offset)

    def describe(self) -> list[tuple[str, str]]:
        """表示用の (項目名, 値) の一覧を返す"""
        return [
            ("ExtensionAreaOffset", str(self.extension_offset)),
            ("DeveloperDirectoryOffset", str(self.developer_offset)),
            ("Signature", FOOTER_SIGNATURE.rstrip(b"\x00").decode("ascii")),
        ]


@dataclass(frozen=True)
class ExtensionArea:
    """TGA拡張領域

    Attributes:
        extension_size: 拡張領域のサイズ（通常495）
        author_name: 作成者名
        author_comments: 作成者コメント
        timestamp: 作成日時（全フィールドが0の場合はNone）
        job_name: ジョブ名/ID
        job_time: ジョブ時間
        software_id: ソフトウェアID
        software_version: ソフトウェアバージョン（例: "1.23b"）
        key_color: キーカラー（ARGB）
        pixel_aspect_ratio: ピクセルのアスペクト比（幅, 高さ）
        gamma: ガンマ値（分子, 分母）
        color_correction_offset: カラー補正テーブルのオフセット
        postage_stamp_offset: サムネイルのオフセット
        scan_line_offset: スキャンラインテーブルのオフセット
        attributes_type: アルファチャンネル属性（未知の値は整数のまま保持）
    """

    extension_size: int
    author_name: str
    author_comments: str
    timestamp: datetime | None
    job_name: str
    job_time: timedelta
    software_id: str
    software_version: str
    key_color: int
    pixel_aspect_ratio: tuple[int, int]
    gamma: tuple[int, int]
    color_correction_offset: int
    postage_stamp_offset: int
    scan_line_offset: int
    attributes_type: AttributesType | int

    @property
    def has_alpha(self) -> bool:
        """有効なアルファチャンネルを宣言しているかどうかを返す"""
        return self.attributes_type in (
            AttributesType.HAS_ALPHA,
            AttributesType.HAS_PREMULTIPLIED_ALPHA,
        )

    @property
    def gamma_value(self) -> float | None:
        """ガンマ値を返す（分母が0の場合はNone）"""
        numerator, denominator = self.gamma
        if denominator == 0:
            return None
        return numerator / denominator

    def describe(self) -> list[tuple[str, str]]:
        """表示用の (項目名, 値) の一覧を返す"""
        width, height = self.pixel_aspect_ratio
        gamma = self.gamma_value
        hours, remainder = divmod(int(self.job_time.total_seconds()), 3600)
        minutes, seconds = divmod(remainder, 60)

        return [
            ("ExtensionSize", str(self.extension_size)),
            ("AuthorName", self.author_name),
            ("AuthorComments", self.author_comments),
            (
                "TimeStamp",
                self.timestamp.strftime("%Y/%m/%d %H:%M:%S")
                if self.timestamp is not None
                else "not specified",
            ),
            ("Job Name/ID", self.job_name),
            ("JobTime", f"{hours:02d}:{minutes:02d}:{seconds:02d}"),
            ("SoftwareID", self.software_id),
            ("SoftwareVersion", self.software_version),
            ("KeyColor", f"#{self.key_color:08X}"),
            ("PixelAspectRatio", f"{width}:{height}" if height != 0 else "not specified"),
            ("GammaValue", f"{gamma:.1f}" if gamma is not None else "not specified"),
            ("ColorCorrectionOffset", str(self.color_correction_offset)),
            ("PostageStampOffset", str(self.postage_stamp_offset)),
            ("ScanLineOffset", str(self.scan_line_offset)),
            ("AttributesType", str(int(self.attributes_type))),
        ]


@dataclass(frozen=True)
class DeveloperField:
    """開発者領域のタグ1件

    Attributes:
        tag: タグ番号
        offset: データの絶対オフセット
        size: データサイズ（バイト）
    """

    tag: int
    offset: int
    size: int


@dataclass(frozen=True)
class DeveloperArea:
    """TGA開発者領域（タグディレクトリ）"""

    fields: tuple[DeveloperField, ...]


@dataclass(frozen=True)
class TrailingMetadata:
    """ファイル末尾の任意構造をまとめたもの

    フッターが無い場合はすべてNoneとなる。
    """

    footer: TGAFooter | None = None
    extension_area: ExtensionArea | None = None
    developer_area: DeveloperArea | None = None


_UINT16 = struct.Struct("<H")
_UINT32 = struct.Struct("<I")
_TIMESTAMP = struct.Struct("<6H")
_JOB_TIME = struct.Struct("<3H")
_SOFTWARE_VERSION = struct.Struct("<Hc")
_EXTENSION_TAIL = struct.Struct("<I4H3IB")
_DEVELOPER_FIELD = struct.Struct("<HII")


def _stream_length(stream: BinaryIO) -> int:
    """ストリームの全長を返す（呼び出し側でscoped_seekしていること）"""
    return stream.seek(0, io.SEEK_END)


def read_footer(stream: BinaryIO) -> TGAFooter | None:
    """ストリーム末尾のフッターを読み取る

    ストリーム位置は呼び出し前の位置に戻る。

    Args:
        stream: シーク可能なバイナリストリーム

    Returns:
        シグネチャが一致した場合はフッター、そうでない場合はNone

    Raises:
        SeekNotSupportedError: ストリームがシークに対応していない場合
    """
    with scoped_seek(stream):
        length = _stream_length(stream)
        if length < FOOTER_SIZE:
            return None

        stream.seek(length - FOOTER_SIZE, io.SEEK_SET)
        data = stream.read(FOOTER_SIZE)
        return TGAFooter.from_bytes(data)


def _read_ascii(stream: BinaryIO, size: int, what: str) -> str:
    """固定長のASCII文字列を読み取り、末尾のヌル文字を除去する"""
    raw = read_exact(stream, size, what)
    return raw.decode("ascii", errors="replace").rstrip("\x00")


def _read_timestamp(stream: BinaryIO) -> datetime | None:
    """作成日時を読み取る（全フィールドが0の場合はNone）"""
    month, day, year, hour, minute, second = read_struct(stream, _TIMESTAMP, "拡張領域の日時")

    if (year, month, day, hour, minute, second) == (0, 0, 0, 0, 0, 0):
        return None

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise MalformedDataError(f"拡張領域の日時が不正です: {e}") from e


def _read_software_version(stream: BinaryIO) -> str:
    """ソフトウェアバージョンを読み取る

    バージョン番号は100倍された整数で格納され、その後に1文字の版記号が続く。
    """
    number, letter = read_struct(stream, _SOFTWARE_VERSION, "ソフトウェアバージョン")
    suffix = letter.decode("ascii", errors="replace").rstrip("\x00").rstrip(" ")
    return f"{number / 100:.2f}{suffix}"


def read_extension_area(stream: BinaryIO, offset: int) -> ExtensionArea:
    """指定オフセットの拡張領域を読み取る

    ストリーム位置は呼び出し前の位置に戻る（例外発生時も同様）。

    Args:
        stream: シーク可能なバイナリストリーム
        offset: 拡張領域の絶対オフセット

    Returns:
        解析された拡張領域

    Raises:
        SeekNotSupportedError: ストリームがシークに対応していない場合
        TruncatedDataError: 拡張領域が途中で途切れている場合
    """
    with scoped_seek(stream):
        stream.seek(offset, io.SEEK_SET)

        (extension_size,) = read_struct(stream, _UINT16, "拡張領域サイズ")
        author_name = _read_ascii(stream, 41, "作成者名")
        author_comments = _read_ascii(stream, 324, "作成者コメント")
        timestamp = _read_timestamp(stream)
        job_name = _read_ascii(stream, 41, "ジョブ名")
        hours, minutes, seconds = read_struct(stream, _JOB_TIME, "ジョブ時間")
        software_id = _read_ascii(stream, 41, "ソフトウェアID")
        software_version = _read_software_version(stream)
        (
            key_color,
            aspect_width,
            aspect_height,
            gamma_numerator,
            gamma_denominator,
            color_correction_offset,
            postage_stamp_offset,
            scan_line_offset,
            attributes_type,
        ) = read_struct(stream, _EXTENSION_TAIL, "拡張領域")

    try:
        attributes: AttributesType | int = AttributesType(attributes_type)
    except ValueError:
        attributes = attributes_type

    return ExtensionArea(
        extension_size=extension_size,
        author_name=author_name,
        author_comments=author_comments,
        timestamp=timestamp,
        job_name=job_name,
        job_time=timedelta(hours=hours, minutes=minutes, seconds=seconds),
        software_id=software_id,
        software_version=software_version,
        key_color=key_color,
        pixel_aspect_ratio=(aspect_width, aspect_height),
        gamma=(gamma_numerator, gamma_denominator),
        color_correction_offset=color_correction_offset,
        postage_stamp_offset=postage_stamp_offset,
        scan_line_offset=scan_line_offset,
        attributes_type=attributes,
    )


def read_developer_area(stream: BinaryIO, offset: int) -> DeveloperArea:
    """指定オフセットの開発者領域を読み取る

    タグ数(2) に続いて、タグ(2) + オフセット(4) + サイズ(4) のレコードが並ぶ。
    ストリーム位置は呼び出し前の位置に戻る（例外発生時も同様）。

    Raises:
        SeekNotSupportedError: ストリームがシークに対応していない場合
        TruncatedDataError: タグディレクトリが途中で途切れている場合
    """
    with scoped_seek(stream):
        stream.seek(offset, io.SEEK_SET)

        (tag_count,) = read_struct(stream, _UINT16, "開発者領域のタグ数")
        fields: list[DeveloperField] = []
        for _ in range(tag_count):
            tag, field_offset, size = read_struct(stream, _DEVELOPER_FIELD, "開発者領域のタグ")
            fields.append(DeveloperField(tag=tag, offset=field_offset, size=size))

    return DeveloperArea(fields=tuple(fields))


def read_trailing_metadata(stream: BinaryIO) -> TrailingMetadata:
    """フッターと、フッターが指す拡張領域・開発者領域をまとめて読み取る

    Raises:
        SeekNotSupportedError: ストリームがシークに対応していない場合
    """
    footer = read_footer(stream)
    if footer is None:
        return TrailingMetadata()

    extension_area = (
        read_extension_area(stream, footer.extension_offset)
        if footer.has_extension_area
        else None
    )
    developer_area = (
        read_developer_area(stream, footer.developer_offset)
        if footer.has_developer_area
        else None
    )

    return TrailingMetadata(
        footer=footer,
        extension_area=extension_area,
        developer_area=developer_area,
    )
