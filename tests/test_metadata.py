"""フッター・拡張領域・開発者領域のテスト"""

import io
from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from truevision.errors import MalformedDataError, SeekNotSupportedError, TruncatedDataError
from truevision.metadata import (
    FOOTER_SIGNATURE,
    FOOTER_SIZE,
    AttributesType,
    TGAFooter,
    read_developer_area,
    read_extension_area,
    read_footer,
    read_trailing_metadata,
    scoped_seek,
)


class NonSeekableStream(io.RawIOBase):
    """シークできない読み取り専用ストリーム"""

    def __init__(self, data: bytes) -> None:
        self._buffer = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, b: bytearray) -> int:  # type: ignore[override]
        data = self._buffer.read(len(b))
        b[: len(data)] = data
        return len(data)


class TestScopedSeek:
    """scoped_seek()のテスト"""

    def test_restores_position(self) -> None:
        """ブロック終了後に元の位置へ戻る"""
        stream = io.BytesIO(b"0123456789")
        stream.seek(3)
        with scoped_seek(stream):
            stream.seek(0, io.SEEK_END)
        assert stream.tell() == 3

    def test_restores_position_on_error(self) -> None:
        """例外で抜けた場合も元の位置へ戻る"""
        stream = io.BytesIO(b"0123456789")
        stream.seek(4)
        with pytest.raises(RuntimeError), scoped_seek(stream):
            stream.seek(8)
            raise RuntimeError("boom")
        assert stream.tell() == 4

    def test_non_seekable_stream(self) -> None:
        """シークできないストリームはSeekNotSupportedErrorとなる"""
        with pytest.raises(SeekNotSupportedError), scoped_seek(NonSeekableStream(b"abc")):
            pass


class TestReadFooter:
    """read_footer()のテスト"""

    def test_valid_footer(self) -> None:
        """シグネチャが一致すればオフセットが読み取られる"""
        data = b"\x00" * 40 + (10).to_bytes(4, "little") + (20).to_bytes(4, "little")
        stream = io.BytesIO(data + FOOTER_SIGNATURE)
        stream.seek(5)

        footer = read_footer(stream)

        assert footer == TGAFooter(extension_offset=10, developer_offset=20)
        assert footer.has_extension_area
        assert footer.has_developer_area
        assert stream.tell() == 5

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param(b"\x00" * 100, id="シグネチャなし"),
            pytest.param(b"\x00" * 8 + b"TRUEVISION-XFILE.X", id="終端のヌル文字が異なる"),
            pytest.param(b"\x00" * 8 + b"truevision-xfile.\x00", id="大文字小文字が異なる"),
            pytest.param(FOOTER_SIGNATURE, id="26バイト未満"),
            pytest.param(b"", id="空のストリーム"),
        ],
    )
    def test_footer_absent(self, data: bytes) -> None:
        """シグネチャが一致しない場合はNoneを返す"""
        assert read_footer(io.BytesIO(data)) is None

    def test_zero_offsets_mean_absent(self) -> None:
        """オフセット0は領域なしを表す"""
        footer = TGAFooter.from_bytes(b"\x00" * 8 + FOOTER_SIGNATURE)
        assert footer is not None
        assert not footer.has_extension_area
        assert not footer.has_developer_area

    def test_footer_size(self) -> None:
        """フッターは26バイト"""
        assert FOOTER_SIZE == 26
        assert len(FOOTER_SIGNATURE) == 18

    def test_non_seekable_stream(self) -> None:
        """シークできないストリームはSeekNotSupportedErrorとなる"""
        with pytest.raises(SeekNotSupportedError):
            read_footer(NonSeekableStream(b"\x00" * 64))


class TestReadExtensionArea:
    """read_extension_area()のテスト"""

    def test_all_fields(self, tga_extension_area: Callable[..., bytes]) -> None:
        """拡張領域の全フィールドが読み取られる"""
        area = tga_extension_area(
            author_name=b"Alice",
            author_comments=b"hello",
            timestamp=(12, 31, 1999, 23, 59, 58),
            job_name=b"job-1",
            job_time=(1, 2, 3),
            software_id=b"Painter",
            software_version=(123, b"b"),
            key_color=0xFF00FF00,
            pixel_aspect_ratio=(4, 3),
            gamma=(22, 10),
            offsets=(100, 200, 300),
            attributes_type=3,
        )
        stream = io.BytesIO(b"\x00" * 7 + area)

        extension = read_extension_area(stream, 7)

        assert extension.extension_size == 495
        assert extension.author_name == "Alice"
        assert extension.author_comments == "hello"
        assert extension.timestamp == datetime(1999, 12, 31, 23, 59, 58)
        assert extension.job_name == "job-1"
        assert extension.job_time == timedelta(hours=1, minutes=2, seconds=3)
        assert extension.software_id == "Painter"
        assert extension.software_version == "1.23b"
        assert extension.key_color == 0xFF00FF00
        assert extension.pixel_aspect_ratio == (4, 3)
        assert extension.gamma == (22, 10)
        assert extension.gamma_value == pytest.approx(2.2)
        assert extension.color_correction_offset == 100
        assert extension.postage_stamp_offset == 200
        assert extension.scan_line_offset == 300
        assert extension.attributes_type is AttributesType.HAS_ALPHA
        assert extension.has_alpha
        assert stream.tell() == 0

    def test_zero_timestamp_is_none(self, tga_extension_area: Callable[..., bytes]) -> None:
        """日時が全て0の場合はNoneとなる"""
        extension = read_extension_area(io.BytesIO(tga_extension_area()), 0)
        assert extension.timestamp is None
        assert extension.software_version == "0.00"
        assert extension.gamma_value is None

    def test_invalid_timestamp(self, tga_extension_area: Callable[..., bytes]) -> None:
        """存在しない日付はMalformedDataErrorとなる"""
        area = tga_extension_area(timestamp=(13, 40, 2000, 0, 0, 0))
        with pytest.raises(MalformedDataError):
            read_extension_area(io.BytesIO(area), 0)

    @pytest.mark.parametrize(
        "attributes_type, expected",
        [
            pytest.param(0, False, id="アルファなし"),
            pytest.param(1, False, id="未定義（無視可能）"),
            pytest.param(2, False, id="未定義（保持）"),
            pytest.param(3, True, id="アルファあり"),
            pytest.param(4, True, id="乗算済みアルファ"),
            pytest.param(9, False, id="未知の値"),
        ],
    )
    def test_has_alpha(
        self,
        tga_extension_area: Callable[..., bytes],
        attributes_type: int,
        expected: bool,
    ) -> None:
        """属性タイプ3/4のみアルファありと判定される"""
        area = tga_extension_area(attributes_type=attributes_type)
        assert read_extension_area(io.BytesIO(area), 0).has_alpha is expected

    def test_truncated_restores_position(self, tga_extension_area: Callable[..., bytes]) -> None:
        """途中で途切れた場合もストリーム位置が復元される"""
        stream = io.BytesIO(tga_extension_area()[:100])
        stream.seek(10)
        with pytest.raises(TruncatedDataError):
            read_extension_area(stream, 0)
        assert stream.tell() == 10

    def test_describe(self, tga_extension_area: Callable[..., bytes]) -> None:
        """describe()に表示用の値が含まれる"""
        area = tga_extension_area(job_time=(0, 5, 7), pixel_aspect_ratio=(1, 1), gamma=(1, 1))
        rows = dict(read_extension_area(io.BytesIO(area), 0).describe())
        assert rows["TimeStamp"] == "not specified"
        assert rows["JobTime"] == "00:05:07"
        assert rows["PixelAspectRatio"] == "1:1"
        assert rows["GammaValue"] == "1.0"


class TestReadDeveloperArea:
    """read_developer_area()のテスト"""

    def test_fields(self) -> None:
        """タグディレクトリが順に読み取られる"""
        data = (
            (2).to_bytes(2, "little")
            + (1).to_bytes(2, "little")
            + (100).to_bytes(4, "little")
            + (8).to_bytes(4, "little")
            + (65535).to_bytes(2, "little")
            + (200).to_bytes(4, "little")
            + (0).to_bytes(4, "little")
        )
        area = read_developer_area(io.BytesIO(data), 0)
        assert [(f.tag, f.offset, f.size) for f in area.fields] == [(1, 100, 8), (65535, 200, 0)]

    def test_truncated(self) -> None:
        """タグ数に対してレコードが足りない場合はTruncatedDataErrorとなる"""
        with pytest.raises(TruncatedDataError):
            read_developer_area(io.BytesIO(b"\x02\x00" + b"\x00" * 10), 0)


class TestReadTrailingMetadata:
    """read_trailing_metadata()のテスト"""

    def test_without_footer(self, tga_header: Callable[..., bytes]) -> None:
        """フッターが無い場合は全てNoneとなる"""
        trailing = read_trailing_metadata(io.BytesIO(tga_header() + b"\x00" * 12))
        assert trailing.footer is None
        assert trailing.extension_area is None
        assert trailing.developer_area is None

    def test_with_extension_and_developer_area(
        self,
        tga_header: Callable[..., bytes],
        tga_extension_area: Callable[..., bytes],
        tga_file: Callable[..., bytes],
    ) -> None:
        """フッターが指す拡張領域と開発者領域が読み取られる"""
        data = tga_file(
            tga_header(),
            pixel_data=b"\x00" * 12,
            extension_area=tga_extension_area(author_name=b"Bob"),
            developer_fields=[(7, 30, 4)],
        )
        stream = io.BytesIO(data)
        stream.seek(18)

        trailing = read_trailing_metadata(stream)

        assert trailing.footer is not None
        assert trailing.extension_area is not None
        assert trailing.extension_area.author_name == "Bob"
        assert trailing.developer_area is not None
        assert trailing.developer_area.fields[0].tag == 7
        assert stream.tell() == 18

    def test_footer_only(self, tga_header: Callable[..., bytes], tga_file: Callable[..., bytes]) -> None:
        """オフセットが0のフッターは領域なしとして扱われる"""
        trailing = read_trailing_metadata(io.BytesIO(tga_file(tga_header(), footer=True)))
        assert trailing.footer is not None
        assert trailing.extension_area is None
        assert trailing.developer_area is None
