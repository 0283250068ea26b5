"""TGAデータ生成用フィクスチャ"""

import struct
from collections.abc import Callable

import pytest

FOOTER_SIGNATURE = b"TRUEVISION-XFILE.\x00"


def pack_header(
    *,
    id_length: int = 0,
    color_map_type: int = 0,
    image_type: int = 2,
    color_map_start: int = 0,
    color_map_length: int = 0,
    color_map_depth: int = 0,
    width: int = 2,
    height: int = 2,
    pixel_depth: int = 24,
    image_descriptor: int = 0,
) -> bytes:
    """18バイトのTGAヘッダーを生成する"""
    return struct.pack(
        "<BBBHHBHHHHBB",
        id_length,
        color_map_type,
        image_type,
        color_map_start,
        color_map_length,
        color_map_depth,
        0,
        0,
        width,
        height,
        pixel_depth,
        image_descriptor,
    )


def pack_extension_area(
    *,
    author_name: bytes = b"",
    author_comments: bytes = b"",
    timestamp: tuple[int, int, int, int, int, int] = (0, 0, 0, 0, 0, 0),
    job_name: bytes = b"",
    job_time: tuple[int, int, int] = (0, 0, 0),
    software_id: bytes = b"",
    software_version: tuple[int, bytes] = (0, b" "),
    key_color: int = 0,
    pixel_aspect_ratio: tuple[int, int] = (0, 0),
    gamma: tuple[int, int] = (0, 0),
    offsets: tuple[int, int, int] = (0, 0, 0),
    attributes_type: int = 0,
) -> bytes:
    """495バイトの拡張領域を生成する

    Args:
        timestamp: (月, 日, 年, 時, 分, 秒)
        job_time: (時, 分, 秒)
        software_version: (バージョン番号x100, 版記号)
    """
    data = struct.pack("<H", 495)
    data += author_name.ljust(41, b"\x00")
    data += author_comments.ljust(324, b"\x00")
    data += struct.pack("<6H", *timestamp)
    data += job_name.ljust(41, b"\x00")
    data += struct.pack("<3H", *job_time)
    data += software_id.ljust(41, b"\x00")
    data += struct.pack("<Hc", *software_version)
    data += struct.pack("<I", key_color)
    data += struct.pack("<4H", *pixel_aspect_ratio, *gamma)
    data += struct.pack("<3I", *offsets)
    data += struct.pack("<B", attributes_type)
    assert len(data) == 495
    return data


def build_tga(
    header: bytes,
    *,
    image_id: bytes = b"",
    color_map: bytes = b"",
    pixel_data: bytes = b"",
    extension_area: bytes | None = None,
    developer_fields: list[tuple[int, int, int]] | None = None,
    footer: bool = False,
) -> bytes:
    """TGAファイル全体のバイト列を生成する

    拡張領域または開発者領域を指定した場合はフッターも付加する。
    """
    data = header + image_id + color_map + pixel_data

    extension_offset = 0
    if extension_area is not None:
        extension_offset = len(data)
        data += extension_area

    developer_offset = 0
    if developer_fields is not None:
        developer_offset = len(data)
        data += struct.pack("<H", len(developer_fields))
        for tag, offset, size in developer_fields:
            data += struct.pack("<HII", tag, offset, size)

    if footer or extension_offset or developer_offset:
        data += struct.pack("<II", extension_offset, developer_offset) + FOOTER_SIGNATURE
    return data


@pytest.fixture
def tga_header() -> Callable[..., bytes]:
    """ヘッダー生成関数"""
    return pack_header


@pytest.fixture
def tga_extension_area() -> Callable[..., bytes]:
    """拡張領域生成関数"""
    return pack_extension_area


@pytest.fixture
def tga_file() -> Callable[..., bytes]:
    """TGAファイル生成関数"""
    return build_tga
