"""truevision - Truevision TGA image codec and CLI tool."""

from truevision.decoder import TGADecoder, TGAImage, decode, load
from truevision.encoder import PixelAccessor, SaveMode, TGAEncoder, encode, save
from truevision.errors import (
    BitRangeError,
    MalformedDataError,
    SeekNotSupportedError,
    TGAError,
    TruncatedDataError,
    UnsupportedFormatError,
)
from truevision.header import ImageOrigin, ImageType, TGAHeader
from truevision.logger import CodecLogger, LogConfig, VerboseLevel
from truevision.pixel_format import PixelFormat

__version__ = "0.1.0"

__all__ = [
    "BitRangeError",
    "CodecLogger",
    "ImageOrigin",
    "ImageType",
    "LogConfig",
    "MalformedDataError",
    "PixelAccessor",
    "PixelFormat",
    "SaveMode",
    "SeekNotSupportedError",
    "TGADecoder",
    "TGAEncoder",
    "TGAError",
    "TGAHeader",
    "TGAImage",
    "TruncatedDataError",
    "UnsupportedFormatError",
    "VerboseLevel",
    "decode",
    "encode",
    "load",
    "save",
]
