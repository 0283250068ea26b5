"""Pillow連携モジュール

PIL.Imageとコーデックの間の変換を提供する。
コーデック自体は原点補正を行わないため、画像の向きはここで image_origin に従って補正する。
"""

from PIL import Image

from truevision.decoder import TGAImage
from truevision.pixel_format import PixelFormat, Rgba


class PILPixelAccessor:
    """PIL.Imageをピクセルアクセサとして扱うアダプター

    TGAの慣例に合わせ、y=0 を画像の最下行として参照する。

    Attributes:
        image: RGBAに変換済みのPIL.Imageオブジェクト
    """

    def __init__(self, image: Image.Image) -> None:
        """アダプターを初期化する

        Args:
            image: 任意モードのPIL.Imageオブジェクト（内部でRGBAに変換する）
        """
        self.image = image if image.mode == "RGBA" else image.convert("RGBA")
        self._pixels = self.image.load()

    @property
    def width(self) -> int:
        """画像の幅を返す"""
        return self.image.width

    @property
    def height(self) -> int:
        """画像の高さを返す"""
        return self.image.height

    def get_pixel_rgba(self, x: int, y: int) -> Rgba:
        """左下原点の座標でピクセルを (r, g, b, a) として返す"""
        r, g, b, a = self._pixels[x, self.image.height - 1 - y]
        return r, g, b, a


def _pil_mode(image: TGAImage) -> str:
    """デコード済み画像に対応するPILの画像モードを返す"""
    if image.pixel_format is PixelFormat.GRAY8:
        return "L"
    if image.pixel_format is PixelFormat.BGRA32:
        return "RGBA"
    return "RGB"


def to_pil_image(image: TGAImage) -> Image.Image:
    """デコード済みのTGA画像をPIL.Imageオブジェクトに変換する

    原点位置に従って上下左右を補正し、正立した画像を返す。
    グレースケールは "L"、BGRA32は "RGBA"、それ以外は "RGB" モードとなる。

    Args:
        image: デコード済みのTGA画像

    Returns:
        変換されたPIL.Imageオブジェクト
    """
    mode = _pil_mode(image)
    width, height = image.width, image.height

    if mode == "L":
        pil_image = Image.frombytes("L", (width, height), image.pixel_data)
    else:
        channels = len(mode)
        data = bytearray(width * height * channels)
        offset = 0
        for y in range(height):
            for x in range(width):
                rgba = image.get_pixel_rgba(x, y)
                data[offset : offset + channels] = bytes(rgba[:channels])
                offset += channels
        pil_image = Image.frombytes(mode, (width, height), bytes(data))

    # 格納データの先頭行は、原点が下側の場合は画像の最下行にあたる
    origin = image.image_origin
    if not origin.is_top:
        pil_image = pil_image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    if origin.is_right:
        pil_image = pil_image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    return pil_image
