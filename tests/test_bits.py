"""ビット抽出のテスト"""

import pytest

from truevision.bits import extract_bits
from truevision.errors import BitRangeError, MalformedDataError


class TestExtractBits:
    """extract_bits()のテスト"""

    @pytest.mark.parametrize(
        "value, bit_offset, bit_count, expected",
        [
            pytest.param(0xCC, 2, 5, 19, id="正常系: 0b11001100の2ビット目から5ビット"),
            pytest.param(0x20, 4, 2, 2, id="正常系: 原点位置ビット（左上）"),
            pytest.param(0x28, 0, 4, 8, id="正常系: 属性ビット数"),
            pytest.param(0xFF, 0, 8, 0xFF, id="正常系: 全ビット"),
            pytest.param(0xFF, 3, 0, 0, id="正常系: 0ビット抽出"),
            pytest.param(0x1F0, 4, 4, 0xF, id="正常系: 下位8ビットのみ参照"),
        ],
    )
    def test_extract_bits(
        self, value: int, bit_offset: int, bit_count: int, expected: int
    ) -> None:
        """指定範囲のビットが取り出される"""
        assert extract_bits(value, bit_offset, bit_count) == expected

    @pytest.mark.parametrize(
        "bit_offset, bit_count",
        [
            pytest.param(5, 4, id="異常系: 合計が8ビットを超える"),
            pytest.param(8, 1, id="異常系: オフセットが8"),
            pytest.param(-1, 2, id="異常系: 負のオフセット"),
            pytest.param(0, -1, id="異常系: 負のビット数"),
        ],
    )
    def test_extract_bits_out_of_range(self, bit_offset: int, bit_count: int) -> None:
        """範囲外の指定でBitRangeErrorが発生する"""
        with pytest.raises(BitRangeError):
            extract_bits(0xCC, bit_offset, bit_count)

    def test_every_offset_and_count_pair(self) -> None:
        """オフセットとビット数の合計が8以下なら成功し、超えると必ずエラーになる"""
        for bit_offset in range(9):
            for bit_count in range(9):
                if bit_offset + bit_count > 8:
                    with pytest.raises(BitRangeError):
                        extract_bits(0xFF, bit_offset, bit_count)
                else:
                    assert extract_bits(0xFF, bit_offset, bit_count) == (1 << bit_count) - 1

    def test_bit_range_error_is_malformed_data_error(self) -> None:
        """BitRangeErrorはMalformedDataErrorとして捕捉できる"""
        with pytest.raises(MalformedDataError):
            extract_bits(0x00, 7, 2)
