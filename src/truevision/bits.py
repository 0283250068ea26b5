"""ビット抽出モジュール"""

from truevision.errors import BitRangeError

BITS_PER_BYTE = 8


def extract_bits(value: int, bit_offset: int, bit_count: int) -> int:
    """1バイトの値から指定範囲のビットを取り出す

    ``value`` を ``bit_offset`` だけ右シフトし、下位 ``bit_count`` ビットでマスクする。

    Args:
        value: 抽出対象の8ビット値
        bit_offset: 抽出を開始するビット位置（0-7）
        bit_count: 抽出するビット数（0-8）

    Returns:
        抽出されたビット値

    Raises:
        BitRangeError: bit_offset と bit_count の合計が8を超える場合
    """
    if bit_offset < 0 or bit_count < 0 or bit_offset + bit_count > BITS_PER_BYTE:
        raise BitRangeError(
            f"bit_offset({bit_offset}) と bit_count({bit_count}) の合計が"
            f"{BITS_PER_BYTE}ビットを超えています"
        )

    return ((value & 0xFF) >> bit_offset) & ((1 << bit_count) - 1)
